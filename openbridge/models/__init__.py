"""
数据模型模块

提供入站（Anthropic Messages）与出站（OpenAI chat completions）两侧的
请求/响应结构，以及错误类型定义。
"""

from .anthropic import (
    AnthropicContentBlock,
    AnthropicMessage,
    AnthropicMessageResponse,
    AnthropicRequest,
    AnthropicTextBlock,
    AnthropicToolDefinition,
    AnthropicToolResultBlock,
    AnthropicToolUseBlock,
    AnthropicUsage,
)
from .errors import (
    AuditSchemaError,
    BridgeError,
    MalformedInboundError,
    MalformedUpstreamError,
    ProviderError,
    TransportError,
)
from .openai import (
    OpenAIErrorDetail,
    OpenAIFunctionDefinition,
    OpenAIMessage,
    OpenAIRequest,
    OpenAITool,
    OpenAIToolCall,
    OpenAIToolCallFunction,
)

__all__ = [
    # Anthropic
    "AnthropicContentBlock",
    "AnthropicMessage",
    "AnthropicMessageResponse",
    "AnthropicRequest",
    "AnthropicTextBlock",
    "AnthropicToolDefinition",
    "AnthropicToolResultBlock",
    "AnthropicToolUseBlock",
    "AnthropicUsage",
    # OpenAI
    "OpenAIErrorDetail",
    "OpenAIFunctionDefinition",
    "OpenAIMessage",
    "OpenAIRequest",
    "OpenAITool",
    "OpenAIToolCall",
    "OpenAIToolCallFunction",
    # 错误
    "AuditSchemaError",
    "BridgeError",
    "MalformedInboundError",
    "MalformedUpstreamError",
    "ProviderError",
    "TransportError",
]
