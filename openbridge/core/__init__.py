"""
核心功能模块

子模块:
- providers: 根据上游地址识别服务商及其工具调用约定
- clients: OpenAI兼容接口客户端
- converters: Anthropic <-> OpenAI 格式转换器
- classifier: 上游响应分类
"""

from .classifier import Classification, ResultKind, classify_result
from .clients import OpenAIServiceClient
from .converters import (
    AnthropicToOpenAIConverter,
    OpenAIToAnthropicConverter,
)
from .providers import Provider, classify_provider, tool_convention_for

__all__ = [
    # 服务商
    "Provider",
    "classify_provider",
    "tool_convention_for",
    # 客户端
    "OpenAIServiceClient",
    # 转换器
    "AnthropicToOpenAIConverter",
    "OpenAIToAnthropicConverter",
    # 响应分类
    "Classification",
    "ResultKind",
    "classify_result",
]
