"""
Anthropic-to-OpenAI 请求转换器

该模块提供将Anthropic格式请求转换为OpenAI兼容格式的功能。
"""

import json
from typing import Any

from openbridge.common.logging import get_logger_with_request_id
from openbridge.core.providers import Provider, ToolConvention, tool_convention_for
from openbridge.models.anthropic import (
    AnthropicMessage,
    AnthropicRequest,
    AnthropicTextBlock,
    AnthropicToolDefinition,
    AnthropicToolResultBlock,
    AnthropicToolUseBlock,
)
from openbridge.models.openai import (
    OpenAIFunctionDefinition,
    OpenAIMessage,
    OpenAIRequest,
    OpenAITool,
    OpenAIToolCall,
    OpenAIToolCallFunction,
)

DEFAULT_TOOL_CHOICE = "auto"


class AnthropicToOpenAIConverter:
    """将Anthropic请求转换为OpenAI格式"""

    @staticmethod
    def convert_anthropic_to_openai(
        anthropic_request: AnthropicRequest,
        provider: Provider,
        max_tokens_ceiling: int,
        default_model: str = "",
        request_id: str | None = None,
    ) -> OpenAIRequest:
        """
        将Anthropic请求转换为OpenAI格式请求

        Args:
            anthropic_request: Anthropic格式的请求
            provider: 识别出的上游服务商，用于选择工具调用约定
            max_tokens_ceiling: 服务端配置的最大输出token上限
            default_model: 请求未指定模型时使用的默认模型
            request_id: 请求ID用于日志追踪

        Returns:
            转换后的OpenAI格式请求
        """
        bound_logger = get_logger_with_request_id(request_id)

        convention = tool_convention_for(provider)
        messages = AnthropicToOpenAIConverter._convert_messages(
            anthropic_request.messages
        )
        max_tokens = anthropic_request.effective_max_tokens(max_tokens_ceiling)

        tool_fields: dict[str, Any] = {}
        if anthropic_request.tools:
            tool_fields[convention.tools_field] = (
                AnthropicToOpenAIConverter._convert_tools(
                    anthropic_request.tools, convention
                )
            )
            tool_fields[convention.choice_field] = (
                AnthropicToOpenAIConverter._convert_tool_choice(
                    anthropic_request.tool_choice
                )
            )

        openai_request = OpenAIRequest(
            model=anthropic_request.model or default_model,
            messages=messages,
            temperature=anthropic_request.temperature,
            max_tokens=max_tokens,
            **tool_fields,
        )

        bound_logger.debug(
            f"请求转换完成 - Provider: {provider.value}, Convention: {convention.name}, "
            f"Messages: {len(anthropic_request.messages)} -> {len(messages)}, "
            f"MaxTokens: {max_tokens}"
        )
        return openai_request

    @staticmethod
    def _convert_messages(
        anthropic_messages: list[AnthropicMessage],
    ) -> list[OpenAIMessage]:
        """
        将Anthropic消息列表转换为OpenAI消息格式

        Args:
            anthropic_messages: Anthropic消息列表

        Returns:
            OpenAI格式的消息列表，顺序与输入保持一致
        """
        messages: list[OpenAIMessage] = []
        for anthropic_msg in anthropic_messages:
            messages.extend(
                AnthropicToOpenAIConverter._convert_single_message(anthropic_msg)
            )
        return messages

    @staticmethod
    def _convert_single_message(
        anthropic_msg: AnthropicMessage,
    ) -> list[OpenAIMessage]:
        """
        转换单个Anthropic消息

        内容块消息折叠为至多一条主消息（拼接的文本 + tool_calls），
        其后每个 tool_result 块各自生成一条 tool 消息。

        Args:
            anthropic_msg: 单个Anthropic消息

        Returns:
            OpenAI格式的消息列表
        """
        if isinstance(anthropic_msg.content, str):
            return [OpenAIMessage(role=anthropic_msg.role, content=anthropic_msg.content)]

        text_parts: list[str] = []
        tool_calls: list[OpenAIToolCall] = []
        tool_messages: list[OpenAIMessage] = []

        for block in anthropic_msg.content:
            if isinstance(block, AnthropicTextBlock):
                text_parts.append(block.text)
            elif isinstance(block, AnthropicToolUseBlock):
                tool_calls.append(
                    OpenAIToolCall(
                        id=block.id,
                        function=OpenAIToolCallFunction(
                            name=block.name,
                            arguments=json.dumps(
                                block.input, ensure_ascii=False, separators=(",", ":")
                            ),
                        ),
                    )
                )
            elif isinstance(block, AnthropicToolResultBlock):
                tool_messages.append(
                    OpenAIMessage(
                        role="tool",
                        content="" if block.content is None else block.content,
                        tool_call_id=block.tool_use_id,
                    )
                )

        messages: list[OpenAIMessage] = []
        text = "".join(text_parts)
        if text or tool_calls:
            messages.append(
                OpenAIMessage(
                    role=anthropic_msg.role,
                    content=text,
                    tool_calls=tool_calls or None,
                )
            )
        messages.extend(tool_messages)
        return messages

    @staticmethod
    def _convert_tools(
        anthropic_tools: list[AnthropicToolDefinition],
        convention: ToolConvention,
    ) -> list[OpenAITool] | list[OpenAIFunctionDefinition]:
        """
        按工具调用约定转换工具定义

        Args:
            anthropic_tools: Anthropic工具定义列表
            convention: 旧版约定输出扁平的函数定义，新版约定包装为 {type, function}

        Returns:
            OpenAI格式的工具列表
        """
        functions = [
            OpenAIFunctionDefinition(
                name=tool.name,
                description=tool.description,
                parameters=tool.input_schema,
            )
            for tool in anthropic_tools
        ]
        if convention.wrap_in_function:
            return [OpenAITool(function=function) for function in functions]
        return functions

    @staticmethod
    def _convert_tool_choice(anthropic_tool_choice: Any) -> Any:
        """调用方显式指定时原样转发，否则使用 "auto" """
        if anthropic_tool_choice is None:
            return DEFAULT_TOOL_CHOICE
        return anthropic_tool_choice
