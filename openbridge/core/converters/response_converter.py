"""
OpenAI-to-Anthropic 响应转换器

根据分类器的判定结果，将上游响应重新组装为Anthropic格式。
"""

import uuid

from openbridge.core.classifier import Classification
from openbridge.models.anthropic import (
    AnthropicMessageResponse,
    AnthropicTextBlock,
    AnthropicToolUseBlock,
    AnthropicUsage,
)


def generate_message_id() -> str:
    return f"msg_{uuid.uuid4().hex[:12]}"


def generate_tool_use_id() -> str:
    return f"toolu_{uuid.uuid4().hex[:12]}"


class OpenAIToAnthropicConverter:
    """OpenAI响应到Anthropic格式的转换器"""

    @staticmethod
    def convert_response(
        classification: Classification,
        model: str,
    ) -> AnthropicMessageResponse:
        """
        将分类后的上游响应转换为Anthropic格式

        Args:
            classification: 分类器对上游响应的判定结果（不能是错误）
            model: 回显给调用方的模型ID

        Returns:
            AnthropicMessageResponse: 转换后的Anthropic格式响应
        """
        if classification.is_error:
            raise ValueError("错误响应不能转换为消息")

        return AnthropicMessageResponse(
            id=generate_message_id(),
            model=model,
            content=OpenAIToAnthropicConverter._extract_content_blocks(classification),
            stop_reason=classification.stop_reason,
            stop_sequence=None,
            usage=AnthropicUsage(
                input_tokens=classification.prompt_tokens,
                output_tokens=classification.completion_tokens,
            ),
        )

    @staticmethod
    def _extract_content_blocks(
        classification: Classification,
    ) -> list[AnthropicTextBlock | AnthropicToolUseBlock]:
        """有工具调用时每次调用一个 tool_use 块，否则始终返回一个 text 块"""
        if classification.tool_calls:
            return [
                AnthropicToolUseBlock(
                    id=call.id or generate_tool_use_id(),
                    name=call.name,
                    input=call.input,
                )
                for call in classification.tool_calls
            ]
        return [AnthropicTextBlock(text=classification.text)]
