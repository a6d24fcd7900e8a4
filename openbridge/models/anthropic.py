"""Anthropic Messages API 数据模型定义"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, field_validator


class AnthropicContentTypes:
    """Anthropic内容类型常量"""

    TEXT = "text"
    TOOL_USE = "tool_use"
    TOOL_RESULT = "tool_result"


class AnthropicMessageTypes:
    """Anthropic消息类型常量"""

    MESSAGE = "message"


class AnthropicRoles:
    """Anthropic角色常量"""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


class AnthropicStopReasons:
    """停止原因常量"""

    END_TURN = "end_turn"
    TOOL_USE = "tool_use"


class AnthropicTextBlock(BaseModel):
    """文本内容块"""

    type: Literal["text"] = Field(default=AnthropicContentTypes.TEXT)
    text: str = Field("", description="文本内容")


class AnthropicToolUseBlock(BaseModel):
    """工具调用内容块"""

    type: Literal["tool_use"] = Field(default=AnthropicContentTypes.TOOL_USE)
    id: str = Field("", description="工具调用ID")
    name: str = Field("", description="工具名称")
    input: dict[str, Any] = Field(default_factory=dict, description="工具输入参数")


class AnthropicToolResultBlock(BaseModel):
    """工具结果内容块"""

    type: Literal["tool_result"] = Field(default=AnthropicContentTypes.TOOL_RESULT)
    tool_use_id: str = Field("", description="对应的tool_use ID")
    content: Any = Field(None, description="工具结果，原样透传")


AnthropicContentBlock = Annotated[
    Union[AnthropicTextBlock, AnthropicToolUseBlock, AnthropicToolResultBlock],
    Field(discriminator="type"),
]

KNOWN_CONTENT_TYPES = frozenset(
    {
        AnthropicContentTypes.TEXT,
        AnthropicContentTypes.TOOL_USE,
        AnthropicContentTypes.TOOL_RESULT,
    }
)


class AnthropicMessage(BaseModel):
    """Anthropic消息格式

    content 要么是纯字符串，要么是内容块列表。
    """

    role: Literal["user", "assistant", "system", "tool"] = Field(description="消息角色")
    content: str | list[AnthropicContentBlock] = Field(description="消息内容")

    @field_validator("content", mode="before")
    @classmethod
    def drop_unknown_blocks(cls, value: Any) -> Any:
        """丢弃未知类型的内容块（向前兼容，不视为解析错误）"""
        if not isinstance(value, list):
            return value
        return [
            block
            for block in value
            if isinstance(block, BaseModel)
            or (isinstance(block, dict) and block.get("type") in KNOWN_CONTENT_TYPES)
        ]


class AnthropicToolDefinition(BaseModel):
    """Anthropic工具定义"""

    name: str = Field(description="工具名称")
    description: str | None = Field(None, description="工具描述")
    input_schema: dict[str, Any] = Field(
        default_factory=dict, description="JSON Schema格式的输入参数定义"
    )


class AnthropicRequest(BaseModel):
    """Anthropic API请求模型

    未声明的字段（stream、system、metadata 等）会被忽略。
    """

    model: str = Field("", description="模型ID")
    messages: list[AnthropicMessage] = Field(description="对话消息列表")
    max_tokens: int | None = Field(None, ge=1, description="最大输出token数量覆盖值")
    temperature: float | None = Field(None, ge=0.0, le=1.0, description="采样温度")
    tools: list[AnthropicToolDefinition] | None = Field(
        None, description="可用工具定义"
    )
    tool_choice: Any = Field(None, description="工具选择配置，原样转发")

    def effective_max_tokens(self, ceiling: int) -> int:
        """计算实际下发的 max_tokens：覆盖值小于服务端上限时生效"""
        if self.max_tokens is not None and self.max_tokens < ceiling:
            return self.max_tokens
        return ceiling


class AnthropicUsage(BaseModel):
    """Anthropic使用统计"""

    input_tokens: int = Field(0, description="输入token数量")
    output_tokens: int = Field(0, description="输出token数量")


class AnthropicMessageResponse(BaseModel):
    """Anthropic消息响应"""

    id: str = Field(description="响应唯一ID")
    type: Literal["message"] = Field(default=AnthropicMessageTypes.MESSAGE)
    role: Literal["assistant"] = Field(default=AnthropicRoles.ASSISTANT)
    model: str = Field(description="使用的模型ID")
    content: list[AnthropicTextBlock | AnthropicToolUseBlock] = Field(
        description="消息内容块"
    )
    stop_reason: Literal["end_turn", "tool_use"] = Field(
        AnthropicStopReasons.END_TURN, description="停止原因"
    )
    stop_sequence: None = Field(None, description="停止序列，始终为null")
    usage: AnthropicUsage = Field(default_factory=AnthropicUsage)
