"""OpenAI兼容接口 数据模型定义"""

from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator


class OpenAIToolCallFunction(BaseModel):
    """工具调用函数"""

    name: str = Field(description="函数名称")
    arguments: str = Field("{}", description="JSON字符串格式的函数参数")


class OpenAIToolCall(BaseModel):
    """工具调用描述"""

    id: str = Field(description="工具调用ID")
    type: Literal["function"] = Field("function", description="调用类型")
    function: OpenAIToolCallFunction = Field(description="函数详情")


class OpenAIMessage(BaseModel):
    """OpenAI消息格式"""

    role: Literal["system", "user", "assistant", "tool"] = Field(description="消息角色")
    content: Any = Field("", description="消息内容")
    tool_calls: list[OpenAIToolCall] | None = Field(
        None, description="工具调用信息（当role为assistant时）"
    )
    tool_call_id: str | None = Field(None, description="工具调用ID（当role为tool时）")


class OpenAIFunctionDefinition(BaseModel):
    """函数定义，旧版 functions 字段直接使用该结构"""

    name: str = Field(description="函数名称")
    description: str | None = Field(None, description="函数描述")
    parameters: dict[str, Any] = Field(
        default_factory=dict, description="JSON Schema格式的函数参数"
    )


class OpenAITool(BaseModel):
    """新版 tools 字段中的工具定义"""

    type: Literal["function"] = Field("function", description="工具类型")
    function: OpenAIFunctionDefinition = Field(description="函数定义")


class OpenAIRequest(BaseModel):
    """发往上游的 chat completions 请求体

    functions/function_call（旧版约定）与 tools/tool_choice（新版约定）互斥。
    """

    model: str = Field(description="模型ID")
    messages: list[OpenAIMessage] = Field(description="对话消息列表")
    temperature: float | None = Field(None, description="采样温度")
    max_tokens: int = Field(description="最大输出token数量")
    functions: list[OpenAIFunctionDefinition] | None = Field(
        None, description="旧版函数定义"
    )
    function_call: Any = Field(None, description="旧版函数选择配置")
    tools: list[OpenAITool] | None = Field(None, description="新版工具定义")
    tool_choice: Any = Field(None, description="新版工具选择配置")

    @model_validator(mode="after")
    def check_single_convention(self) -> "OpenAIRequest":
        legacy = self.functions is not None or self.function_call is not None
        modern = self.tools is not None or self.tool_choice is not None
        if legacy and modern:
            raise ValueError("functions/function_call 与 tools/tool_choice 不能同时出现")
        return self

    def to_payload(self) -> dict[str, Any]:
        """序列化为上游请求体，省略空字段"""
        return self.model_dump(exclude_none=True)


class OpenAIErrorDetail(BaseModel):
    """上游返回的错误详情"""

    message: str = Field("", description="错误消息")
    type: str | None = Field(None, description="错误类型")
    code: Any = Field(None, description="错误代码")
