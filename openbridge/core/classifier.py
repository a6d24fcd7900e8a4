"""上游响应分类器

检查上游返回的原始JSON，判断是错误还是成功；成功时再判断使用了哪种
工具调用约定。判定顺序固定，先命中者生效：

1. 顶层存在 error            -> 服务商错误
2. message.tool_calls 非空   -> 新版工具调用
3. message.function_call / message.tool -> 旧版单次工具调用
4. 其他                      -> 纯文本

同时给出旧版与新版字段的响应按新版处理。
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from loguru import logger

from openbridge.models.anthropic import AnthropicStopReasons
from openbridge.models.openai import OpenAIErrorDetail


class ResultKind(str, Enum):
    """分类结果"""

    PROVIDER_ERROR = "provider_error"
    TOOL_CALLS = "tool_calls"
    FUNCTION_CALL = "function_call"
    TEXT = "text"


@dataclass(frozen=True)
class DecodedToolCall:
    """解码后的单次工具调用，id 为 None 表示上游未提供"""

    id: str | None
    name: str
    input: dict[str, Any]


@dataclass(frozen=True)
class Classification:
    """上游响应的分类结果"""

    kind: ResultKind
    text: str = ""
    tool_calls: tuple[DecodedToolCall, ...] = ()
    prompt_tokens: int = 0
    completion_tokens: int = 0
    error: OpenAIErrorDetail | None = None
    decision_path: list[str] = field(default_factory=list)

    @property
    def is_error(self) -> bool:
        return self.kind is ResultKind.PROVIDER_ERROR

    @property
    def stop_reason(self) -> str:
        if self.kind in (ResultKind.TOOL_CALLS, ResultKind.FUNCTION_CALL):
            return AnthropicStopReasons.TOOL_USE
        return AnthropicStopReasons.END_TURN


def safe_json_parse(arguments: Any) -> dict[str, Any]:
    """
    解析工具调用参数

    Args:
        arguments: 字符串形式的JSON对象，部分服务商直接返回对象

    Returns:
        解析后的字典对象，解析失败或不是对象时返回空字典
    """
    if isinstance(arguments, dict):
        return arguments
    if not isinstance(arguments, str) or not arguments:
        return {}

    try:
        parsed = json.loads(arguments)
    except json.JSONDecodeError as e:
        logger.warning(f"工具参数JSON解析失败，使用空字典 - Error: {e}, Content: {arguments[:100]}")
        return {}

    if not isinstance(parsed, dict):
        logger.warning(f"工具参数不是JSON对象，使用空字典 - Content: {arguments[:100]}")
        return {}
    return parsed


def _as_token_count(value: Any) -> int:
    """缺失或非数值的token统计按0处理"""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    return 0


def extract_usage(payload: dict[str, Any]) -> tuple[int, int]:
    """读取 usage.prompt_tokens / usage.completion_tokens"""
    usage = payload.get("usage")
    if not isinstance(usage, dict):
        return 0, 0
    return (
        _as_token_count(usage.get("prompt_tokens")),
        _as_token_count(usage.get("completion_tokens")),
    )


def _first_message(payload: dict[str, Any]) -> dict[str, Any]:
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return {}
    first_choice = choices[0]
    if not isinstance(first_choice, dict):
        return {}
    message = first_choice.get("message")
    return message if isinstance(message, dict) else {}


def _extract_error(error: Any) -> OpenAIErrorDetail:
    if isinstance(error, dict):
        return OpenAIErrorDetail(
            message=str(error.get("message") or ""),
            type=error.get("type") if isinstance(error.get("type"), str) else None,
            code=error.get("code"),
        )
    return OpenAIErrorDetail(message=str(error))


def _decode_call(call: dict[str, Any]) -> DecodedToolCall:
    """解码一次工具调用，兼容 {function: {name, arguments}} 与 {name, arguments} 两种结构"""
    function = call.get("function")
    if not isinstance(function, dict):
        function = call
    call_id = call.get("id")
    return DecodedToolCall(
        id=call_id if isinstance(call_id, str) and call_id else None,
        name=str(function.get("name") or ""),
        input=safe_json_parse(function.get("arguments")),
    )


def classify_result(payload: dict[str, Any]) -> Classification:
    """
    对上游响应进行分类

    Args:
        payload: 已解码的上游JSON对象

    Returns:
        Classification: 分类结果，包含文本/工具调用、token统计与判定路径
    """
    prompt_tokens, completion_tokens = extract_usage(payload)
    path: list[str] = []

    if payload.get("error") is not None:
        path.append("error")
        return Classification(
            kind=ResultKind.PROVIDER_ERROR,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            error=_extract_error(payload["error"]),
            decision_path=path,
        )
    path.append("no-error")

    message = _first_message(payload)

    raw_tool_calls = message.get("tool_calls")
    tool_calls = (
        [call for call in raw_tool_calls if isinstance(call, dict)]
        if isinstance(raw_tool_calls, list)
        else []
    )
    if tool_calls:
        path.append("tool_calls")
        return Classification(
            kind=ResultKind.TOOL_CALLS,
            tool_calls=tuple(_decode_call(call) for call in tool_calls),
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            decision_path=path,
        )
    path.append("no-tool_calls")

    for legacy_field in ("function_call", "tool"):
        legacy_call = message.get(legacy_field)
        if isinstance(legacy_call, dict):
            path.append(legacy_field)
            return Classification(
                kind=ResultKind.FUNCTION_CALL,
                tool_calls=(_decode_call(legacy_call),),
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                decision_path=path,
            )
    path.append("no-function_call")

    content = message.get("content")
    path.append("text")
    return Classification(
        kind=ResultKind.TEXT,
        text=content if isinstance(content, str) else "",
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        decision_path=path,
    )
