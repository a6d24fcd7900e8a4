"""上游服务商识别与工具调用约定表

根据配置的 base_url 识别服务商，再由服务商选择工具调用约定。
新增服务商只需要修改下面两张表。
"""

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache


class Provider(str, Enum):
    """服务商标签"""

    GROQ = "groq"
    OPENROUTER = "openrouter"
    OPENAI = "openai"
    FIREWORKS = "fireworks"
    HUGGINGFACE = "huggingface"
    ANTHROPIC = "anthropic"
    OPENAI_COMPATIBLE = "openai-compatible"


# 按顺序匹配，先命中者生效
PROVIDER_DOMAINS: tuple[tuple[str, Provider], ...] = (
    ("groq.com", Provider.GROQ),
    ("openrouter.ai", Provider.OPENROUTER),
    ("api.openai.com", Provider.OPENAI),
    ("fireworks.ai", Provider.FIREWORKS),
    ("huggingface.co", Provider.HUGGINGFACE),
    ("anthropic.com", Provider.ANTHROPIC),
)


@dataclass(frozen=True)
class ToolConvention:
    """工具调用约定：决定请求体中的字段名与工具定义的包装形式"""

    name: str
    tools_field: str
    choice_field: str
    wrap_in_function: bool


LEGACY_FUNCTIONS = ToolConvention(
    name="legacy",
    tools_field="functions",
    choice_field="function_call",
    wrap_in_function=False,
)

MODERN_TOOLS = ToolConvention(
    name="modern",
    tools_field="tools",
    choice_field="tool_choice",
    wrap_in_function=True,
)

TOOL_CONVENTIONS: dict[Provider, ToolConvention] = {
    Provider.GROQ: LEGACY_FUNCTIONS,
}


@lru_cache(maxsize=32)
def classify_provider(base_url: str) -> Provider:
    """根据 base_url 识别服务商，未命中时返回 openai-compatible"""
    lowered = (base_url or "").lower()
    for fragment, provider in PROVIDER_DOMAINS:
        if fragment in lowered:
            return provider
    return Provider.OPENAI_COMPATIBLE


def tool_convention_for(provider: Provider) -> ToolConvention:
    """返回服务商对应的工具调用约定，默认使用新版 tools 约定"""
    return TOOL_CONVENTIONS.get(provider, MODERN_TOOLS)
