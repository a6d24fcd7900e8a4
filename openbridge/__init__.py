"""
OpenBridge

把 Anthropic Messages API 请求转换为 OpenAI 兼容的 chat completions 调用，
并把上游结果转换回 Anthropic 格式。

主要功能:
- 请求/响应格式转换，包含工具调用
- 按上游服务商选择工具调用字段约定
- 每次上游调用写入SQLite审计记录
- 配置文件热重载

使用示例:
    from openbridge import create_app

    app = create_app()
"""

__version__ = "0.1.0"
__description__ = "Anthropic Messages API to OpenAI chat completions bridge"

from .common import configure_logging
from .config import get_config, load_config, reload_config
from .main import create_app

__all__ = [
    "create_app",
    "get_config",
    "load_config",
    "reload_config",
    "configure_logging",
    "__version__",
    "__description__",
]
