"""应用配置

配置来源优先级（低 -> 高）：默认值 -> JSON配置文件 -> 环境变量。
未设置API密钥时回退到 ~/.huggingface/token。
"""

import json
import os
from pathlib import Path
from typing import Any

import aiofiles
from loguru import logger
from pydantic import BaseModel, Field, PrivateAttr

DEFAULT_BASE_URL = "https://router.huggingface.co/v1"
DEFAULT_MODEL = "moonshotai/Kimi-K2-Instruct-0905:groq"

# 环境变量名 -> 配置字段
ENV_OVERRIDES: dict[str, str] = {
    "OPENAI_API_KEY": "api_key",
    "OPENAI_BASE_URL": "base_url",
    "OPENAI_MODEL": "model",
    "MAX_OUTPUT_TOKENS": "max_tokens",
    "HOST": "host",
    "PORT": "port",
    "DEBUG": "debug",
    "DB_PATH": "db_path",
    "REQUEST_TIMEOUT": "request_timeout",
}

_TRUE_VALUES = {"1", "t", "true", "yes", "on"}
_FALSE_VALUES = {"0", "f", "false", "no", "off"}


class Config(BaseModel):
    """桥接服务配置"""

    api_key: str = Field("", description="上游API密钥")
    base_url: str = Field(DEFAULT_BASE_URL, description="上游服务地址")
    model: str = Field(DEFAULT_MODEL, description="请求未指定模型时使用的默认模型")
    max_tokens: int = Field(16384, ge=1, description="最大输出token上限")
    host: str = Field("0.0.0.0", description="监听地址")
    port: int = Field(8323, ge=1, le=65535, description="监听端口")
    debug: bool = Field(False, description="是否启用调试日志")
    db_path: str = Field("openbridge.db", description="审计数据库路径")
    request_timeout: float | None = Field(
        None, gt=0, description="上游请求超时（秒），默认不限制"
    )

    _source_path: Path | None = PrivateAttr(default=None)

    @classmethod
    async def from_file(cls, config_path: str | None = None) -> "Config":
        """异步加载配置"""
        path = find_config_file(config_path)
        file_values: dict[str, Any] = {}
        if path is not None:
            async with aiofiles.open(path, encoding="utf-8") as f:
                file_values = _parse_config_text(await f.read(), path)
        return cls._build(file_values, path)

    @classmethod
    def from_file_sync(cls, config_path: str | None = None) -> "Config":
        """同步加载配置，用于模块级初始化"""
        path = find_config_file(config_path)
        file_values: dict[str, Any] = {}
        if path is not None:
            file_values = _parse_config_text(path.read_text(encoding="utf-8"), path)
        return cls._build(file_values, path)

    @classmethod
    def _build(cls, file_values: dict[str, Any], path: Path | None) -> "Config":
        values = {k: v for k, v in file_values.items() if k in cls.model_fields}
        values.update(_read_env_overrides())
        config = cls(**values)
        if not config.api_key:
            config.api_key = _read_huggingface_token()
        config._source_path = path
        return config

    @property
    def source_path(self) -> Path | None:
        return self._source_path

    async def get_server_config(self) -> tuple[str, int]:
        return self.host, self.port

    @property
    def log_level(self) -> str:
        return "DEBUG" if self.debug else "INFO"

    def is_using_defaults(self) -> bool:
        """是否仍在使用默认的模型与上游地址"""
        return self.base_url == DEFAULT_BASE_URL and self.model == DEFAULT_MODEL


def config_file_candidates(config_path: str | None = None) -> list[Path]:
    """按优先级返回配置文件候选路径"""
    candidates: list[Path] = []
    explicit = config_path or os.getenv("CONFIG_PATH")
    if explicit:
        candidates.append(Path(explicit))
    home = Path.home()
    candidates.extend(
        [
            Path("openbridge.json"),
            home / ".openbridge.json",
            home / ".config" / "openbridge" / "config.json",
        ]
    )
    return candidates


def find_config_file(config_path: str | None = None) -> Path | None:
    for candidate in config_file_candidates(config_path):
        if candidate.is_file():
            return candidate
    return None


def _parse_config_text(text: str, path: Path) -> dict[str, Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning(f"配置文件解析失败，忽略: {path} - {e}")
        return {}
    if not isinstance(data, dict):
        logger.warning(f"配置文件顶层必须是对象，忽略: {path}")
        return {}
    return data


def _coerce_env(field: str, raw: str) -> Any:
    """转换环境变量值，无法解析时返回 None 表示忽略"""
    if field in ("max_tokens", "port"):
        try:
            return int(raw)
        except ValueError:
            return None
    if field == "request_timeout":
        try:
            return float(raw)
        except ValueError:
            return None
    if field == "debug":
        lowered = raw.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        return None
    return raw


def _read_env_overrides() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for env_name, field in ENV_OVERRIDES.items():
        raw = os.getenv(env_name)
        if not raw:
            continue
        value = _coerce_env(field, raw)
        if value is None:
            logger.warning(f"环境变量 {env_name} 的值无法解析，忽略: {raw}")
            continue
        overrides[field] = value
    return overrides


def _read_huggingface_token() -> str:
    token_path = Path.home() / ".huggingface" / "token"
    try:
        return token_path.read_text(encoding="utf-8").strip()
    except OSError:
        return ""


_config: Config | None = None


async def get_config() -> Config:
    """获取全局配置实例"""
    global _config
    if _config is None:
        _config = await Config.from_file()
    return _config


async def reload_config(config_path: str | None = None) -> Config:
    """重新加载全局配置"""
    global _config
    _config = await Config.from_file(config_path)
    logger.info("配置已重新加载")
    return _config


def get_config_file_path() -> Path | None:
    """返回当前生效的配置文件路径"""
    if _config is not None and _config.source_path is not None:
        return _config.source_path
    return find_config_file()


def load_config(config_path: str | None = None) -> Config:
    """同步加载并缓存全局配置，应用启动时调用"""
    global _config
    _config = Config.from_file_sync(config_path)
    return _config
