"""
配置管理模块

提供应用程序配置的加载、验证和热重载功能。

主要功能:
- 默认值、JSON配置文件与环境变量的合并
- 配置热重载监听

使用示例:
    from openbridge.config import load_config

    config = load_config()
    print(config.base_url)
"""

from .settings import (
    Config,
    config_file_candidates,
    find_config_file,
    get_config,
    get_config_file_path,
    load_config,
    reload_config,
)
from .watcher import ConfigFileHandler, ConfigWatcher

__all__ = [
    # 配置管理函数
    "get_config",
    "load_config",
    "reload_config",
    "get_config_file_path",
    "find_config_file",
    "config_file_candidates",
    # 配置模型
    "Config",
    # 配置监听器
    "ConfigWatcher",
    "ConfigFileHandler",
]
