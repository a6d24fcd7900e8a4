"""
通用工具模块

主要功能:
- 日志配置和管理
- 请求ID生成和追踪

使用示例:
    from openbridge.common import configure_logging, get_logger_with_request_id

    configure_logging("DEBUG")
    get_logger_with_request_id("req_123").info("hello")
"""

from .logging import (
    REQUEST_ID_HEADER,
    configure_logging,
    generate_request_id,
    get_logger_with_request_id,
    get_request_id_from_request,
)

__all__ = [
    "REQUEST_ID_HEADER",
    "configure_logging",
    "generate_request_id",
    "get_logger_with_request_id",
    "get_request_id_from_request",
]
