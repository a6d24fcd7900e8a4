"""Loguru日志配置"""

import sys
import traceback
import uuid
from pathlib import Path

from loguru import logger

REQUEST_ID_HEADER = "X-Request-ID"
DEFAULT_LOG_FILE = "logs/app.log"


def format_exception_truncated(record) -> str:
    """格式化异常信息，最多保留前1000个字符"""
    if record["exception"]:
        exc_text = "".join(traceback.format_exception(*record["exception"]))
        if len(exc_text) > 1000:
            return exc_text[:1000] + "..."
        return exc_text
    return ""


def _file_format(record) -> str:
    record["extra"]["exc_truncated"] = format_exception_truncated(record)
    return (
        "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[request_id]} | "
        "{name}:{line} | {message} | {extra[exc_truncated]}\n"
    )


def _ensure_request_id(record) -> bool:
    record["extra"].setdefault("request_id", "---")
    return True


def configure_logging(level: str = "INFO", log_file: str | None = DEFAULT_LOG_FILE) -> None:
    """配置Loguru日志系统

    Args:
        level: 日志级别，调试模式下为 DEBUG
        log_file: 文件日志路径，为 None 时只输出到控制台
    """
    logger.remove()

    console_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
        "<cyan>{extra[request_id]}</cyan> | <cyan>{name}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level>"
    )
    logger.add(
        sys.stdout,
        format=console_format,
        level=level,
        colorize=True,
        filter=_ensure_request_id,
    )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_path),
            format=_file_format,
            level=level,
            rotation="10 MB",
            retention="1 day",
            encoding="utf-8",
            filter=_ensure_request_id,
        )

    def exception_handler(exc_type, exc_value, exc_traceback):
        """全局异常处理器"""
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return

        logger.opt(exception=(exc_type, exc_value, exc_traceback)).critical(
            "未捕获的异常"
        )

    sys.excepthook = exception_handler


async def generate_request_id() -> str:
    """生成唯一的请求ID

    Returns:
        str: 格式为 req_xxxxxxxx-xxxx-xxxx-xxxx-xxxxxxxxxxxx 的请求ID
    """
    return f"req_{uuid.uuid4()}"


def get_request_id_from_request(request) -> str | None:
    """从请求对象中安全地获取请求ID"""
    try:
        return getattr(request.state, "request_id", None)
    except AttributeError:
        return None


def get_logger_with_request_id(request_id: str | None = None):
    """获取绑定了请求ID的日志器实例

    Args:
        request_id: 请求ID，如果为None则使用默认值

    Returns:
        绑定了请求ID的logger实例
    """
    return logger.bind(request_id=request_id or "---")
