"""
审计日志模块

每次处理的调用写入一条只追加的审计记录。写入是尽力而为的：
失败只记录到运维日志，不影响返回给调用方的响应。
"""

from .logger import AuditLogger
from .models import AuditLog, AuditRecord
from .store import AuditStore

__all__ = ["AuditLog", "AuditLogger", "AuditRecord", "AuditStore"]
