"""审计日志记录器

写入以独立的后台任务执行，阻塞的数据库操作放到线程中运行。
请求任务被取消（如客户端断开）不会取消已经开始的审计写入。
"""

import asyncio
from typing import Protocol

from loguru import logger

from .models import AuditRecord


class AuditSink(Protocol):
    def insert(self, record: AuditRecord) -> None: ...


class AuditLogger:
    """尽力而为的审计记录器，写入失败只记录日志，不向调用方抛出"""

    def __init__(self, store: AuditSink):
        self._store = store
        self._pending: set[asyncio.Task] = set()

    def _save(self, record: AuditRecord) -> None:
        try:
            self._store.insert(record)
        except Exception as e:
            logger.bind(request_id=record.id).error(
                f"审计记录写入失败 - Type: {type(e).__name__}, Error: {e}"
            )
        else:
            logger.bind(request_id=record.id).debug("审计记录已写入")

    def record(self, record: AuditRecord) -> None:
        """
        提交一条审计记录

        有运行中的事件循环时调度为后台任务并立即返回；否则同步写入。

        Args:
            record: 审计记录
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._save(record)
            return

        task = loop.create_task(asyncio.to_thread(self._save, record))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """等待所有未完成的审计写入，关闭服务前调用"""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
