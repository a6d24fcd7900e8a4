"""审计存储（SQLAlchemy + SQLite）"""

import threading
from collections.abc import Generator
from contextlib import contextmanager, nullcontext
from pathlib import Path
from typing import Any

from loguru import logger
from sqlalchemy import create_engine, event, inspect, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

from openbridge.models.errors import AuditSchemaError

from .models import AuditLog, AuditRecord, Base

EXPECTED_COLUMNS = frozenset(column.name for column in AuditLog.__table__.columns)

# 并发写入时等待写锁的秒数
SQLITE_BUSY_TIMEOUT = 30


class AuditStore:
    """只追加的审计存储

    SQLite 以 WAL 日志模式运行，并发写入由数据库串行化。
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._engine: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None
        self._init_lock = threading.Lock()
        # 内存库所有会话共用同一个连接，需要串行化
        self._session_lock = threading.Lock() if db_path == ":memory:" else nullcontext()

    def _connection_options(self) -> tuple[str, dict[str, Any]]:
        if self.db_path == ":memory:":
            return "sqlite:///:memory:", {
                "poolclass": StaticPool,
                "connect_args": {"check_same_thread": False},
            }

        path = Path(self.db_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite:///{path}", {
            "poolclass": NullPool,
            "connect_args": {"timeout": SQLITE_BUSY_TIMEOUT},
        }

    def initialize(self) -> None:
        """创建引擎与审计表；已有表的字段与预期不一致时拒绝使用"""
        with self._init_lock:
            if self._engine is None:
                self._initialize_engine()

    def _initialize_engine(self) -> None:
        url, options = self._connection_options()
        engine = create_engine(url, **options)

        if self.db_path != ":memory:":

            @event.listens_for(engine, "connect")
            def _enable_wal(dbapi_connection, _connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA journal_mode=WAL")
                cursor.close()

        inspector = inspect(engine)
        if inspector.has_table(AuditLog.__tablename__):
            existing = {column["name"] for column in inspector.get_columns(AuditLog.__tablename__)}
            if existing != EXPECTED_COLUMNS:
                engine.dispose()
                raise AuditSchemaError(
                    f"审计表字段不一致，需要先迁移 - "
                    f"缺少: {sorted(EXPECTED_COLUMNS - existing)}, "
                    f"多余: {sorted(existing - EXPECTED_COLUMNS)}"
                )

        Base.metadata.create_all(engine)
        self._engine = engine
        self._session_factory = sessionmaker(bind=engine)
        logger.info(f"审计存储已初始化: {self.db_path}")

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """数据库会话，正常结束时提交，异常时回滚"""
        self.initialize()
        with self._session_lock:
            sess = self._session_factory()
            try:
                yield sess
                sess.commit()
            except Exception:
                sess.rollback()
                raise
            finally:
                sess.close()

    def insert(self, record: AuditRecord) -> None:
        """写入一条审计记录"""
        with self.session() as sess:
            sess.add(AuditLog.from_record(record))

    def get(self, record_id: str) -> AuditLog | None:
        with self.session() as sess:
            row = sess.get(AuditLog, record_id)
            if row is not None:
                sess.expunge(row)
            return row

    def list_recent(self, limit: int = 50) -> list[AuditLog]:
        """按时间倒序返回最近的审计记录"""
        with self.session() as sess:
            rows = list(
                sess.scalars(
                    select(AuditLog).order_by(AuditLog.timestamp.desc()).limit(limit)
                )
            )
            sess.expunge_all()
            return rows

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None
