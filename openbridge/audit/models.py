"""审计记录模型"""

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, Field
from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class AuditRecord(BaseModel):
    """一次调用的审计记录，写入后不再修改"""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="记录ID")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), description="UTC时间"
    )
    provider: str = Field("", description="上游 base_url（不是识别出的服务商标签）")
    endpoint: str = Field("", description="实际请求的完整地址")
    model: str = Field("", description="模型ID")
    request_body: str = Field("", description="序列化后的上游请求体")
    response_body: str = Field("", description="上游原始响应体")
    status_code: int = Field(0, description="上游HTTP状态码，传输失败时为0")
    error_message: str = Field("", description="错误描述，成功时为空")
    prompt_tokens: int = Field(0, description="输入token数量")
    completion_tokens: int = Field(0, description="输出token数量")


class AuditLog(Base):
    """审计表，字段固定，变更需要显式迁移"""

    __tablename__ = "audit_log"

    id = Column(String(64), primary_key=True, comment="记录ID")
    timestamp = Column(DateTime, nullable=False, index=True, comment="UTC时间")
    provider = Column(Text, nullable=False, default="", comment="上游 base_url")
    endpoint = Column(Text, nullable=False, default="", comment="请求地址")
    model = Column(Text, nullable=False, default="", comment="模型ID")
    request = Column(Text, nullable=False, default="", comment="上游请求体")
    response = Column(Text, nullable=False, default="", comment="上游原始响应体")
    status_code = Column(Integer, nullable=False, default=0, comment="HTTP状态码")
    error_message = Column(Text, nullable=False, default="", comment="错误描述")
    prompt_tokens = Column(Integer, nullable=False, default=0, comment="输入token")
    completion_tokens = Column(Integer, nullable=False, default=0, comment="输出token")

    @classmethod
    def from_record(cls, record: AuditRecord) -> "AuditLog":
        return cls(
            id=record.id,
            timestamp=record.timestamp,
            provider=record.provider,
            endpoint=record.endpoint,
            model=record.model,
            request=record.request_body,
            response=record.response_body,
            status_code=record.status_code,
            error_message=record.error_message,
            prompt_tokens=record.prompt_tokens,
            completion_tokens=record.completion_tokens,
        )
