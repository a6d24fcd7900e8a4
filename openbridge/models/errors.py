"""桥接服务的错误类型

对外只暴露两类HTTP状态：400（入站请求格式错误）与 500（其余所有失败），
内部细分类型仅用于运维日志与审计记录。
"""

from typing import Any

from .openai import OpenAIErrorDetail


class BridgeError(Exception):
    """所有桥接错误的基类"""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_plain_text(self) -> str:
        """返回给调用方的纯文本错误体"""
        return self.message


class MalformedInboundError(BridgeError):
    """入站JSON无法解码为 MessagesRequest"""

    status_code = 400


class TransportError(BridgeError):
    """上游HTTP调用无法完成（DNS、连接拒绝、超时等）"""


class MalformedUpstreamError(BridgeError):
    """上游响应体不是合法的JSON对象，按传输类错误处理"""

    def __init__(self, message: str, status_code: int = 0, raw_body: bytes = b""):
        super().__init__(message)
        self.upstream_status = status_code
        self.raw_body = raw_body

    def to_plain_text(self) -> str:
        return "上游服务返回了无法解析的响应"


class ProviderError(BridgeError):
    """上游返回了包含 error 对象的响应"""

    def __init__(self, detail: OpenAIErrorDetail):
        super().__init__(detail.message or "上游服务返回错误")
        self.detail = detail

    @property
    def diagnostics(self) -> dict[str, Any]:
        return {
            "code": self.detail.code,
            "type": self.detail.type,
            "message": self.detail.message,
        }


class AuditSchemaError(Exception):
    """审计表结构与预期不一致，需要先执行迁移"""
