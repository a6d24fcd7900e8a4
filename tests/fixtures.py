"""测试用的上游响应构造函数与测试替身"""

import json
from typing import Any

import httpx

from openbridge.api.handlers import MessagesHandler
from openbridge.audit import AuditLogger, AuditRecord, AuditStore
from openbridge.config.settings import Config
from openbridge.core.clients import OpenAIServiceClient

GROQ_BASE_URL = "https://api.groq.com/openai/v1"
OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
UNKNOWN_BASE_URL = "https://llm.internal.example/v1"


def text_completion(
    text: str | None, prompt_tokens: Any = 10, completion_tokens: Any = 5
) -> dict[str, Any]:
    """构造纯文本的 chat completions 响应"""
    return {
        "id": "chatcmpl-123",
        "object": "chat.completion",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": text},
                "finish_reason": "stop",
            }
        ],
        "usage": {
            "prompt_tokens": prompt_tokens,
            "completion_tokens": completion_tokens,
            "total_tokens": 15,
        },
    }


def tool_calls_completion(tool_calls: list[dict[str, Any]]) -> dict[str, Any]:
    """构造新版 tool_calls 响应"""
    return {
        "id": "chatcmpl-456",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": None, "tool_calls": tool_calls},
                "finish_reason": "tool_calls",
            }
        ],
        "usage": {"prompt_tokens": 20, "completion_tokens": 8},
    }


def function_call_completion(name: str, arguments: str) -> dict[str, Any]:
    """构造旧版 function_call 响应"""
    return {
        "choices": [
            {
                "index": 0,
                "message": {
                    "role": "assistant",
                    "content": None,
                    "function_call": {"name": name, "arguments": arguments},
                },
            }
        ],
        "usage": {"prompt_tokens": 7, "completion_tokens": 3},
    }


def error_completion(message: str = "Rate limit exceeded") -> dict[str, Any]:
    return {
        "error": {
            "message": message,
            "type": "rate_limit_error",
            "code": "rate_limited",
        }
    }


class RecordingUpstream:
    """基于 httpx.MockTransport 的上游替身，记录收到的请求"""

    def __init__(self, payload: Any = None, status_code: int = 200, raw: bytes | None = None):
        self.payload = payload
        self.status_code = status_code
        self.raw = raw
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raw is not None:
            return httpx.Response(self.status_code, content=self.raw)
        return httpx.Response(self.status_code, json=self.payload)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    @property
    def last_json(self) -> dict[str, Any]:
        return json.loads(self.requests[-1].content)


class FailingUpstream:
    """模拟网络层失败"""

    def __call__(self, request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


class RejectingStore:
    """拒绝所有写入的审计存储"""

    def __init__(self):
        self.attempts = 0

    def insert(self, record: AuditRecord) -> None:
        self.attempts += 1
        raise RuntimeError("disk full")


def make_config(**overrides: Any) -> Config:
    values: dict[str, Any] = {
        "api_key": "sk-test-1234567890",
        "base_url": OPENROUTER_BASE_URL,
        "model": "default-model",
        "max_tokens": 16384,
        "db_path": ":memory:",
    }
    values.update(overrides)
    return Config(**values)


def make_handler(
    upstream: RecordingUpstream | FailingUpstream,
    config: Config | None = None,
    store: Any = None,
) -> MessagesHandler:
    """构建使用 MockTransport 与内存审计库的处理器"""
    config = config or make_config()
    client = OpenAIServiceClient(
        api_key=config.api_key,
        base_url=config.base_url,
        transport=upstream.transport,
    )
    audit_logger = AuditLogger(store if store is not None else AuditStore(":memory:"))
    return MessagesHandler(config, client, audit_logger)
