"""OpenAI兼容接口客户端

每个入站请求对应一次 POST {base_url}/chat/completions 调用，不做重试。
"""

import json
from dataclasses import dataclass
from typing import Any

import httpx

from openbridge.common.logging import get_logger_with_request_id
from openbridge.models.errors import TransportError


def mask_api_key(key: str) -> str:
    """只保留API密钥首尾各4个字符"""
    if len(key) <= 8:
        return key
    return f"{key[:4]}...{key[-4:]}"


def build_endpoint(base_url: str) -> str:
    """拼接 chat completions 地址，去掉 base_url 末尾的斜杠"""
    return base_url.rstrip("/") + "/chat/completions"


@dataclass(frozen=True)
class UpstreamReply:
    """上游原始响应"""

    status_code: int
    body: bytes
    endpoint: str

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class OpenAIServiceClient:
    """OpenAI兼容服务客户端"""

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        初始化客户端

        Args:
            api_key: 上游API密钥
            base_url: 上游服务地址，如 https://api.openai.com/v1
            timeout: 请求超时（秒），None 表示不限制
            transport: 自定义传输层，测试时注入 httpx.MockTransport
        """
        self.api_key = api_key
        self.base_url = base_url
        self.endpoint = build_endpoint(base_url)
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def send(
        self, payload: dict[str, Any], request_id: str | None = None
    ) -> UpstreamReply:
        """
        发送 chat completions 请求

        Args:
            payload: 已序列化为字典的上游请求体
            request_id: 请求ID用于日志追踪

        Returns:
            UpstreamReply: 上游状态码与原始响应体

        Raises:
            TransportError: 网络层失败（DNS、连接拒绝、超时等）
        """
        bound_logger = get_logger_with_request_id(request_id)
        bound_logger.debug(
            f"发送上游请求 - Endpoint: {self.endpoint}, Key: {mask_api_key(self.api_key)}"
        )

        try:
            response = await self._client.post(
                self.endpoint,
                content=json.dumps(payload, ensure_ascii=False).encode("utf-8"),
                headers=self._headers(),
            )
        except httpx.HTTPError as e:
            bound_logger.error(f"上游请求失败 - Type: {type(e).__name__}, Error: {e}")
            raise TransportError(f"上游请求失败: {e}") from e

        bound_logger.debug(
            f"上游响应 - Status: {response.status_code}, Bytes: {len(response.content)}"
        )
        return UpstreamReply(
            status_code=response.status_code,
            body=response.content,
            endpoint=self.endpoint,
        )

    async def close(self) -> None:
        """关闭底层连接池"""
        await self._client.aclose()
