"""/v1/messages 请求处理器

一次调用的处理流程:

    RECEIVED -> TRANSLATED -> DISPATCHED -> CLASSIFIED -> ASSEMBLED -> LOGGED -> DONE

两个错误出口: BAD_REQUEST（入站JSON无效，不调用上游也不写审计）和
UPSTREAM_FAILURE（传输失败或服务商错误，仍然写审计）。
"""

import json
from enum import Enum

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError

from openbridge.audit import AuditLogger, AuditRecord, AuditStore
from openbridge.common.logging import (
    get_logger_with_request_id,
    get_request_id_from_request,
)
from openbridge.config.settings import Config
from openbridge.core.classifier import classify_result
from openbridge.core.clients import OpenAIServiceClient, UpstreamReply
from openbridge.core.converters import (
    AnthropicToOpenAIConverter,
    OpenAIToAnthropicConverter,
)
from openbridge.core.providers import classify_provider
from openbridge.models.anthropic import AnthropicMessageResponse, AnthropicRequest
from openbridge.models.errors import (
    BridgeError,
    MalformedInboundError,
    MalformedUpstreamError,
    ProviderError,
)

router = APIRouter()


class CallState(str, Enum):
    """单次调用的处理状态"""

    RECEIVED = "received"
    TRANSLATED = "translated"
    DISPATCHED = "dispatched"
    CLASSIFIED = "classified"
    ASSEMBLED = "assembled"
    LOGGED = "logged"
    DONE = "done"
    BAD_REQUEST = "bad_request"
    UPSTREAM_FAILURE = "upstream_failure"


class MessagesHandler:
    """把一次 Anthropic 格式调用转换、转发并组装响应

    处理器本身不保存任何请求级状态，可被并发请求共享。
    """

    def __init__(
        self,
        config: Config,
        client: OpenAIServiceClient,
        audit_logger: AuditLogger,
    ):
        self.config = config
        self.client = client
        self.audit_logger = audit_logger
        self.provider = classify_provider(config.base_url)

    @classmethod
    async def create(cls, config: Config) -> "MessagesHandler":
        """根据配置创建处理器及其上游客户端、审计记录器"""
        client = OpenAIServiceClient(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=config.request_timeout,
        )
        audit_logger = AuditLogger(AuditStore(config.db_path))
        return cls(config, client, audit_logger)

    async def close(self) -> None:
        await self.audit_logger.drain()
        await self.client.close()

    @staticmethod
    def decode_request(raw_body: bytes) -> AnthropicRequest:
        """解码入站请求体，失败时抛出 MalformedInboundError"""
        try:
            return AnthropicRequest.model_validate_json(raw_body)
        except ValidationError as e:
            raise MalformedInboundError(f"invalid request: {e.errors()[0]['msg']}") from e

    async def process_message(
        self, raw_body: bytes, request_id: str | None = None
    ) -> AnthropicMessageResponse:
        """
        处理一次 /v1/messages 调用

        Args:
            raw_body: 入站请求的原始字节
            request_id: 请求ID用于日志追踪

        Returns:
            AnthropicMessageResponse: 组装好的Anthropic格式响应

        Raises:
            MalformedInboundError: 入站请求无法解码
            BridgeError: 上游调用失败或返回错误
        """
        bound_logger = get_logger_with_request_id(request_id)

        def transition(state: CallState) -> None:
            bound_logger.debug(f"状态: {state.value}")

        transition(CallState.RECEIVED)
        try:
            anthropic_request = self.decode_request(raw_body)
        except MalformedInboundError:
            transition(CallState.BAD_REQUEST)
            raise

        openai_request = AnthropicToOpenAIConverter.convert_anthropic_to_openai(
            anthropic_request,
            provider=self.provider,
            max_tokens_ceiling=self.config.max_tokens,
            default_model=self.config.model,
            request_id=request_id,
        )
        payload = openai_request.to_payload()
        transition(CallState.TRANSLATED)

        record = AuditRecord(
            provider=self.config.base_url,
            endpoint=self.client.endpoint,
            model=openai_request.model,
            request_body=json.dumps(payload, ensure_ascii=False),
        )

        try:
            reply = await self.client.send(payload, request_id=request_id)
            transition(CallState.DISPATCHED)
            record.status_code = reply.status_code
            record.response_body = reply.text

            classification = classify_result(self._decode_reply(reply))
            record.prompt_tokens = classification.prompt_tokens
            record.completion_tokens = classification.completion_tokens
            bound_logger.debug(
                f"上游响应分类 - Provider: {self.provider.value}, "
                f"Path: {' -> '.join(classification.decision_path)}"
            )
            if classification.is_error:
                raise ProviderError(classification.error)
            transition(CallState.CLASSIFIED)

            response = OpenAIToAnthropicConverter.convert_response(
                classification, model=anthropic_request.model or self.config.model
            )
            transition(CallState.ASSEMBLED)
        except BridgeError as e:
            transition(CallState.UPSTREAM_FAILURE)
            if isinstance(e, ProviderError):
                bound_logger.error(
                    f"上游服务商错误 - Code: {e.detail.code}, Type: {e.detail.type}, "
                    f"Message: {e.detail.message}"
                )
            record.error_message = e.message
            self.audit_logger.record(record)
            raise

        self.audit_logger.record(record)
        transition(CallState.LOGGED)

        bound_logger.info(
            f"调用完成 - Model: {response.model}, StopReason: {response.stop_reason}, "
            f"Tokens: {response.usage.input_tokens}/{response.usage.output_tokens}"
        )
        transition(CallState.DONE)
        return response

    @staticmethod
    def _decode_reply(reply: UpstreamReply) -> dict:
        """解码上游响应体，非JSON对象时抛出 MalformedUpstreamError"""
        try:
            data = json.loads(reply.body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedUpstreamError(
                f"上游响应不是合法JSON: {e}",
                status_code=reply.status_code,
                raw_body=reply.body,
            ) from e
        if not isinstance(data, dict):
            raise MalformedUpstreamError(
                "上游响应不是JSON对象",
                status_code=reply.status_code,
                raw_body=reply.body,
            )
        return data


@router.post("/v1/messages")
async def messages_endpoint(request: Request):
    """Anthropic Messages API 入口"""
    request_id = get_request_id_from_request(request)
    handler: MessagesHandler = request.app.state.messages_handler
    raw_body = await request.body()

    try:
        response = await handler.process_message(raw_body, request_id=request_id)
    except BridgeError as e:
        return PlainTextResponse(e.to_plain_text(), status_code=e.status_code)

    return JSONResponse(content=response.model_dump(mode="json"))
