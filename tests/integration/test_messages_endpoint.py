"""
/v1/messages 端点集成测试

上游由 httpx.MockTransport 模拟，审计写入内存SQLite。
"""

import json

import pytest
from fastapi.testclient import TestClient

from openbridge.audit import AuditStore
from openbridge.main import create_app

from tests.fixtures import (
    GROQ_BASE_URL,
    FailingUpstream,
    RecordingUpstream,
    RejectingStore,
    error_completion,
    make_config,
    make_handler,
    text_completion,
    tool_calls_completion,
)

SIMPLE_REQUEST = {
    "model": "claude-3-5-sonnet-20241022",
    "max_tokens": 100,
    "messages": [{"role": "user", "content": "Hello, how are you?"}],
}

LOOKUP_TOOL = {
    "name": "lookup",
    "description": "Look something up",
    "input_schema": {"type": "object", "properties": {"q": {"type": "string"}}},
}


def run_call(handler, body, raw: bytes | None = None):
    """启动应用发送一次请求；退出时生命周期会等待审计写入完成"""
    app = create_app(handler=handler, log_file=None)
    with TestClient(app) as client:
        if raw is not None:
            response = client.post(
                "/v1/messages", content=raw, headers={"Content-Type": "application/json"}
            )
        else:
            response = client.post("/v1/messages", json=body)
    return response


class TestMessagesEndpoint:
    """测试 /v1/messages 成功路径"""

    @pytest.fixture
    def store(self):
        return AuditStore(":memory:")

    def test_text_response(self, store):
        upstream = RecordingUpstream(text_completion("I'm doing well!", 10, 15))
        response = run_call(make_handler(upstream, store=store), SIMPLE_REQUEST)

        assert response.status_code == 200
        data = response.json()
        assert data["id"].startswith("msg_")
        assert data["type"] == "message"
        assert data["role"] == "assistant"
        assert data["model"] == "claude-3-5-sonnet-20241022"
        assert data["content"] == [{"type": "text", "text": "I'm doing well!"}]
        assert data["stop_reason"] == "end_turn"
        assert data["stop_sequence"] is None
        assert data["usage"] == {"input_tokens": 10, "output_tokens": 15}

        outbound = upstream.last_json
        assert outbound["model"] == "claude-3-5-sonnet-20241022"
        assert outbound["max_tokens"] == 100
        assert outbound["messages"] == [{"role": "user", "content": "Hello, how are you?"}]

    def test_tool_use_response(self, store):
        upstream = RecordingUpstream(
            tool_calls_completion(
                [
                    {
                        "id": "call_1",
                        "type": "function",
                        "function": {"name": "lookup", "arguments": '{"q":"x"}'},
                    }
                ]
            )
        )
        body = {**SIMPLE_REQUEST, "tools": [LOOKUP_TOOL]}
        response = run_call(make_handler(upstream, store=store), body)

        assert response.status_code == 200
        data = response.json()
        assert data["stop_reason"] == "tool_use"
        assert data["content"] == [
            {"type": "tool_use", "id": "call_1", "name": "lookup", "input": {"q": "x"}}
        ]
        assert upstream.last_json["tools"][0]["function"]["name"] == "lookup"
        assert upstream.last_json["tool_choice"] == "auto"

    def test_groq_receives_legacy_functions(self, store):
        upstream = RecordingUpstream(text_completion("ok"))
        handler = make_handler(
            upstream, config=make_config(base_url=GROQ_BASE_URL), store=store
        )
        run_call(handler, {**SIMPLE_REQUEST, "tools": [LOOKUP_TOOL]})

        outbound = upstream.last_json
        assert "tools" not in outbound
        assert outbound["functions"][0]["name"] == "lookup"
        assert outbound["function_call"] == "auto"
        assert str(upstream.requests[0].url) == GROQ_BASE_URL + "/chat/completions"

    def test_default_model_and_ceiling(self, store):
        upstream = RecordingUpstream(text_completion("ok"))
        handler = make_handler(upstream, config=make_config(max_tokens=512), store=store)
        response = run_call(handler, {"messages": [{"role": "user", "content": "hi"}]})

        assert upstream.last_json["model"] == "default-model"
        assert upstream.last_json["max_tokens"] == 512
        assert response.json()["model"] == "default-model"

    def test_success_is_audited(self, store):
        upstream = RecordingUpstream(text_completion("ok", 4, 2))
        run_call(make_handler(upstream, store=store), SIMPLE_REQUEST)

        rows = store.list_recent()
        assert len(rows) == 1
        row = rows[0]
        assert row.provider == "https://openrouter.ai/api/v1"
        assert row.endpoint == "https://openrouter.ai/api/v1/chat/completions"
        assert row.model == "claude-3-5-sonnet-20241022"
        assert json.loads(row.request) == upstream.last_json
        assert json.loads(row.response)["choices"][0]["message"]["content"] == "ok"
        assert row.status_code == 200
        assert row.error_message == ""
        assert (row.prompt_tokens, row.completion_tokens) == (4, 2)

    def test_request_id_header(self, store):
        upstream = RecordingUpstream(text_completion("ok"))
        app = create_app(handler=make_handler(upstream, store=store), log_file=None)
        with TestClient(app) as client:
            response = client.post(
                "/v1/messages", json=SIMPLE_REQUEST, headers={"X-Request-ID": "req_fixed"}
            )
            generated = client.post("/v1/messages", json=SIMPLE_REQUEST)
        assert response.headers["X-Request-ID"] == "req_fixed"
        assert generated.headers["X-Request-ID"].startswith("req_")


class TestMessagesErrors:
    """测试错误路径的HTTP契约与审计记录"""

    @pytest.fixture
    def store(self):
        return AuditStore(":memory:")

    @pytest.mark.parametrize(
        "raw",
        [b"{not json", b"", b'{"model": "m"}', b'{"messages": "nope"}', b"[]"],
    )
    def test_malformed_inbound_is_400(self, store, raw):
        upstream = RecordingUpstream(text_completion("unused"))
        response = run_call(make_handler(upstream, store=store), None, raw=raw)

        assert response.status_code == 400
        assert response.headers["content-type"].startswith("text/plain")
        assert upstream.requests == []
        assert store.list_recent() == []

    def test_provider_error_is_500_with_upstream_message(self, store):
        upstream = RecordingUpstream(error_completion("Rate limit exceeded"), status_code=429)
        response = run_call(make_handler(upstream, store=store), SIMPLE_REQUEST)

        assert response.status_code == 500
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == "Rate limit exceeded"

        row = store.list_recent()[0]
        assert row.status_code == 429
        assert json.loads(row.response) == error_completion("Rate limit exceeded")
        assert row.error_message == "Rate limit exceeded"

    def test_error_with_choices_is_still_error(self, store):
        payload = text_completion("looks fine")
        payload.update(error_completion("partial failure"))
        upstream = RecordingUpstream(payload)
        response = run_call(make_handler(upstream, store=store), SIMPLE_REQUEST)
        assert response.status_code == 500
        assert response.text == "partial failure"

    def test_transport_failure_is_500_and_audited(self, store):
        response = run_call(make_handler(FailingUpstream(), store=store), SIMPLE_REQUEST)

        assert response.status_code == 500
        assert "connection refused" in response.text

        row = store.list_recent()[0]
        assert row.status_code == 0
        assert row.response == ""
        assert "connection refused" in row.error_message

    @pytest.mark.parametrize("raw", [b"<html>Bad Gateway</html>", b'["not", "an", "object"]'])
    def test_malformed_upstream_is_generic_500(self, store, raw):
        upstream = RecordingUpstream(raw=raw, status_code=502)
        response = run_call(make_handler(upstream, store=store), SIMPLE_REQUEST)

        assert response.status_code == 500
        assert response.text == "上游服务返回了无法解析的响应"

        row = store.list_recent()[0]
        assert row.status_code == 502
        assert row.response == raw.decode()
        assert row.error_message != ""

    def test_audit_failure_does_not_change_response(self):
        """审计存储拒绝所有写入时，调用方看到的响应不变"""
        payload = text_completion("same answer", 3, 4)

        normal = run_call(
            make_handler(RecordingUpstream(payload), store=AuditStore(":memory:")),
            SIMPLE_REQUEST,
        )
        rejecting = RejectingStore()
        degraded = run_call(
            make_handler(RecordingUpstream(payload), store=rejecting), SIMPLE_REQUEST
        )

        assert rejecting.attempts == 1
        assert degraded.status_code == normal.status_code == 200
        normal_body, degraded_body = normal.json(), degraded.json()
        normal_body.pop("id")
        degraded_body.pop("id")
        assert degraded_body == normal_body

    def test_audit_failure_does_not_change_error_response(self):
        rejecting = RejectingStore()
        response = run_call(
            make_handler(RecordingUpstream(error_completion("nope")), store=rejecting),
            SIMPLE_REQUEST,
        )
        assert rejecting.attempts == 1
        assert response.status_code == 500
        assert response.text == "nope"
