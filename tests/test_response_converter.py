"""测试 OpenAI -> Anthropic 响应转换"""

import pytest

from openbridge.core.classifier import classify_result
from openbridge.core.converters.request_converter import AnthropicToOpenAIConverter
from openbridge.core.converters.response_converter import OpenAIToAnthropicConverter
from openbridge.core.providers import Provider
from openbridge.models.anthropic import AnthropicRequest

from tests.fixtures import (
    error_completion,
    function_call_completion,
    text_completion,
    tool_calls_completion,
)


class TestConvertResponse:
    def test_text_response(self):
        response = OpenAIToAnthropicConverter.convert_response(
            classify_result(text_completion("Hi there", 10, 5)), model="m"
        )
        assert response.id.startswith("msg_")
        assert response.model == "m"
        assert response.stop_reason == "end_turn"
        assert [block.model_dump() for block in response.content] == [
            {"type": "text", "text": "Hi there"}
        ]
        assert response.usage.input_tokens == 10
        assert response.usage.output_tokens == 5

    def test_missing_text_still_emits_block(self):
        response = OpenAIToAnthropicConverter.convert_response(
            classify_result({"choices": [{"message": {}}]}), model="m"
        )
        assert len(response.content) == 1
        assert response.content[0].text == ""

    def test_missing_tool_id_is_generated(self):
        response = OpenAIToAnthropicConverter.convert_response(
            classify_result(function_call_completion("lookup", "{}")), model="m"
        )
        block = response.content[0]
        assert block.type == "tool_use"
        assert block.id.startswith("toolu_")
        assert response.stop_reason == "tool_use"

    def test_error_classification_rejected(self):
        with pytest.raises(ValueError):
            OpenAIToAnthropicConverter.convert_response(
                classify_result(error_completion()), model="m"
            )


class TestRoundTrip:
    """请求转换 + 上游回显 + 响应转换"""

    @pytest.mark.parametrize(
        "history",
        [
            [{"role": "user", "content": "hi"}],
            [
                {"role": "system", "content": "be brief"},
                {"role": "user", "content": "hi"},
                {"role": "assistant", "content": "hello"},
                {"role": "user", "content": "how are you?"},
            ],
        ],
    )
    def test_plain_text(self, history):
        request = AnthropicRequest(messages=history)
        outbound = AnthropicToOpenAIConverter.convert_anthropic_to_openai(
            request, provider=Provider.OPENAI, max_tokens_ceiling=100
        )
        echoed = outbound.messages[-1].content
        response = OpenAIToAnthropicConverter.convert_response(
            classify_result(text_completion(echoed)), model="m"
        )
        assert len(response.content) == 1
        assert response.content[0].type == "text"
        assert response.content[0].text == echoed
        assert response.stop_reason == "end_turn"

    def test_modern_tool_call(self):
        request = AnthropicRequest(
            messages=[
                {
                    "role": "assistant",
                    "content": [
                        {"type": "tool_use", "id": "t1", "name": "lookup", "input": {"q": "x"}}
                    ],
                }
            ]
        )
        outbound = AnthropicToOpenAIConverter.convert_anthropic_to_openai(
            request, provider=Provider.OPENROUTER, max_tokens_ceiling=100
        ).to_payload()
        tool_calls = outbound["messages"][0]["tool_calls"]
        assert tool_calls[0]["function"]["arguments"] == '{"q":"x"}'

        response = OpenAIToAnthropicConverter.convert_response(
            classify_result(tool_calls_completion(tool_calls)), model="m"
        )
        block = response.content[0]
        assert (block.type, block.id, block.name, block.input) == (
            "tool_use",
            "t1",
            "lookup",
            {"q": "x"},
        )
        assert response.stop_reason == "tool_use"
