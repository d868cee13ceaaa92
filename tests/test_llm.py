"""Tests for llm.py — completion modes and response interpretation."""
from types import SimpleNamespace

import httpx
import openai
import pytest

from conftest import text_response, tool_call, tool_calls_response
from travelchat.llm import (
    CompletionClient, CompletionFailure, CompletionMode, PlainText, ToolRequests,
)
from travelchat.models import ConversationTurn

CONVERSATION = [ConversationTurn.system("sys"), ConversationTurn.user("hi")]

_REQUEST = httpx.Request("POST", "https://api.openai.test/v1/chat/completions")


def _status_error(cls, status):
    return cls("error", response=httpx.Response(status, request=_REQUEST), body=None)


class TestModes:
    @pytest.mark.asyncio
    async def test_free_mode_advertises_tools(self, completion, openai_client):
        openai_client.chat.completions.create.return_value = text_response("hello")
        await completion.complete(CONVERSATION, CompletionMode.FREE)

        kwargs = openai_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-test"
        assert kwargs["tool_choice"] == "auto"
        assert [t["function"]["name"] for t in kwargs["tools"]] == [
            "amapGeocode", "amapSearchPOI", "amapGetRoute",
        ]
        assert kwargs["messages"] == [
            {"role": "system", "content": "sys"},
            {"role": "user", "content": "hi"},
        ]

    @pytest.mark.asyncio
    async def test_final_mode_has_no_tools(self, completion, openai_client):
        openai_client.chat.completions.create.return_value = text_response("done")
        result = await completion.complete(CONVERSATION, CompletionMode.FINAL)

        kwargs = openai_client.chat.completions.create.call_args.kwargs
        assert "tools" not in kwargs
        assert "tool_choice" not in kwargs
        assert result == PlainText("done")


class TestInterpretation:
    @pytest.mark.asyncio
    async def test_plain_text(self, completion, openai_client):
        openai_client.chat.completions.create.return_value = text_response("Hi there!")
        assert await completion.complete(CONVERSATION) == PlainText("Hi there!")

    @pytest.mark.asyncio
    async def test_tool_requests(self, completion, openai_client):
        openai_client.chat.completions.create.return_value = tool_calls_response(
            tool_call("call_1", "amapSearchPOI", {"keywords": "cafes"}),
            tool_call("call_2", "amapGeocode", {"address": "Central Park"}),
        )
        result = await completion.complete(CONVERSATION)

        assert isinstance(result, ToolRequests)
        assert [r.id for r in result.requests] == ["call_1", "call_2"]
        assert result.requests[0].arguments == {"keywords": "cafes"}
        assert result.requests[0].raw_arguments == '{"keywords": "cafes"}'
        assert result.text == ""

    @pytest.mark.asyncio
    async def test_bad_arguments_json_is_not_fatal(self, completion, openai_client):
        openai_client.chat.completions.create.return_value = tool_calls_response(
            tool_call("call_1", "amapSearchPOI", "{keywords: cafes"),
        )
        result = await completion.complete(CONVERSATION)
        req = result.requests[0]
        assert req.arguments == {}
        assert req.argument_error

    @pytest.mark.asyncio
    async def test_non_object_arguments(self, completion, openai_client):
        openai_client.chat.completions.create.return_value = tool_calls_response(
            tool_call("call_1", "amapSearchPOI", "[1, 2]"),
        )
        result = await completion.complete(CONVERSATION)
        assert result.requests[0].argument_error == "arguments must be a JSON object"

    @pytest.mark.asyncio
    async def test_non_function_tool_call_skipped(self, completion, openai_client):
        custom = SimpleNamespace(id="call_x", type="custom", custom=SimpleNamespace(name="grep", input="x"))
        openai_client.chat.completions.create.return_value = tool_calls_response(
            custom, tool_call("call_1", "amapGeocode", {"address": "Bund"}),
        )
        result = await completion.complete(CONVERSATION)
        assert isinstance(result, ToolRequests)
        assert [r.id for r in result.requests] == ["call_1"]
        assert all(w["type"] == "function" for w in (r.to_wire() for r in result.requests))

    @pytest.mark.asyncio
    async def test_only_non_function_calls_with_text(self, completion, openai_client):
        custom = SimpleNamespace(id="call_x", type="custom", function=None)
        openai_client.chat.completions.create.return_value = tool_calls_response(custom, content="Here you go.")
        assert await completion.complete(CONVERSATION) == PlainText("Here you go.")

    @pytest.mark.asyncio
    async def test_only_non_function_calls_without_text(self, completion, openai_client):
        custom = SimpleNamespace(id="call_x", type="custom", function=None)
        openai_client.chat.completions.create.return_value = tool_calls_response(custom)
        result = await completion.complete(CONVERSATION)
        assert isinstance(result, CompletionFailure)
        assert result.kind == "malformed"

    @pytest.mark.asyncio
    async def test_tool_calls_in_final_mode_malformed(self, completion, openai_client):
        openai_client.chat.completions.create.return_value = tool_calls_response(
            tool_call("call_1", "amapGeocode", {"address": "x"}),
        )
        result = await completion.complete(CONVERSATION, CompletionMode.FINAL)
        assert isinstance(result, CompletionFailure)
        assert result.kind == "malformed"

    @pytest.mark.asyncio
    async def test_no_choices(self, completion, openai_client):
        openai_client.chat.completions.create.return_value = SimpleNamespace(choices=[])
        result = await completion.complete(CONVERSATION)
        assert result.kind == "malformed"

    @pytest.mark.asyncio
    async def test_null_content(self, completion, openai_client):
        openai_client.chat.completions.create.return_value = text_response(None)
        result = await completion.complete(CONVERSATION)
        assert result.kind == "malformed"


class TestFailures:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("exc,kind", [
        (openai.APIConnectionError(request=_REQUEST), "network"),
        (openai.APITimeoutError(request=_REQUEST), "timeout"),
        (_status_error(openai.RateLimitError, 429), "rate_limit"),
        (_status_error(openai.AuthenticationError, 401), "auth"),
        (_status_error(openai.InternalServerError, 500), "api"),
    ])
    async def test_tagged_failure(self, completion, openai_client, exc, kind):
        openai_client.chat.completions.create.side_effect = exc
        result = await completion.complete(CONVERSATION)
        assert isinstance(result, CompletionFailure)
        assert result.kind == kind
        assert openai_client.chat.completions.create.await_count == 1


class TestFromSettings:
    def test_no_retries(self, settings):
        client = CompletionClient.from_settings(settings)
        assert client.model == "gpt-test"
        assert client.client.max_retries == 0
        assert client.client.api_key == "sk-test"
