"""Shared fixtures: fake Amap backend, fake OpenAI responses, settings."""
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import pytest_asyncio

from travelchat.config import Settings
from travelchat.llm import CompletionClient
from travelchat.tools import ToolContext

AMAP_BASE = "https://amap.test"


class FakeAmap:
    """httpx MockTransport handler that records calls and serves canned bodies by path."""

    def __init__(self):
        self.calls = []
        self.responses = {}
        self.geocodes = {}

    def on(self, path, body, status=200):
        self.responses[path] = (status, body)
        return self

    def geocode(self, address, location):
        """Serve a geocode hit for one address; other addresses get no result."""
        self.geocodes[address] = location
        return self

    def count(self, path):
        return sum(1 for p, _ in self.calls if p == path)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.lstrip("/")
        params = dict(request.url.params)
        self.calls.append((path, params))

        if path in self.responses:
            status, body = self.responses[path]
            if isinstance(body, Exception):
                raise body
            if isinstance(body, (dict, list)):
                return httpx.Response(status, json=body)
            return httpx.Response(status, text=body)

        if path == "v3/geocode/geo":
            location = self.geocodes.get(params.get("address"))
            if location:
                return httpx.Response(200, json={"status": "1", "count": "1",
                                                 "geocodes": [{"location": location}]})
            return httpx.Response(200, json={"status": "1", "count": "0", "geocodes": []})

        return httpx.Response(404, json={"info": "not found"})


@pytest.fixture
def amap():
    return FakeAmap()


@pytest.fixture
def settings():
    return Settings(
        openai_api_key="sk-test",
        openai_chat_model="gpt-test",
        amap_api_key="amap-test",
        amap_base_url=AMAP_BASE,
    )


@pytest_asyncio.fixture
async def ctx(amap):
    async with httpx.AsyncClient(transport=httpx.MockTransport(amap)) as http:
        yield ToolContext(http=http, amap_api_key="amap-test", amap_base_url=AMAP_BASE)


# ── Fake OpenAI responses ─────────────────────────────────────

def text_response(text):
    message = SimpleNamespace(content=text, tool_calls=None)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def tool_call(call_id, name, arguments):
    raw = arguments if isinstance(arguments, str) else json.dumps(arguments)
    return SimpleNamespace(id=call_id, type="function",
                           function=SimpleNamespace(name=name, arguments=raw))


def tool_calls_response(*calls, content=None):
    message = SimpleNamespace(content=content, tool_calls=list(calls))
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


@pytest.fixture
def openai_client():
    client = MagicMock()
    client.chat.completions.create = AsyncMock()
    return client


@pytest.fixture
def completion(openai_client):
    return CompletionClient(openai_client, "gpt-test")
