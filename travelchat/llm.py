"""Completion client — wraps OpenAI chat completions in two modes.

``free`` advertises the tool catalog and lets the model pick tools;
``final`` advertises nothing and expects plain text. Every call yields
one of PlainText, ToolRequests or CompletionFailure; backend exceptions
never leave this module.
"""
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Union

import openai
from openai import AsyncOpenAI

from .config import Settings
from .models import ConversationTurn, ToolRequest
from .tools import openai_tools

logger = logging.getLogger(__name__)


class CompletionMode(str, Enum):
    FREE = "free"
    FINAL = "final"


@dataclass(frozen=True)
class PlainText:
    text: str


@dataclass(frozen=True)
class ToolRequests:
    requests: List[ToolRequest]
    # Text the model sent alongside its tool calls, usually empty
    text: str = ""


@dataclass(frozen=True)
class CompletionFailure:
    kind: str  # auth | rate_limit | timeout | network | api | malformed
    message: str


Completion = Union[PlainText, ToolRequests, CompletionFailure]


class MalformedResponse(Exception):
    pass


def _classify(exc: Exception) -> str:
    # APITimeoutError subclasses APIConnectionError, so check it first
    if isinstance(exc, openai.AuthenticationError):
        return "auth"
    if isinstance(exc, openai.RateLimitError):
        return "rate_limit"
    if isinstance(exc, openai.APITimeoutError):
        return "timeout"
    if isinstance(exc, openai.APIConnectionError):
        return "network"
    return "api"


def _parse_tool_call(tc) -> Optional[ToolRequest]:
    call_id = getattr(tc, "id", None)
    if not isinstance(call_id, str) or not call_id:
        raise MalformedResponse("tool call without id")

    function = getattr(tc, "function", None)
    if getattr(tc, "type", "function") != "function" or function is None:
        # Only function calls can be answered with a tool message
        logger.warning(f"Skipping non-function tool call {call_id} (type={getattr(tc, 'type', None)!r})")
        return None

    name = function.name or ""
    raw = function.arguments or "{}"
    try:
        args = json.loads(raw)
    except json.JSONDecodeError as e:
        return ToolRequest(id=call_id, name=name, raw_arguments=raw, argument_error=str(e))
    if not isinstance(args, dict):
        return ToolRequest(id=call_id, name=name, raw_arguments=raw,
                           argument_error="arguments must be a JSON object")
    return ToolRequest(id=call_id, name=name, arguments=args, raw_arguments=raw)


def _interpret(response, mode: CompletionMode) -> Completion:
    choices = getattr(response, "choices", None)
    if not choices:
        raise MalformedResponse("response has no choices")
    message = choices[0].message
    content = message.content
    tool_calls = getattr(message, "tool_calls", None) or []

    if tool_calls:
        if mode == CompletionMode.FINAL:
            raise MalformedResponse("tool calls returned in final mode")
        requests = [r for r in (_parse_tool_call(tc) for tc in tool_calls) if r is not None]
        if requests:
            return ToolRequests(requests, text=content if isinstance(content, str) else "")

    if not isinstance(content, str):
        raise MalformedResponse("response has neither text nor tool calls")
    return PlainText(content)


class CompletionClient:
    """Explicitly constructed completion client, shared across requests."""

    def __init__(self, client: AsyncOpenAI, model: str):
        self.client = client
        self.model = model

    @classmethod
    def from_settings(cls, settings: Settings) -> "CompletionClient":
        client = AsyncOpenAI(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            timeout=settings.openai_timeout_s,
            # Retry policy belongs to the caller; a timeout is terminal
            max_retries=0,
        )
        return cls(client, settings.openai_chat_model)

    async def complete(self, conversation: Sequence[ConversationTurn],
                       mode: CompletionMode = CompletionMode.FREE,
                       tag: Optional[str] = None) -> Completion:
        kwargs = {
            "model": self.model,
            "messages": [turn.to_message() for turn in conversation],
        }
        if mode == CompletionMode.FREE:
            kwargs["tools"] = openai_tools()
            kwargs["tool_choice"] = "auto"

        prefix = f"[{tag}] " if tag else ""
        try:
            response = await self.client.chat.completions.create(**kwargs)
        except openai.OpenAIError as e:
            kind = _classify(e)
            logger.error(f"{prefix}Completion ({mode.value}) failed [{kind}]: {type(e).__name__}: {e}")
            return CompletionFailure(kind, str(e))

        try:
            result = _interpret(response, mode)
        except (MalformedResponse, AttributeError, IndexError, TypeError) as e:
            logger.error(f"{prefix}Completion ({mode.value}) returned a malformed response: {e}")
            return CompletionFailure("malformed", str(e))

        if isinstance(result, ToolRequests):
            names = ", ".join(r.name for r in result.requests)
            logger.info(f"{prefix}Completion ({mode.value}) requested tools: {names}")
        else:
            logger.info(f"{prefix}Completion ({mode.value}) text: {result.text[:200]}")
        return result
