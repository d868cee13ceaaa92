"""Chat orchestrator — one round of tool calls between two completion passes.

    START → AWAITING_FIRST_COMPLETION → DIRECT → DONE
                                      → DISPATCHING_TOOLS → AWAITING_FINAL_COMPLETION → DONE
    (any state) → FAILED

The caller always gets an OrchestrationResult back; failures are logged
and turned into a user-safe message.
"""
import asyncio
import logging
import uuid
from enum import Enum
from typing import Iterable, List, Mapping, Optional

import httpx

from .config import Settings
from .llm import CompletionClient, CompletionFailure, CompletionMode, PlainText, ToolRequests
from .models import ConversationTurn, OrchestrationResult, Role, ToolRequest
from .prompts import SYSTEM_PROMPT
from .tools import ToolContext, execute_tool

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "Sorry, I encountered an error processing your request."
AUTH_FAILURE_MESSAGE = (
    "Sorry, I encountered an error processing your request: "
    "the completion service rejected the configured OPENAI_API_KEY."
)
NOT_CONFIGURED_MESSAGE = (
    "The assistant is not configured yet: set OPENAI_API_KEY on the server to enable chat."
)

_HISTORY_ROLES = {Role.SYSTEM.value, Role.USER.value, Role.ASSISTANT.value}


class State(str, Enum):
    START = "start"
    AWAITING_FIRST_COMPLETION = "awaiting_first_completion"
    DIRECT = "direct"
    DISPATCHING_TOOLS = "dispatching_tools"
    AWAITING_FINAL_COMPLETION = "awaiting_final_completion"
    DONE = "done"
    FAILED = "failed"


def _field(item, name: str):
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def build_conversation(message: str, history: Optional[Iterable] = None) -> List[ConversationTurn]:
    """System instruction + well-formed history turns + the new user turn.

    History items may be dicts or objects with ``role``/``content``; items
    missing either, or with a role other than system/user/assistant, are
    dropped.
    """
    turns = [ConversationTurn.system(SYSTEM_PROMPT)]
    for item in history or []:
        role = _field(item, "role")
        content = _field(item, "content")
        if not isinstance(role, str) or role not in _HISTORY_ROLES:
            continue
        if not isinstance(content, str) or not content:
            continue
        turns.append(ConversationTurn(Role(role), content))
    turns.append(ConversationTurn.user(message))
    return turns


def dedupe_requests(requests: List[ToolRequest], rid: str = "") -> List[ToolRequest]:
    """Keep the first request for each call id."""
    seen = set()
    unique = []
    for req in requests:
        if req.id in seen:
            logger.warning(f"[{rid}] Dropping duplicate tool call id {req.id} ({req.name})")
            continue
        seen.add(req.id)
        unique.append(req)
    return unique


class Orchestrator:
    def __init__(self, completion: Optional[CompletionClient], settings: Settings,
                 http_transport: Optional[httpx.AsyncBaseTransport] = None):
        # completion is None when no OPENAI_API_KEY is configured
        self.completion = completion
        self.settings = settings
        self._http_transport = http_transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "Orchestrator":
        completion = CompletionClient.from_settings(settings) if settings.openai_api_key else None
        return cls(completion, settings)

    async def chat(self, message: str, history: Optional[Iterable] = None) -> OrchestrationResult:
        rid = str(uuid.uuid4())[:8]
        if self.completion is None:
            logger.warning(f"[{rid}] OPENAI_API_KEY is not set, skipping completion")
            return OrchestrationResult(NOT_CONFIGURED_MESSAGE, [])

        try:
            return await self._run(rid, message, history)
        except Exception as e:
            logger.error(f"[{rid}] {State.FAILED.value}: unhandled error: {e}", exc_info=True)
            return OrchestrationResult(FALLBACK_MESSAGE, [])

    def _transition(self, rid: str, state: State) -> None:
        logger.debug(f"[{rid}] -> {state.value}")

    def _failed(self, rid: str, failure: CompletionFailure) -> OrchestrationResult:
        self._transition(rid, State.FAILED)
        logger.error(f"[{rid}] Completion failed [{failure.kind}]: {failure.message}")
        if failure.kind == "auth":
            return OrchestrationResult(AUTH_FAILURE_MESSAGE, [])
        return OrchestrationResult(FALLBACK_MESSAGE, [])

    async def _run(self, rid: str, message: str, history: Optional[Iterable]) -> OrchestrationResult:
        self._transition(rid, State.START)
        conversation = build_conversation(message, history)
        logger.info(f"[{rid}] Chat: {message[:200]!r} ({len(conversation) - 2} history turns)")

        self._transition(rid, State.AWAITING_FIRST_COMPLETION)
        first = await self.completion.complete(conversation, CompletionMode.FREE, tag=rid)

        if isinstance(first, CompletionFailure):
            return self._failed(rid, first)
        if isinstance(first, PlainText):
            self._transition(rid, State.DIRECT)
            self._transition(rid, State.DONE)
            return OrchestrationResult(first.text, [])
        if not isinstance(first, ToolRequests):
            raise TypeError(f"unexpected completion result: {first!r}")

        self._transition(rid, State.DISPATCHING_TOOLS)
        requests = dedupe_requests(first.requests, rid)
        results, labels = await self._dispatch(rid, requests)

        conversation = conversation + [ConversationTurn.assistant_tool_call(requests, first.text)]
        conversation += [ConversationTurn.tool_result(r) for r in results]

        self._transition(rid, State.AWAITING_FINAL_COMPLETION)
        final = await self.completion.complete(conversation, CompletionMode.FINAL, tag=rid)

        if isinstance(final, CompletionFailure):
            return self._failed(rid, final)
        if not isinstance(final, PlainText):
            raise TypeError(f"unexpected final completion result: {final!r}")

        self._transition(rid, State.DONE)
        return OrchestrationResult(final.text, labels)

    async def _dispatch(self, rid: str, requests: List[ToolRequest]):
        """Run all tool requests concurrently; results keep request order."""
        async with httpx.AsyncClient(timeout=self.settings.amap_timeout_s,
                                     transport=self._http_transport) as http:
            ctx = ToolContext(http=http, amap_api_key=self.settings.amap_api_key,
                              amap_base_url=self.settings.amap_base_url)
            outcomes = await asyncio.gather(*(execute_tool(req, ctx) for req in requests))

        results = [result for result, _ in outcomes]
        labels = [label for _, label in outcomes]
        logger.info(f"[{rid}] Tools done: {labels}")
        return results, labels
