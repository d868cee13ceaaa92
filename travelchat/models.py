"""Conversation and tool-call data model, shared by the orchestrator, the
completion adapter and the tool executors.

Everything here is created per chat request and discarded once the answer
is returned.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True)
class ToolRequest:
    """A tool call requested by the model in the first completion pass."""
    id: str
    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)
    raw_arguments: str = "{}"
    # Set when the model sent arguments that are not a JSON object
    argument_error: str = ""

    def to_wire(self) -> dict:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.raw_arguments},
        }


@dataclass(frozen=True)
class ToolResult:
    tool_call_id: str
    name: str
    payload: str


@dataclass(frozen=True)
class ConversationTurn:
    role: Role
    content: str = ""
    tool_name: Optional[str] = None
    tool_call_id: Optional[str] = None
    tool_requests: Tuple[ToolRequest, ...] = ()

    @classmethod
    def system(cls, content: str) -> "ConversationTurn":
        return cls(Role.SYSTEM, content)

    @classmethod
    def user(cls, content: str) -> "ConversationTurn":
        return cls(Role.USER, content)

    @classmethod
    def assistant_tool_call(cls, requests: List[ToolRequest], content: str = "") -> "ConversationTurn":
        return cls(Role.ASSISTANT, content, tool_requests=tuple(requests))

    @classmethod
    def tool_result(cls, result: ToolResult) -> "ConversationTurn":
        return cls(Role.TOOL, result.payload, tool_name=result.name, tool_call_id=result.tool_call_id)

    def to_message(self) -> dict:
        """Render as an OpenAI chat message."""
        if self.role == Role.TOOL:
            return {"role": "tool", "tool_call_id": self.tool_call_id, "content": self.content}
        if self.tool_requests:
            return {
                "role": "assistant",
                "content": self.content or None,
                "tool_calls": [r.to_wire() for r in self.tool_requests],
            }
        return {"role": self.role.value, "content": self.content}


@dataclass
class OrchestrationResult:
    content: str
    tool_calls: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"content": self.content, "toolCalls": list(self.tool_calls)}
