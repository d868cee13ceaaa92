"""Tool registry — closed set of tool names, decorator-based registration and lookup."""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Awaitable, Dict, List, Optional

logger = logging.getLogger(__name__)


class ToolName(str, Enum):
    GEOCODE = "amapGeocode"
    SEARCH_POI = "amapSearchPOI"
    GET_ROUTE = "amapGetRoute"


@dataclass
class ToolParam:
    name: str
    type: str = "string"
    description: str = ""
    required: bool = True
    enum: Optional[List[str]] = None

    def schema(self) -> Dict[str, Any]:
        prop: Dict[str, Any] = {"type": self.type}
        if self.description:
            prop["description"] = self.description
        if self.enum:
            prop["enum"] = list(self.enum)
        return prop


@dataclass
class ToolDef:
    name: ToolName
    description: str
    params: List[ToolParam]
    handler: Callable[..., Awaitable[str]]
    # One-line human readable summary of a call, shown to the caller
    label: Callable[[Dict[str, Any]], str]

    def schema(self) -> Dict[str, Any]:
        """OpenAI function-tool definition."""
        return {
            "type": "function",
            "function": {
                "name": self.name.value,
                "description": self.description,
                "parameters": {
                    "type": "object",
                    "properties": {p.name: p.schema() for p in self.params},
                    "required": [p.name for p in self.params if p.required],
                },
            },
        }


_tools: Dict[ToolName, ToolDef] = {}


def register_tool(
    name: ToolName,
    description: str = "",
    params: Optional[List[ToolParam]] = None,
    label: Optional[Callable[[Dict[str, Any]], str]] = None,
):
    """Decorator to register a tool executor."""
    def decorator(func):
        tool = ToolDef(
            name=name,
            description=description or func.__doc__ or "",
            params=params or [],
            handler=func,
            label=label or (lambda args: name.value),
        )
        _tools[name] = tool
        logger.info(f"Registered tool: {name.value}")
        return func
    return decorator


def get_tool(name: str) -> Optional[ToolDef]:
    try:
        return _tools.get(ToolName(name))
    except ValueError:
        return None


def all_tools() -> Dict[ToolName, ToolDef]:
    return dict(_tools)


def openai_tools() -> List[Dict[str, Any]]:
    """Tool catalog advertised to the completion service, in ToolName order."""
    return [_tools[name].schema() for name in ToolName if name in _tools]


def check_registry() -> None:
    """Fail fast if any ToolName has no registered executor."""
    missing = [name.value for name in ToolName if name not in _tools]
    if missing:
        raise RuntimeError(f"No executor registered for tools: {', '.join(missing)}")
