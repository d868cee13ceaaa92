"""Tool executor — dispatches one tool request and always produces a ToolResult.

Nothing raised by a tool reaches the orchestrator: validation problems,
unknown tool names and backend failures all become an error payload the
model can read in the final completion pass.
"""
import logging
import time
from typing import Tuple

import httpx

from ..models import ToolRequest, ToolResult
from .amap import ToolContext, error_payload
from .registry import get_tool

logger = logging.getLogger(__name__)

LABEL_PREFIX = "Using Tool: "


def _is_missing(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


async def execute_tool(request: ToolRequest, ctx: ToolContext) -> Tuple[ToolResult, str]:
    """Execute a registered tool by name.

    Returns the ToolResult and the human readable log label for the call.
    """
    tool = get_tool(request.name)
    if not tool:
        logger.warning(f"Unknown tool: {request.name}")
        payload = error_payload(f"Unknown tool: {request.name}")
        return ToolResult(request.id, request.name, payload), f"{LABEL_PREFIX}{request.name} (unknown tool)"

    args = dict(request.arguments)
    label = LABEL_PREFIX + tool.label(args)

    if request.argument_error:
        payload = error_payload("Invalid arguments JSON", detail=request.argument_error, tool=request.name)
        return ToolResult(request.id, request.name, payload), label

    # Validate required params
    for param in tool.params:
        if param.required and _is_missing(args.get(param.name)):
            payload = error_payload(f"Missing required argument: {param.name}", tool=request.name)
            return ToolResult(request.id, request.name, payload), label

    # Only pass declared params; drop nulls so handler defaults apply
    known = {p.name for p in tool.params}
    call_args = {k: v for k, v in args.items() if k in known and v is not None}

    arg_str = ", ".join(f"{k}={v!r}" for k, v in call_args.items())
    logger.info(f"Executing tool: {request.name}({arg_str})")
    t0 = time.monotonic()

    try:
        payload = await tool.handler(ctx, **call_args)
    except httpx.HTTPStatusError as e:
        logger.error(f"Tool {request.name} got HTTP {e.response.status_code}: {e}")
        payload = error_payload(f"Amap returned HTTP {e.response.status_code}", tool=request.name)
    except httpx.HTTPError as e:
        logger.error(f"Tool {request.name} request failed: {type(e).__name__}: {e}")
        payload = error_payload(f"Amap request failed: {type(e).__name__}", tool=request.name)
    except ValueError as e:
        logger.error(f"Tool {request.name} got an unreadable response: {e}")
        payload = error_payload("Amap returned an unreadable response", tool=request.name)
    except Exception as e:
        logger.error(f"Tool {request.name} failed: {e}", exc_info=True)
        payload = error_payload(f"Tool execution failed: {e}", tool=request.name)

    elapsed = time.monotonic() - t0
    logger.info(f"Tool {request.name}: {elapsed:.1f}s -> {len(payload)} chars")
    return ToolResult(request.id, request.name, payload), label
