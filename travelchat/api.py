"""REST API routes: chat."""
import logging
from typing import Any, List

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict, Field

from .orchestrator import Orchestrator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api")


# ── Pydantic schemas ──────────────────────────────────────────

class ChatRequest(BaseModel):
    message: str
    # Raw items; malformed turns are dropped by the orchestrator, not rejected here
    history: List[Any] = []

class ChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: str
    tool_calls: List[str] = Field(default_factory=list, alias="toolCalls")


# ── Dependencies ──────────────────────────────────────────────

def get_orchestrator(request: Request) -> Orchestrator:
    return request.app.state.orchestrator


# ── Chat ──────────────────────────────────────────────────────

@router.post("/chat", response_model=ChatResponse)
async def chat(req: ChatRequest, orchestrator: Orchestrator = Depends(get_orchestrator)):
    result = await orchestrator.chat(req.message, req.history)
    return ChatResponse(content=result.content, tool_calls=result.tool_calls)
