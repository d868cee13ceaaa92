from contextlib import asynccontextmanager

from fastapi import FastAPI

from .api import router
from .config import settings
from .orchestrator import Orchestrator


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.orchestrator = Orchestrator.from_settings(settings)
    yield


app = FastAPI(lifespan=lifespan)
app.include_router(router)


@app.get("/health")
async def health():
    return {"ok": True}
