"""Settings for the travel chat server, read from the environment.

A ``.env`` file at the project root is loaded first; variables already
set in the environment are never overwritten by it.
"""
from pydantic import BaseModel
import os
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

DOTENV_PATH = Path(__file__).resolve().parent.parent / ".env"


def load_dotenv_file(path: Path) -> int:
    """Copy KEY=VALUE lines from path into os.environ; returns how many were set."""
    if not path.is_file():
        return 0
    loaded = 0
    for raw in path.read_text(encoding="utf-8").splitlines():
        entry = raw.strip()
        if not entry or entry.startswith("#") or "=" not in entry:
            continue
        name, _, value = (part.strip() for part in entry.partition("="))
        if name in os.environ:
            continue
        os.environ[name] = value.strip('"').strip("'")
        loaded += 1
    return loaded


load_dotenv_file(DOTENV_PATH)


def _sanitize_ascii(val: str) -> str:
    """API keys pasted from web consoles sometimes carry invisible unicode."""
    return "".join(ch for ch in val if ch.isascii()).strip()


class Settings(BaseModel):
    # HTTP surface
    http_host: str = os.getenv("HTTP_HOST", "0.0.0.0")
    http_port: int = int(os.getenv("HTTP_PORT", "8000"))

    # Completion service (OpenAI-compatible chat completions)
    openai_api_key: str = _sanitize_ascii(os.getenv("OPENAI_API_KEY", ""))
    openai_base_url: str = _sanitize_ascii(os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1"))
    openai_chat_model: str = _sanitize_ascii(os.getenv("OPENAI_CHAT_MODEL", "gpt-5.1"))
    openai_timeout_s: float = float(os.getenv("OPENAI_TIMEOUT", "60"))

    # Amap (Gaode) REST API for geocoding, POI search and directions
    amap_api_key: str = _sanitize_ascii(os.getenv("AMAP_API_KEY", ""))
    amap_base_url: str = _sanitize_ascii(os.getenv("AMAP_BASE_URL", "https://restapi.amap.com"))
    amap_timeout_s: float = float(os.getenv("AMAP_TIMEOUT", "10"))


def mask_secret(value: str) -> str:
    return '***' + value[-4:] if len(value) > 4 else 'EMPTY'


settings = Settings()

# Log config for debugging
logger.info(f"Config: Chat → {settings.openai_base_url}, model={settings.openai_chat_model} "
            f"(key={mask_secret(settings.openai_api_key)})")
logger.info(f"Config: Amap → {settings.amap_base_url} (key={mask_secret(settings.amap_api_key)})")
