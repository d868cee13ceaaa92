"""Shared Amap (Gaode) REST helpers used by the builtin tools."""
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

# "lng,lat" as Amap expects it, e.g. "116.481488,39.990464"
_COORDS_RE = re.compile(r"^\s*(-?\d{1,3}(?:\.\d+)?)\s*,\s*(-?\d{1,2}(?:\.\d+)?)\s*$")


@dataclass
class ToolContext:
    """Request-scoped resources handed to every tool executor."""
    http: httpx.AsyncClient
    amap_api_key: str
    amap_base_url: str = "https://restapi.amap.com"


def to_payload(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False)


def error_payload(message: str, **extra: Any) -> str:
    return to_payload({"error": message, **extra})


def missing_key_payload() -> str:
    return error_payload("Missing AMAP_API_KEY")


def as_coordinates(text: str) -> Optional[str]:
    """Return normalized "lng,lat" if text already is a coordinate pair."""
    m = _COORDS_RE.match(text or "")
    if not m:
        return None
    return f"{m.group(1)},{m.group(2)}"


async def amap_get(ctx: ToolContext, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
    """GET an Amap endpoint and return the decoded JSON body.

    Raises httpx.HTTPError on transport failures and non-2xx responses, and
    ValueError when the body is not JSON.
    """
    url = f"{ctx.amap_base_url.rstrip('/')}/{path}"
    resp = await ctx.http.get(url, params={"key": ctx.amap_api_key, **params})
    resp.raise_for_status()
    return resp.json()


async def geocode_lookup(ctx: ToolContext, address: str, city: str = "") -> Dict[str, Any]:
    params = {"address": address}
    if city:
        params["city"] = city
    return await amap_get(ctx, "v3/geocode/geo", params)


def first_location(data: Dict[str, Any]) -> Optional[str]:
    geocodes = data.get("geocodes") if isinstance(data, dict) else None
    if not geocodes or not isinstance(geocodes, list):
        return None
    location = geocodes[0].get("location") if isinstance(geocodes[0], dict) else None
    return location if isinstance(location, str) and location else None
