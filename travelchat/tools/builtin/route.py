"""Route planning tool — geocode both endpoints, then ask Amap for directions.

The two steps form a small pipeline: every endpoint is first turned into a
ResolvedEndpoint, and the directions request is only issued once both of
them carry coordinates.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from ..amap import (
    ToolContext, amap_get, as_coordinates, error_payload, first_location,
    geocode_lookup, missing_key_payload, to_payload,
)
from ..registry import register_tool, ToolName, ToolParam

logger = logging.getLogger(__name__)

ROUTE_PATHS = {
    "driving": "v3/direction/driving",
    "walking": "v3/direction/walking",
    "bicycling": "v4/direction/bicycling",
    "transit": "v3/direction/transit/integrated",
}


@dataclass(frozen=True)
class ResolvedEndpoint:
    role: str  # "origin" | "destination"
    query: str
    location: Optional[str] = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.location is not None


async def resolve_endpoint(ctx: ToolContext, role: str, text: str, city: str = "") -> ResolvedEndpoint:
    coords = as_coordinates(text)
    if coords:
        return ResolvedEndpoint(role, text, location=coords)

    try:
        data = await geocode_lookup(ctx, text, city)
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Geocoding {role} {text!r} failed: {e}")
        return ResolvedEndpoint(role, text, error=f"geocode request failed: {e}")

    location = first_location(data)
    if not location:
        return ResolvedEndpoint(role, text, error="no location found")
    return ResolvedEndpoint(role, text, location=location)


@register_tool(
    ToolName.GET_ROUTE,
    description="Plan route between origin and destination using Amap.",
    params=[
        ToolParam("origin", description="start address, place name or 'lng,lat'"),
        ToolParam("destination", description="end address, place name or 'lng,lat'"),
        ToolParam("mode", description="travel mode", required=False, enum=list(ROUTE_PATHS)),
        ToolParam("city", description="city of the trip, required by Amap for transit", required=False),
    ],
    label=lambda args: f'Amap Route ("{args.get("origin", "")}" → "{args.get("destination", "")}")',
)
async def amap_get_route(ctx: ToolContext, origin: str, destination: str,
                         mode: str = "driving", city: str = "", **kwargs) -> str:
    if not ctx.amap_api_key:
        return missing_key_payload()

    mode = (mode or "driving").lower()
    if mode not in ROUTE_PATHS:
        return error_payload(f"Unsupported travel mode: {mode}", allowed=list(ROUTE_PATHS))

    endpoints = await asyncio.gather(
        resolve_endpoint(ctx, "origin", origin, city),
        resolve_endpoint(ctx, "destination", destination, city),
    )
    failed = [ep for ep in endpoints if not ep.ok]
    if failed:
        return error_payload(
            "Geocode failed",
            unresolved={ep.role: {"query": ep.query, "reason": ep.error} for ep in failed},
        )

    start, end = endpoints
    params = {"origin": start.location, "destination": end.location}
    if mode == "transit" and city:
        params["city"] = city

    data = await amap_get(ctx, ROUTE_PATHS[mode], params)
    return to_payload(data)
