"""Geocode tool — resolve an address to coordinates via Amap."""
import logging

from ..amap import ToolContext, geocode_lookup, missing_key_payload, to_payload
from ..registry import register_tool, ToolName, ToolParam

logger = logging.getLogger(__name__)


@register_tool(
    ToolName.GEOCODE,
    description="Geocode an address to coordinates using Amap.",
    params=[
        ToolParam("address", description="address or place name"),
        ToolParam("city", description="city to narrow the search", required=False),
    ],
    label=lambda args: f'Amap Geocode ("{args.get("address", "")}")',
)
async def amap_geocode(ctx: ToolContext, address: str, city: str = "", **kwargs) -> str:
    if not ctx.amap_api_key:
        return missing_key_payload()

    data = await geocode_lookup(ctx, address, city)
    return to_payload(data)
