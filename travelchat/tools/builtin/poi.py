"""POI search tool — keyword search for points of interest via Amap."""
import logging
from typing import Optional

from ..amap import ToolContext, amap_get, error_payload, missing_key_payload, to_payload
from ..registry import register_tool, ToolName, ToolParam

logger = logging.getLogger(__name__)


def _optional_int(value) -> Optional[int]:
    """Models sometimes send page numbers as strings or floats."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError(value)
    number = float(value)
    if number != int(number) or number < 1:
        raise ValueError(value)
    return int(number)


@register_tool(
    ToolName.SEARCH_POI,
    description="Search points of interest using Amap (Gaode) for travel planning.",
    params=[
        ToolParam("keywords", description="what to look for, e.g. 'cafes' or 'museum'"),
        ToolParam("city", description="city or area to search in", required=False),
        ToolParam("page", type="number", description="result page, starting at 1", required=False),
        ToolParam("offset", type="number", description="results per page", required=False),
    ],
    label=lambda args: f'Amap POI ("{args.get("keywords", "")}")',
)
async def amap_search_poi(ctx: ToolContext, keywords: str, city: str = "",
                          page=None, offset=None, **kwargs) -> str:
    if not ctx.amap_api_key:
        return missing_key_payload()

    params = {"keywords": keywords, "extensions": "all"}
    if city:
        params["city"] = city
    for name, value in (("page", page), ("offset", offset)):
        try:
            number = _optional_int(value)
        except (TypeError, ValueError, OverflowError):
            return error_payload(f"Invalid argument: {name} must be a positive integer", value=value)
        if number is not None:
            params[name] = str(number)

    data = await amap_get(ctx, "v3/place/text", params)
    return to_payload(data)
