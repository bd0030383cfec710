"""Aqar MCP server: cached property search tools for the Aqar listings site."""

import logging
import sys
from typing import Optional

from fastmcp import FastMCP

from aqar_mcp.cache import TTLCache
from aqar_mcp.config import AqarConfig
from aqar_mcp.search.engine import PropertySearchEngine, SearchInputError
from aqar_mcp.source import InMemoryPropertySource

logger = logging.getLogger(__name__)

mcp = FastMCP(
    name="aqar",
    instructions=(
        "Aqar MCP server for searching residential and commercial property listings. "
        "Use search_properties to page through listings by type, price, rooms, amenities and free text. "
        "Use count_properties for a result count only. "
        "Use get_reference_data for cities, districts and amenities to filter by."
    ),
)

_engine: PropertySearchEngine | None = None


def get_engine() -> PropertySearchEngine:
    """Return the engine for this server, building it on first use.

    Must be called from inside the event loop; the cache's sweep task is
    started here.
    """
    global _engine
    if _engine is None:
        config = AqarConfig()
        if config.data_file is not None:
            source = InMemoryPropertySource.from_json(config.data_file)
        else:
            logger.warning("AQAR_DATA_FILE is not set; serving an empty listing store")
            source = InMemoryPropertySource()
        cache = TTLCache(
            max_entries=config.cache_max_entries,
            cleanup_interval_seconds=config.cache_cleanup_interval_seconds,
            coalesce=config.cache_coalesce_fetches,
        )
        cache.start()
        _engine = PropertySearchEngine(source, cache, config)
    return _engine


@mcp.tool()
async def search_properties(
    query: Optional[str] = None,
    type: Optional[str] = None,
    listing_type: Optional[str] = None,
    status: Optional[str] = None,
    city: Optional[str] = None,
    district: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    min_area: Optional[float] = None,
    max_area: Optional[float] = None,
    min_rooms: Optional[int] = None,
    max_rooms: Optional[int] = None,
    min_bathrooms: Optional[int] = None,
    amenity_ids: Optional[list[int]] = None,
    sort: Optional[str] = None,
    page: int = 1,
    limit: Optional[int] = None,
) -> dict:
    """Search property listings with filters and pagination.

    Args:
        query: Free text matched against titles, descriptions and addresses in Arabic or English.
        type: Property type: villa, apartment, land, commercial, office, building.
        listing_type: Either 'sale' or 'rent'.
        status: Listing status: active (default), sold, rented, draft.
        city: City name in Arabic or English (e.g. 'Riyadh' or 'الرياض').
        district: District name in Arabic or English.
        min_price: Minimum price, inclusive.
        max_price: Maximum price, inclusive.
        min_area: Minimum area in square meters, inclusive.
        max_area: Maximum area in square meters, inclusive.
        min_rooms: Minimum number of rooms.
        max_rooms: Maximum number of rooms.
        min_bathrooms: Minimum number of bathrooms.
        amenity_ids: Listings must have every one of these amenity ids.
        sort: newest (default), oldest, price_asc, price_desc, area_asc, area_desc.
        page: Page number, starting at 1.
        limit: Results per page, 1 to 50.

    Returns:
        A page of matching listings with total, page, limit and total_pages.
    """
    params = {
        "query": query,
        "type": type,
        "listing_type": listing_type,
        "status": status,
        "city": city,
        "district": district,
        "min_price": min_price,
        "max_price": max_price,
        "min_area": min_area,
        "max_area": max_area,
        "min_rooms": min_rooms,
        "max_rooms": max_rooms,
        "min_bathrooms": min_bathrooms,
        "amenity_ids": amenity_ids,
        "sort": sort,
        "page": page,
        "limit": limit,
    }
    params = {k: v for k, v in params.items() if v is not None}
    logger.info("search_properties called: %s", params)
    try:
        result = await get_engine().search_properties(params)
        return result.model_dump(mode="json")
    except SearchInputError as e:
        logger.error("search_properties input error: %s", e)
        return {"error": str(e), "items": [], "total": 0}


@mcp.tool()
async def count_properties(
    query: Optional[str] = None,
    type: Optional[str] = None,
    listing_type: Optional[str] = None,
    status: Optional[str] = None,
    city: Optional[str] = None,
    district: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    min_area: Optional[float] = None,
    max_area: Optional[float] = None,
    min_rooms: Optional[int] = None,
    max_rooms: Optional[int] = None,
    min_bathrooms: Optional[int] = None,
    amenity_ids: Optional[list[int]] = None,
) -> dict:
    """Count listings matching the same filters search_properties accepts.

    Returns:
        {"count": n}, equal to search_properties(...)["total"] for the same filters.
    """
    params = {
        "query": query,
        "type": type,
        "listing_type": listing_type,
        "status": status,
        "city": city,
        "district": district,
        "min_price": min_price,
        "max_price": max_price,
        "min_area": min_area,
        "max_area": max_area,
        "min_rooms": min_rooms,
        "max_rooms": max_rooms,
        "min_bathrooms": min_bathrooms,
        "amenity_ids": amenity_ids,
    }
    params = {k: v for k, v in params.items() if v is not None}
    logger.info("count_properties called: %s", params)
    try:
        result = await get_engine().search_properties_count(params)
        return result.model_dump()
    except SearchInputError as e:
        logger.error("count_properties input error: %s", e)
        return {"error": str(e), "count": 0}


@mcp.tool()
async def get_reference_data(kind: str) -> dict:
    """List reference data used to build filters.

    Args:
        kind: One of 'cities', 'districts', 'amenities'.

    Returns:
        {"kind": kind, "items": [...]} ordered by display order.
    """
    logger.info("get_reference_data called: %s", kind)
    try:
        rows = await get_engine().get_reference_data(kind)
    except SearchInputError as e:
        logger.error("get_reference_data input error: %s", e)
        return {"error": str(e), "kind": kind, "items": []}
    return {"kind": kind, "items": [row.model_dump() for row in rows]}


@mcp.tool()
async def get_property_details(property_id: int) -> dict:
    """Get the full record for one listing.

    Args:
        property_id: Numeric listing id.
    """
    logger.info("get_property_details called: %s", property_id)
    try:
        record = await get_engine().get_property(property_id)
    except SearchInputError as e:
        logger.error("get_property_details input error: %s", e)
        return {"error": str(e), "id": property_id}
    if record is None:
        return {"error": f"Property {property_id} not found", "id": property_id}
    return record.model_dump(mode="json")


@mcp.tool()
async def get_featured_properties(limit: Optional[int] = None) -> dict:
    """List featured active listings, newest first."""
    try:
        records = await get_engine().get_featured_properties(limit)
    except SearchInputError as e:
        logger.error("get_featured_properties input error: %s", e)
        return {"error": str(e), "items": []}
    return {"items": [r.model_dump(mode="json") for r in records]}


@mcp.tool()
async def get_listing_stats() -> dict:
    """Counts of active listings overall, by property type and by listing type."""
    stats = await get_engine().get_listing_stats()
    return stats.model_dump()


@mcp.tool()
async def get_site_config() -> dict:
    """Site-wide settings such as contact details and branding."""
    return {"settings": await get_engine().get_site_config()}


def main() -> None:
    # Route ALL logging to stderr; stdout carries MCP protocol messages
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
