"""Read patterns, each served by an index from the index plan."""

from enum import Enum
from typing import Any, Optional, Union

from estatedb.models.property import PropertyStatus, PropertyType
from estatedb.services.index_plan import IndexKind, find_index
from estatedb.services.store_client import StoreSession
from estatedb.utils.errors import InvalidQueryError
from estatedb.utils.geo import is_valid_point
from estatedb.utils.logging import get_structured_logger, log_timing
from estatedb.utils.text_search import parse_search

logger = get_structured_logger(__name__)

PROPERTIES = "properties"
INQUIRIES = "inquiries"
APPOINTMENTS = "appointments"


def _is_number(value: Any) -> bool:
    return not isinstance(value, bool) and isinstance(value, (int, float))


def _enum_value(value: Union[Enum, str, None]) -> Optional[str]:
    return value.value if isinstance(value, Enum) else value


def _location_field() -> str:
    spec = find_index(PROPERTIES, IndexKind.GEOSPHERE)
    return next(field for field, kind in spec.keys if kind is IndexKind.GEOSPHERE)


async def find_nearby_properties(
    longitude: float,
    latitude: float,
    max_distance_m: float,
    filters: Optional[dict] = None,
    limit: Optional[int] = None,
) -> list[dict]:
    """
    Properties within ``max_distance_m`` meters of a point, nearest first.

    Distances are spherical (great-circle) and returned on each document as
    ``distance_m``. Served by ``gx_properties_location``.
    """
    if not (_is_number(longitude) and _is_number(latitude)) or not is_valid_point(longitude, latitude):
        raise InvalidQueryError(f"Invalid center point: ({longitude!r}, {latitude!r})")
    if not _is_number(max_distance_m) or max_distance_m < 0:
        raise InvalidQueryError(f"max_distance_m must be a non-negative number, got {max_distance_m!r}")

    with log_timing(
        "find_nearby_properties",
        logger=logger,
        longitude=longitude,
        latitude=latitude,
        max_distance_m=max_distance_m,
    ):
        async with StoreSession() as store:
            results = store.geo_near(
                PROPERTIES,
                _location_field(),
                (longitude, latitude),
                max_distance=max_distance_m,
                filters=filters,
                limit=limit,
                distance_field="distance_m",
            )

    logger.info("Nearby search complete", result_count=len(results), max_distance_m=max_distance_m)
    return results


async def search_properties(
    text: str,
    filters: Optional[dict] = None,
    limit: Optional[int] = None,
) -> list[dict]:
    """
    Properties ranked by text relevance over title and description.

    Each document carries its ``score``; equal scores keep ``_id`` order.
    Served by ``tx_title_description``.
    """
    if not isinstance(text, str):
        raise InvalidQueryError("search text must be a string")
    wanted, _ = parse_search(text)
    if not wanted:
        raise InvalidQueryError(f"search text has no searchable terms: {text!r}")

    with log_timing("search_properties", logger=logger, term_count=len(wanted)):
        async with StoreSession() as store:
            results = store.text_search(PROPERTIES, text, filters=filters, limit=limit, score_field="score")

    logger.info("Text search complete", result_count=len(results))
    return results


async def filter_properties(
    status: Union[PropertyStatus, str, None] = None,
    property_type: Union[PropertyType, str, None] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    limit: Optional[int] = None,
) -> list[dict]:
    """
    Listings filtered by status, type and price range, cheapest first.

    Served by ``ix_status_type_price`` when status is given. Without a status
    no planned index has price as its leading key, so the call scans the
    properties collection; this is the one query allowed to do so.
    """
    filters: dict[str, Any] = {}
    if status is not None:
        filters["status"] = _enum_value(status)
    if property_type is not None:
        filters["type"] = _enum_value(property_type)

    price_range = {}
    if min_price is not None:
        price_range["$gte"] = min_price
    if max_price is not None:
        price_range["$lte"] = max_price
    if price_range:
        filters["price"] = price_range

    async with StoreSession() as store:
        return store.find(PROPERTIES, filters, sort=[("price", 1)], limit=limit)


async def get_properties_in_city(city: str, limit: Optional[int] = None) -> list[dict]:
    """Listings in a city (exact match). Served by ``ix_city``."""
    async with StoreSession() as store:
        return store.find(PROPERTIES, {"address.city": city}, limit=limit)


async def get_latest_inquiries(property_id: str, limit: int = 20) -> list[dict]:
    """Newest inquiries for a property. Served by ``ix_prop_created``."""
    async with StoreSession() as store:
        return store.find(INQUIRIES, {"property_id": property_id}, sort=[("created_at", -1)], limit=limit)


async def get_agent_schedule(agent_id: str, limit: Optional[int] = None) -> list[dict]:
    """An agent's appointments, latest first. Served by ``ix_agent_schedule``."""
    async with StoreSession() as store:
        return store.find(APPOINTMENTS, {"agent_id": agent_id}, sort=[("scheduled_at", -1)], limit=limit)


async def get_property_schedule(property_id: str, limit: Optional[int] = None) -> list[dict]:
    """Appointments for a property, latest first. Served by ``ix_property_schedule``."""
    async with StoreSession() as store:
        return store.find(APPOINTMENTS, {"property_id": property_id}, sort=[("scheduled_at", -1)], limit=limit)
