"""Filter and sort semantics for property searches.

These functions define what a search means. The in-memory source applies
them directly; any other ``PropertySource`` must return the same rows in the
same order for the same ``SearchFilter``.
"""

from datetime import datetime
from typing import Callable, Iterable, Optional

from aqar_mcp.models import PropertyRecord, PropertyStatus, SearchFilter, SortMode
from aqar_mcp.search.text import normalize_text

_TEXT_FIELDS = (
    "title",
    "title_en",
    "description",
    "description_en",
    "city",
    "city_en",
    "district",
    "district_en",
    "address",
    "address_en",
)


def _within(value: Optional[float], low: Optional[float], high: Optional[float]) -> bool:
    """Inclusive range check; a missing value fails any active bound."""
    if low is None and high is None:
        return True
    if value is None:
        return False
    if low is not None and value < low:
        return False
    if high is not None and value > high:
        return False
    return True


def _place_matches(wanted: Optional[str], *names: Optional[str]) -> bool:
    if wanted is None:
        return True
    target = normalize_text(wanted)
    return any(normalize_text(name) == target for name in names if name)


def matches_query(record: PropertyRecord, query: str) -> bool:
    """True if the normalized query occurs in any searchable text field."""
    needle = normalize_text(query)
    if not needle:
        return True
    return any(needle in normalize_text(getattr(record, field)) for field in _TEXT_FIELDS)


def matches(record: PropertyRecord, criteria: SearchFilter) -> bool:
    """Return True if ``record`` satisfies every constraint in ``criteria``."""
    if record.deleted_at is not None:
        return False
    if record.status != (criteria.status or PropertyStatus.ACTIVE):
        return False
    if criteria.type is not None and record.type != criteria.type:
        return False
    if criteria.listing_type is not None and record.listing_type != criteria.listing_type:
        return False
    if not _place_matches(criteria.city, record.city, record.city_en):
        return False
    if not _place_matches(criteria.district, record.district, record.district_en):
        return False
    if not _within(record.price, criteria.min_price, criteria.max_price):
        return False
    if not _within(record.area, criteria.min_area, criteria.max_area):
        return False
    if not _within(record.rooms, criteria.min_rooms, criteria.max_rooms):
        return False
    if not _within(record.bathrooms, criteria.min_bathrooms, None):
        return False
    if criteria.amenity_ids and not criteria.amenity_ids.issubset(record.amenity_ids):
        return False
    if criteria.query and not matches_query(record, criteria.query):
        return False
    return True


_SORT_FIELDS: dict[SortMode, tuple[Callable[[PropertyRecord], Optional[float | datetime]], bool]] = {
    SortMode.NEWEST: (lambda r: r.created_at, True),
    SortMode.OLDEST: (lambda r: r.created_at, False),
    SortMode.PRICE_ASC: (lambda r: r.price, False),
    SortMode.PRICE_DESC: (lambda r: r.price, True),
    SortMode.AREA_ASC: (lambda r: r.area, False),
    SortMode.AREA_DESC: (lambda r: r.area, True),
}


def sort_records(records: Iterable[PropertyRecord], sort: SortMode) -> list[PropertyRecord]:
    """Order records for ``sort``; missing values go last, ties by id ascending."""
    field, descending = _SORT_FIELDS[sort]
    by_id = sorted(records, key=lambda r: r.id)
    present = [r for r in by_id if field(r) is not None]
    missing = [r for r in by_id if field(r) is None]
    # sorted() is stable under reverse=True, so id order survives within ties
    return sorted(present, key=field, reverse=descending) + missing


def filter_and_sort(records: Iterable[PropertyRecord], criteria: SearchFilter) -> list[PropertyRecord]:
    return sort_records((r for r in records if matches(r, criteria)), criteria.sort)
