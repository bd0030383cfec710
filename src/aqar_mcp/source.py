"""Property data sources consumed by the search engine."""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Protocol

from aqar_mcp.models import (
    Amenity,
    City,
    District,
    PropertyRecord,
    PropertyStatus,
    ReferenceKind,
    SearchFilter,
    SortMode,
    SourceSnapshot,
)
from aqar_mcp.search.filters import filter_and_sort, matches, sort_records

logger = logging.getLogger(__name__)

ReferenceRow = City | District | Amenity


class PropertySource(Protocol):
    """Read side of the listing store.

    Implementations must honour the semantics in ``aqar_mcp.search.filters``.
    """

    async def find_properties(
        self, criteria: SearchFilter, offset: int, limit: int
    ) -> list[PropertyRecord]: ...

    async def count_properties(self, criteria: SearchFilter) -> int: ...

    async def get_property(self, property_id: int) -> PropertyRecord | None: ...

    async def list_featured(self, limit: int) -> list[PropertyRecord]: ...

    async def list_reference(self, kind: ReferenceKind) -> list[ReferenceRow]: ...

    async def get_site_settings(self) -> dict[str, str]: ...


class InMemoryPropertySource:
    """A ``PropertySource`` over records held in process.

    The write helpers only change the data; callers are responsible for
    invalidating any cache in front of it.
    """

    def __init__(self, snapshot: SourceSnapshot | None = None):
        snapshot = snapshot or SourceSnapshot()
        self._properties: dict[int, PropertyRecord] = {p.id: p for p in snapshot.properties}
        self._reference: dict[ReferenceKind, list[ReferenceRow]] = {
            ReferenceKind.CITIES: list(snapshot.cities),
            ReferenceKind.DISTRICTS: list(snapshot.districts),
            ReferenceKind.AMENITIES: list(snapshot.amenities),
        }
        self._settings = dict(snapshot.settings)

    @classmethod
    def from_json(cls, path: Path | str) -> "InMemoryPropertySource":
        """Load a snapshot file with properties, reference rows and settings."""
        snapshot = SourceSnapshot.model_validate_json(Path(path).read_text(encoding="utf-8"))
        logger.info(
            "Loaded %d properties from %s", len(snapshot.properties), path
        )
        return cls(snapshot)

    async def find_properties(
        self, criteria: SearchFilter, offset: int, limit: int
    ) -> list[PropertyRecord]:
        rows = filter_and_sort(self._properties.values(), criteria)
        return rows[offset : offset + limit]

    async def count_properties(self, criteria: SearchFilter) -> int:
        return sum(1 for p in self._properties.values() if matches(p, criteria))

    async def get_property(self, property_id: int) -> PropertyRecord | None:
        record = self._properties.get(property_id)
        if record is None or record.deleted_at is not None:
            return None
        return record

    async def list_featured(self, limit: int) -> list[PropertyRecord]:
        featured = (
            p
            for p in self._properties.values()
            if p.is_featured and p.deleted_at is None and p.status == PropertyStatus.ACTIVE
        )
        return sort_records(featured, SortMode.NEWEST)[:limit]

    async def list_reference(self, kind: ReferenceKind) -> list[ReferenceRow]:
        rows = self._reference[kind]
        return sorted(rows, key=lambda row: (row.sort_order, row.name_ar, row.id))

    async def get_site_settings(self) -> dict[str, str]:
        return dict(self._settings)

    def upsert_property(self, record: PropertyRecord) -> None:
        self._properties[record.id] = record

    def delete_property(self, property_id: int) -> bool:
        """Soft-delete a listing. Returns False if it does not exist."""
        record = self._properties.get(property_id)
        if record is None:
            return False
        self._properties[property_id] = record.model_copy(
            update={"deleted_at": datetime.now(timezone.utc)}
        )
        return True

    def set_reference(self, kind: ReferenceKind, rows: Iterable[ReferenceRow]) -> None:
        self._reference[kind] = list(rows)

    def set_setting(self, key: str, value: str) -> None:
        self._settings[key] = value
