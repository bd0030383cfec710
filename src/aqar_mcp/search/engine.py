"""Cached property search over a ``PropertySource``."""

import logging
import math
from typing import TYPE_CHECKING, Any, Mapping

from pydantic import ValidationError

from aqar_mcp.cache import CacheTTL, TTLCache
from aqar_mcp.config import AqarConfig
from aqar_mcp.models import (
    MAX_PAGE_SIZE,
    CountResult,
    ListingStats,
    ListingType,
    PropertyRecord,
    PropertyType,
    ReferenceKind,
    SearchFilter,
    SearchResult,
)
from aqar_mcp.search.keys import (
    COUNT_PREFIX,
    FEATURED_PREFIX,
    PROPERTIES_NAMESPACE,
    REFERENCE_NAMESPACE,
    SEARCH_PREFIX,
    SITE_CONFIG_KEY,
    STATS_KEY,
    count_cache_key,
    detail_cache_key,
    featured_cache_key,
    reference_cache_key,
    search_cache_key,
    ttl_for,
)

if TYPE_CHECKING:
    from aqar_mcp.source import PropertySource, ReferenceRow

logger = logging.getLogger(__name__)


class SearchError(Exception):
    """Base exception for search engine errors."""


class SearchInputError(SearchError):
    """Raised when a query is malformed; no cache or source access happens."""


def coerce_filter(
    raw: SearchFilter | Mapping[str, Any] | None, default_limit: int | None = None
) -> SearchFilter:
    """Validate ``raw`` into a ``SearchFilter``.

    Mappings without a ``limit`` get ``default_limit`` when one is given.
    """
    if isinstance(raw, SearchFilter):
        return raw
    data = dict(raw or {})
    if default_limit is not None:
        data.setdefault("limit", default_limit)
    try:
        return SearchFilter.model_validate(data)
    except ValidationError as exc:
        raise SearchInputError(f"Invalid search filter: {exc}") from exc


def coerce_reference_kind(kind: ReferenceKind | str) -> ReferenceKind:
    try:
        return ReferenceKind(kind)
    except ValueError as exc:
        choices = ", ".join(k.value for k in ReferenceKind)
        raise SearchInputError(f"Unknown reference kind {kind!r}; expected one of: {choices}") from exc


def _total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if total else 0


class PropertySearchEngine:
    """Turns search filters into cached, deterministic result pages.

    The cache is injected, so several engines (or tests) can run with
    isolated caches. Writers must call one of the ``invalidate_*`` methods
    after changing listings or reference data.
    """

    def __init__(
        self,
        source: "PropertySource",
        cache: TTLCache,
        config: AqarConfig | None = None,
    ):
        self._source = source
        self._cache = cache
        self._config = config or AqarConfig()

    @property
    def cache(self) -> TTLCache:
        return self._cache

    def _coerce(self, criteria: SearchFilter | Mapping[str, Any] | None) -> SearchFilter:
        return coerce_filter(criteria, default_limit=self._config.default_page_size)

    async def search_properties(
        self, criteria: SearchFilter | Mapping[str, Any] | None = None
    ) -> SearchResult:
        """Return one page of listings matching ``criteria``.

        Pages past the end come back empty with the real total. The total is
        read from the same cache entry ``search_properties_count`` uses.
        """
        criteria = self._coerce(criteria)
        return await self._cache.get_or_set(
            search_cache_key(criteria),
            lambda: self._run_search(criteria),
            ttl_for(criteria),
        )

    async def _run_search(self, criteria: SearchFilter) -> SearchResult:
        total = await self._count(criteria)
        items: list[PropertyRecord] = []
        if criteria.offset < total:
            items = await self._source.find_properties(criteria, criteria.offset, criteria.limit)
        return SearchResult(
            items=items,
            total=total,
            page=criteria.page,
            limit=criteria.limit,
            total_pages=_total_pages(total, criteria.limit),
        )

    async def search_properties_count(
        self, criteria: SearchFilter | Mapping[str, Any] | None = None
    ) -> CountResult:
        criteria = self._coerce(criteria)
        return CountResult(count=await self._count(criteria))

    async def _count(self, criteria: SearchFilter) -> int:
        return await self._cache.get_or_set(
            count_cache_key(criteria),
            lambda: self._source.count_properties(criteria),
            ttl_for(criteria),
        )

    async def get_reference_data(self, kind: ReferenceKind | str) -> list["ReferenceRow"]:
        """Return cities, districts or amenities, cached for the reference tier."""
        kind = coerce_reference_kind(kind)
        return await self._cache.get_or_set(
            reference_cache_key(kind),
            lambda: self._source.list_reference(kind),
            CacheTTL.REFERENCE_DATA,
        )

    async def get_property(self, property_id: int) -> PropertyRecord | None:
        if property_id < 1:
            raise SearchInputError(f"Invalid property id: {property_id}")
        return await self._cache.get_or_set(
            detail_cache_key(property_id),
            lambda: self._source.get_property(property_id),
            CacheTTL.DETAIL,
        )

    async def get_featured_properties(self, limit: int | None = None) -> list[PropertyRecord]:
        limit = self._config.featured_limit if limit is None else limit
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise SearchInputError(
                f"Featured limit must be between 1 and {MAX_PAGE_SIZE}, got {limit}"
            )
        return await self._cache.get_or_set(
            featured_cache_key(limit),
            lambda: self._source.list_featured(limit),
            CacheTTL.FEATURED,
        )

    async def get_listing_stats(self) -> ListingStats:
        return await self._cache.get_or_set(STATS_KEY, self._compute_stats, CacheTTL.STATS)

    async def _compute_stats(self) -> ListingStats:
        count = self._source.count_properties
        return ListingStats(
            total=await count(SearchFilter()),
            by_type={t.value: await count(SearchFilter(type=t)) for t in PropertyType},
            by_listing_type={
                lt.value: await count(SearchFilter(listing_type=lt)) for lt in ListingType
            },
        )

    async def get_site_config(self) -> dict[str, str]:
        return await self._cache.get_or_set(
            SITE_CONFIG_KEY, self._source.get_site_settings, CacheTTL.CONFIG
        )

    def invalidate_properties(self, property_id: int | None = None) -> int:
        """Drop cached property reads after a create, update or delete.

        With ``property_id`` only that listing's detail entry is dropped
        alongside every search, count, featured and stats entry; other
        listings' detail entries survive.
        """
        if property_id is None:
            removed = self._cache.invalidate_prefix(PROPERTIES_NAMESPACE)
        else:
            removed = self._cache.invalidate_key(detail_cache_key(property_id))
            for prefix in (SEARCH_PREFIX, COUNT_PREFIX, FEATURED_PREFIX, STATS_KEY):
                removed += self._cache.invalidate_prefix(prefix)
        logger.info("Invalidated %d cached property entries (property_id=%s)", removed, property_id)
        return removed

    def invalidate_reference(self, kind: ReferenceKind | str | None = None) -> int:
        if kind is None:
            removed = self._cache.invalidate_prefix(REFERENCE_NAMESPACE)
        else:
            removed = self._cache.invalidate_key(reference_cache_key(coerce_reference_kind(kind)))
        logger.info("Invalidated %d cached reference entries (kind=%s)", removed, kind)
        return removed

    def invalidate_site_config(self) -> int:
        return self._cache.invalidate_key(SITE_CONFIG_KEY)
