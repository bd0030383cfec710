"""Cache key construction and TTL tier selection for property queries."""

import json
from typing import Any

from aqar_mcp.cache import CacheTTL
from aqar_mcp.models import ReferenceKind, SearchFilter

PROPERTIES_NAMESPACE = "properties:"
SEARCH_PREFIX = "properties:search:"
COUNT_PREFIX = "properties:count:"
DETAIL_PREFIX = "properties:detail:"
FEATURED_PREFIX = "properties:featured:"
STATS_KEY = "properties:stats"
REFERENCE_NAMESPACE = "reference:"
SITE_CONFIG_KEY = "config:site"

# Fields that select a page of a result set rather than the set itself.
_PAGING_FIELDS = {"page", "limit", "sort"}


def _canonical(payload: dict[str, Any]) -> str:
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def search_cache_key(criteria: SearchFilter) -> str:
    """Build the cache key for one page of a search.

    Every field takes part, serialized as sorted-key JSON, so two filters
    with equal field values map to the same key regardless of how they were
    built, and filters that differ in any field map to different keys.
    """
    return SEARCH_PREFIX + _canonical(criteria.model_dump(mode="json"))


def count_cache_key(criteria: SearchFilter) -> str:
    """Build the cache key for the total of a search, shared by all its pages."""
    return COUNT_PREFIX + _canonical(criteria.model_dump(mode="json", exclude=_PAGING_FIELDS))


def detail_cache_key(property_id: int) -> str:
    return f"{DETAIL_PREFIX}{property_id}"


def featured_cache_key(limit: int) -> str:
    return f"{FEATURED_PREFIX}{limit}"


def reference_cache_key(kind: ReferenceKind) -> str:
    return f"{REFERENCE_NAMESPACE}{kind.value}"


def ttl_for(criteria: SearchFilter) -> CacheTTL:
    """Pick the TTL tier for a query shape.

    Free-text searches get the shortest tier; plain filtered listings get
    the listings tier. Searches and counts of one filter always share a tier.
    """
    if criteria.query:
        return CacheTTL.SEARCH
    return CacheTTL.LISTINGS
