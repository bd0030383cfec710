"""Property search package."""

from aqar_mcp.search.engine import (
    PropertySearchEngine,
    SearchError,
    SearchInputError,
    coerce_filter,
)
from aqar_mcp.search.filters import matches, sort_records
from aqar_mcp.search.keys import count_cache_key, search_cache_key, ttl_for
from aqar_mcp.search.text import normalize_text

__all__ = [
    "PropertySearchEngine",
    "SearchError",
    "SearchInputError",
    "coerce_filter",
    "matches",
    "sort_records",
    "count_cache_key",
    "search_cache_key",
    "ttl_for",
    "normalize_text",
]
