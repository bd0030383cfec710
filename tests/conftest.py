"""Shared test fixtures."""

from collections import Counter
from pathlib import Path
from unittest.mock import patch

import pytest

from aqar_mcp.cache import TTLCache
from aqar_mcp.config import AqarConfig
from aqar_mcp.models import SourceSnapshot
from aqar_mcp.search.engine import PropertySearchEngine
from aqar_mcp.source import InMemoryPropertySource

FIXTURES = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> str:
    """Read and return the contents of a test fixture file."""
    return (FIXTURES / name).read_text(encoding="utf-8")


class CountingSource(InMemoryPropertySource):
    """In-memory source that records how often each read hits it."""

    def __init__(self, snapshot: SourceSnapshot):
        super().__init__(snapshot)
        self.calls: Counter[str] = Counter()

    async def find_properties(self, criteria, offset, limit):
        self.calls["find_properties"] += 1
        return await super().find_properties(criteria, offset, limit)

    async def count_properties(self, criteria):
        self.calls["count_properties"] += 1
        return await super().count_properties(criteria)

    async def get_property(self, property_id):
        self.calls["get_property"] += 1
        return await super().get_property(property_id)

    async def list_featured(self, limit):
        self.calls["list_featured"] += 1
        return await super().list_featured(limit)

    async def list_reference(self, kind):
        self.calls["list_reference"] += 1
        return await super().list_reference(kind)

    async def get_site_settings(self):
        self.calls["get_site_settings"] += 1
        return await super().get_site_settings()


@pytest.fixture
def snapshot() -> SourceSnapshot:
    return SourceSnapshot.model_validate_json(load_fixture("listings.json"))


@pytest.fixture
def records(snapshot):
    return snapshot.properties


@pytest.fixture
def source(snapshot) -> CountingSource:
    return CountingSource(snapshot)


@pytest.fixture
def cache() -> TTLCache:
    return TTLCache(max_entries=500)


@pytest.fixture
def engine(source, cache) -> PropertySearchEngine:
    return PropertySearchEngine(source, cache, AqarConfig(default_page_size=12))


@pytest.fixture
def clock():
    """Freeze the cache clock; advance it by bumping ``monotonic.return_value``."""
    with patch("aqar_mcp.cache.time") as mock_time:
        mock_time.monotonic.return_value = 1_000.0
        yield mock_time
