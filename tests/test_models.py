"""Tests for Pydantic data models."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from aqar_mcp.models import (
    MAX_PAGE_SIZE,
    ListingType,
    PropertyRecord,
    PropertyStatus,
    PropertyType,
    ReferenceKind,
    SearchFilter,
    SearchResult,
    SortMode,
)


def test_property_type_values():
    assert [t.value for t in PropertyType] == [
        "villa",
        "apartment",
        "land",
        "commercial",
        "office",
        "building",
    ]


def test_listing_type_values():
    assert ListingType.SALE.value == "sale"
    assert ListingType.RENT.value == "rent"


def test_sort_modes():
    assert {m.value for m in SortMode} == {
        "newest",
        "oldest",
        "price_asc",
        "price_desc",
        "area_asc",
        "area_desc",
    }


def test_reference_kinds():
    assert {k.value for k in ReferenceKind} == {"cities", "districts", "amenities"}


def test_property_record_minimal():
    r = PropertyRecord(id=1, title="فيلا", created_at="2025-01-01T00:00:00Z")
    assert r.type == PropertyType.VILLA
    assert r.listing_type == ListingType.SALE
    assert r.status == PropertyStatus.ACTIVE
    assert r.price is None
    assert r.amenity_ids == []
    assert r.deleted_at is None


def test_property_record_timestamps_are_utc_aware():
    naive = PropertyRecord(id=1, title="فيلا", created_at=datetime(2025, 1, 1, 9, 0))
    offset = PropertyRecord(
        id=2,
        title="شقة",
        created_at="2025-01-01T12:00:00+03:00",
        deleted_at="2025-02-01T00:00:00",
    )
    assert naive.created_at == datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)
    assert offset.created_at.tzinfo == timezone.utc
    assert offset.created_at == naive.created_at
    assert offset.deleted_at == datetime(2025, 2, 1, tzinfo=timezone.utc)


def test_search_filter_defaults():
    f = SearchFilter()
    assert f.page == 1
    assert f.limit == 12
    assert f.sort == SortMode.NEWEST
    assert f.amenity_ids == frozenset()
    assert f.offset == 0


def test_search_filter_offset():
    assert SearchFilter(page=3, limit=10).offset == 20


def test_search_filter_coerces_enums_and_amenities():
    f = SearchFilter(type="apartment", listing_type="rent", amenity_ids=[2, 1, 2])
    assert f.type is PropertyType.APARTMENT
    assert f.listing_type is ListingType.RENT
    assert f.amenity_ids == frozenset({1, 2})


@pytest.mark.parametrize(
    "fields",
    [
        {"type": "castle"},
        {"listing_type": "auction"},
        {"sort": "random"},
        {"status": "archived"},
        {"min_price": -1},
        {"max_price": -0.5},
        {"min_area": -10},
        {"min_rooms": -1},
        {"max_rooms": -1},
        {"min_bathrooms": -2},
        {"amenity_ids": [-1]},
        {"page": 0},
        {"limit": 0},
        {"limit": MAX_PAGE_SIZE + 1},
        {"colour": "blue"},
    ],
)
def test_search_filter_rejects_invalid_input(fields):
    with pytest.raises(ValidationError):
        SearchFilter(**fields)


def test_search_filter_accepts_boundaries():
    f = SearchFilter(min_price=0, page=1, limit=MAX_PAGE_SIZE)
    assert f.min_price == 0
    assert f.limit == 50


def test_search_filter_trims_text():
    f = SearchFilter(query="  villa   pool ", city=" Riyadh ", district="   ")
    assert f.query == "villa pool"
    assert f.city == "Riyadh"
    assert f.district is None


def test_blank_query_means_no_constraint():
    assert SearchFilter(query="   ") == SearchFilter()


def test_search_filter_is_immutable():
    f = SearchFilter(min_price=100)
    with pytest.raises(ValidationError):
        f.min_price = 200


def test_search_filter_equality_ignores_construction_order():
    a = SearchFilter(min_price=1, type="villa", amenity_ids=[3, 1])
    b = SearchFilter(amenity_ids=[1, 3], type="villa", min_price=1.0)
    assert a == b
    assert hash(a) == hash(b)


def test_search_filter_serializes_sorted_amenities():
    data = SearchFilter(amenity_ids=[5, 1, 3]).model_dump(mode="json")
    assert data["amenity_ids"] == [1, 3, 5]


def test_search_result_defaults():
    r = SearchResult()
    assert r.items == []
    assert r.total == 0
    assert r.total_pages == 0
