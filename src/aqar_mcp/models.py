"""Pydantic data models for property listings, search filters and reference data."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, field_serializer, field_validator

MAX_PAGE_SIZE = 50


class PropertyType(str, Enum):
    VILLA = "villa"
    APARTMENT = "apartment"
    LAND = "land"
    COMMERCIAL = "commercial"
    OFFICE = "office"
    BUILDING = "building"


class ListingType(str, Enum):
    SALE = "sale"
    RENT = "rent"


class PropertyStatus(str, Enum):
    ACTIVE = "active"
    SOLD = "sold"
    RENTED = "rented"
    DRAFT = "draft"


class SortMode(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    AREA_ASC = "area_asc"
    AREA_DESC = "area_desc"


class ReferenceKind(str, Enum):
    CITIES = "cities"
    DISTRICTS = "districts"
    AMENITIES = "amenities"


class PropertyRecord(BaseModel):
    """A single listing as stored by the data source."""

    id: int
    title: str
    title_en: Optional[str] = None
    description: Optional[str] = None
    description_en: Optional[str] = None
    type: PropertyType = PropertyType.VILLA
    listing_type: ListingType = ListingType.SALE
    status: PropertyStatus = PropertyStatus.ACTIVE
    price: Optional[float] = None
    area: Optional[float] = None
    rooms: Optional[int] = None
    bathrooms: Optional[int] = None
    city: Optional[str] = None
    city_en: Optional[str] = None
    district: Optional[str] = None
    district_en: Optional[str] = None
    address: Optional[str] = None
    address_en: Optional[str] = None
    amenity_ids: list[int] = Field(default_factory=list)
    is_featured: bool = False
    created_at: datetime
    deleted_at: Optional[datetime] = None

    @field_validator("created_at", "deleted_at")
    @classmethod
    def _as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        """Naive timestamps are taken as UTC so every record compares alike."""
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class SearchFilter(BaseModel):
    """Immutable description of one property query.

    Omitted fields mean "no constraint". ``status`` defaults to active
    listings when omitted. ``amenity_ids`` has set semantics: a listing must
    carry every requested amenity.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Optional[PropertyType] = None
    listing_type: Optional[ListingType] = None
    status: Optional[PropertyStatus] = None
    city: Optional[str] = None
    district: Optional[str] = None
    min_price: Optional[float] = Field(default=None, ge=0)
    max_price: Optional[float] = Field(default=None, ge=0)
    min_area: Optional[float] = Field(default=None, ge=0)
    max_area: Optional[float] = Field(default=None, ge=0)
    min_rooms: Optional[int] = Field(default=None, ge=0)
    max_rooms: Optional[int] = Field(default=None, ge=0)
    min_bathrooms: Optional[int] = Field(default=None, ge=0)
    query: Optional[str] = None
    amenity_ids: frozenset[NonNegativeInt] = frozenset()
    sort: SortMode = SortMode.NEWEST
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=12, ge=1, le=MAX_PAGE_SIZE)

    @field_validator("query", "city", "district")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = " ".join(value.split())
        return value or None

    @field_serializer("amenity_ids")
    def _sorted_amenities(self, value: frozenset[int]) -> list[int]:
        return sorted(value)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class SearchResult(BaseModel):
    """One page of search results with totals."""

    items: list[PropertyRecord] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 12
    total_pages: int = 0


class CountResult(BaseModel):
    count: int


class City(BaseModel):
    id: int
    name_ar: str
    name_en: Optional[str] = None
    sort_order: int = 0


class District(BaseModel):
    id: int
    city_id: int
    name_ar: str
    name_en: Optional[str] = None
    sort_order: int = 0


class Amenity(BaseModel):
    id: int
    name_ar: str
    name_en: Optional[str] = None
    icon: Optional[str] = None
    category: Optional[str] = None
    sort_order: int = 0


class ListingStats(BaseModel):
    """Counts of active listings, overall and broken down."""

    total: int = 0
    by_type: dict[str, int] = Field(default_factory=dict)
    by_listing_type: dict[str, int] = Field(default_factory=dict)


class SourceSnapshot(BaseModel):
    """Everything an in-memory data source holds, as loaded from JSON."""

    properties: list[PropertyRecord] = Field(default_factory=list)
    cities: list[City] = Field(default_factory=list)
    districts: list[District] = Field(default_factory=list)
    amenities: list[Amenity] = Field(default_factory=list)
    settings: dict[str, str] = Field(default_factory=dict)
