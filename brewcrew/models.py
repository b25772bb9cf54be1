"""Place records, persisted entities and the decoded provider schema."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


def new_local_id() -> str:
    return uuid.uuid4().hex


class NewnessBadge(str, Enum):
    NEW = "NEW"
    BRAND_NEW = "BRAND_NEW"
    JUST_OPENED = "JUST_OPENED"
    RECENTLY_OPENED = "RECENTLY_OPENED"

    @property
    def label(self) -> str:
        return _BADGE_LABELS[self]


_BADGE_LABELS = {
    NewnessBadge.NEW: "NEW!",
    NewnessBadge.BRAND_NEW: "BRAND NEW",
    NewnessBadge.JUST_OPENED: "JUST OPENED",
    NewnessBadge.RECENTLY_OPENED: "RECENTLY OPENED",
}


class PlaceType(str, Enum):
    COFFEE_SHOP = "coffee_shop"
    BAKERY = "bakery"


class Category(str, Enum):
    COFFEE = "coffee"
    BAKERY = "bakery"
    FOOD = "food"
    SHOP = "shop"
    UNKNOWN = "unknown"


COFFEE_EMOJI = "☕"
BAKERY_EMOJI = "\U0001f950"

CATEGORY_EMOJI: Dict[Category, str] = {
    Category.COFFEE: COFFEE_EMOJI,
    Category.BAKERY: BAKERY_EMOJI,
    Category.FOOD: "\U0001f37d\ufe0f",
    Category.SHOP: "\U0001f3ea",
    # Unmatched places are still shown as coffee spots.
    Category.UNKNOWN: COFFEE_EMOJI,
}

# Checked per provider type tag, in tag order; first match wins.
_TYPE_CATEGORIES: Tuple[Tuple[Tuple[str, ...], Category], ...] = (
    (("cafe", "coffee_shop"), Category.COFFEE),
    (("bakery",), Category.BAKERY),
    (("meal_takeaway", "restaurant"), Category.FOOD),
    (("store",), Category.SHOP),
)


def category_for_types(types: List[str]) -> Category:
    for tag in types:
        lowered = tag.lower()
        for tags, category in _TYPE_CATEGORIES:
            if lowered in tags:
                return category
    return Category.UNKNOWN


def emoji_for_types(types: List[str]) -> str:
    return CATEGORY_EMOJI[category_for_types(types)]


def place_type_for_types(types: List[str]) -> PlaceType:
    if "bakery" in types:
        return PlaceType.BAKERY
    return PlaceType.COFFEE_SHOP


@dataclass(frozen=True)
class PlaceRecord:
    name: str
    latitude: float
    longitude: float
    address: str = ""
    category_emoji: str = COFFEE_EMOJI
    external_id: Optional[str] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None
    newness_badge: Optional[NewnessBadge] = None
    id: str = field(default_factory=new_local_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "external_id": self.external_id,
            "name": self.name,
            "address": self.address,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "category_emoji": self.category_emoji,
            "rating": self.rating,
            "review_count": self.review_count,
            "newness_badge": self.newness_badge.value if self.newness_badge else None,
        }


@dataclass(frozen=True)
class ProviderPlace:
    """One decoded result from the provider's search JSON."""

    place_id: str
    name: str
    lat: float
    lng: float
    types: List[str] = field(default_factory=list)
    formatted_address: Optional[str] = None
    vicinity: Optional[str] = None
    rating: Optional[float] = None
    user_ratings_total: Optional[int] = None
    price_level: Optional[int] = None
    photo_references: List[str] = field(default_factory=list)
    phone_number: Optional[str] = None
    website: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def address(self) -> str:
        return self.formatted_address or self.vicinity or ""


@dataclass
class StoredPlace:
    """The persisted form of a place, keyed by external_id."""

    id: str
    external_id: str
    name: str
    address: str
    latitude: float
    longitude: float
    rating: float = 0.0
    review_count: int = 0
    price_level: int = 0
    place_type: PlaceType = PlaceType.COFFEE_SHOP
    phone_number: Optional[str] = None
    website: Optional[str] = None
    photo_references: List[str] = field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def to_record(self) -> PlaceRecord:
        emoji = BAKERY_EMOJI if self.place_type == PlaceType.BAKERY else COFFEE_EMOJI
        return PlaceRecord(
            id=self.id,
            external_id=self.external_id,
            name=self.name,
            address=self.address,
            latitude=self.latitude,
            longitude=self.longitude,
            category_emoji=emoji,
            rating=self.rating if self.rating > 0 else None,
            review_count=self.review_count,
            newness_badge=None,
        )
