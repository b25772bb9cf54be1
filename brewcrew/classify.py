"""Merging, filtering, newness classification and ranking of search results."""
from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from . import config
from .models import NewnessBadge, PlaceRecord, ProviderPlace, emoji_for_types


def merge(batches: Iterable[Sequence[ProviderPlace]]) -> List[ProviderPlace]:
    """Dedupe by place_id; the first occurrence in batch order wins."""
    seen: Dict[str, ProviderPlace] = {}
    for batch in batches:
        for place in batch:
            if place.place_id not in seen:
                seen[place.place_id] = place
    return list(seen.values())


def classify_newness(review_count: Optional[int]) -> Optional[NewnessBadge]:
    count = review_count or 0
    if count == 0:
        return NewnessBadge.NEW
    if count < 10:
        return NewnessBadge.BRAND_NEW
    if count < 50:
        return NewnessBadge.JUST_OPENED
    if count < config.NEWNESS_REVIEW_CEILING:
        return NewnessBadge.RECENTLY_OPENED
    return None


def is_excluded(name: str, exclude_terms: Optional[Sequence[str]] = None) -> bool:
    terms = config.EXCLUDE_TERMS if exclude_terms is None else exclude_terms
    lowered = name.lower()
    return any(term.lower() in lowered for term in terms)


def filter_excluded(
    places: Iterable[ProviderPlace],
    exclude_terms: Optional[Sequence[str]] = None,
) -> List[ProviderPlace]:
    return [p for p in places if not is_excluded(p.name, exclude_terms)]


def to_record(place: ProviderPlace) -> PlaceRecord:
    return PlaceRecord(
        external_id=place.place_id,
        name=place.name,
        address=place.address,
        latitude=place.lat,
        longitude=place.lng,
        category_emoji=emoji_for_types(place.types),
        rating=place.rating,
        review_count=place.user_ratings_total,
        newness_badge=classify_newness(place.user_ratings_total),
    )


def new_sort_key(record: PlaceRecord) -> tuple:
    unclassified = 0 if record.newness_badge is not None else 1
    return (unclassified, record.review_count or 0)


def rank_new(records: Iterable[PlaceRecord]) -> List[PlaceRecord]:
    return sorted(records, key=new_sort_key)


def qualifies_best_reviewed(review_count: Optional[int], rating: Optional[float]) -> bool:
    return (review_count or 0) >= config.BEST_REVIEWED_MIN_REVIEWS or (
        rating or 0.0
    ) >= config.BEST_REVIEWED_MIN_RATING


def rank_best_reviewed(records: Iterable[PlaceRecord]) -> List[PlaceRecord]:
    kept = [r for r in records if qualifies_best_reviewed(r.review_count, r.rating)]
    return sorted(kept, key=lambda r: (-(r.review_count or 0), -(r.rating or 0.0)))


# --- Presentation filters ---


class BadgeFilter(str, Enum):
    ALL = "all"
    BRAND_NEW = "brand-new"
    JUST_OPENED = "just-opened"
    RECENTLY_OPENED = "recently-opened"
    UNREVIEWED = "unreviewed"


class AreaFilter(str, Enum):
    ALL = "all"
    RALEIGH = "raleigh"
    DURHAM = "durham"
    CHAPEL_HILL = "chapel-hill"
    CARY = "cary"


class SortOption(str, Enum):
    NEWNESS = "newness"
    POPULAR = "popular"
    RATING = "rating"
    ALPHABETICAL = "alphabetical"


_BADGE_PRIORITY = {
    NewnessBadge.NEW: 4,
    NewnessBadge.BRAND_NEW: 3,
    NewnessBadge.JUST_OPENED: 2,
    NewnessBadge.RECENTLY_OPENED: 1,
}

_BADGE_FILTERS = {
    BadgeFilter.BRAND_NEW: NewnessBadge.BRAND_NEW,
    BadgeFilter.JUST_OPENED: NewnessBadge.JUST_OPENED,
    BadgeFilter.RECENTLY_OPENED: NewnessBadge.RECENTLY_OPENED,
}


def passes_badge_filter(record: PlaceRecord, badge_filter: BadgeFilter) -> bool:
    if badge_filter == BadgeFilter.ALL:
        return True
    if badge_filter == BadgeFilter.UNREVIEWED:
        return record.newness_badge == NewnessBadge.NEW or not record.review_count
    return record.newness_badge == _BADGE_FILTERS[badge_filter]


def passes_area_filter(record: PlaceRecord, area: AreaFilter) -> bool:
    if area == AreaFilter.ALL:
        return True
    return area.value.replace("-", " ") in record.address.lower()


def _sort_key(sort: SortOption) -> Callable[[PlaceRecord], tuple]:
    if sort == SortOption.NEWNESS:
        return lambda r: (-_BADGE_PRIORITY.get(r.newness_badge, 0), r.review_count or 0)
    if sort == SortOption.POPULAR:
        return lambda r: (-(r.review_count or 0),)
    if sort == SortOption.RATING:
        return lambda r: (-(r.rating or 0.0), -(r.review_count or 0))
    return lambda r: (r.name,)


def filter_and_sort(
    records: Iterable[PlaceRecord],
    badge_filter: BadgeFilter = BadgeFilter.ALL,
    area: AreaFilter = AreaFilter.ALL,
    sort: Optional[SortOption] = None,
) -> List[PlaceRecord]:
    """Narrow a feed by newness badge and city, then optionally re-sort it.

    With sort=None the incoming feed order is kept.
    """
    kept = [
        r
        for r in records
        if passes_badge_filter(r, badge_filter) and passes_area_filter(r, area)
    ]
    if sort is None:
        return kept
    return sorted(kept, key=_sort_key(sort))
