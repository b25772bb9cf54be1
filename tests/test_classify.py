import pytest

from brewcrew.classify import (
    AreaFilter,
    BadgeFilter,
    SortOption,
    classify_newness,
    filter_and_sort,
    filter_excluded,
    merge,
    rank_best_reviewed,
    rank_new,
    to_record,
)
from brewcrew.models import (
    BAKERY_EMOJI,
    COFFEE_EMOJI,
    Category,
    NewnessBadge,
    PlaceRecord,
    ProviderPlace,
    category_for_types,
    emoji_for_types,
)


def _place(place_id, name="Cafe", reviews=None, rating=None, types=None, **extra):
    return ProviderPlace(
        place_id=place_id,
        name=name,
        lat=35.78,
        lng=-78.64,
        types=types or ["cafe"],
        rating=rating,
        user_ratings_total=reviews,
        **extra,
    )


def _record(name, reviews=None, rating=None):
    return to_record(_place(name.lower().replace(" ", "-"), name, reviews=reviews, rating=rating))


def test_merge_first_occurrence_wins():
    first = _place("shared", "First Copy", reviews=3)
    second = _place("shared", "Second Copy", reviews=300)
    r1 = [_place("a"), first]
    r2 = [second, _place("b")]

    merged = merge([r1, r2])

    assert [p.place_id for p in merged] == ["a", "shared", "b"]
    assert merged[1] is first


def test_merge_empty_batches():
    assert merge([]) == []
    assert merge([[], []]) == []


@pytest.mark.parametrize(
    "count,expected",
    [
        (None, NewnessBadge.NEW),
        (0, NewnessBadge.NEW),
        (1, NewnessBadge.BRAND_NEW),
        (9, NewnessBadge.BRAND_NEW),
        (10, NewnessBadge.JUST_OPENED),
        (49, NewnessBadge.JUST_OPENED),
        (50, NewnessBadge.RECENTLY_OPENED),
        (99, NewnessBadge.RECENTLY_OPENED),
        (100, None),
        (5000, None),
    ],
)
def test_classify_newness_boundaries(count, expected):
    assert classify_newness(count) == expected


def test_badge_labels():
    assert NewnessBadge.NEW.label == "NEW!"
    assert NewnessBadge.RECENTLY_OPENED.label == "RECENTLY OPENED"


def test_filter_excluded_substring_matches():
    places = [
        _place("1", "Downtown CVS Pharmacy"),
        _place("2", "CVS Coffee Bar"),
        _place("3", "Targeted Roasters"),
        _place("4", "Crabtree Valley MALL Espresso"),
        _place("5", "Sola Coffee"),
        _place("6", "Gas Station Donuts"),
        _place("7", "Gas Stop Donuts"),
    ]

    kept = filter_excluded(places)

    assert [p.name for p in kept] == ["Sola Coffee", "Gas Stop Donuts"]


def test_filter_excluded_ignores_category_tags():
    hotel_cafe = _place("h", "Lobby Cafe at the Hotel", types=["cafe", "coffee_shop"])
    assert filter_excluded([hotel_cafe]) == []


def test_filter_excluded_custom_terms():
    places = [_place("1", "Bank Street Bagels"), _place("2", "Yogurt Hut")]
    assert [p.name for p in filter_excluded(places, ["hut"])] == ["Bank Street Bagels"]


def test_to_record_maps_fields():
    place = _place(
        "p9",
        "Morning Bakery",
        reviews=12,
        rating=4.4,
        types=["point_of_interest", "bakery", "cafe"],
        vicinity="9 Oak St",
    )

    record = to_record(place)

    assert record.external_id == "p9"
    assert record.category_emoji == BAKERY_EMOJI
    assert record.newness_badge == NewnessBadge.JUST_OPENED
    assert record.address == "9 Oak St"
    assert record.review_count == 12


def test_emoji_table_priority_and_unknown():
    assert category_for_types(["store", "cafe"]) == Category.SHOP
    assert category_for_types(["Coffee_Shop"]) == Category.COFFEE
    assert category_for_types(["meal_takeaway"]) == Category.FOOD
    assert category_for_types(["point_of_interest"]) == Category.UNKNOWN
    assert emoji_for_types([]) == COFFEE_EMOJI


def test_rank_new_classified_first_then_fewest_reviews():
    records = [
        _record("Old Favorite", reviews=800, rating=4.9),
        _record("Just Opened", reviews=20),
        _record("Unknown Count"),
        _record("Brand New", reviews=3),
    ]

    ranked = rank_new(records)

    assert [r.name for r in ranked] == ["Unknown Count", "Brand New", "Just Opened", "Old Favorite"]
    assert ranked[-1].newness_badge is None


def test_rank_best_reviewed_inclusion_and_order():
    records = [
        PlaceRecord(name="Busy", latitude=0, longitude=0, review_count=900, rating=3.5),
        PlaceRecord(name="Tiny Gem", latitude=0, longitude=0, review_count=12, rating=4.8),
        PlaceRecord(name="Meh", latitude=0, longitude=0, review_count=40, rating=3.9),
        PlaceRecord(name="Tie Low", latitude=0, longitude=0, review_count=900, rating=4.1),
        PlaceRecord(name="No Data", latitude=0, longitude=0),
    ]

    ranked = rank_best_reviewed(records)

    assert [r.name for r in ranked] == ["Tie Low", "Busy", "Tiny Gem"]


def _feed():
    return [
        PlaceRecord(name="Quiet Start", latitude=35.78, longitude=-78.64, address="1 Main St, Cary, NC",
                    review_count=0, newness_badge=NewnessBadge.NEW),
        PlaceRecord(name="Bright Bean", latitude=35.78, longitude=-78.64, address="2 Oak St, Raleigh, NC",
                    rating=4.8, review_count=5, newness_badge=NewnessBadge.BRAND_NEW),
        PlaceRecord(name="Crumb Lab", latitude=35.99, longitude=-78.90, address="3 Geer St, Durham, NC",
                    rating=4.8, review_count=30, newness_badge=NewnessBadge.JUST_OPENED),
        PlaceRecord(name="Arbor Cafe", latitude=35.91, longitude=-79.05, address="4 Franklin St, Chapel Hill, NC",
                    rating=4.2, review_count=80, newness_badge=NewnessBadge.RECENTLY_OPENED),
        PlaceRecord(name="Old Standby", latitude=35.78, longitude=-78.64, address="5 Hargett St, RALEIGH, NC",
                    rating=4.6, review_count=900),
    ]


@pytest.mark.parametrize(
    "badge_filter,expected",
    [
        (BadgeFilter.ALL, ["Quiet Start", "Bright Bean", "Crumb Lab", "Arbor Cafe", "Old Standby"]),
        (BadgeFilter.BRAND_NEW, ["Bright Bean"]),
        (BadgeFilter.JUST_OPENED, ["Crumb Lab"]),
        (BadgeFilter.RECENTLY_OPENED, ["Arbor Cafe"]),
        (BadgeFilter.UNREVIEWED, ["Quiet Start"]),
    ],
)
def test_filter_by_badge_keeps_feed_order(badge_filter, expected):
    assert [r.name for r in filter_and_sort(_feed(), badge_filter=badge_filter)] == expected


def test_unreviewed_includes_zero_count_without_badge():
    bare = PlaceRecord(name="No Badge", latitude=35.78, longitude=-78.64, review_count=0)

    assert [r.name for r in filter_and_sort([bare], badge_filter=BadgeFilter.UNREVIEWED)] == ["No Badge"]


@pytest.mark.parametrize(
    "area,expected",
    [
        (AreaFilter.RALEIGH, ["Bright Bean", "Old Standby"]),
        (AreaFilter.DURHAM, ["Crumb Lab"]),
        (AreaFilter.CHAPEL_HILL, ["Arbor Cafe"]),
        (AreaFilter.CARY, ["Quiet Start"]),
    ],
)
def test_filter_by_area_matches_address_case_insensitively(area, expected):
    assert [r.name for r in filter_and_sort(_feed(), area=area)] == expected


@pytest.mark.parametrize(
    "sort,expected",
    [
        (SortOption.NEWNESS, ["Quiet Start", "Bright Bean", "Crumb Lab", "Arbor Cafe", "Old Standby"]),
        (SortOption.POPULAR, ["Old Standby", "Arbor Cafe", "Crumb Lab", "Bright Bean", "Quiet Start"]),
        (SortOption.RATING, ["Crumb Lab", "Bright Bean", "Old Standby", "Arbor Cafe", "Quiet Start"]),
        (SortOption.ALPHABETICAL, ["Arbor Cafe", "Bright Bean", "Crumb Lab", "Old Standby", "Quiet Start"]),
    ],
)
def test_sort_options(sort, expected):
    feed = list(reversed(_feed()))

    assert [r.name for r in filter_and_sort(feed, sort=sort)] == expected


def test_filters_combine_before_sorting():
    result = filter_and_sort(
        _feed(),
        badge_filter=BadgeFilter.ALL,
        area=AreaFilter.RALEIGH,
        sort=SortOption.POPULAR,
    )

    assert [r.name for r in result] == ["Old Standby", "Bright Bean"]
