"""Project configuration.

Loads user-defined discovery parameters from search_config.json when available,
falling back to the Triangle-area defaults. Keep API request shapes centralized here.
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

_REPO_ROOT = Path(__file__).resolve().parent.parent

# --- API endpoints ---

PLACES_NEARBY_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/nearbysearch/json"
PLACES_TEXT_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/textsearch/json"

API_KEY_ENV_VAR = "GOOGLE_PLACES_API_KEY"
API_KEY_PLACEHOLDER = "YOUR_GOOGLE_PLACES_API_KEY_HERE"

PROVIDER_OK_STATUSES = frozenset({"OK", "ZERO_RESULTS"})

# --- Nearby search paging ---

# The provider needs time to activate a next_page_token before it accepts it.
PAGE_TOKEN_DELAY_SECONDS = 2.0
NEARBY_MAX_RESULTS = 100

# --- Discovery queries ---

DEFAULT_SUB_AREAS: List[str] = ["Raleigh NC", "Durham NC", "Cary NC", "Chapel Hill NC"]

_NEW_PLACE_TERMS: List[str] = [
    "coffee shops",
    "espresso",
    "cafe",
    "dessert shops",
    "bakery",
    "cupcakes",
    "ice cream",
    "donuts",
    "pastry shops",
]

_BEST_REVIEWED_TERMS: List[str] = [
    "best coffee shops",
    "top rated coffee shops",
    "popular coffee shops",
    "highest rated espresso",
    "best cafe",
    "popular cafe",
    "best bakery",
    "top rated bakery",
    "popular bakery",
    "best cupcakes",
    "top rated ice cream",
    "best donuts",
    "popular pastry shops",
]


def build_query_battery(terms: List[str], sub_areas: List[str]) -> List[str]:
    """Cross every term with every sub-area, keeping first-seen order."""
    queries = [f"{term} {area}" for term in terms for area in sub_areas]
    return list(dict.fromkeys(queries))


SUB_AREAS: List[str] = list(DEFAULT_SUB_AREAS)
NEW_PLACE_QUERIES: List[str] = build_query_battery(_NEW_PLACE_TERMS, SUB_AREAS)
BEST_REVIEWED_QUERIES: List[str] = build_query_battery(_BEST_REVIEWED_TERMS, SUB_AREAS)

# --- Filters and ranking ---

EXCLUDE_TERMS: List[str] = [
    "hotel",
    "hospital",
    "bank",
    "gas station",
    "pharmacy",
    "grocery",
    "walmart",
    "target",
    "cvs",
    "walgreens",
    "airport",
    "mall",
]

NEWNESS_REVIEW_CEILING = 100
BEST_REVIEWED_MIN_REVIEWS = 100
BEST_REVIEWED_MIN_RATING = 4.0

# None disables the cap on the published new-places feed.
MAX_SHOPS_TO_SHOW: Optional[int] = None

# --- Radii (meters) ---

POPULATE_RADIUS_M = 15000
NEARBY_RADIUS_M = 5000

COFFEE_SHOP_TYPES: List[str] = ["cafe", "coffee_shop"]
BAKERY_TYPES: List[str] = ["bakery"]

# --- HTTP ---

HTTP_TIMEOUT_SECONDS = 20
DISCOVERY_MAX_WORKERS = 4

# --- Store and outputs ---

STORE_DB_PATH = "data/brewcrew.sqlite"
PREPOPULATED_DB_PATH: Optional[str] = None


def get_api_key(environ: Optional[Dict[str, str]] = None) -> str:
    """Return the configured Places API key, or "" when missing or left as the placeholder."""
    env = os.environ if environ is None else environ
    key = (env.get(API_KEY_ENV_VAR) or "").strip()
    if key == API_KEY_PLACEHOLDER:
        return ""
    return key


def load_search_config(path: Optional[str] = None) -> bool:
    """Load discovery configuration from a JSON file.

    Updates module-level globals with values from the config file.
    Returns True if config was loaded, False if file not found.
    """
    if path is None:
        path = str(_REPO_ROOT / "search_config.json")

    config_path = Path(path)
    if not config_path.exists():
        return False

    with open(config_path, "r", encoding="utf-8") as f:
        data: Dict[str, Any] = json.load(f)

    globals_ref = globals()

    sub_areas = data.get("sub_areas", [])
    if sub_areas:
        globals_ref["SUB_AREAS"] = list(sub_areas)
        globals_ref["NEW_PLACE_QUERIES"] = build_query_battery(_NEW_PLACE_TERMS, list(sub_areas))
        globals_ref["BEST_REVIEWED_QUERIES"] = build_query_battery(
            _BEST_REVIEWED_TERMS, list(sub_areas)
        )

    exclude = data.get("exclude_terms", [])
    if exclude:
        globals_ref["EXCLUDE_TERMS"] = [str(term).lower() for term in exclude]

    populate_radius = data.get("populate_radius_m")
    if populate_radius is not None:
        globals_ref["POPULATE_RADIUS_M"] = int(populate_radius)

    max_shops = data.get("max_shops_to_show")
    if max_shops is not None:
        globals_ref["MAX_SHOPS_TO_SHOW"] = int(max_shops)

    store_path = data.get("store_db_path")
    if store_path:
        globals_ref["STORE_DB_PATH"] = str(store_path)

    prepopulated = data.get("prepopulated_db_path")
    if prepopulated:
        globals_ref["PREPOPULATED_DB_PATH"] = str(prepopulated)

    workers = data.get("discovery_max_workers")
    if workers is not None:
        globals_ref["DISCOVERY_MAX_WORKERS"] = max(1, int(workers))

    return True
