"""Places API client with paging and response decoding."""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional, Sequence

from . import config
from .errors import InvalidResponse, MissingCredential, ProviderError
from .http import HttpClient, RequestMetrics
from .models import ProviderPlace

logger = logging.getLogger(__name__)


class PlacesClient:
    def __init__(
        self,
        http_client: HttpClient,
        api_key: Optional[str],
        metrics: Optional[RequestMetrics] = None,
        page_delay: float = config.PAGE_TOKEN_DELAY_SECONDS,
        max_results: int = config.NEARBY_MAX_RESULTS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.http = http_client
        self.api_key = (api_key or "").strip()
        self.metrics = metrics if metrics is not None else RequestMetrics()
        self.page_delay = page_delay
        self.max_results = max_results
        self._sleep = sleep

    def _require_key(self) -> str:
        if not self.api_key:
            raise MissingCredential()
        return self.api_key

    def search_nearby(
        self,
        center: Dict[str, float],
        radius_m: float,
        types: Sequence[str],
    ) -> List[ProviderPlace]:
        """Page through nearby-search results until the token runs out or the cap is hit."""
        key = self._require_key()
        places: List[ProviderPlace] = []
        page_token: Optional[str] = None
        page = 0
        while True:
            if page_token:
                # A fresh token is rejected until the provider has propagated it.
                self.metrics.page_token_waits += 1
                self._sleep(self.page_delay)
            params = build_nearby_search_params(center, radius_m, types, key, page_token)
            self.metrics.inc_network("nearby")
            response = self.http.get_json(config.PLACES_NEARBY_SEARCH_URL, params)
            check_status(response)
            batch = parse_places_response(response)
            page += 1
            places.extend(batch)
            page_token = response.get("next_page_token") or None
            logger.debug(
                "Nearby page %s for %s: %s results (total %s)",
                page,
                "|".join(types),
                len(batch),
                len(places),
            )
            if not page_token or len(places) >= self.max_results:
                break
        return places

    def search_text(self, query: str) -> List[ProviderPlace]:
        key = self._require_key()
        params = build_text_search_params(query, key)
        self.metrics.inc_network("text")
        response = self.http.get_json(config.PLACES_TEXT_SEARCH_URL, params)
        check_status(response)
        places = parse_places_response(response)
        logger.debug("Text search %r: %s results", query, len(places))
        return places


def build_nearby_search_params(
    center: Dict[str, float],
    radius_m: float,
    types: Sequence[str],
    api_key: str,
    page_token: Optional[str] = None,
) -> Dict[str, Any]:
    params: Dict[str, Any] = {
        "location": f"{center['lat']},{center['lon']}",
        "radius": str(int(radius_m)),
        "type": "|".join(types),
        "key": api_key,
    }
    if page_token:
        params["pagetoken"] = page_token
    return params


def build_text_search_params(query: str, api_key: str) -> Dict[str, Any]:
    return {"query": query, "key": api_key}


def check_status(response: Dict[str, Any]) -> None:
    status = response.get("status")
    if not isinstance(status, str):
        raise InvalidResponse("Google Places response has no status")
    if status not in config.PROVIDER_OK_STATUSES:
        raise ProviderError(status, response.get("error_message"))


# Adapter/mapper for Places response fields

def parse_places_response(response: Dict[str, Any]) -> List[ProviderPlace]:
    results = response.get("results") or []
    if not isinstance(results, list):
        raise InvalidResponse("Google Places results is not a list")
    parsed: List[ProviderPlace] = []
    for raw in results:
        place = parse_place(raw)
        if place is not None:
            parsed.append(place)
    return parsed


def parse_place(raw: Any) -> Optional[ProviderPlace]:
    if not isinstance(raw, dict):
        logger.warning("Skipping non-object place result")
        return None
    place_id = raw.get("place_id")
    name = raw.get("name")
    location = (raw.get("geometry") or {}).get("location") or {}
    lat = _as_float(location.get("lat"))
    lng = _as_float(location.get("lng"))
    if not place_id or not isinstance(name, str) or lat is None or lng is None:
        logger.warning("Skipping place result missing id, name or location: %r", place_id)
        return None

    types = [t for t in (raw.get("types") or []) if isinstance(t, str)]
    photos = raw.get("photos") or []
    photo_refs = [
        p["photo_reference"]
        for p in photos
        if isinstance(p, dict) and isinstance(p.get("photo_reference"), str)
    ]
    return ProviderPlace(
        place_id=str(place_id),
        name=name,
        lat=lat,
        lng=lng,
        types=types,
        formatted_address=_as_str(raw.get("formatted_address")),
        vicinity=_as_str(raw.get("vicinity")),
        rating=_as_float(raw.get("rating")),
        user_ratings_total=_as_int(raw.get("user_ratings_total")),
        price_level=_as_int(raw.get("price_level")),
        photo_references=photo_refs,
        phone_number=_as_str(raw.get("formatted_phone_number")),
        website=_as_str(raw.get("website")),
        raw=raw,
    )


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None
