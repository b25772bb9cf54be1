"""Stored coffee-shop catalog: populate from nearby search, query the visible collection."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from . import config
from .errors import PlacesError, user_message
from .geo import haversine_m, validate_center
from .models import PlaceRecord
from .places_client import PlacesClient
from .store import PlaceStore, UpsertResult

logger = logging.getLogger(__name__)


class ShopCatalog:
    def __init__(self, store: PlaceStore, places_client: Optional[PlacesClient] = None) -> None:
        self.store = store
        self.places = places_client
        self.shops: List[PlaceRecord] = []
        self.is_loading = False
        self.last_sync: Optional[datetime] = None
        self.last_error: Optional[str] = None

    def populate(
        self,
        lat: float,
        lon: float,
        radius_m: Optional[float] = None,
    ) -> Optional[UpsertResult]:
        """Import nearby coffee shops and bakeries into the store.

        Both searches must succeed before anything is written; a failure in
        either leaves the store untouched and is reported through last_error.
        """
        if self.places is None:
            raise ValueError("A PlacesClient is required to populate the store")
        if radius_m is None:
            radius_m = config.POPULATE_RADIUS_M
        validate_center(lat, lon)
        self.is_loading = True
        self.last_error = None
        center = {"lat": lat, "lon": lon}
        try:
            coffee = self.places.search_nearby(center, radius_m, config.COFFEE_SHOP_TYPES)
            bakeries = self.places.search_nearby(center, radius_m, config.BAKERY_TYPES)
        except PlacesError as exc:
            self.last_error = user_message(exc)
            logger.error("Populate failed, store left unchanged: %s", exc)
            return None
        finally:
            self.is_loading = False

        logger.info("Fetched %s coffee shops and %s bakeries", len(coffee), len(bakeries))
        result = self.store.upsert(coffee + bakeries)
        self.refresh()
        self.last_sync = datetime.now(timezone.utc)
        return result

    def refresh(self) -> List[PlaceRecord]:
        self.shops = self.store.fetch_all()
        return self.shops

    def clear_store(self) -> None:
        self.store.clear()
        self.shops = []

    def search(self, query: str) -> List[PlaceRecord]:
        needle = query.strip().lower()
        if not needle:
            return list(self.shops)
        return [
            s for s in self.shops if needle in s.name.lower() or needle in s.address.lower()
        ]

    def nearby(
        self,
        lat: float,
        lon: float,
        radius_m: Optional[float] = None,
    ) -> List[PlaceRecord]:
        validate_center(lat, lon)
        if radius_m is None:
            radius_m = config.NEARBY_RADIUS_M
        with_distance = [
            (haversine_m(lat, lon, s.latitude, s.longitude), s) for s in self.shops
        ]
        within = [(d, s) for d, s in with_distance if d <= radius_m]
        within.sort(key=lambda pair: pair[0])
        return [s for _, s in within]
