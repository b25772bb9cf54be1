"""Discovery feeds: new places and best-reviewed places.

A discovery call fans a fixed battery of text queries out to the Places client,
merges the batches in submission order, filters and ranks them, and publishes
the result as an in-memory feed. Nothing here writes to the store.

Feeds are replaced only on success. On a provider or transport failure the
previous feed stays in place and `last_error` carries the user-facing message.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from typing import Iterable, Iterator, List, Optional, Sequence, Set, Union

from . import config
from .classify import filter_excluded, merge, rank_best_reviewed, rank_new, to_record
from .errors import DiscoveryInProgress, PlacesError, user_message
from .geo import validate_center
from .models import PlaceRecord, ProviderPlace
from .places_client import PlacesClient
from .samples import sample_shop_names

logger = logging.getLogger(__name__)

MODE_NEW = "new"
MODE_BEST_REVIEWED = "best_reviewed"

RecordRef = Union[PlaceRecord, str]


class DiscoveryService:
    def __init__(
        self,
        places_client: PlacesClient,
        known_shop_names: Optional[Iterable[str]] = None,
        new_queries: Optional[Sequence[str]] = None,
        best_reviewed_queries: Optional[Sequence[str]] = None,
        exclude_terms: Optional[Sequence[str]] = None,
        max_workers: Optional[int] = None,
        max_shops: Optional[int] = None,
    ) -> None:
        self.places = places_client
        names = sample_shop_names() if known_shop_names is None else known_shop_names
        self.known_shop_names: Set[str] = {n.lower() for n in names}
        self.new_queries = list(new_queries if new_queries is not None else config.NEW_PLACE_QUERIES)
        self.best_reviewed_queries = list(
            best_reviewed_queries if best_reviewed_queries is not None else config.BEST_REVIEWED_QUERIES
        )
        self.exclude_terms = exclude_terms
        self.max_workers = max(1, max_workers or config.DISCOVERY_MAX_WORKERS)
        self.max_shops = max_shops if max_shops is not None else config.MAX_SHOPS_TO_SHOW

        self.new_feed: List[PlaceRecord] = []
        self.best_reviewed_feed: List[PlaceRecord] = []
        self.last_error: Optional[str] = None
        self.last_exception: Optional[BaseException] = None

        self._locks = {MODE_NEW: threading.Lock(), MODE_BEST_REVIEWED: threading.Lock()}
        self._in_flight: Set[str] = set()

    @property
    def is_loading(self) -> bool:
        return bool(self._in_flight)

    def discover_new(self, lat: float, lon: float) -> List[PlaceRecord]:
        with self._single_flight(MODE_NEW):
            try:
                places = self._search_all(self.new_queries, lat, lon)
            except PlacesError as exc:
                self._record_failure(MODE_NEW, exc)
                return list(self.new_feed)

            records = rank_new(to_record(p) for p in places)
            unknown = [r for r in records if r.name.lower() not in self.known_shop_names]
            if self.max_shops is not None:
                unknown = unknown[: self.max_shops]
            self.new_feed = unknown
            self.known_shop_names.update(r.name.lower() for r in unknown)
            logger.info(
                "New-places feed: %s published (%s candidates, %s already known)",
                len(unknown),
                len(records),
                len(records) - len(unknown),
            )
            return list(self.new_feed)

    def discover_best_reviewed(self, lat: float, lon: float) -> List[PlaceRecord]:
        with self._single_flight(MODE_BEST_REVIEWED):
            try:
                places = self._search_all(self.best_reviewed_queries, lat, lon)
            except PlacesError as exc:
                self._record_failure(MODE_BEST_REVIEWED, exc)
                return list(self.best_reviewed_feed)

            self.best_reviewed_feed = rank_best_reviewed(to_record(p) for p in places)
            logger.info("Best-reviewed feed: %s published", len(self.best_reviewed_feed))
            return list(self.best_reviewed_feed)

    def mark_visited(self, record: RecordRef) -> bool:
        removed = self._remove_from_new_feed(_record_id(record))
        return removed is not None

    def dismiss(self, record: RecordRef) -> bool:
        removed = self._remove_from_new_feed(_record_id(record))
        name = record.name if isinstance(record, PlaceRecord) else (removed.name if removed else None)
        if name:
            self.known_shop_names.add(name.lower())
        return removed is not None

    def _remove_from_new_feed(self, record_id: str) -> Optional[PlaceRecord]:
        for idx, record in enumerate(self.new_feed):
            if record.id == record_id:
                return self.new_feed.pop(idx)
        return None

    def _search_all(self, queries: Sequence[str], lat: float, lon: float) -> List[ProviderPlace]:
        validate_center(lat, lon)
        self.last_error = None
        self.last_exception = None
        logger.info("Running %s text queries near %.4f,%.4f", len(queries), lat, lon)
        batches = self._run_queries(queries)
        merged = merge(batches)
        kept = filter_excluded(merged, self.exclude_terms)
        logger.debug(
            "Merged %s results into %s unique, %s after exclusions",
            sum(len(b) for b in batches),
            len(merged),
            len(kept),
        )
        return kept

    def _run_queries(self, queries: Sequence[str]) -> List[List[ProviderPlace]]:
        if not queries:
            return []
        aborted = threading.Event()

        def run_one(query: str) -> List[ProviderPlace]:
            if aborted.is_set():
                return []
            try:
                return self.places.search_text(query)
            except PlacesError:
                aborted.set()
                raise

        # Results are read back in submission order so merging stays deterministic.
        ex = ThreadPoolExecutor(max_workers=min(self.max_workers, len(queries)))
        futures = [ex.submit(run_one, q) for q in queries]
        try:
            return [fut.result() for fut in futures]
        except PlacesError:
            aborted.set()
            ex.shutdown(wait=True, cancel_futures=True)
            raise
        finally:
            ex.shutdown(wait=True)

    def _record_failure(self, mode: str, exc: PlacesError) -> None:
        self.last_exception = exc
        self.last_error = f"Failed to discover coffee shops: {user_message(exc)}"
        logger.warning("Discovery (%s) failed: %s", mode, exc)

    @contextmanager
    def _single_flight(self, mode: str) -> Iterator[None]:
        lock = self._locks[mode]
        if not lock.acquire(blocking=False):
            raise DiscoveryInProgress(f"Discovery ({mode}) is already running")
        self._in_flight.add(mode)
        try:
            yield
        finally:
            self._in_flight.discard(mode)
            lock.release()


def _record_id(record: RecordRef) -> str:
    return record.id if isinstance(record, PlaceRecord) else record
