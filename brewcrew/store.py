"""SQLite store for discovered coffee shops, keyed by provider place id."""
from __future__ import annotations

import json
import logging
import os
import re
import shutil
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional

from .models import (
    BAKERY_EMOJI,
    PlaceRecord,
    PlaceType,
    ProviderPlace,
    StoredPlace,
    new_local_id,
    place_type_for_types,
)

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id",
    "external_id",
    "name",
    "address",
    "latitude",
    "longitude",
    "rating",
    "review_count",
    "price_level",
    "place_type",
    "phone_number",
    "website",
    "photo_references_json",
    "created_at",
    "updated_at",
)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def seed_external_id(record: PlaceRecord) -> str:
    """Placeholder external id for a hand-seeded record, stable across runs."""
    slug = re.sub(r"[^a-z0-9]+", "-", record.name.lower()).strip("-")
    return f"seed-{slug}-{record.latitude:.4f},{record.longitude:.4f}"


@dataclass
class UpsertResult:
    inserted: int = 0
    updated: int = 0


class PlaceStore:
    def __init__(
        self,
        db_path: str,
        prepopulated_path: Optional[str] = None,
        clock: Callable[[], str] = utc_now_iso,
    ) -> None:
        self.db_path = db_path
        self.prepopulated_path = prepopulated_path
        self._clock = clock
        self._conn: Optional[sqlite3.Connection] = None

    def initialize(self) -> None:
        """Establish the backing file and schema. Must run before any other call."""
        if self._conn is not None:
            return
        if self.db_path != ":memory:":
            parent = os.path.dirname(os.path.abspath(self.db_path))
            os.makedirs(parent, exist_ok=True)
            self._copy_prepopulated()
        self._conn = sqlite3.connect(self.db_path)
        self._conn.row_factory = sqlite3.Row
        self._init_db()

    def _copy_prepopulated(self) -> None:
        if not self.prepopulated_path or os.path.exists(self.db_path):
            return
        if not os.path.exists(self.prepopulated_path):
            logger.warning("Prepopulated store not found: %s", self.prepopulated_path)
            return
        shutil.copyfile(self.prepopulated_path, self.db_path)
        logger.info("Copied prepopulated store from %s", self.prepopulated_path)

    def _init_db(self) -> None:
        cur = self.conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS coffee_shops (
                id TEXT PRIMARY KEY,
                external_id TEXT NOT NULL UNIQUE,
                name TEXT NOT NULL,
                address TEXT NOT NULL DEFAULT '',
                latitude REAL NOT NULL,
                longitude REAL NOT NULL,
                rating REAL NOT NULL DEFAULT 0,
                review_count INTEGER NOT NULL DEFAULT 0,
                price_level INTEGER NOT NULL DEFAULT 0,
                place_type TEXT,
                phone_number TEXT,
                website TEXT,
                photo_references_json TEXT,
                created_at TEXT,
                updated_at TEXT
            )
            """
        )
        self.conn.commit()

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("PlaceStore.initialize() has not been called")
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def upsert(self, places: Iterable[ProviderPlace]) -> UpsertResult:
        """Insert unseen external ids, overwrite known ones. One transaction for the batch."""
        result = UpsertResult()
        with self.conn:
            cur = self.conn.cursor()
            for place in places:
                now = self._clock()
                cur.execute("SELECT id FROM coffee_shops WHERE external_id = ?", (place.place_id,))
                row = cur.fetchone()
                values = (
                    place.name,
                    place.vicinity or place.formatted_address or "",
                    place.lat,
                    place.lng,
                    place.rating or 0.0,
                    place.user_ratings_total or 0,
                    place.price_level or 0,
                    place_type_for_types(place.types).value,
                    place.phone_number,
                    place.website,
                    json.dumps(place.photo_references),
                )
                if row is None:
                    cur.execute(
                        """
                        INSERT INTO coffee_shops (
                            id, external_id, name, address, latitude, longitude, rating,
                            review_count, price_level, place_type, phone_number, website,
                            photo_references_json, created_at, updated_at
                        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                        """,
                        (new_local_id(), place.place_id) + values + (now, now),
                    )
                    result.inserted += 1
                else:
                    cur.execute(
                        """
                        UPDATE coffee_shops SET
                            name = ?, address = ?, latitude = ?, longitude = ?, rating = ?,
                            review_count = ?, price_level = ?, place_type = ?,
                            phone_number = ?, website = ?, photo_references_json = ?,
                            updated_at = ?
                        WHERE id = ?
                        """,
                        values + (now, row["id"]),
                    )
                    result.updated += 1
        logger.info("Upserted places: inserted=%s updated=%s", result.inserted, result.updated)
        return result

    def seed(self, records: Iterable[PlaceRecord]) -> int:
        """Bulk import hand-seeded records; records without an external id get a placeholder.

        Rows whose id or external id already exists are skipped.
        """
        count = 0
        with self.conn:
            cur = self.conn.cursor()
            for record in records:
                now = self._clock()
                place_type = PlaceType.BAKERY if record.category_emoji == BAKERY_EMOJI else PlaceType.COFFEE_SHOP
                cur.execute(
                    """
                    INSERT OR IGNORE INTO coffee_shops (
                        id, external_id, name, address, latitude, longitude, rating,
                        review_count, price_level, place_type, phone_number, website,
                        photo_references_json, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, 0, ?, NULL, NULL, '[]', ?, ?)
                    """,
                    (
                        record.id,
                        record.external_id or seed_external_id(record),
                        record.name,
                        record.address,
                        record.latitude,
                        record.longitude,
                        record.rating or 0.0,
                        record.review_count or 0,
                        place_type.value,
                        now,
                        now,
                    ),
                )
                count += cur.rowcount
        return count

    def fetch_entities(self) -> List[StoredPlace]:
        cur = self.conn.cursor()
        cur.execute(
            f"SELECT {', '.join(_COLUMNS)} FROM coffee_shops "
            "ORDER BY rating DESC, review_count DESC, name ASC"
        )
        return [_row_to_entity(row) for row in cur.fetchall()]

    def fetch_all(self) -> List[PlaceRecord]:
        return [entity.to_record() for entity in self.fetch_entities()]

    def get_by_external_id(self, external_id: str) -> Optional[StoredPlace]:
        cur = self.conn.cursor()
        cur.execute(
            f"SELECT {', '.join(_COLUMNS)} FROM coffee_shops WHERE external_id = ?",
            (external_id,),
        )
        row = cur.fetchone()
        return _row_to_entity(row) if row else None

    def count(self) -> int:
        cur = self.conn.cursor()
        cur.execute("SELECT COUNT(*) FROM coffee_shops")
        return int(cur.fetchone()[0])

    def clear(self) -> int:
        with self.conn:
            cur = self.conn.execute("DELETE FROM coffee_shops")
        logger.info("Cleared %s stored places", cur.rowcount)
        return cur.rowcount

    def export_to(self, path: str) -> str:
        """Snapshot the store into a standalone SQLite file."""
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        if os.path.exists(path):
            os.remove(path)
        target = sqlite3.connect(path)
        try:
            self.conn.backup(target)
        finally:
            target.close()
        logger.info("Exported store to %s", path)
        return path


def _row_to_entity(row: sqlite3.Row) -> StoredPlace:
    return StoredPlace(
        id=row["id"],
        external_id=row["external_id"],
        name=row["name"],
        address=row["address"] or "",
        latitude=row["latitude"],
        longitude=row["longitude"],
        rating=float(row["rating"] or 0.0),
        review_count=int(row["review_count"] or 0),
        price_level=int(row["price_level"] or 0),
        place_type=PlaceType(row["place_type"] or PlaceType.COFFEE_SHOP.value),
        phone_number=row["phone_number"],
        website=row["website"],
        photo_references=json.loads(row["photo_references_json"] or "[]"),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
