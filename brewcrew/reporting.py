"""Output reporting helpers."""
from __future__ import annotations

import csv
import json
import os
import tempfile
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Iterator, List, Optional, TextIO

from .models import PlaceRecord

RECORD_FIELDNAMES = [
    "id",
    "external_id",
    "name",
    "address",
    "latitude",
    "longitude",
    "category_emoji",
    "rating",
    "review_count",
    "newness_badge",
]


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def _fsync_dir(path: str) -> None:
    try:
        dir_fd = os.open(path, os.O_DIRECTORY)
    except OSError:
        return
    try:
        os.fsync(dir_fd)
    except OSError:
        pass
    finally:
        os.close(dir_fd)


@contextmanager
def atomic_writer(
    path: str,
    mode: str = "w",
    encoding: str = "utf-8",
    newline: Optional[str] = None,
) -> Iterator[TextIO]:
    dir_path = os.path.dirname(path) or "."
    base = os.path.basename(path)
    fd, tmp_path = tempfile.mkstemp(prefix=f".{base}.", suffix=".tmp", dir=dir_path)
    try:
        with os.fdopen(fd, mode, encoding=encoding, newline=newline) as f:
            yield f
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
        _fsync_dir(dir_path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def records_to_rows(records: Iterable[PlaceRecord]) -> List[Dict[str, Any]]:
    return [r.to_dict() for r in records]


def write_records_json(path: str, records: Iterable[PlaceRecord], meta: Optional[Dict[str, Any]] = None) -> None:
    payload: Dict[str, Any] = {
        "generated_at": utc_now_iso(),
        "count": 0,
        "records": records_to_rows(records),
    }
    payload["count"] = len(payload["records"])
    if meta:
        payload["meta"] = meta
    with atomic_writer(path, mode="w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)


def write_records_csv(path: str, records: Iterable[PlaceRecord]) -> None:
    rows = records_to_rows(records)
    with atomic_writer(path, mode="w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=RECORD_FIELDNAMES)
        writer.writeheader()
        for row in rows:
            writer.writerow(row)


def write_records(path: str, records: Iterable[PlaceRecord], meta: Optional[Dict[str, Any]] = None) -> None:
    """Pick the writer from the file extension; anything but .csv is JSON."""
    dir_path = os.path.dirname(path)
    if dir_path:
        ensure_dir(dir_path)
    if path.lower().endswith(".csv"):
        write_records_csv(path, records)
    else:
        write_records_json(path, records, meta=meta)


def format_record_line(record: PlaceRecord) -> str:
    parts = [f"{record.category_emoji} {record.name}"]
    if record.newness_badge is not None:
        parts.append(f"[{record.newness_badge.label}]")
    if record.rating is not None:
        parts.append(f"{record.rating:.1f}*")
    if record.review_count is not None:
        parts.append(f"({record.review_count} reviews)")
    if record.address:
        parts.append(f"- {record.address}")
    return " ".join(parts)
