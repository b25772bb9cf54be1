"""CLI entrypoint."""
from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from brewcrew import config
from brewcrew.catalog import ShopCatalog
from brewcrew.classify import AreaFilter, BadgeFilter, SortOption, filter_and_sort
from brewcrew.discovery import DiscoveryService
from brewcrew.errors import DiscoveryInProgress
from brewcrew.http import HttpClient, RequestMetrics
from brewcrew.models import PlaceRecord
from brewcrew.places_client import PlacesClient
from brewcrew.reporting import format_record_line, write_records
from brewcrew.samples import SAMPLE_SHOPS
from brewcrew.store import PlaceStore

logger = logging.getLogger("brewcrew.run")

# Downtown Raleigh
DEFAULT_LAT = 35.7796
DEFAULT_LON = -78.6382


def _repo_root() -> Path:
    return Path(__file__).resolve().parent


def load_env(path: str = ".env", root_dir: Optional[Path] = None) -> None:
    """Optionally load a repo-root .env file without overriding real env vars."""
    root = Path(root_dir) if root_dir else _repo_root()
    env_path = (root / path).resolve()
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path, override=False)


def _add_center_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--lat", type=float, default=DEFAULT_LAT)
    parser.add_argument("--lon", type=float, default=DEFAULT_LON)


def _add_presentation_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--area", choices=[a.value for a in AreaFilter], default=AreaFilter.ALL.value)
    parser.add_argument("--sort", choices=[s.value for s in SortOption], default=None)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Discover and catalog coffee shops via Google Places")
    parser.add_argument("--store", type=str, default=None, help="SQLite store path (default: config)")
    parser.add_argument("--out", type=str, default=None, help="Write results to a .json or .csv file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("discover-new", help="Find newly opened places not already known")
    _add_center_args(p)
    p.add_argument("--dismiss", action="append", default=[], help="Shop name to treat as known")
    p.add_argument("--filter", choices=[f.value for f in BadgeFilter], default=BadgeFilter.ALL.value)
    _add_presentation_args(p)

    p = sub.add_parser("discover-best", help="Find the best reviewed places")
    _add_center_args(p)
    _add_presentation_args(p)

    p = sub.add_parser("populate", help="Import nearby coffee shops and bakeries into the store")
    _add_center_args(p)
    p.add_argument("--radius-m", type=int, default=None, help="Default: POPULATE_RADIUS_M")

    sub.add_parser("list", help="List stored places by rating")

    p = sub.add_parser("search", help="Search stored places by name or address")
    p.add_argument("query", type=str)

    p = sub.add_parser("nearby", help="Stored places within a radius, closest first")
    _add_center_args(p)
    p.add_argument("--radius-m", type=int, default=None, help="Default: NEARBY_RADIUS_M")

    sub.add_parser("clear", help="Delete every stored place")

    p = sub.add_parser("export", help="Snapshot the store into a standalone SQLite file")
    p.add_argument("path", type=str)

    sub.add_parser("seed-samples", help="Import the hand-seeded sample shops")
    sub.add_parser("preflight", help="Run offline configuration checks")
    return parser.parse_args(argv)


def build_places_client(api_key: str, metrics: Optional[RequestMetrics] = None) -> PlacesClient:
    http_client = HttpClient(timeout=config.HTTP_TIMEOUT_SECONDS)
    return PlacesClient(http_client, api_key, metrics=metrics)


def open_store(path: Optional[str]) -> PlaceStore:
    store = PlaceStore(path or config.STORE_DB_PATH, prepopulated_path=config.PREPOPULATED_DB_PATH)
    store.initialize()
    return store


def emit(records: List[PlaceRecord], out: Optional[str], meta: Optional[dict] = None) -> None:
    for record in records:
        print(format_record_line(record))
    print(f"{len(records)} places")
    if out:
        write_records(out, records, meta=meta)
        logger.info("Wrote %s", out)


def run_preflight(api_key: str, store_path: str) -> int:
    ok = True
    if api_key:
        print(f"API key: OK (length {len(api_key)})")
    else:
        print(f"API key: MISSING (set {config.API_KEY_ENV_VAR})")
        ok = False
    print(f"Store path: {store_path}")
    print(f"New-place queries: {len(config.NEW_PLACE_QUERIES)}")
    print(f"Best-reviewed queries: {len(config.BEST_REVIEWED_QUERIES)}")
    print(f"Excluded terms: {', '.join(config.EXCLUDE_TERMS)}")
    print("Preflight: PASS" if ok else "Preflight: FAIL")
    return 0 if ok else 1


def main(argv: Optional[List[str]] = None) -> int:
    load_env()
    config.load_search_config()
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    api_key = config.get_api_key()
    store_path = args.store or config.STORE_DB_PATH

    if args.command == "preflight":
        return run_preflight(api_key, store_path)

    if args.command in ("discover-new", "discover-best"):
        metrics = RequestMetrics()
        service = DiscoveryService(build_places_client(api_key, metrics))
        for name in args.dismiss if args.command == "discover-new" else []:
            service.known_shop_names.add(name.lower())
        try:
            if args.command == "discover-new":
                records = service.discover_new(args.lat, args.lon)
            else:
                records = service.discover_best_reviewed(args.lat, args.lon)
        except (DiscoveryInProgress, ValueError) as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
        logger.info("Places requests: text=%s", metrics.network_text)
        if service.last_error:
            print(f"Error: {service.last_error}", file=sys.stderr)
            return 1
        badge_filter = BadgeFilter(args.filter) if args.command == "discover-new" else BadgeFilter.ALL
        sort = SortOption(args.sort) if args.sort else None
        records = filter_and_sort(records, badge_filter, AreaFilter(args.area), sort)
        emit(records, args.out, meta={"command": args.command, "lat": args.lat, "lon": args.lon})
        return 0

    store = open_store(store_path)
    try:
        catalog = ShopCatalog(store, build_places_client(api_key))
        catalog.refresh()

        if args.command == "populate":
            result = catalog.populate(args.lat, args.lon, args.radius_m)
            if result is None:
                print(f"Error: {catalog.last_error}", file=sys.stderr)
                return 1
            print(f"Inserted {result.inserted}, updated {result.updated}; {len(catalog.shops)} stored")
            return 0

        if args.command == "list":
            emit(catalog.shops, args.out)
            return 0

        if args.command == "search":
            emit(catalog.search(args.query), args.out)
            return 0

        if args.command == "nearby":
            emit(catalog.nearby(args.lat, args.lon, args.radius_m), args.out)
            return 0

        if args.command == "clear":
            catalog.clear_store()
            print("Store cleared")
            return 0

        if args.command == "export":
            path = store.export_to(os.path.abspath(args.path))
            print(f"Exported to {path}")
            return 0

        if args.command == "seed-samples":
            added = store.seed(SAMPLE_SHOPS)
            catalog.refresh()
            print(f"Seeded {added} sample shops; {len(catalog.shops)} stored")
            return 0
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        store.close()

    print(f"Unknown command: {args.command}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
