#!/usr/bin/env python3
"""Seed the park database from the NUDLS feed.

A new integrator receives the feed's whole history; this script fetches it
once (or reads a saved copy) and reconciles every event into the SQLite
store, then prints a summary.

Usage
-----
::

    export NUDLS_FEED_URL="https://dinoparks.herokuapp.com/nudls/feed"
    export DINOPARK_DB_PATH="dinopark.sqlite3"
    python scripts/seed_feed.py

Options::

    --db PATH           SQLite database path (default: $DINOPARK_DB_PATH)
    --feed-url URL      Feed URL (default: $NUDLS_FEED_URL)
    --file FILE         Read events from a saved JSON array instead of fetching
    --grid              Print the zone grid after seeding
    --json              Output the summary as JSON
    -v, --verbose       Log every event
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

import aiohttp

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from dinopark import DinoparkConfig, DinoparkError, HttpFeedSource, Park, ZoneStatus  # noqa: E402

_GRID_SYMBOLS = {
    ZoneStatus.SAFE: ".",
    ZoneStatus.SAFE_NEEDS_MAINTENANCE: "m",
    ZoneStatus.UNSAFE: "X",
}


async def _fetch(config: DinoparkConfig) -> list[Any]:
    async with aiohttp.ClientSession() as session:
        return await HttpFeedSource(config, session).fetch()


def _load_file(path: Path) -> list[Any]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise SystemExit(f"{path}: expected a JSON array of events")
    return data


def _print_grid(park: Park) -> None:
    grid = park.grid()
    print("    " + "".join(report.column for report in grid[0]))
    for row in grid:
        print(f"{row[0].row:>3} " + "".join(_GRID_SYMBOLS[report.status] for report in row))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--db", help="SQLite database path")
    parser.add_argument("--feed-url", help="NUDLS feed URL")
    parser.add_argument("--file", type=Path, help="Read events from a JSON file")
    parser.add_argument("--grid", action="store_true", help="Print the zone grid")
    parser.add_argument("--json", action="store_true", help="Output JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every event")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides: dict[str, Any] = {}
    if args.db:
        overrides["database_path"] = args.db
    if args.feed_url:
        overrides["feed_url"] = args.feed_url

    try:
        config = DinoparkConfig.from_env(**overrides)
        events = _load_file(args.file) if args.file else asyncio.run(_fetch(config))
        park = Park.from_config(config)
        result = park.process_event_batch(events)
        stats = park.status()
    except DinoparkError as exc:
        print(f"Seeding failed: {exc}", file=sys.stderr)
        return 1

    if args.json:
        summary = {
            "processed": result.processed,
            "failed": result.failed,
            "errors": [{"index": f.index, "kind": f.kind, "message": f.message} for f in result.errors],
            "by_kind": dict(result.by_kind),
            "statistics": stats.model_dump(),
        }
        print(json.dumps(summary, indent=2))
    else:
        print(f"Processed: {result.processed}, failed: {result.failed}")
        for failure in result.errors:
            print(f"  #{failure.index} {failure.kind}: {failure.message}")
        print(
            f"Agents: {stats.total_agents} ({stats.carnivores} carnivores, {stats.herbivores} herbivores), "
            f"maintained zones: {stats.zones_with_maintenance}, maintenance records: {stats.maintenance_records}"
        )

    if args.grid:
        _print_grid(park)

    return 1 if result.failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
