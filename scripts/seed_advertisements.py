#!/usr/bin/env python
"""Seed advertisements from a JSON file.

Each entry of the file is an ``POST /api/v1/ad`` payload (camelCase keys).
Entries are validated with the same schema the API uses and written through
``GraphWriter``, so every advertisement is stored atomically with its
conditions and countries.

Usage::

    python scripts/seed_advertisements.py fixtures/ads.json
    python scripts/seed_advertisements.py fixtures/ads.json --dry-run

Example file::

    [
      {
        "title": "AD 55",
        "startAt": "2030-01-01T00:00:00Z",
        "endAt": "2030-02-01T00:00:00Z",
        "conditions": [
          {"ageStart": 18, "ageEnd": 65, "country": ["TW", "JP"], "platform": ["ios"]}
        ]
      }
    ]

Environment variables (via .env or shell)::

    DATABASE_URL  Async database DSN.  Run ``alembic upgrade head`` first.

Exit codes:
    0 — Every entry was stored (or validated, with ``--dry-run``).
    1 — The file is unreadable, an entry is invalid, or a write failed.
        Entries stored before the failure remain stored.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from pathlib import Path

# Ensure the src layout is on sys.path when running as a standalone script.
_SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
_SRC_DIR = os.path.join(os.path.dirname(_SCRIPT_DIR), "src")
if _SRC_DIR not in sys.path:
    sys.path.insert(0, _SRC_DIR)


def _load_payloads(path: Path) -> list:
    """Read the JSON file; a single object is treated as a one-entry list."""
    data = json.loads(path.read_text(encoding="utf-8"))
    return data if isinstance(data, list) else [data]


async def _seed(path: Path, dry_run: bool) -> int:
    """Validate and store every entry of *path*.

    Returns:
        Process exit code.
    """
    from pydantic import ValidationError  # noqa: PLC0415

    from ad_targeting.config.settings import get_settings  # noqa: PLC0415
    from ad_targeting.core.database import build_engine, build_session_factory  # noqa: PLC0415
    from ad_targeting.core.exceptions import AdTargetingError  # noqa: PLC0415
    from ad_targeting.core.logging_config import configure_logging  # noqa: PLC0415
    from ad_targeting.core.schemas.advertisement import AdvertisementCreate  # noqa: PLC0415
    from ad_targeting.storage.graph_writer import GraphWriter  # noqa: PLC0415
    from ad_targeting.targeting.encoder import decode_platforms, encode_platforms  # noqa: PLC0415

    settings = get_settings()
    configure_logging(settings.log_level)

    try:
        payloads = _load_payloads(path)
    except (OSError, json.JSONDecodeError) as exc:
        print(f"[seed_advertisements] Cannot read {path}: {exc}", file=sys.stderr)
        return 1

    try:
        advertisements = [AdvertisementCreate.model_validate(p) for p in payloads]
    except ValidationError as exc:
        print(f"[seed_advertisements] Invalid entry in {path}:\n{exc}", file=sys.stderr)
        return 1

    if dry_run:
        for advertisement in advertisements:
            print(f"[seed_advertisements] Would store {advertisement.title!r}")
        return 0

    engine = build_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
    )
    writer = GraphWriter(
        build_session_factory(engine),
        timeout=settings.db_operation_timeout_seconds,
    )
    try:
        for advertisement in advertisements:
            ad_id = await writer.create(advertisement)
            platforms = [
                ",".join(p.value for p in decode_platforms(encode_platforms(c.platform)))
                for c in advertisement.conditions
            ]
            print(
                f"[seed_advertisements] Stored {advertisement.title!r} as id={ad_id} "
                f"(conditions={len(advertisement.conditions)}, platforms={platforms})"
            )
    except AdTargetingError as exc:
        print(f"[seed_advertisements] Write failed: {exc}", file=sys.stderr)
        return 1
    finally:
        await engine.dispose()

    print(f"[seed_advertisements] Done. {len(advertisements)} advertisement(s) stored.")
    return 0


def main() -> None:
    """Entry point for the seed script."""
    parser = argparse.ArgumentParser(
        description="Store advertisements from a JSON file of API payloads."
    )
    parser.add_argument("path", type=Path, help="JSON file with one payload or a list of them")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate the file without writing to the database.",
    )
    args = parser.parse_args()

    sys.exit(asyncio.run(_seed(args.path, args.dry_run)))


if __name__ == "__main__":
    main()
