"""
Run one product collection batch from CLI.
"""

from __future__ import annotations

import argparse
import json
import os
from dataclasses import replace
from pathlib import Path

from collector.scraping.config import get_collector_settings
from collector.scraping.errors import InvalidBatchError
from collector.scraping.logging_utils import configure_logging
from collector.services.collection_service import CollectionService
from db.session import init_db


def _read_locator_file(path: str) -> list[str]:
    lines = Path(path).read_text(encoding="utf-8").splitlines()
    return [line.strip() for line in lines if line.strip() and not line.strip().startswith("#")]


def main() -> int:
    parser = argparse.ArgumentParser(description="Collect product pages into the product store.")
    parser.add_argument("locators", nargs="*", help="Product page URLs to collect.")
    parser.add_argument(
        "--file",
        dest="file",
        default=None,
        help="Text file with one product page URL per line.",
    )
    parser.add_argument(
        "--delay",
        dest="delay",
        type=float,
        default=None,
        help="Seconds to wait between jobs (overrides COLLECTOR_JOB_DELAY_SECONDS).",
    )
    parser.add_argument(
        "--workers",
        dest="workers",
        type=int,
        default=None,
        help="Number of concurrent jobs (overrides COLLECTOR_WORKERS).",
    )
    args = parser.parse_args()

    configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    locators = list(args.locators)
    if args.file:
        locators.extend(_read_locator_file(args.file))
    if not locators:
        parser.error("provide at least one locator or --file")

    settings = get_collector_settings()
    if args.workers is not None:
        settings = replace(settings, workers=max(1, args.workers))

    init_db()
    service = CollectionService(settings=settings)
    try:
        summary = service.collect(locators, delay_seconds=args.delay)
    except InvalidBatchError as exc:
        parser.error(str(exc))

    payload = {
        "run_id": summary.run_id,
        "total": summary.total,
        "succeeded": summary.succeeded,
        "failed": summary.failed,
        "skipped": summary.skipped,
        "cancelled": summary.cancelled,
        "errors": [{"locator": item.locator, "error": item.error} for item in summary.errors],
    }
    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
