from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from resolution_dates.config import Settings, get_settings
from resolution_dates.connectors.base import EventConnector
from resolution_dates.connectors.kalshi import KalshiEventConnector
from resolution_dates.connectors.polymarket import PolymarketEventConnector
from resolution_dates.processors.base import BaseProcessor
from resolution_dates.processors.kalshi import KalshiProcessor
from resolution_dates.processors.polymarket import PolymarketProcessor
from resolution_dates.storage.mongo import PLATFORMS, MongoStore
from resolution_dates.utils.logging import configure_logging

logger = logging.getLogger(__name__)

MODES = ("sync", "test", "batch", "full")


def build_processor(platform: str, store: MongoStore, settings: Settings) -> BaseProcessor:
    if platform == "polymarket":
        return PolymarketProcessor(store, min_confidence=settings.polymarket_min_confidence)
    if platform == "kalshi":
        return KalshiProcessor(
            store,
            acceptance_threshold=settings.kalshi_acceptance_confidence,
            storage_threshold=settings.kalshi_storage_confidence,
            fallback_confidence=settings.fallback_confidence,
        )
    raise ValueError(f"Invalid platform: {platform}. Available platforms: {', '.join(PLATFORMS)}")


def build_connector(platform: str, settings: Settings, limit: int) -> EventConnector:
    if platform == "polymarket":
        return PolymarketEventConnector(
            gamma_base_url=settings.polymarket_gamma_base_url,
            limit=limit,
            timeout=settings.http_timeout_seconds,
        )
    if platform == "kalshi":
        return KalshiEventConnector(
            base_url=settings.kalshi_base_url,
            limit=limit,
            timeout=settings.http_timeout_seconds,
        )
    raise ValueError(f"Invalid platform: {platform}. Available platforms: {', '.join(PLATFORMS)}")


def run(platform: str, mode: str, offset: int, limit: int, settings: Settings, store: MongoStore) -> None:
    if mode == "sync":
        events = build_connector(platform, settings, limit).fetch_events()
        saved = store.save_events(platform, events)
        logger.info("Synced %s events (platform=%s)", saved, platform)
        return

    processor = build_processor(platform, store, settings)
    processor.log_date_stats("Stats before processing", processor.get_date_extraction_stats())

    if mode == "test":
        processor.process_test_mode()
    elif mode == "batch":
        logger.info("Processing batch of %s events starting at offset %s", limit, offset)
        result = processor.process_events_for_dates(offset, limit)
        logger.info(
            "Batch results (processed=%s dates_found=%s events_updated=%s errors=%s)",
            result.processed,
            result.dates_found,
            result.events_updated,
            result.errors,
        )
    elif mode == "full":
        processor.process_full_mode(limit)
    else:
        raise ValueError(f"Invalid mode: {mode}. Available modes: {', '.join(MODES)}")

    processor.log_date_stats("Stats after processing", processor.get_date_extraction_stats())


def main(argv: Optional[List[str]] = None) -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Extract resolution dates from prediction market events")
    parser.add_argument("--platform", choices=PLATFORMS, default=settings.platform, help="Platform to process")
    parser.add_argument("--mode", choices=MODES, default="batch", help="sync, test, batch or full")
    parser.add_argument("--offset", type=int, default=0, help="Event offset for batch mode")
    parser.add_argument("--limit", type=int, default=None, help="Batch size, or event count for sync")
    args = parser.parse_args(argv)

    configure_logging(settings.log_level)
    logger.info("Date extractor starting for platform: %s", args.platform)

    try:
        store = MongoStore(settings.mongodb_uri, settings.mongodb_db)
        limit = args.limit or (settings.sync_limit if args.mode == "sync" else settings.batch_size)
        run(args.platform, args.mode, args.offset, limit, settings, store)
    except Exception:
        logger.exception("%s date extraction failed", args.platform)
        sys.exit(1)

    logger.info("%s date extraction completed successfully", args.platform)


if __name__ == "__main__":
    main()
