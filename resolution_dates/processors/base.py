from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from resolution_dates.engine.date_extractor import extract_event_dates
from resolution_dates.engine.selection import resolve_event_date
from resolution_dates.models import (
    DateCandidate,
    EventDateRecord,
    EventDateResolution,
    MarketEvent,
    ProcessingResult,
    ProcessingStats,
)
from resolution_dates.storage.mongo import MongoStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BaseProcessor:
    """Runs date extraction over a platform's stored events and persists the
    selected resolution date per event.

    Subclasses decide how the best date is chosen and which confidence is
    required before a date is stored.
    """

    platform: str = "unknown"
    storage_threshold: float = 0.5
    sample_pattern: str = "2025"

    def __init__(self, store: MongoStore, clock: Optional[Clock] = None):
        self.store = store
        self.clock = clock or _utc_now

    def resolve(self, event: MarketEvent, candidates: List[DateCandidate]) -> EventDateResolution:
        return resolve_event_date(candidates)

    def process_events_for_dates(self, offset: int = 0, limit: int = 1000) -> ProcessingResult:
        result = ProcessingResult()
        try:
            events = self.store.get_events(self.platform, offset=offset, limit=limit)
        except Exception:
            logger.exception("Batch processing failed (platform=%s offset=%s)", self.platform, offset)
            result.errors = limit
            return result

        if not events:
            return result

        logger.info("Processing batch: %s %s events (offset %s)", len(events), self.platform, offset)
        now = self.clock()
        for event in events:
            try:
                self._process_event(event, now, result)
            except Exception:
                logger.exception("Error processing event %s", event.event_id)
                result.errors += 1

        logger.info("Batch completed: %s events updated", result.events_updated)
        return result

    def _process_event(self, event: MarketEvent, now: datetime, result: ProcessingResult) -> None:
        candidates = extract_event_dates(event.title, event.description, event.slug, now=now)
        resolution = self.resolve(event, candidates)

        result.dates_found += len(candidates)
        if resolution.used_fallback and not candidates:
            result.dates_found += 1

        best = resolution.best
        if best is not None and best.confidence >= self.storage_threshold:
            if self._upsert_event_date(event.event_id, best, now):
                result.events_updated += 1
                logger.info(
                    "Event %s: %s (confidence: %.2f) [%s]",
                    event.event_id,
                    best.point_in_time_utc.date().isoformat(),
                    best.confidence,
                    best.source_field,
                )
        result.processed += 1

    def _upsert_event_date(self, event_id: str, candidate: DateCandidate, now: datetime) -> bool:
        record = EventDateRecord.from_candidate(event_id, candidate, updated_at=now)
        try:
            self.store.upsert_event_date(self.platform, record)
        except Exception:
            logger.exception("Failed to upsert event date %s", event_id)
            return False
        return True

    def get_date_extraction_stats(self) -> ProcessingStats:
        try:
            total_dates = self.store.count_event_dates(self.platform)
            total_events = self.store.count_events(self.platform)
            coverage = round(total_dates / total_events * 100, 2) if total_events > 0 else 0.0
            return ProcessingStats(
                total_dates=total_dates,
                total_events=total_events,
                coverage_percent=coverage,
                confidence_distribution=self.store.confidence_distribution(self.platform),
                sample_dates=self.store.sample_event_dates(self.platform, limit=10),
            )
        except Exception:
            logger.exception("Failed to get %s date extraction stats", self.platform)
            return ProcessingStats()

    def log_date_stats(self, label: str, stats: ProcessingStats) -> None:
        logger.info("%s:", label)
        logger.info("  Event dates extracted: %s", stats.total_dates)
        logger.info(
            "  Events with dates: %s/%s (%s%%)",
            stats.total_dates,
            stats.total_events,
            stats.coverage_percent,
        )
        if stats.confidence_distribution:
            logger.info("  Confidence distribution:")
            for level, count in stats.confidence_distribution.items():
                logger.info("    %s: %s dates", level, count)
        if stats.sample_dates:
            logger.info("  Sample extracted dates:")
            for sample in stats.sample_dates[:5]:
                logger.info(
                    "    %s: %s (confidence: %.2f)",
                    sample.event_id,
                    sample.event_time_utc.isoformat(),
                    sample.confidence,
                )

    def process_test_mode(self) -> None:
        logger.info("Testing date extraction on sample %s events", self.platform)
        try:
            events = self.store.get_sample_events(self.platform, self.sample_pattern, limit=10)
        except Exception:
            logger.exception("Error in test mode")
            return

        now = self.clock()
        for i, event in enumerate(events, start=1):
            logger.info("--- Event %s: %s ---", i, event.event_id)
            logger.info("Title: %s", event.title)
            logger.info("Description: %s", (event.description or "N/A")[:180])
            logger.info("Slug: %s", event.slug or "N/A")

            candidates = extract_event_dates(event.title, event.description, event.slug, now=now)
            if not candidates:
                logger.info("  No dates found")
                continue

            logger.info("Found %s date matches:", len(candidates))
            for candidate in sorted(candidates, key=lambda c: c.confidence, reverse=True):
                logger.info(
                    "  %s: %r | confidence %.2f | source %s | pattern %s | time %s | tz %s",
                    candidate.point_in_time_utc.date().isoformat(),
                    candidate.matched_text,
                    candidate.confidence,
                    candidate.source_field,
                    candidate.pattern_kind,
                    candidate.time_range_text or "-",
                    candidate.timezone_abbrev or "-",
                )

    def process_full_mode(self, batch_size: int) -> ProcessingResult:
        batch_size = max(1, int(batch_size))
        logger.info("Processing ALL %s events in batches of %s", self.platform, batch_size)

        total_events = self.store.count_events(self.platform)
        totals = ProcessingResult()
        offset = 0
        batch_num = 1
        while offset < total_events:
            current = min(batch_size, total_events - offset)
            logger.info("--- Batch %s (%s-%s of %s) ---", batch_num, offset + 1, offset + current, total_events)

            batch = self.process_events_for_dates(offset, current)
            totals.processed += batch.processed
            totals.dates_found += batch.dates_found
            totals.events_updated += batch.events_updated
            totals.errors += batch.errors
            logger.info(
                "Progress: %s/%s events (%.1f%%)",
                totals.processed,
                total_events,
                totals.processed / total_events * 100,
            )

            offset += current
            batch_num += 1

        logger.info(
            "Full %s processing completed (processed=%s dates_found=%s updated=%s errors=%s)",
            self.platform,
            totals.processed,
            totals.dates_found,
            totals.events_updated,
            totals.errors,
        )
        return totals
