from __future__ import annotations

import unittest
from datetime import datetime, timezone

from resolution_dates.models import EventDateRecord, MarketEvent, SampleDate
from resolution_dates.processors.kalshi import KalshiProcessor
from resolution_dates.processors.polymarket import PolymarketProcessor

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)
CLOSE_EARLY = datetime(2025, 11, 1, 15, 0, tzinfo=timezone.utc)
CLOSE_LATE = datetime(2025, 11, 30, 17, 0, tzinfo=timezone.utc)


class FakeStore:
    def __init__(self, events=None, fail_on_load: bool = False) -> None:
        self.events = list(events or [])
        self.fail_on_load = fail_on_load
        self.records: dict[str, EventDateRecord] = {}
        self.get_events_calls = []
        self.distribution = {"high": 2, "medium": 1}
        self.samples = [SampleDate(event_id="p1", event_time_utc=CLOSE_LATE, confidence=0.95)]

    def get_events(self, platform: str, offset: int = 0, limit: int = 1000):
        self.get_events_calls.append((platform, offset, limit))
        if self.fail_on_load:
            raise RuntimeError("mongo unavailable")
        return self.events[offset : offset + limit]

    def get_sample_events(self, platform: str, pattern: str, limit: int = 10):
        return self.events[:limit]

    def upsert_event_date(self, platform: str, record: EventDateRecord) -> None:
        self.records[record.event_id] = record

    def count_events(self, platform: str) -> int:
        if self.fail_on_load:
            raise RuntimeError("mongo unavailable")
        return len(self.events)

    def count_event_dates(self, platform: str) -> int:
        if self.fail_on_load:
            raise RuntimeError("mongo unavailable")
        return len(self.records)

    def confidence_distribution(self, platform: str):
        return dict(self.distribution)

    def sample_event_dates(self, platform: str, limit: int = 10):
        return list(self.samples[:limit])


def _event(platform: str, event_id: str, title: str = "", description: str = "", slug: str = "", close_times=None):
    return MarketEvent(
        platform=platform,
        event_id=event_id,
        title=title,
        description=description,
        slug=slug,
        close_times=list(close_times or []),
    )


class PolymarketProcessorTests(unittest.TestCase):
    def _store(self) -> FakeStore:
        return FakeStore(
            [
                _event("polymarket", "p1", title="Will the Fed cut rates on September 17, 2025?"),
                _event("polymarket", "p2", title="Will it rain?"),
                _event("polymarket", "p3", description="Resolves 25/12/2025"),
            ]
        )

    def test_stores_candidates_meeting_min_confidence(self) -> None:
        store = self._store()
        processor = PolymarketProcessor(store, clock=lambda: NOW)

        result = processor.process_events_for_dates(0, 10)

        self.assertEqual((result.processed, result.dates_found, result.events_updated, result.errors), (3, 2, 2, 0))
        self.assertEqual(set(store.records), {"p1", "p3"})

        record = store.records["p1"]
        self.assertEqual(record.event_time_utc, datetime(2025, 9, 17, tzinfo=timezone.utc))
        self.assertEqual(record.confidence, 0.9)
        self.assertEqual(record.extracted_text, "September 17, 2025")
        self.assertEqual(record.pattern_type, "month_day_year")
        self.assertIsNone(record.timezone_abbr)
        self.assertIsNone(record.time_range)
        self.assertEqual(record.updated_at, NOW)

    def test_close_times_are_never_used(self) -> None:
        store = FakeStore([_event("polymarket", "p9", title="Will it rain?", close_times=[CLOSE_LATE])])

        result = PolymarketProcessor(store, clock=lambda: NOW).process_events_for_dates(0, 10)

        self.assertEqual(result.events_updated, 0)
        self.assertEqual(result.dates_found, 0)
        self.assertEqual(store.records, {})

    def test_higher_min_confidence_skips_weak_dates(self) -> None:
        store = self._store()

        result = PolymarketProcessor(store, min_confidence=0.8, clock=lambda: NOW).process_events_for_dates(0, 10)

        self.assertEqual(result.dates_found, 2)
        self.assertEqual(set(store.records), {"p1"})

    def test_load_failure_counts_whole_batch_as_errors(self) -> None:
        store = FakeStore(fail_on_load=True)

        result = PolymarketProcessor(store, clock=lambda: NOW).process_events_for_dates(20, 50)

        self.assertEqual(result.errors, 50)
        self.assertEqual(result.processed, 0)

    def test_empty_batch(self) -> None:
        result = PolymarketProcessor(FakeStore(), clock=lambda: NOW).process_events_for_dates(0, 10)

        self.assertEqual((result.processed, result.dates_found, result.events_updated, result.errors), (0, 0, 0, 0))

    def test_event_failure_does_not_stop_batch(self) -> None:
        class FlakyProcessor(PolymarketProcessor):
            def resolve(self, event, candidates):
                if event.event_id == "p1":
                    raise RuntimeError("boom")
                return super().resolve(event, candidates)

        store = self._store()

        result = FlakyProcessor(store, clock=lambda: NOW).process_events_for_dates(0, 10)

        self.assertEqual(result.errors, 1)
        self.assertEqual(result.processed, 2)
        self.assertEqual(set(store.records), {"p3"})

    def test_full_mode_walks_all_batches(self) -> None:
        events = [_event("polymarket", f"p{i}", slug=f"event-2025-10-{i + 10}") for i in range(5)]
        store = FakeStore(events)

        totals = PolymarketProcessor(store, clock=lambda: NOW).process_full_mode(batch_size=2)

        self.assertEqual(
            store.get_events_calls,
            [("polymarket", 0, 2), ("polymarket", 2, 2), ("polymarket", 4, 1)],
        )
        self.assertEqual((totals.processed, totals.dates_found, totals.events_updated), (5, 5, 5))

    def test_stats(self) -> None:
        store = FakeStore([_event("polymarket", f"p{i}") for i in range(4)])
        store.records = {"a": None, "b": None, "c": None}

        stats = PolymarketProcessor(store).get_date_extraction_stats()

        self.assertEqual(stats.total_dates, 3)
        self.assertEqual(stats.total_events, 4)
        self.assertEqual(stats.coverage_percent, 75.0)
        self.assertEqual(stats.confidence_distribution, {"high": 2, "medium": 1})
        self.assertEqual([s.event_id for s in stats.sample_dates], ["p1"])

    def test_stats_without_events(self) -> None:
        stats = PolymarketProcessor(FakeStore()).get_date_extraction_stats()

        self.assertEqual(stats.coverage_percent, 0.0)

    def test_stats_failure_returns_empty_stats(self) -> None:
        stats = PolymarketProcessor(FakeStore(fail_on_load=True)).get_date_extraction_stats()

        self.assertEqual((stats.total_dates, stats.total_events, stats.coverage_percent), (0, 0, 0.0))
        self.assertEqual(stats.sample_dates, [])

    def test_test_mode_logs_candidates(self) -> None:
        processor = PolymarketProcessor(self._store(), clock=lambda: NOW)

        with self.assertLogs("resolution_dates.processors.base", level="INFO") as logs:
            processor.process_test_mode()

        output = "\n".join(logs.output)
        self.assertIn("Found 1 date matches:", output)
        self.assertIn("No dates found", output)


class KalshiProcessorTests(unittest.TestCase):
    def test_falls_back_to_latest_close_time(self) -> None:
        store = FakeStore(
            [_event("kalshi", "KXRAIN-A", title="Rain in Seattle?", slug="KXRAIN-A", close_times=[CLOSE_LATE, CLOSE_EARLY])]
        )

        result = KalshiProcessor(store, clock=lambda: NOW).process_events_for_dates(0, 10)

        self.assertEqual((result.processed, result.dates_found, result.events_updated), (1, 1, 1))
        record = store.records["KXRAIN-A"]
        self.assertEqual(record.event_time_utc, CLOSE_LATE)
        self.assertEqual(record.confidence, 0.5)
        self.assertEqual(record.extracted_text, "fallback_market_close_time")
        self.assertEqual(record.pattern_type, "market_fallback")

    def test_accepted_text_date_beats_close_time(self) -> None:
        store = FakeStore(
            [_event("kalshi", "KXWIN-B", title="Winner on 25/12/2025", close_times=[CLOSE_LATE])]
        )

        result = KalshiProcessor(store, clock=lambda: NOW).process_events_for_dates(0, 10)

        self.assertEqual(result.dates_found, 1)
        record = store.records["KXWIN-B"]
        self.assertEqual(record.event_time_utc, datetime(2025, 12, 25, tzinfo=timezone.utc))
        self.assertEqual(record.pattern_type, "slash_date_dmy")

    def test_weak_text_date_is_replaced_by_fallback(self) -> None:
        store = FakeStore(
            [_event("kalshi", "KXWIN-B", title="Winner on 25/12/2025", close_times=[CLOSE_LATE])]
        )

        result = KalshiProcessor(store, acceptance_threshold=0.7, clock=lambda: NOW).process_events_for_dates(0, 10)

        # The text candidate still counts, the fallback does not add to it.
        self.assertEqual(result.dates_found, 1)
        self.assertEqual(store.records["KXWIN-B"].event_time_utc, CLOSE_LATE)
        self.assertEqual(store.records["KXWIN-B"].pattern_type, "market_fallback")

    def test_no_text_and_no_close_times(self) -> None:
        store = FakeStore([_event("kalshi", "KXNONE-C", title="Anything?")])

        result = KalshiProcessor(store, clock=lambda: NOW).process_events_for_dates(0, 10)

        self.assertEqual((result.processed, result.dates_found, result.events_updated), (1, 0, 0))
        self.assertEqual(store.records, {})

    def test_storage_threshold_above_fallback_confidence(self) -> None:
        store = FakeStore([_event("kalshi", "KXRAIN-A", title="Rain?", close_times=[CLOSE_LATE])])

        result = KalshiProcessor(store, storage_threshold=0.6, clock=lambda: NOW).process_events_for_dates(0, 10)

        self.assertEqual(result.dates_found, 1)
        self.assertEqual(result.events_updated, 0)


if __name__ == "__main__":
    unittest.main()
