from __future__ import annotations

from typing import List, Optional

from resolution_dates.engine.selection import DEFAULT_FALLBACK_CONFIDENCE, resolve_event_date
from resolution_dates.models import DateCandidate, EventDateResolution, MarketEvent
from resolution_dates.processors.base import BaseProcessor, Clock
from resolution_dates.storage.mongo import MongoStore


class KalshiProcessor(BaseProcessor):
    """Kalshi titles are often terse, so a weak or missing text date falls back
    to the latest close time among the event's markets."""

    platform = "kalshi"
    sample_pattern = "october|2025"

    def __init__(
        self,
        store: MongoStore,
        acceptance_threshold: float = 0.6,
        storage_threshold: float = 0.5,
        fallback_confidence: float = DEFAULT_FALLBACK_CONFIDENCE,
        clock: Optional[Clock] = None,
    ):
        super().__init__(store, clock=clock)
        self.acceptance_threshold = acceptance_threshold
        self.storage_threshold = storage_threshold
        self.fallback_confidence = fallback_confidence

    def resolve(self, event: MarketEvent, candidates: List[DateCandidate]) -> EventDateResolution:
        fallback_time = max(event.close_times) if event.close_times else None
        return resolve_event_date(
            candidates,
            acceptance_threshold=self.acceptance_threshold,
            fallback_time=fallback_time,
            fallback_confidence=self.fallback_confidence,
        )
