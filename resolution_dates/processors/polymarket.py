from __future__ import annotations

from typing import Optional

from resolution_dates.processors.base import BaseProcessor, Clock
from resolution_dates.storage.mongo import MongoStore


class PolymarketProcessor(BaseProcessor):
    """Text-only policy: the best candidate is stored when it clears the
    minimum confidence, otherwise the event is left without a date."""

    platform = "polymarket"
    sample_pattern = "october|2025"

    def __init__(self, store: MongoStore, min_confidence: float = 0.6, clock: Optional[Clock] = None):
        super().__init__(store, clock=clock)
        self.storage_threshold = min_confidence
