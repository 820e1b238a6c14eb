from __future__ import annotations

from typing import List

from resolution_dates.models import MarketEvent


class EventConnector:
    source_name: str = "unknown"

    def fetch_events(self) -> List[MarketEvent]:
        raise NotImplementedError
