from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from resolution_dates.clients.http_client import HttpClient
from resolution_dates.connectors.base import EventConnector
from resolution_dates.models import MarketEvent
from resolution_dates.utils.dates import parse_dt_or_none

logger = logging.getLogger(__name__)


class KalshiEventConnector(EventConnector):
    source_name = "kalshi"

    def __init__(self, base_url: str, limit: int = 1000, timeout: int = 15):
        self.base_url = base_url.rstrip("/")
        self.limit = max(1, int(limit))
        self.http = HttpClient(timeout=timeout)

    def fetch_events(self) -> List[MarketEvent]:
        events: List[MarketEvent] = []
        cursor: Optional[str] = None
        seen: set[str] = set()

        while len(events) < self.limit:
            params: Dict[str, Any] = {
                "with_nested_markets": "true",
                "limit": min(200, self.limit - len(events)),
            }
            if cursor:
                params["cursor"] = cursor

            payload = self.http.get_json(f"{self.base_url}/events", params=params)
            rows = payload.get("events") if isinstance(payload, dict) else None
            if not isinstance(rows, list) or not rows:
                break

            added = 0
            for row in rows:
                if not isinstance(row, dict):
                    continue
                try:
                    event = _to_market_event(row, self.source_name)
                except Exception as exc:
                    logger.debug("Failed to parse Kalshi event", extra={"error": str(exc)})
                    continue
                if event is None or event.event_id in seen:
                    continue
                seen.add(event.event_id)
                events.append(event)
                added += 1
                if len(events) >= self.limit:
                    break

            if added == 0:
                break
            cursor = payload.get("cursor") or None
            if not cursor:
                break

        logger.info("Fetched Kalshi events", extra={"count": len(events)})
        return events


def _to_market_event(row: Dict[str, Any], platform: str) -> MarketEvent | None:
    ticker = str(row.get("event_ticker") or "").strip()
    if not ticker:
        return None
    return MarketEvent(
        platform=platform,
        event_id=ticker,
        title=str(row.get("title") or "").strip(),
        description=str(row.get("sub_title") or "").strip(),
        slug=ticker,
        close_times=_market_close_times(row.get("markets")),
        raw={
            "series_ticker": row.get("series_ticker"),
            "category": row.get("category"),
            "mutually_exclusive": row.get("mutually_exclusive"),
        },
    )


def _market_close_times(markets: Any) -> List[datetime]:
    if not isinstance(markets, list):
        return []
    out: List[datetime] = []
    for market in markets:
        if not isinstance(market, dict):
            continue
        close_time = parse_dt_or_none(market.get("close_time"))
        if close_time is not None:
            out.append(close_time)
    return out
