from __future__ import annotations

import logging
from typing import Any, Dict, List

from resolution_dates.clients.http_client import HttpClient
from resolution_dates.connectors.base import EventConnector
from resolution_dates.models import MarketEvent
from resolution_dates.utils.dates import parse_dt_or_none

logger = logging.getLogger(__name__)


class PolymarketEventConnector(EventConnector):
    source_name = "polymarket"

    def __init__(self, gamma_base_url: str, limit: int = 1000, timeout: int = 15):
        self.gamma_base_url = gamma_base_url.rstrip("/")
        self.limit = max(1, int(limit))
        self.http = HttpClient(timeout=timeout)

    def fetch_events(self) -> List[MarketEvent]:
        page_size = min(500, self.limit)
        offset = 0
        events: List[MarketEvent] = []
        seen_ids: set[str] = set()

        while len(events) < self.limit:
            remaining = self.limit - len(events)
            params: Dict[str, Any] = {
                "order": "id",
                "ascending": "true",
                "limit": min(page_size, remaining),
                "offset": offset,
            }
            payload = self.http.get_json(f"{self.gamma_base_url}/events", params=params)
            rows = _extract_event_rows(payload)
            if not rows:
                break

            added = 0
            for row in rows:
                try:
                    event = _to_market_event(row, self.source_name)
                except Exception as exc:
                    logger.debug("Failed to parse Polymarket event", extra={"error": str(exc)})
                    continue
                if event is None or event.event_id in seen_ids:
                    continue
                seen_ids.add(event.event_id)
                events.append(event)
                added += 1
                if len(events) >= self.limit:
                    break

            if len(rows) < params["limit"]:
                break
            if added == 0:
                # Protect against infinite loops if API keeps returning duplicate pages.
                break
            offset += len(rows)

        logger.info("Fetched Polymarket events", extra={"count": len(events)})
        return events


def _to_market_event(row: Dict[str, Any], platform: str) -> MarketEvent | None:
    event_id = _to_clean_str(row.get("id"))
    if not event_id:
        return None
    return MarketEvent(
        platform=platform,
        event_id=event_id,
        title=_to_clean_str(row.get("title")),
        description=_to_clean_str(row.get("description")),
        slug=_to_clean_str(row.get("slug")),
        created_at=parse_dt_or_none(row.get("createdAt")),
        raw={
            "endDate": row.get("endDate"),
            "category": row.get("category"),
            "active": row.get("active"),
            "closed": row.get("closed"),
        },
    )


def _extract_event_rows(payload: Any) -> List[Dict[str, Any]]:
    if isinstance(payload, list):
        return [x for x in payload if isinstance(x, dict)]
    if not isinstance(payload, dict):
        return []

    direct = payload.get("events")
    if isinstance(direct, list):
        return [x for x in direct if isinstance(x, dict)]

    for key in ("data", "items", "results"):
        value = payload.get(key)
        if isinstance(value, list):
            return [x for x in value if isinstance(x, dict)]
    return []


def _to_clean_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()
