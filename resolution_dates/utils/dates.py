from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_dt_or_none(raw: Any) -> Optional[datetime]:
    if isinstance(raw, datetime):
        return as_utc(raw)
    if isinstance(raw, str) and raw:
        cleaned = raw.strip().replace("Z", "+00:00")
        try:
            return as_utc(datetime.fromisoformat(cleaned))
        except ValueError:
            return None
    return None
