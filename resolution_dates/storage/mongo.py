from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List

from pymongo import ASCENDING, DESCENDING, MongoClient, UpdateOne
from pymongo.collection import Collection

from resolution_dates.models import EventDateRecord, MarketEvent, SampleDate
from resolution_dates.utils.dates import as_utc

logger = logging.getLogger(__name__)

PLATFORMS = ("polymarket", "kalshi")


class MongoStore:
    def __init__(self, uri: str, db_name: str):
        # Ensure datetimes read from Mongo are timezone-aware (UTC).
        self.client = MongoClient(uri, tz_aware=True)
        self.db = self.client[db_name]
        self._ensure_indexes()

    def events_col(self, platform: str) -> Collection:
        return self.db[f"{_checked(platform)}_events"]

    def event_dates_col(self, platform: str) -> Collection:
        return self.db[f"{_checked(platform)}_event_dates"]

    def _ensure_indexes(self) -> None:
        for platform in PLATFORMS:
            self.events_col(platform).create_index([("event_id", ASCENDING)], unique=True)
            self.events_col(platform).create_index("created_at")
            self.event_dates_col(platform).create_index([("event_id", ASCENDING)], unique=True)
            self.event_dates_col(platform).create_index(
                [("confidence", DESCENDING), ("updated_at", DESCENDING)]
            )

    def save_events(self, platform: str, events: Iterable[MarketEvent]) -> int:
        now = datetime.now(timezone.utc)
        operations = [
            UpdateOne(
                {"event_id": event.event_id},
                {"$set": {**event.model_dump(), "last_updated": now}},
                upsert=True,
            )
            for event in events
        ]
        if not operations:
            return 0
        self.events_col(platform).bulk_write(operations, ordered=False)
        return len(operations)

    def get_events(self, platform: str, offset: int = 0, limit: int = 1000) -> List[MarketEvent]:
        cursor = (
            self.events_col(platform)
            .find({}, {"_id": 0, "last_updated": 0})
            .sort("event_id", ASCENDING)
            .skip(max(0, offset))
            .limit(max(0, limit))
        )
        return _to_events(cursor)

    def get_sample_events(self, platform: str, pattern: str, limit: int = 10) -> List[MarketEvent]:
        regex = {"$regex": pattern, "$options": "i"}
        query = {"$or": [{"title": regex}, {"description": regex}, {"slug": regex}]}
        cursor = (
            self.events_col(platform)
            .find(query, {"_id": 0, "last_updated": 0})
            .sort("created_at", DESCENDING)
            .limit(limit)
        )
        return _to_events(cursor)

    def count_events(self, platform: str) -> int:
        return self.events_col(platform).count_documents({})

    def upsert_event_date(self, platform: str, record: EventDateRecord) -> None:
        # One row per event; the latest extraction replaces the previous one.
        self.event_dates_col(platform).update_one(
            {"event_id": record.event_id},
            {"$set": record.model_dump()},
            upsert=True,
        )

    def count_event_dates(self, platform: str) -> int:
        return self.event_dates_col(platform).count_documents({})

    def confidence_distribution(self, platform: str) -> Dict[str, int]:
        pipeline = [
            {
                "$group": {
                    "_id": {
                        "$switch": {
                            "branches": [
                                {"case": {"$gte": ["$confidence", 0.9]}, "then": "high"},
                                {"case": {"$gte": ["$confidence", 0.7]}, "then": "medium"},
                            ],
                            "default": "low",
                        }
                    },
                    "count": {"$sum": 1},
                }
            },
            {"$sort": {"_id": DESCENDING}},
        ]
        return {str(row["_id"]): int(row["count"]) for row in self.event_dates_col(platform).aggregate(pipeline)}

    def sample_event_dates(self, platform: str, limit: int = 10) -> List[SampleDate]:
        cursor = (
            self.event_dates_col(platform)
            .find({}, {"_id": 0, "event_id": 1, "event_time_utc": 1, "confidence": 1})
            .sort([("confidence", DESCENDING), ("updated_at", DESCENDING)])
            .limit(limit)
        )
        samples: List[SampleDate] = []
        for row in cursor:
            event_time = row.get("event_time_utc")
            if not isinstance(event_time, datetime):
                continue
            samples.append(
                SampleDate(
                    event_id=str(row.get("event_id")),
                    event_time_utc=as_utc(event_time),
                    confidence=float(row.get("confidence") or 0.0),
                )
            )
        return samples


def _to_events(cursor: Iterable[Dict]) -> List[MarketEvent]:
    events: List[MarketEvent] = []
    for doc in cursor:
        try:
            events.append(MarketEvent(**doc))
        except Exception as exc:
            logger.debug("Skipping malformed stored event", extra={"error": str(exc)})
            continue
    return events


def _checked(platform: str) -> str:
    if platform not in PLATFORMS:
        raise ValueError(f"Invalid platform: {platform}. Available platforms: {', '.join(PLATFORMS)}")
    return platform
