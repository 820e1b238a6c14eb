from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

SOURCE_FIELDS = ("title", "description", "slug")
FALLBACK_SOURCE = "market_close_time"


class DateCandidate(BaseModel):
    model_config = ConfigDict(frozen=True)

    point_in_time_utc: datetime
    confidence: float = Field(ge=0.0, le=1.0)
    matched_text: str
    pattern_kind: str
    source_field: Optional[str] = None
    timezone_abbrev: Optional[str] = None
    time_range_text: Optional[str] = None

    def day_key(self) -> Tuple[int, int, int]:
        dt = self.point_in_time_utc
        return (dt.year, dt.month, dt.day)


class EventDateResolution(BaseModel):
    candidates: List[DateCandidate] = Field(default_factory=list)
    best: Optional[DateCandidate] = None
    used_fallback: bool = False


class MarketEvent(BaseModel):
    platform: str
    event_id: str
    title: str = ""
    description: str = ""
    slug: str = ""
    close_times: List[datetime] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    raw: Dict[str, Any] = Field(default_factory=dict)


class EventDateRecord(BaseModel):
    event_id: str
    event_time_utc: datetime
    confidence: float = Field(ge=0.0, le=1.0)
    extracted_text: str
    pattern_type: str
    timezone_abbr: Optional[str] = None
    time_range: Optional[str] = None
    updated_at: datetime

    @classmethod
    def from_candidate(cls, event_id: str, candidate: DateCandidate, updated_at: datetime) -> "EventDateRecord":
        return cls(
            event_id=event_id,
            event_time_utc=candidate.point_in_time_utc,
            confidence=candidate.confidence,
            extracted_text=candidate.matched_text,
            pattern_type=candidate.pattern_kind,
            timezone_abbr=candidate.timezone_abbrev,
            time_range=candidate.time_range_text,
            updated_at=updated_at,
        )


class ProcessingResult(BaseModel):
    processed: int = 0
    dates_found: int = 0
    events_updated: int = 0
    errors: int = 0


class SampleDate(BaseModel):
    event_id: str
    event_time_utc: datetime
    confidence: float


class ProcessingStats(BaseModel):
    total_dates: int = 0
    total_events: int = 0
    coverage_percent: float = 0.0
    confidence_distribution: Dict[str, int] = Field(default_factory=dict)
    sample_dates: List[SampleDate] = Field(default_factory=list)
