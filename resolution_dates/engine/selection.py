from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from resolution_dates.models import FALLBACK_SOURCE, DateCandidate, EventDateResolution
from resolution_dates.utils.dates import as_utc

FALLBACK_PATTERN_KIND = "market_fallback"
FALLBACK_MATCHED_TEXT = "fallback_market_close_time"
DEFAULT_FALLBACK_CONFIDENCE = 0.5


def select_best(candidates: List[DateCandidate]) -> Optional[DateCandidate]:
    best: Optional[DateCandidate] = None
    for candidate in candidates:
        if best is None or candidate.confidence > best.confidence:
            best = candidate
    return best


def fallback_candidate(point: datetime, confidence: float = DEFAULT_FALLBACK_CONFIDENCE) -> DateCandidate:
    return DateCandidate(
        point_in_time_utc=as_utc(point),
        confidence=max(0.0, min(1.0, confidence)),
        matched_text=FALLBACK_MATCHED_TEXT,
        pattern_kind=FALLBACK_PATTERN_KIND,
        source_field=FALLBACK_SOURCE,
    )


def resolve_event_date(
    candidates: List[DateCandidate],
    acceptance_threshold: Optional[float] = None,
    fallback_time: Optional[datetime] = None,
    fallback_confidence: float = DEFAULT_FALLBACK_CONFIDENCE,
) -> EventDateResolution:
    """Pick the event's resolution date from its merged candidates.

    When ``fallback_time`` is given and no candidate reaches
    ``acceptance_threshold``, a fallback candidate built from it replaces the
    text-derived best.
    """
    ordered = sorted(candidates, key=lambda c: c.confidence, reverse=True)
    best = select_best(candidates)

    if acceptance_threshold is None:
        below_threshold = best is None
    else:
        below_threshold = needs_fallback(best, acceptance_threshold)
    if fallback_time is not None and below_threshold:
        return EventDateResolution(
            candidates=ordered,
            best=fallback_candidate(fallback_time, fallback_confidence),
            used_fallback=True,
        )
    return EventDateResolution(candidates=ordered, best=best, used_fallback=False)


def needs_fallback(best: Optional[DateCandidate], acceptance_threshold: float) -> bool:
    return best is None or best.confidence < acceptance_threshold
