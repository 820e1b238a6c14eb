from __future__ import annotations

from typing import Dict, List, Set, Tuple

from resolution_dates.models import DateCandidate

DayKey = Tuple[int, int, int]


def dedupe_by_confidence(candidates: List[DateCandidate]) -> List[DateCandidate]:
    """Keep the most confident candidate per calendar day within one text.

    Output is ordered by confidence, highest first. Ties keep scan order.
    """
    ranked = sorted(candidates, key=lambda c: c.confidence, reverse=True)
    seen: Set[DayKey] = set()
    unique: List[DateCandidate] = []
    for candidate in ranked:
        key = candidate.day_key()
        if key in seen:
            continue
        seen.add(key)
        unique.append(candidate)
    return unique


def merge_by_time_preference(candidates: List[DateCandidate]) -> List[DateCandidate]:
    """Merge candidates gathered across an event's fields, one per calendar day.

    A candidate that states a time of day always beats one that does not,
    whatever their confidences. Otherwise the strictly more confident one wins.
    Days keep the order in which they were first seen.
    """
    by_day: Dict[DayKey, DateCandidate] = {}
    for candidate in candidates:
        key = candidate.day_key()
        existing = by_day.get(key)
        if existing is None:
            by_day[key] = candidate
            continue

        has_time = bool(candidate.time_range_text)
        existing_has_time = bool(existing.time_range_text)
        if has_time and not existing_has_time:
            by_day[key] = candidate
        elif existing_has_time and not has_time:
            continue
        elif candidate.confidence > existing.confidence:
            by_day[key] = candidate
    return list(by_day.values())
