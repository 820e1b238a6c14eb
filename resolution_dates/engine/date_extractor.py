from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, List, Optional

from resolution_dates.engine.dedup import dedupe_by_confidence, merge_by_time_preference
from resolution_dates.engine.patterns import scan_patterns
from resolution_dates.models import SOURCE_FIELDS, DateCandidate
from resolution_dates.utils.dates import as_utc

logger = logging.getLogger(__name__)


def extract_from_text(text: Any, source_field: str, now: datetime) -> List[DateCandidate]:
    """Extract date candidates from one text, at most one per calendar day.

    ``now`` anchors year inference for dates written without a year. Empty
    input yields an empty list; unparseable fragments are skipped.
    """
    if not text:
        return []
    if not isinstance(text, str):
        text = str(text)

    raw = scan_patterns(text, as_utc(now))
    return [c.model_copy(update={"source_field": source_field}) for c in dedupe_by_confidence(raw)]


def extract_event_dates(
    title: Optional[str] = None,
    description: Optional[str] = None,
    slug: Optional[str] = None,
    *,
    now: datetime,
) -> List[DateCandidate]:
    collected: List[DateCandidate] = []
    for source_field, text in zip(SOURCE_FIELDS, (title, description, slug)):
        collected.extend(extract_from_text(text, source_field, now))

    merged = merge_by_time_preference(collected)
    logger.debug(
        "Extracted event date candidates",
        extra={"raw_count": len(collected), "merged_count": len(merged)},
    )
    return merged
