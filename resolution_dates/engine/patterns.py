from __future__ import annotations

import calendar
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterator, List, Optional, Tuple

from resolution_dates.engine.time_tokens import parse_time_token
from resolution_dates.models import DateCandidate
from resolution_dates.utils.dates import as_utc

logger = logging.getLogger(__name__)

MONTHS = {
    "january": 1,
    "february": 2,
    "march": 3,
    "april": 4,
    "may": 5,
    "june": 6,
    "july": 7,
    "august": 8,
    "september": 9,
    "october": 10,
    "november": 11,
    "december": 12,
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "sept": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

TIMEZONE_ABBREVIATIONS = (
    "EST", "EDT", "PST", "PDT", "CST", "CDT", "MST", "MDT",
    "UTC", "GMT", "ET", "PT", "CT", "MT", "AT", "BT",
)

TIME_BONUS = 0.05
TIMEZONE_BONUS = 0.05
RANGE_BONUS = 0.05

_MONTH = r"(?P<month>" + "|".join(sorted(MONTHS, key=len, reverse=True)) + r")\.?"
_ORDINAL = r"(?:st|nd|rd|th)?"
_DAYS = rf"(?P<day>\d{{1,2}}){_ORDINAL}(?:\s*-\s*(?P<end_day>\d{{1,2}}){_ORDINAL})?"
_YEAR_SEPARATOR = r"(?:,\s*|\s+)"
_TIME = r"\d{1,2}(?::\d{2})?\s*[ap]m\b(?:\s*-\s*\d{1,2}(?::\d{2})?(?:\s*[ap]m\b)?)?"
# "AT" is matched upper-case only so the word "at" after a time is not read as a zone.
_TZ = r"(?:" + "|".join(a for a in TIMEZONE_ABBREVIATIONS if a != "AT") + r"|(?-i:AT))"
_TIME_SUFFIX = rf"(?:\s*(?:,\s*)?(?:at\s+)?(?P<time>{_TIME})(?:\s*(?P<tz>{_TZ})\b)?)?"

MONTH_DAY_YEAR_RE = re.compile(
    rf"\b{_MONTH}\s+{_DAYS}{_YEAR_SEPARATOR}(?P<year>\d{{4}})\b{_TIME_SUFFIX}",
    re.IGNORECASE,
)
ISO_DATE_RE = re.compile(r"\b(?P<year>\d{4})-(?P<month>\d{1,2})-(?P<day>\d{1,2})\b")
SLASH_DATE_RE = re.compile(r"\b(?P<first>\d{1,2})/(?P<second>\d{1,2})/(?P<year>\d{4})\b")
MONTH_DAY_INFERRED_RE = re.compile(
    # Refuse a bare "Month D" when a year or an unconsumed "-D2" follows it.
    rf"\b{_MONTH}\s+{_DAYS}\b(?!\s*-\s*\d)(?!{_YEAR_SEPARATOR}\d{{4}}\b){_TIME_SUFFIX}",
    re.IGNORECASE,
)
MONTH_YEAR_RE = re.compile(rf"\b{_MONTH}\s+(?P<year>\d{{4}})\b", re.IGNORECASE)
BEFORE_YEAR_RE = re.compile(r"\bbefore\s+(?P<year>\d{4})\b(?![-/]\d)", re.IGNORECASE)
IN_YEAR_RE = re.compile(r"\bin\s+(?P<year>\d{4})\b(?![-/]\d)", re.IGNORECASE)
BY_YEAR_RE = re.compile(r"\bby\s+(?P<year>\d{4})\b(?![-/]\d)", re.IGNORECASE)


@dataclass(frozen=True)
class _DateShape:
    kind: str
    base_confidence: float
    has_time: bool = False
    has_timezone: bool = False
    has_range: bool = False

    @property
    def pattern_kind(self) -> str:
        return f"{self.kind}_with_time" if self.has_time else self.kind

    @property
    def confidence(self) -> float:
        score = self.base_confidence
        if self.has_time:
            score += TIME_BONUS
        if self.has_timezone:
            score += TIMEZONE_BONUS
        if self.has_range:
            score += RANGE_BONUS
        return round(max(0.0, min(1.0, score)), 4)


def scan_patterns(text: str, now: datetime) -> List[DateCandidate]:
    """Run every matcher over ``text`` in order and return the raw candidates."""
    candidates: List[DateCandidate] = []
    for matcher in PATTERN_MATCHERS:
        candidates.extend(matcher(text, now))
    return candidates


def match_month_day_year(text: str, now: datetime) -> Iterator[DateCandidate]:
    for match in MONTH_DAY_YEAR_RE.finditer(text):
        try:
            month = _month_number(match.group("month"))
            if month is None:
                continue
            day, has_range = _resolved_day(match)
            time_text, tz, hour, minute = _clock(match)
            point = datetime(int(match.group("year")), month, day, hour, minute, tzinfo=timezone.utc)
            shape = _DateShape(
                kind="month_day_range" if has_range else "month_day_year",
                base_confidence=0.90,
                has_time=bool(time_text),
                has_timezone=bool(tz),
                has_range=has_range,
            )
            yield _build_candidate(point, shape, match, time_text, tz)
        except (ValueError, OverflowError) as exc:
            _log_skip(match, exc)


def match_iso_date(text: str, now: datetime) -> Iterator[DateCandidate]:
    for match in ISO_DATE_RE.finditer(text):
        try:
            point = datetime(
                int(match.group("year")),
                int(match.group("month")),
                int(match.group("day")),
                tzinfo=timezone.utc,
            )
            yield _build_candidate(point, _DateShape(kind="iso_date", base_confidence=0.95), match)
        except (ValueError, OverflowError) as exc:
            _log_skip(match, exc)


def match_slash_date(text: str, now: datetime) -> Iterator[DateCandidate]:
    for match in SLASH_DATE_RE.finditer(text):
        first = int(match.group("first"))
        second = int(match.group("second"))
        year = int(match.group("year"))
        # US markets: month first, day-first only when that reading is impossible.
        try:
            point = datetime(year, first, second, tzinfo=timezone.utc)
            shape = _DateShape(kind="slash_date_mdy", base_confidence=0.70)
        except ValueError:
            try:
                point = datetime(year, second, first, tzinfo=timezone.utc)
                shape = _DateShape(kind="slash_date_dmy", base_confidence=0.60)
            except ValueError as exc:
                _log_skip(match, exc)
                continue
        yield _build_candidate(point, shape, match)


def match_month_day_inferred_year(text: str, now: datetime) -> Iterator[DateCandidate]:
    now = as_utc(now)
    for match in MONTH_DAY_INFERRED_RE.finditer(text):
        try:
            month = _month_number(match.group("month"))
            if month is None:
                continue
            day, has_range = _resolved_day(match)
            time_text, tz, hour, minute = _clock(match)
            point = datetime(now.year, month, day, hour, minute, tzinfo=timezone.utc)
            if point < now:
                point = point.replace(year=now.year + 1)
            shape = _DateShape(
                kind="month_day_range_inferred_year" if has_range else "month_day_inferred_year",
                base_confidence=0.70,
                has_time=bool(time_text),
                has_timezone=bool(tz),
                has_range=has_range,
            )
            yield _build_candidate(point, shape, match, time_text, tz)
        except (ValueError, OverflowError) as exc:
            _log_skip(match, exc)


def match_month_year(text: str, now: datetime) -> Iterator[DateCandidate]:
    for match in MONTH_YEAR_RE.finditer(text):
        try:
            month = _month_number(match.group("month"))
            if month is None:
                continue
            point = _end_of_month(int(match.group("year")), month)
            yield _build_candidate(point, _DateShape(kind="month_year", base_confidence=0.85), match)
        except (ValueError, OverflowError) as exc:
            _log_skip(match, exc)


def match_before_year(text: str, now: datetime) -> Iterator[DateCandidate]:
    yield from _year_boundary(BEFORE_YEAR_RE, text, "before_year", year_offset=-1)


def match_in_year(text: str, now: datetime) -> Iterator[DateCandidate]:
    yield from _year_boundary(IN_YEAR_RE, text, "in_year", year_offset=0)


def match_by_year(text: str, now: datetime) -> Iterator[DateCandidate]:
    # "By 2030" means the deadline passes once 2030 starts, same as "Before 2030".
    yield from _year_boundary(BY_YEAR_RE, text, "by_year", year_offset=-1)


PATTERN_MATCHERS: Tuple[Callable[[str, datetime], Iterator[DateCandidate]], ...] = (
    match_month_day_year,
    match_iso_date,
    match_slash_date,
    match_month_day_inferred_year,
    match_month_year,
    match_before_year,
    match_in_year,
    match_by_year,
)


def _year_boundary(pattern: re.Pattern[str], text: str, kind: str, year_offset: int) -> Iterator[DateCandidate]:
    for match in pattern.finditer(text):
        try:
            point = _end_of_month(int(match.group("year")) + year_offset, 12)
            yield _build_candidate(point, _DateShape(kind=kind, base_confidence=0.85), match)
        except (ValueError, OverflowError) as exc:
            _log_skip(match, exc)


def _build_candidate(
    point: datetime,
    shape: _DateShape,
    match: re.Match[str],
    time_text: Optional[str] = None,
    tz: Optional[str] = None,
) -> DateCandidate:
    # The zone abbreviation is carried as metadata only; the instant stays as written.
    return DateCandidate(
        point_in_time_utc=point,
        confidence=shape.confidence,
        matched_text=match.group(0),
        pattern_kind=shape.pattern_kind,
        timezone_abbrev=tz.upper() if tz else None,
        time_range_text=time_text or None,
    )


def _month_number(name: Optional[str]) -> Optional[int]:
    if not name:
        return None
    return MONTHS.get(name.lower().rstrip("."))


def _resolved_day(match: re.Match[str]) -> Tuple[int, bool]:
    end_day = match.group("end_day")
    if end_day:
        return int(end_day), True
    return int(match.group("day")), False


def _clock(match: re.Match[str]) -> Tuple[Optional[str], Optional[str], int, int]:
    """Return (time_text, tz, hour, minute) for the match's time suffix.

    An impossible clock reading such as "13pm" is dropped together with its
    zone, and the date is kept at midnight.
    """
    time_text = match.group("time")
    if not time_text:
        return None, None, 0, 0
    time_text = time_text.strip()
    hour, minute = parse_time_token(time_text, prefer_end=True)
    if hour > 23 or minute > 59:
        logger.debug("Ignoring out-of-range time", extra={"text": match.group(0), "time": time_text})
        return None, None, 0, 0
    return time_text, match.group("tz"), hour, minute


def _end_of_month(year: int, month: int) -> datetime:
    last_day = calendar.monthrange(year, month)[1]
    return datetime(year, month, last_day, 23, 59, 59, tzinfo=timezone.utc)


def _log_skip(match: re.Match[str], exc: Exception) -> None:
    logger.debug("Skipping unresolvable date match", extra={"text": match.group(0), "error": str(exc)})
