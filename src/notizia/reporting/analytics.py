"""
Primary report aggregation over filtered session rows.

Turns a row set into session counts, method distribution, duration and
distress-change statistics, closed-case count, monthly and ISO-week
trends, and age/gender breakdowns. All functions are pure: they read the
rows they are given and return fresh result objects.
"""

import logging
from collections import Counter
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Any, Iterable, Optional

import numpy as np

from ..config.constants import AGE_CLASS_LABELS, AGE_CLASSES, GENDERS, METHODS
from ..schemas.domain import Row, as_value, is_closed

logger = logging.getLogger(__name__)


@dataclass
class Stat:
    """Summary statistics for a set of numbers."""

    count: int
    mean: Optional[float] = None
    median: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None


@dataclass
class MethodCount:
    method: str
    count: int


@dataclass
class KeyCount:
    key: str
    count: int


@dataclass
class LabelCount:
    label: str
    count: int


@dataclass
class GenderCounts:
    w: int = 0
    m: int = 0
    d: int = 0


@dataclass
class Result:
    """Outcome of run_analytics for one filtered row set."""

    total_sessions: int
    sessions_by_method: list[MethodCount]
    dur: Stat
    sud_delta: Stat
    closed_cases: int
    trend_month: list[KeyCount]
    trend_week: list[KeyCount]
    by_age_class: list[LabelCount]
    by_gender: GenderCounts
    # Rows left out of the trends because started_at could not be parsed
    unparsed_timestamps: int = 0

    def to_dict(self) -> dict:
        """Convert to the camelCase shape used by report views and JSON output."""
        return {
            "totalSessions": self.total_sessions,
            "sessionsByMethod": [asdict(m) for m in self.sessions_by_method],
            "dur": asdict(self.dur),
            "sudDelta": asdict(self.sud_delta),
            "closedCases": self.closed_cases,
            "trendMonth": [asdict(k) for k in self.trend_month],
            "trendWeek": [asdict(k) for k in self.trend_week],
            "byAgeClass": [asdict(a) for a in self.by_age_class],
            "byGender": asdict(self.by_gender),
            "unparsedTimestamps": self.unparsed_timestamps,
        }


# =============================================================================
# Numeric and Date Helpers
# =============================================================================


def number_stats(values: Iterable[float]) -> Stat:
    """
    Compute count, mean, median, min and max.

    An empty input yields count 0 and None for everything else. The
    median of an even-length input is the mean of the two middle values.
    """
    ordered = sorted(values)
    if not ordered:
        return Stat(count=0)

    return Stat(
        count=len(ordered),
        mean=float(np.mean(ordered)),
        median=float(np.median(ordered)),
        min=ordered[0],
        max=ordered[-1],
    )


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO 8601 session start into a local datetime.

    Accepts date-only strings, naive timestamps and timestamps with an
    offset or trailing Z. Offset-aware values are converted to local time
    so that month and week keys follow the calendar of the practice.

    Returns:
        The parsed datetime, or None if the value cannot be parsed
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError:
            return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    return parsed


def month_key(dt: datetime) -> str:
    """Calendar month key, e.g. '2024-12'."""
    return f"{dt.year}-{dt.month:02d}"


def iso_week_key(dt: datetime) -> str:
    """
    ISO 8601 week key, e.g. '2025-W01'.

    Uses the ISO week-numbering year, which differs from the calendar
    year around New Year (2024-12-31 belongs to 2025-W01).
    """
    iso_year, iso_week, _ = dt.isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def age_class_label(age: Optional[int]) -> Optional[str]:
    """Return the age class label for an age, or None if unknown."""
    if age is None:
        return None
    for label, low, high in AGE_CLASSES:
        if age >= low and (high is None or age <= high):
            return label
    return None


def method_sort_key(method: Any) -> tuple:
    """Known methods in declaration order, unknown values after them."""
    value = as_value(method)
    if value in METHODS:
        return (0, METHODS.index(value), "")
    return (1, 0, str(value))


def sorted_key_counts(counter: Counter) -> list[KeyCount]:
    """Turn a counter into KeyCount entries sorted ascending by key."""
    return [KeyCount(key=key, count=count) for key, count in sorted(counter.items())]


# =============================================================================
# Aggregation
# =============================================================================


def run_analytics(rows: Iterable[Row]) -> Result:
    """
    Aggregate a filtered row set into a Result.

    Args:
        rows: Expanded session rows, usually the output of filter_rows

    Returns:
        Result with counts, statistics, trends and breakdowns
    """
    rows = list(rows)

    # Method distribution; ties follow the method vocabulary order
    by_method = Counter(as_value(r.session.method) for r in rows)
    sessions_by_method = [
        MethodCount(method=method, count=count)
        for method, count in sorted(
            by_method.items(), key=lambda item: (-item[1], method_sort_key(item[0]))
        )
    ]

    durations = [
        r.session.duration_min for r in rows if r.session.duration_min is not None
    ]
    sud_deltas = [
        r.session.sud_delta for r in rows if r.session.sud_delta is not None
    ]

    # Closed cases count once, however many of their sessions are in the set
    closed = {r.case.id for r in rows if is_closed(r.case.status)}

    by_month: Counter = Counter()
    by_week: Counter = Counter()
    unparsed = 0
    for r in rows:
        started = parse_timestamp(r.session.started_at)
        if started is None:
            unparsed += 1
            logger.warning(
                f"Session #{r.session.id} has unparseable started_at "
                f"'{r.session.started_at}'; left out of trends"
            )
            continue
        by_month[month_key(started)] += 1
        by_week[iso_week_key(started)] += 1

    age_counts = Counter(age_class_label(r.client.age) for r in rows)
    by_age_class = [
        LabelCount(label=label, count=age_counts.get(label, 0))
        for label in AGE_CLASS_LABELS
    ]

    gender_counts = Counter(as_value(r.client.gender) for r in rows)
    by_gender = GenderCounts(**{g: gender_counts.get(g, 0) for g in GENDERS})

    result = Result(
        total_sessions=len(rows),
        sessions_by_method=sessions_by_method,
        dur=number_stats(durations),
        sud_delta=number_stats(sud_deltas),
        closed_cases=len(closed),
        trend_month=sorted_key_counts(by_month),
        trend_week=sorted_key_counts(by_week),
        by_age_class=by_age_class,
        by_gender=by_gender,
        unparsed_timestamps=unparsed,
    )

    logger.debug(
        f"Analytics: {result.total_sessions} sessions, "
        f"{result.closed_cases} closed cases"
    )
    return result
