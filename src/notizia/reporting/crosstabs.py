"""
Cross-tabulations of session rows for outcome reporting.

Each function takes a row sequence (filtered or not) and returns a
grouped summary: problem distribution, gender and age splits per
problem or method, and average sessions per case.
"""

import logging
from collections import Counter, defaultdict
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Iterable

from ..config.constants import AGE_CLASS_LABELS, GENDERS, UNKNOWN_AGE_LABEL
from ..schemas.domain import Row, as_value, is_closed
from .analytics import KeyCount, age_class_label

logger = logging.getLogger(__name__)


@dataclass
class GenderBreakdown:
    key: str
    w: int = 0
    m: int = 0
    d: int = 0
    unknown: int = 0

    @property
    def total(self) -> int:
        return self.w + self.m + self.d + self.unknown


@dataclass
class AgeBreakdown:
    key: str
    buckets: dict[str, int] = field(
        default_factory=lambda: {
            label: 0 for label in (*AGE_CLASS_LABELS, UNKNOWN_AGE_LABEL)
        }
    )

    @property
    def total(self) -> int:
        return sum(self.buckets.values())


@dataclass
class ProblemMethodAverage:
    """Average number of sessions of one method per case of one problem."""

    problem: str
    method: str
    avg: float
    cases: int
    sessions: int


@dataclass
class MethodAverage:
    """Average number of sessions of one method per closed case."""

    method: str
    avg: float
    cases: int
    sessions: int


@dataclass
class CrossTabs:
    """All cross-tabulations for one row set."""

    problem_distribution: list[KeyCount]
    gender_by_problem: list[GenderBreakdown]
    gender_by_method: list[GenderBreakdown]
    age_by_problem: list[AgeBreakdown]
    age_by_method: list[AgeBreakdown]
    avg_sessions_per_case: list[ProblemMethodAverage]
    avg_sessions_per_closed_case: list[MethodAverage]

    def to_dict(self) -> dict:
        return {
            "problemDistribution": [asdict(x) for x in self.problem_distribution],
            "genderByProblem": [asdict(x) for x in self.gender_by_problem],
            "genderByMethod": [asdict(x) for x in self.gender_by_method],
            "ageByProblem": [asdict(x) for x in self.age_by_problem],
            "ageByMethod": [asdict(x) for x in self.age_by_method],
            "avgSessionsPerCaseByProblemAndMethod": [
                asdict(x) for x in self.avg_sessions_per_case
            ],
            "avgSessionsPerClosedCaseByMethod": [
                asdict(x) for x in self.avg_sessions_per_closed_case
            ],
        }


# =============================================================================
# Grouping Helpers
# =============================================================================


def _problem_of(row: Row) -> Any:
    return as_value(row.case.problem_category)


def _method_of(row: Row) -> Any:
    return as_value(row.session.method)


def _text_key(key: Any) -> tuple:
    """Lexical sort key that tolerates missing values (sorted last)."""
    return (key is None, "" if key is None else str(key))


def _gender_breakdown(
    rows: Iterable[Row], group_of: Callable[[Row], Any]
) -> list[GenderBreakdown]:
    groups: dict[Any, GenderBreakdown] = {}
    for row in rows:
        key = group_of(row)
        breakdown = groups.setdefault(key, GenderBreakdown(key=key))
        gender = as_value(row.client.gender)
        if gender in GENDERS:
            setattr(breakdown, gender, getattr(breakdown, gender) + 1)
        else:
            breakdown.unknown += 1
    return [groups[key] for key in sorted(groups, key=_text_key)]


def _age_breakdown(
    rows: Iterable[Row], group_of: Callable[[Row], Any]
) -> list[AgeBreakdown]:
    groups: dict[Any, AgeBreakdown] = {}
    for row in rows:
        key = group_of(row)
        breakdown = groups.setdefault(key, AgeBreakdown(key=key))
        label = age_class_label(row.client.age) or UNKNOWN_AGE_LABEL
        breakdown.buckets[label] += 1
    return [groups[key] for key in sorted(groups, key=_text_key)]


# =============================================================================
# Cross-Tabulations
# =============================================================================


def problem_distribution(rows: Iterable[Row]) -> list[KeyCount]:
    """Sessions per problem category, most frequent first."""
    counts = Counter(_problem_of(row) for row in rows)
    ordered = sorted(counts.items(), key=lambda item: (-item[1], _text_key(item[0])))
    return [KeyCount(key=key, count=count) for key, count in ordered]


def gender_by_problem(rows: Iterable[Row]) -> list[GenderBreakdown]:
    """Per problem category, sessions split by client gender."""
    return _gender_breakdown(rows, _problem_of)


def gender_by_method(rows: Iterable[Row]) -> list[GenderBreakdown]:
    """Per method, sessions split by client gender."""
    return _gender_breakdown(rows, _method_of)


def age_by_problem(rows: Iterable[Row]) -> list[AgeBreakdown]:
    """Per problem category, sessions split by client age class."""
    return _age_breakdown(rows, _problem_of)


def age_by_method(rows: Iterable[Row]) -> list[AgeBreakdown]:
    """Per method, sessions split by client age class."""
    return _age_breakdown(rows, _method_of)


def avg_sessions_per_case_by_problem_and_method(
    rows: Iterable[Row],
) -> list[ProblemMethodAverage]:
    """
    Average sessions per case for each (problem, method) pair.

    The method comes from the session, so a case treated with two
    methods contributes to two groups, each with only the sessions of
    that method.

    Returns:
        One entry per pair present in the rows, highest average first
    """
    per_case: dict[tuple, Counter] = defaultdict(Counter)
    for row in rows:
        per_case[(_problem_of(row), _method_of(row))][row.case.id] += 1

    averages = []
    for (problem, method), case_counts in per_case.items():
        sessions = sum(case_counts.values())
        cases = len(case_counts)
        averages.append(
            ProblemMethodAverage(
                problem=problem,
                method=method,
                avg=sessions / cases,
                cases=cases,
                sessions=sessions,
            )
        )

    averages.sort(
        key=lambda a: (-a.avg, _text_key(a.problem), _text_key(a.method))
    )
    return averages


def avg_sessions_per_closed_case_by_method(
    rows: Iterable[Row],
) -> list[MethodAverage]:
    """
    Average sessions per closed case for each method.

    Only rows whose case counts as closed are considered.

    Returns:
        One entry per method present, highest average first
    """
    per_case: dict[Any, Counter] = defaultdict(Counter)
    for row in rows:
        if not is_closed(row.case.status):
            continue
        per_case[_method_of(row)][row.case.id] += 1

    averages = []
    for method, case_counts in per_case.items():
        sessions = sum(case_counts.values())
        cases = len(case_counts)
        averages.append(
            MethodAverage(
                method=method,
                avg=sessions / cases,
                cases=cases,
                sessions=sessions,
            )
        )

    averages.sort(key=lambda a: (-a.avg, _text_key(a.method)))
    return averages


def cross_tabulate(rows: Iterable[Row]) -> CrossTabs:
    """Compute every cross-tabulation for a row set."""
    rows = list(rows)
    tabs = CrossTabs(
        problem_distribution=problem_distribution(rows),
        gender_by_problem=gender_by_problem(rows),
        gender_by_method=gender_by_method(rows),
        age_by_problem=age_by_problem(rows),
        age_by_method=age_by_method(rows),
        avg_sessions_per_case=avg_sessions_per_case_by_problem_and_method(rows),
        avg_sessions_per_closed_case=avg_sessions_per_closed_case_by_method(rows),
    )
    logger.debug(
        f"Cross-tabulated {len(rows)} rows into "
        f"{len(tabs.problem_distribution)} problem groups"
    )
    return tabs
