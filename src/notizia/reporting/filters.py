"""
Row filtering for ad-hoc report queries.

A Query narrows the expanded session rows by client demographics,
session method and case problem. Every field is optional and None
means "no constraint on this dimension".
"""

import logging
from collections import Counter
from dataclasses import asdict, dataclass, fields
from typing import Any, Iterable, Optional

from ..schemas.domain import Row, as_value

logger = logging.getLogger(__name__)

# Alternate spellings accepted by Query.from_dict (saved form state)
_FIELD_ALIASES = {
    "ageMin": "age_min",
    "ageMax": "age_max",
    "minSessionsPerClient": "min_sessions_per_client",
    "minSessions": "min_sessions_per_client",
    "min_sessions": "min_sessions_per_client",
}

_INT_FIELDS = ("age_min", "age_max", "min_sessions_per_client")


@dataclass(frozen=True)
class Query:
    """Filter criteria for a report run."""

    gender: Optional[str] = None
    method: Optional[str] = None
    problem: Optional[str] = None
    age_min: Optional[int] = None
    age_max: Optional[int] = None
    min_sessions_per_client: Optional[int] = None

    def is_empty(self) -> bool:
        """True if no dimension is constrained."""
        return all(getattr(self, f.name) is None for f in fields(self))

    def to_dict(self) -> dict:
        """Convert to a plain dictionary; Enum members become their values."""
        return {key: as_value(value) for key, value in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Query":
        """
        Build a Query from a dictionary such as a saved query.

        Accepts snake_case and camelCase keys. Form encodings are
        normalized: an empty string means "all" and numeric fields may be
        given as strings.

        Raises:
            ValueError: On unknown keys or non-numeric bounds.
        """
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}

        for key, value in data.items():
            name = _FIELD_ALIASES.get(key, key)
            if name not in known:
                raise ValueError(f"Unknown query field: {key}")
            if value == "":
                value = None
            if value is not None and name in _INT_FIELDS:
                try:
                    value = int(value)
                except (TypeError, ValueError) as e:
                    raise ValueError(f"Query field {key} must be a number") from e
            values[name] = as_value(value)

        return cls(**values)


def _matches(row: Row, query: Query) -> bool:
    """Apply every per-row predicate of the query."""
    if query.method is not None and as_value(row.session.method) != as_value(query.method):
        return False
    if query.gender is not None and as_value(row.client.gender) != as_value(query.gender):
        return False
    if query.problem is not None and as_value(row.case.problem_category) != as_value(
        query.problem
    ):
        return False

    age = row.client.age
    if query.age_min is not None and (age is None or age < query.age_min):
        return False
    if query.age_max is not None and (age is None or age > query.age_max):
        return False

    return True


def filter_rows(rows: Iterable[Row], query: Optional[Query] = None) -> list[Row]:
    """
    Select the rows matching a query, preserving input order.

    The minimum-sessions-per-client threshold is applied last: sessions
    are counted per client among the rows that passed every other
    predicate, so "at least 3 coaching sessions" counts only coaching
    sessions.

    Args:
        rows: Expanded session rows
        query: Filter criteria (None or an empty Query keeps every row)

    Returns:
        New list with the matching rows
    """
    rows = list(rows)
    if query is None or query.is_empty():
        return rows

    out = [row for row in rows if _matches(row, query)]

    if query.min_sessions_per_client is not None:
        per_client = Counter(row.client.id for row in out)
        keep = {
            client_id
            for client_id, count in per_client.items()
            if count >= query.min_sessions_per_client
        }
        out = [row for row in out if row.client.id in keep]

    logger.debug(f"Filter kept {len(out)} of {len(rows)} rows")
    return out
