"""
Domain records for clients, cases and sessions.

Records hold the plain values that are persisted by the storage layer.
The closed vocabularies (gender, method, problem category, case status)
are Enums whose values are the persisted strings, so either an Enum
member or its raw string can be used wherever a value is compared.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..config.constants import (
    CLOSED_STATUS_SYNONYMS,
    DEFAULT_CASE_STATUS,
    DEFAULT_PROBLEM_CATEGORY,
    DROPPED_STATUS,
    OPEN_STATUS,
)

logger = logging.getLogger(__name__)


class Gender(Enum):
    """Client gender as recorded on intake."""

    FEMALE = "w"
    MALE = "m"
    DIVERSE = "d"


class Method(Enum):
    """Treatment method used in a session. Member order is significant."""

    AUFLOESENDE_HYPNOSE = "aufloesende_hypnose"
    KLASSISCHE_HYPNOSE = "klassische_hypnose"
    COACHING = "coaching"
    OTHER = "other"


class ProblemCategory(Enum):
    """Presenting problem of a case."""

    OVERWEIGHT = "overweight"
    SOCIAL_ANXIETY = "social_anxiety"
    PANIC = "panic"
    DEPRESSION = "depression"
    SLEEP = "sleep"
    PAIN = "pain"
    SELF_WORTH = "self_worth"
    RELATIONSHIP = "relationship"
    OTHER = "other"


class CaseStatus(Enum):
    """Outcome state of a case."""

    OPEN = "open"
    RESOLVED = "resolved"
    DROPPED = "dropped"

    @property
    def is_closed(self) -> bool:
        return self is not CaseStatus.OPEN


def as_value(value: Any) -> Any:
    """Return the persisted value of an Enum member, or the value unchanged."""
    if isinstance(value, Enum):
        return value.value
    return value


# =============================================================================
# Case Status Classification
# =============================================================================


def normalize_status(status: Any) -> str:
    """Trim and lowercase a status value; None becomes an empty string."""
    if status is None:
        return ""
    return str(as_value(status)).strip().lower()


def classify_status(status: Any) -> Optional[CaseStatus]:
    """
    Map a free-form status string onto CaseStatus.

    Args:
        status: Persisted status value (string, CaseStatus or None)

    Returns:
        The matching CaseStatus, or None for empty or unrecognized values
    """
    normalized = normalize_status(status)
    if not normalized:
        return None
    if normalized == OPEN_STATUS:
        return CaseStatus.OPEN
    if normalized in CLOSED_STATUS_SYNONYMS:
        return CaseStatus.RESOLVED
    if normalized == DROPPED_STATUS:
        return CaseStatus.DROPPED
    return None


def is_closed(status: Any) -> bool:
    """
    Decide whether a case with this status counts as closed.

    Empty or missing status means open. Unrecognized values count as
    closed; this keeps the historical rule that everything which is not
    literally "open" is finished.
    """
    normalized = normalize_status(status)
    if not normalized:
        return False

    classified = classify_status(normalized)
    if classified is None:
        logger.debug(f"Unrecognized case status '{normalized}' treated as closed")
        return True
    return classified.is_closed


def method_from_label(label: Optional[str]) -> str:
    """
    Map a free-text method description onto a Method value.

    Examples:
        >>> method_from_label("Auflösende Hypnose")
        'aufloesende_hypnose'
        >>> method_from_label("Life-Coaching")
        'coaching'
        >>> method_from_label("EMDR")
        'other'
    """
    text = (label or "").lower()
    if "auflös" in text or "aufloes" in text:
        return Method.AUFLOESENDE_HYPNOSE.value
    if "klass" in text:
        return Method.KLASSISCHE_HYPNOSE.value
    if "coach" in text:
        return Method.COACHING.value
    return Method.OTHER.value


# =============================================================================
# Intake Record (Anamnesis)
# =============================================================================


@dataclass
class TherapyEntry:
    """A therapy the client had before coming to the practice."""

    type: str
    duration_months: Optional[int] = None
    completed: Optional[bool] = None

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "duration_months": self.duration_months,
            "completed": self.completed,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TherapyEntry":
        return cls(
            type=data.get("type") or "",
            duration_months=data.get("duration_months"),
            completed=data.get("completed"),
        )


@dataclass
class MedicationEntry:
    """A medication the client takes or took."""

    name: str
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    current: Optional[bool] = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "dosage": self.dosage,
            "frequency": self.frequency,
            "current": self.current,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MedicationEntry":
        return cls(
            name=data.get("name") or "",
            dosage=data.get("dosage"),
            frequency=data.get("frequency"),
            current=data.get("current"),
        )


@dataclass
class Anamnesis:
    """
    Intake record of a client.

    The initial problem is documentation only; it does not open a case.
    The planned method is kept both as entered and mapped onto Method.
    """

    previous_therapies: list[TherapyEntry] = field(default_factory=list)
    medications: list[MedicationEntry] = field(default_factory=list)
    initial_problem_category: Optional[str] = None
    initial_problem_text: Optional[str] = None
    planned_method_text: Optional[str] = None
    planned_method: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "previous_therapies": [t.to_dict() for t in self.previous_therapies],
            "medications": [m.to_dict() for m in self.medications],
            "initial_problem_category": as_value(self.initial_problem_category),
            "initial_problem_text": self.initial_problem_text,
            "planned_method_text": self.planned_method_text,
            "planned_method": as_value(self.planned_method),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Anamnesis":
        """
        Build an Anamnesis from a dictionary; missing keys take defaults.

        When only planned_method_text is given, planned_method is derived
        from it with method_from_label().
        """
        planned_text = data.get("planned_method_text")
        planned = as_value(data.get("planned_method"))
        if planned is None and planned_text:
            planned = method_from_label(planned_text)

        return cls(
            previous_therapies=[
                TherapyEntry.from_dict(t) for t in data.get("previous_therapies") or []
            ],
            medications=[
                MedicationEntry.from_dict(m) for m in data.get("medications") or []
            ],
            initial_problem_category=as_value(data.get("initial_problem_category")),
            initial_problem_text=data.get("initial_problem_text"),
            planned_method_text=planned_text,
            planned_method=planned,
        )


# =============================================================================
# Records
# =============================================================================


@dataclass
class Client:
    """A client of the practice."""

    id: int
    name: str
    gender: Optional[str] = None
    age: Optional[int] = None
    anamnesis: Optional[Anamnesis] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "gender": as_value(self.gender),
            "age": self.age,
            "anamnesis": self.anamnesis.to_dict() if self.anamnesis else None,
        }


@dataclass
class Case:
    """A presenting problem ("Anliegen") of a client."""

    id: int
    client_id: int
    problem_category: str = DEFAULT_PROBLEM_CATEGORY
    problem_text: str = ""
    started_at: str = ""
    status: Optional[str] = DEFAULT_CASE_STATUS
    severity: Optional[int] = None  # recorded but not used by reports

    @property
    def is_closed(self) -> bool:
        return is_closed(self.status)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "client_id": self.client_id,
            "problem_category": as_value(self.problem_category),
            "problem_text": self.problem_text,
            "started_at": self.started_at,
            "status": as_value(self.status),
            "severity": self.severity,
        }


@dataclass
class Session:
    """A single treatment session belonging to a case."""

    id: int
    case_id: int
    started_at: str
    duration_min: Optional[float] = None
    method: str = Method.OTHER.value
    sud_before: Optional[float] = None
    sud_after: Optional[float] = None
    emotional_release: Optional[str] = None
    insights: Optional[str] = None
    notes: Optional[str] = None

    @property
    def sud_delta(self) -> Optional[float]:
        """Distress reduction (before - after); positive means improvement."""
        if self.sud_before is None or self.sud_after is None:
            return None
        return self.sud_before - self.sud_after

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "case_id": self.case_id,
            "started_at": self.started_at,
            "duration_min": self.duration_min,
            "method": as_value(self.method),
            "sud_before": self.sud_before,
            "sud_after": self.sud_after,
            "emotional_release": self.emotional_release,
            "insights": self.insights,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class Row:
    """One session joined with its case and that case's client."""

    session: Session
    case: Case
    client: Client
