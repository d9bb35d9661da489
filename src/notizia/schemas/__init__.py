"""Domain records and storage schemas."""

from .domain import (
    Anamnesis,
    Case,
    CaseStatus,
    Client,
    Gender,
    MedicationEntry,
    Method,
    ProblemCategory,
    Row,
    Session,
    TherapyEntry,
    as_value,
    classify_status,
    is_closed,
    method_from_label,
    normalize_status,
)
from .tables import (
    CASE_COLUMNS,
    CLIENT_COLUMNS,
    SESSION_COLUMNS,
    TABLE_SCHEMAS,
)

__all__ = [
    # Records
    "Client",
    "Case",
    "Session",
    "Row",
    # Intake record
    "Anamnesis",
    "TherapyEntry",
    "MedicationEntry",
    "method_from_label",
    # Vocabularies
    "Gender",
    "Method",
    "ProblemCategory",
    "CaseStatus",
    # Status classification
    "classify_status",
    "is_closed",
    "normalize_status",
    "as_value",
    # SQLite schema
    "TABLE_SCHEMAS",
    "CLIENT_COLUMNS",
    "CASE_COLUMNS",
    "SESSION_COLUMNS",
]
