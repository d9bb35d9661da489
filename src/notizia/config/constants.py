"""
Constants for practice vocabularies, age classes and case status handling.
"""

# =============================================================================
# Vocabularies
# =============================================================================

GENDERS = ("w", "m", "d")

# Order matters: ties in method histograms are broken by this order
METHODS = (
    "aufloesende_hypnose",
    "klassische_hypnose",
    "coaching",
    "other",
)

PROBLEM_CATEGORIES = (
    "overweight",
    "social_anxiety",
    "panic",
    "depression",
    "sleep",
    "pain",
    "self_worth",
    "relationship",
    "other",
)

DEFAULT_PROBLEM_CATEGORY = "other"
DEFAULT_CASE_STATUS = "open"

# Display labels used by reports and exports
GENDER_LABELS = {
    "w": "weiblich",
    "m": "männlich",
    "d": "divers",
}

METHOD_LABELS = {
    "aufloesende_hypnose": "Auflösende Hypnose",
    "klassische_hypnose": "Klassische Hypnose",
    "coaching": "Coaching",
    "other": "Sonstige",
}

PROBLEM_LABELS = {
    "overweight": "Übergewicht",
    "social_anxiety": "Soziale Angst",
    "panic": "Panik",
    "depression": "Depression",
    "sleep": "Schlafproblem",
    "pain": "Schmerzen",
    "self_worth": "Selbstwert",
    "relationship": "Beziehungen",
    "other": "Sonstige",
}

# =============================================================================
# Age Classes
# =============================================================================

# (label, min inclusive, max inclusive or None for open-ended)
AGE_CLASSES = (
    ("0–17", 0, 17),
    ("18–29", 18, 29),
    ("30–44", 30, 44),
    ("45–59", 45, 59),
    ("60+", 60, None),
)

AGE_CLASS_LABELS = tuple(label for label, _, _ in AGE_CLASSES)

# Extra bucket for sessions whose client age is not recorded
UNKNOWN_AGE_LABEL = "Unbekannt"

# =============================================================================
# Case Status
# =============================================================================

OPEN_STATUS = "open"

# Free-text statuses that mean a case is finished
CLOSED_STATUS_SYNONYMS = frozenset(
    ["solved", "closed", "done", "abgeschlossen", "erledigt", "resolved"]
)

DROPPED_STATUS = "dropped"
