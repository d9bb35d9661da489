"""
SQLite table definitions for clients, cases and sessions.
"""

# =============================================================================
# Table Schemas
# =============================================================================

CLIENTS_TABLE_SCHEMA = """
CREATE TABLE IF NOT EXISTS clients (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    gender TEXT,
    age INTEGER,
    anamnesis TEXT,
    CONSTRAINT valid_gender CHECK (gender IS NULL OR gender IN ('w', 'm', 'd')),
    CONSTRAINT valid_age CHECK (age IS NULL OR age >= 0)
)
"""

CASES_TABLE_SCHEMA = """
CREATE TABLE IF NOT EXISTS cases (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    client_id INTEGER NOT NULL REFERENCES clients(id) ON DELETE CASCADE,
    problem_category TEXT NOT NULL DEFAULT 'other',
    problem_text TEXT NOT NULL DEFAULT '',
    started_at TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'open',
    severity INTEGER
)
"""

SESSIONS_TABLE_SCHEMA = """
CREATE TABLE IF NOT EXISTS sessions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    case_id INTEGER NOT NULL REFERENCES cases(id) ON DELETE CASCADE,
    started_at TEXT NOT NULL,
    duration_min REAL,
    method TEXT NOT NULL DEFAULT 'other',
    sud_before REAL,
    sud_after REAL,
    emotional_release TEXT,
    insights TEXT,
    notes TEXT
)
"""

TABLE_SCHEMAS = [
    CLIENTS_TABLE_SCHEMA,
    CASES_TABLE_SCHEMA,
    SESSIONS_TABLE_SCHEMA,
]

INDEX_DEFINITIONS = [
    "CREATE INDEX IF NOT EXISTS idx_cases_client ON cases(client_id)",
    "CREATE INDEX IF NOT EXISTS idx_sessions_case ON sessions(case_id)",
    "CREATE INDEX IF NOT EXISTS idx_sessions_started ON sessions(started_at)",
]

VALID_TABLES = frozenset(["clients", "cases", "sessions"])

# Columns added after the first release: (table, column, type).
# initialize() adds them to databases created without them.
ADDED_COLUMNS = [
    ("clients", "anamnesis", "TEXT"),
]

# =============================================================================
# Column Lists
# =============================================================================

# anamnesis holds the intake record as a JSON document
CLIENT_COLUMNS = ("id", "name", "gender", "age", "anamnesis")

CASE_COLUMNS = (
    "id",
    "client_id",
    "problem_category",
    "problem_text",
    "started_at",
    "status",
    "severity",
)

SESSION_COLUMNS = (
    "id",
    "case_id",
    "started_at",
    "duration_min",
    "method",
    "sud_before",
    "sud_after",
    "emotional_release",
    "insights",
    "notes",
)

# Columns that may be changed through update_case / update_session
UPDATABLE_CASE_COLUMNS = frozenset(CASE_COLUMNS) - {"id"}
UPDATABLE_SESSION_COLUMNS = frozenset(SESSION_COLUMNS) - {"id"}
