"""
SQLite storage backend implementation.

Stores clients, cases and sessions in a single local SQLite file.
Deleting a client or case cascades through foreign keys.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from ..schemas.domain import Anamnesis, Case, Client, Row, Session, as_value
from ..schemas.tables import (
    ADDED_COLUMNS,
    CASE_COLUMNS,
    CLIENT_COLUMNS,
    INDEX_DEFINITIONS,
    SESSION_COLUMNS,
    TABLE_SCHEMAS,
    UPDATABLE_CASE_COLUMNS,
    UPDATABLE_SESSION_COLUMNS,
    VALID_TABLES,
)
from .base import (
    QueryError,
    RecordNotFoundError,
    SchemaError,
    StorageBackend,
    StorageConnectionError,
    check_changes,
    normalize_case_changes,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Row Conversion Helpers
# =============================================================================


def _encode_anamnesis(anamnesis: Optional[Anamnesis]) -> Optional[str]:
    if anamnesis is None:
        return None
    return json.dumps(anamnesis.to_dict(), ensure_ascii=False)


def _decode_anamnesis(text: Optional[str]) -> Optional[Anamnesis]:
    if not text:
        return None
    return Anamnesis.from_dict(json.loads(text))


def _client_from_row(row: dict, prefix: str = "") -> Client:
    values = {col: row[f"{prefix}{col}"] for col in CLIENT_COLUMNS}
    values["anamnesis"] = _decode_anamnesis(values["anamnesis"])
    return Client(**values)


def _case_from_row(row: dict, prefix: str = "") -> Case:
    return Case(**{col: row[f"{prefix}{col}"] for col in CASE_COLUMNS})


def _session_from_row(row: dict, prefix: str = "") -> Session:
    return Session(**{col: row[f"{prefix}{col}"] for col in SESSION_COLUMNS})


def _select_list(table: str, columns: tuple, prefix: str) -> str:
    return ", ".join(f"{table}.{col} AS {prefix}{col}" for col in columns)


EXPANDED_SESSIONS_QUERY = f"""
    SELECT
        {_select_list("s", SESSION_COLUMNS, "s_")},
        {_select_list("c", CASE_COLUMNS, "c_")},
        {_select_list("cl", CLIENT_COLUMNS, "cl_")}
    FROM sessions s
    JOIN cases c ON c.id = s.case_id
    JOIN clients cl ON cl.id = c.client_id
    ORDER BY s.started_at DESC, s.id DESC
"""


# =============================================================================
# SQLite Backend Implementation
# =============================================================================


class SQLiteBackend(StorageBackend):
    """
    SQLite storage backend.

    Holds one connection per backend instance; the connection is opened
    lazily and released by close().
    """

    def __init__(
        self,
        db_path: Path | str = "data/notizia.db",
        *,
        check_same_thread: bool = False,
        timeout: float = 30.0,
    ):
        """
        Initialize SQLite backend.

        Args:
            db_path: Path to SQLite database file (":memory:" for a scratch DB)
            check_same_thread: SQLite check_same_thread parameter
            timeout: Connection timeout in seconds
        """
        self._in_memory = str(db_path) == ":memory:"
        self.db_path = Path(db_path)
        self._check_same_thread = check_same_thread
        self._timeout = timeout
        self._connection: Optional[sqlite3.Connection] = None

        # Ensure parent directory exists
        if not self._in_memory:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def backend_type(self) -> str:
        """Return backend type identifier."""
        return "sqlite"

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._connection is None:
            target = ":memory:" if self._in_memory else str(self.db_path)
            try:
                self._connection = sqlite3.connect(
                    target,
                    check_same_thread=self._check_same_thread,
                    timeout=self._timeout,
                )
                # Enable foreign keys and return rows as dictionaries
                self._connection.row_factory = sqlite3.Row
                self._connection.execute("PRAGMA foreign_keys = ON")
                logger.debug(f"Connected to SQLite database: {target}")
            except sqlite3.Error as e:
                raise StorageConnectionError(
                    f"Failed to connect to SQLite database: {e}"
                ) from e
        return self._connection

    @contextmanager
    def _cursor(self):
        """Context manager for database cursor with automatic commit/rollback."""
        conn = self._get_connection()
        cursor = conn.cursor()
        try:
            yield cursor
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise QueryError(f"SQLite query failed: {e}") from e
        finally:
            cursor.close()

    def initialize(self) -> None:
        """
        Initialize database with all required tables and indexes.

        Safe to call multiple times - uses IF NOT EXISTS.
        """
        logger.info(f"Initializing SQLite database: {self.db_path}")

        with self._cursor() as cursor:
            for table_sql in TABLE_SCHEMAS:
                cursor.execute(table_sql)
            for table, column, column_type in ADDED_COLUMNS:
                existing = {
                    info[1] for info in cursor.execute(f"PRAGMA table_info({table})")
                }
                if column not in existing:
                    cursor.execute(
                        f"ALTER TABLE {table} ADD COLUMN {column} {column_type}"
                    )
                    logger.info(f"Added column {table}.{column}")
            for index_sql in INDEX_DEFINITIONS:
                cursor.execute(index_sql)

        logger.info("SQLite database initialized successfully")

    def close(self) -> None:
        """Close database connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None
            logger.debug("SQLite connection closed")

    def query(self, sql: str, params: Optional[dict] = None) -> list[dict]:
        """
        Execute query and return results as list of dictionaries.

        Args:
            sql: SQL query (use :param_name for parameters)
            params: Optional parameter dictionary

        Returns:
            List of result rows as dictionaries
        """
        with self._cursor() as cursor:
            cursor.execute(sql, params or {})
            columns = [desc[0] for desc in cursor.description or []]
            rows = cursor.fetchall()
            return [dict(zip(columns, row)) for row in rows]

    def execute(self, sql: str, params: Optional[dict] = None) -> int:
        """
        Execute statement (INSERT, UPDATE, DELETE, DDL).

        Returns:
            Number of affected rows
        """
        with self._cursor() as cursor:
            cursor.execute(sql, params or {})
            return cursor.rowcount

    def _insert(self, sql: str, params: dict) -> int:
        """Execute an INSERT and return the new row id."""
        with self._cursor() as cursor:
            cursor.execute(sql, params)
            return cursor.lastrowid

    def table_exists(self, table_name: str) -> bool:
        """Check if a table exists."""
        sql = """
            SELECT name FROM sqlite_master
            WHERE type='table' AND name=:table_name
        """
        result = self.query(sql, {"table_name": table_name})
        return len(result) > 0

    def get_table_row_count(self, table_name: str) -> int:
        """Get total row count for a table."""
        if table_name not in VALID_TABLES or not self.table_exists(table_name):
            raise SchemaError(f"Table '{table_name}' does not exist")

        # Use f-string here - table_name is validated above
        sql = f"SELECT COUNT(*) as count FROM {table_name}"
        result = self.query(sql)
        return result[0]["count"] if result else 0

    # =========================================================================
    # Clients
    # =========================================================================

    def list_clients(self) -> list[Client]:
        rows = self.query(f"SELECT {', '.join(CLIENT_COLUMNS)} FROM clients ORDER BY id")
        return [_client_from_row(row) for row in rows]

    def get_client(self, client_id: int) -> Client:
        rows = self.query(
            f"SELECT {', '.join(CLIENT_COLUMNS)} FROM clients WHERE id = :id",
            {"id": client_id},
        )
        if not rows:
            raise RecordNotFoundError(f"Client #{client_id} does not exist")
        return _client_from_row(rows[0])

    def add_client(
        self,
        name: str,
        gender: Optional[str] = None,
        age: Optional[int] = None,
        anamnesis: Optional[Anamnesis] = None,
    ) -> Client:
        params = {
            "name": name.strip(),
            "gender": as_value(gender),
            "age": age,
            "anamnesis": _encode_anamnesis(anamnesis),
        }
        client_id = self._insert(
            "INSERT INTO clients (name, gender, age, anamnesis) "
            "VALUES (:name, :gender, :age, :anamnesis)",
            params,
        )
        logger.debug(f"Added client #{client_id}")
        return _client_from_row({"id": client_id, **params})

    def update_client(
        self,
        client_id: int,
        name: str,
        gender: Optional[str] = None,
        age: Optional[int] = None,
    ) -> None:
        updated = self.execute(
            "UPDATE clients SET name = :name, gender = :gender, age = :age "
            "WHERE id = :id",
            {
                "id": client_id,
                "name": name.strip(),
                "gender": as_value(gender),
                "age": age,
            },
        )
        if updated == 0:
            raise RecordNotFoundError(f"Client #{client_id} does not exist")

    def set_anamnesis(self, client_id: int, anamnesis: Optional[Anamnesis]) -> None:
        updated = self.execute(
            "UPDATE clients SET anamnesis = :anamnesis WHERE id = :id",
            {"id": client_id, "anamnesis": _encode_anamnesis(anamnesis)},
        )
        if updated == 0:
            raise RecordNotFoundError(f"Client #{client_id} does not exist")

    def delete_client(self, client_id: int) -> None:
        self.execute("DELETE FROM clients WHERE id = :id", {"id": client_id})
        logger.debug(f"Deleted client #{client_id}")

    # =========================================================================
    # Cases
    # =========================================================================

    def list_cases(self, client_id: int) -> list[Case]:
        rows = self.query(
            f"SELECT {', '.join(CASE_COLUMNS)} FROM cases "
            "WHERE client_id = :client_id ORDER BY started_at DESC, id DESC",
            {"client_id": client_id},
        )
        return [_case_from_row(row) for row in rows]

    def get_case(self, case_id: int) -> Case:
        rows = self.query(
            f"SELECT {', '.join(CASE_COLUMNS)} FROM cases WHERE id = :id",
            {"id": case_id},
        )
        if not rows:
            raise RecordNotFoundError(f"Case #{case_id} does not exist")
        return _case_from_row(rows[0])

    def add_case(
        self,
        client_id: int,
        problem_category: str = "other",
        problem_text: str = "",
        started_at: Optional[str] = None,
        status: Optional[str] = None,
        severity: Optional[int] = None,
    ) -> Case:
        self.get_client(client_id)
        params = {
            "client_id": client_id,
            "problem_category": as_value(problem_category),
            "problem_text": problem_text,
            "started_at": started_at or datetime.now().astimezone().isoformat(),
            "status": as_value(status) or "open",
            "severity": severity,
        }
        case_id = self._insert(
            """
            INSERT INTO cases (
                client_id, problem_category, problem_text, started_at, status, severity
            ) VALUES (
                :client_id, :problem_category, :problem_text, :started_at, :status, :severity
            )
            """,
            params,
        )
        return Case(id=case_id, **params)

    def update_case(self, case_id: int, **changes: Any) -> None:
        check_changes(changes, UPDATABLE_CASE_COLUMNS, "case")
        self._update("cases", case_id, normalize_case_changes(changes), "Case")

    def delete_case(self, case_id: int) -> None:
        self.execute("DELETE FROM cases WHERE id = :id", {"id": case_id})

    # =========================================================================
    # Sessions
    # =========================================================================

    def list_sessions(self, case_id: int) -> list[Session]:
        rows = self.query(
            f"SELECT {', '.join(SESSION_COLUMNS)} FROM sessions "
            "WHERE case_id = :case_id ORDER BY started_at DESC, id DESC",
            {"case_id": case_id},
        )
        return [_session_from_row(row) for row in rows]

    def add_session(
        self,
        case_id: int,
        started_at: str,
        duration_min: Optional[float] = None,
        method: str = "other",
        sud_before: Optional[float] = None,
        sud_after: Optional[float] = None,
        emotional_release: Optional[str] = None,
        insights: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Session:
        self.get_case(case_id)
        params = {
            "case_id": case_id,
            "started_at": started_at,
            "duration_min": duration_min,
            "method": as_value(method),
            "sud_before": sud_before,
            "sud_after": sud_after,
            "emotional_release": emotional_release,
            "insights": insights,
            "notes": notes,
        }
        columns = list(params)
        session_id = self._insert(
            f"INSERT INTO sessions ({', '.join(columns)}) "
            f"VALUES ({', '.join(':' + col for col in columns)})",
            params,
        )
        return Session(id=session_id, **params)

    def update_session(self, session_id: int, **changes: Any) -> None:
        check_changes(changes, UPDATABLE_SESSION_COLUMNS, "session")
        self._update("sessions", session_id, changes, "Session")

    def delete_session(self, session_id: int) -> None:
        self.execute("DELETE FROM sessions WHERE id = :id", {"id": session_id})

    # =========================================================================
    # Reporting
    # =========================================================================

    def list_all_sessions_expanded(self) -> list[Row]:
        rows = self.query(EXPANDED_SESSIONS_QUERY)
        return [
            Row(
                session=_session_from_row(row, "s_"),
                case=_case_from_row(row, "c_"),
                client=_client_from_row(row, "cl_"),
            )
            for row in rows
        ]

    # =========================================================================
    # SQLite-specific helper methods
    # =========================================================================

    def _update(self, table: str, record_id: int, changes: dict, label: str) -> None:
        """Apply validated column changes to one record."""
        if not changes:
            # Still signal a missing record
            if not self.query(f"SELECT id FROM {table} WHERE id = :id", {"id": record_id}):
                raise RecordNotFoundError(f"{label} #{record_id} does not exist")
            return

        assignments = ", ".join(f"{col} = :{col}" for col in changes)
        params = {col: as_value(value) for col, value in changes.items()}
        params["id"] = record_id
        updated = self.execute(
            f"UPDATE {table} SET {assignments} WHERE id = :id", params
        )
        if updated == 0:
            raise RecordNotFoundError(f"{label} #{record_id} does not exist")

    def health_check(self) -> dict:
        """Extended health check with SQLite-specific info."""
        base_check = super().health_check()

        if base_check["healthy"]:
            try:
                db_size = (
                    self.db_path.stat().st_size
                    if not self._in_memory and self.db_path.exists()
                    else 0
                )
                base_check["details"].update(
                    {
                        "db_path": str(self.db_path),
                        "db_size_bytes": db_size,
                        "session_count": self.get_table_row_count("sessions"),
                    }
                )
            except (OSError, QueryError, SchemaError) as e:
                base_check["details"]["warning"] = str(e)

        return base_check
