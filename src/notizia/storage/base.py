"""
Abstract base class for storage backends.

Provides a unified interface for client, case and session records,
enabling switching between the in-memory store and SQLite.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional

from ..config.constants import DEFAULT_CASE_STATUS
from ..schemas.domain import Anamnesis, Case, Client, Row, Session, as_value


class StorageBackend(ABC):
    """
    Abstract base class for storage backends.

    All storage implementations (memory, SQLite) must implement this interface
    to ensure consistent behavior across backends.
    """

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Return the backend type identifier (e.g., 'sqlite')."""
        pass

    @abstractmethod
    def initialize(self) -> None:
        """
        Initialize the storage backend.

        Creates tables and indexes if they don't exist.
        Should be idempotent - safe to call multiple times.
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """
        Close connections and release resources.

        Should be called when the backend is no longer needed.
        """
        pass

    # =========================================================================
    # Clients
    # =========================================================================

    @abstractmethod
    def list_clients(self) -> list[Client]:
        """Return all clients."""
        pass

    @abstractmethod
    def get_client(self, client_id: int) -> Client:
        """
        Return a single client.

        Raises:
            RecordNotFoundError: If no client has this id.
        """
        pass

    @abstractmethod
    def add_client(
        self,
        name: str,
        gender: Optional[str] = None,
        age: Optional[int] = None,
        anamnesis: Optional[Anamnesis] = None,
    ) -> Client:
        """Create a client; the name is stored trimmed."""
        pass

    @abstractmethod
    def update_client(
        self,
        client_id: int,
        name: str,
        gender: Optional[str] = None,
        age: Optional[int] = None,
    ) -> None:
        """
        Replace name, gender and age of a client.

        The intake record is left unchanged; see set_anamnesis().

        Raises:
            RecordNotFoundError: If no client has this id.
        """
        pass

    @abstractmethod
    def set_anamnesis(self, client_id: int, anamnesis: Optional[Anamnesis]) -> None:
        """
        Replace the intake record of a client; None removes it.

        Raises:
            RecordNotFoundError: If no client has this id.
        """
        pass

    @abstractmethod
    def delete_client(self, client_id: int) -> None:
        """Delete a client together with its cases and their sessions."""
        pass

    # =========================================================================
    # Cases
    # =========================================================================

    @abstractmethod
    def list_cases(self, client_id: int) -> list[Case]:
        """Return the cases of a client, newest first."""
        pass

    @abstractmethod
    def get_case(self, case_id: int) -> Case:
        """
        Return a single case.

        Raises:
            RecordNotFoundError: If no case has this id.
        """
        pass

    @abstractmethod
    def add_case(
        self,
        client_id: int,
        problem_category: str = "other",
        problem_text: str = "",
        started_at: Optional[str] = None,
        status: Optional[str] = None,
        severity: Optional[int] = None,
    ) -> Case:
        """
        Create a case for a client. Status defaults to 'open',
        started_at defaults to now.

        Raises:
            RecordNotFoundError: If the client does not exist.
        """
        pass

    @abstractmethod
    def update_case(self, case_id: int, **changes: Any) -> None:
        """
        Update fields of a case (e.g. status once the problem is resolved).

        Raises:
            RecordNotFoundError: If no case has this id.
            ValueError: If a change names an unknown field.
        """
        pass

    @abstractmethod
    def delete_case(self, case_id: int) -> None:
        """Delete a case together with its sessions."""
        pass

    # =========================================================================
    # Sessions
    # =========================================================================

    @abstractmethod
    def list_sessions(self, case_id: int) -> list[Session]:
        """Return the sessions of a case, newest first."""
        pass

    @abstractmethod
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
        """
        Record a session for a case.

        Raises:
            RecordNotFoundError: If the case does not exist.
        """
        pass

    @abstractmethod
    def update_session(self, session_id: int, **changes: Any) -> None:
        """
        Update fields of a session.

        Raises:
            RecordNotFoundError: If no session has this id.
            ValueError: If a change names an unknown field.
        """
        pass

    @abstractmethod
    def delete_session(self, session_id: int) -> None:
        """Delete a single session."""
        pass

    # =========================================================================
    # Reporting
    # =========================================================================

    @abstractmethod
    def list_all_sessions_expanded(self) -> list[Row]:
        """
        Return every session joined with its case and client.

        Sessions whose case or client is missing are skipped.
        Rows are ordered newest first by session start.
        """
        pass

    def health_check(self) -> dict:
        """
        Perform a health check on the storage backend.

        Returns:
            Dictionary with health status information:
            {
                "healthy": bool,
                "backend_type": str,
                "message": str,
                "details": dict
            }
        """
        try:
            clients = self.list_clients()
            return {
                "healthy": True,
                "backend_type": self.backend_type,
                "message": "Backend is operational",
                "details": {"client_count": len(clients)},
            }
        except Exception as e:
            return {
                "healthy": False,
                "backend_type": self.backend_type,
                "message": f"Health check failed: {str(e)}",
                "details": {"error": str(e)},
            }

    def __enter__(self) -> "StorageBackend":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - ensures resources are released."""
        self.close()


def check_changes(changes: dict, allowed: Iterable[str], record: str) -> None:
    """Reject update keys that are not columns of the record."""
    unknown = sorted(set(changes) - set(allowed))
    if unknown:
        raise ValueError(f"Unknown {record} field(s): {', '.join(unknown)}")


def normalize_case_changes(changes: dict) -> dict:
    """Return case changes with persisted values; a missing status means open."""
    normalized = {key: as_value(value) for key, value in changes.items()}
    if "status" in normalized and not normalized["status"]:
        normalized["status"] = DEFAULT_CASE_STATUS
    return normalized


def newest_first(records: list, key: str = "started_at") -> list:
    """Sort records by start timestamp descending, then id descending."""
    return sorted(
        records,
        key=lambda r: (getattr(r, key) or "", r.id),
        reverse=True,
    )


class StorageError(Exception):
    """Base exception for storage backend errors."""

    pass


class StorageConnectionError(StorageError):
    """Raised when connection to storage backend fails."""

    pass


class QueryError(StorageError):
    """Raised when a query fails to execute."""

    pass


class SchemaError(StorageError):
    """Raised when there's a schema-related error."""

    pass


class RecordNotFoundError(StorageError):
    """Raised when a client, case or session id does not exist."""

    pass
