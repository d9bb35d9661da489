"""
In-memory storage backend.

Keeps clients, cases and sessions in dictionaries owned by the backend
instance. Nothing survives the process; intended for tests, demos and
one-off report runs over generated data.
"""

import logging
from copy import deepcopy
from dataclasses import replace
from datetime import datetime
from typing import Any, Optional

from ..schemas.domain import Anamnesis, Case, Client, Row, Session, as_value
from ..schemas.tables import UPDATABLE_CASE_COLUMNS, UPDATABLE_SESSION_COLUMNS
from .base import (
    RecordNotFoundError,
    StorageBackend,
    check_changes,
    newest_first,
    normalize_case_changes,
)

logger = logging.getLogger(__name__)


class MemoryBackend(StorageBackend):
    """
    In-memory storage backend.

    Every instance owns its own collections, so two backends never share
    records. Records handed out are copies; mutate through the update methods.
    """

    def __init__(self):
        self._clients: dict[int, Client] = {}
        self._cases: dict[int, Case] = {}
        self._sessions: dict[int, Session] = {}
        self._next_client_id = 1
        self._next_case_id = 1
        self._next_session_id = 1

    @property
    def backend_type(self) -> str:
        """Return backend type identifier."""
        return "memory"

    def initialize(self) -> None:
        """Nothing to create; collections exist from construction."""
        logger.debug("Memory backend ready")

    def close(self) -> None:
        """Nothing to release."""
        pass

    def clear(self) -> None:
        """Drop all records and reset id counters."""
        self._clients.clear()
        self._cases.clear()
        self._sessions.clear()
        self._next_client_id = 1
        self._next_case_id = 1
        self._next_session_id = 1

    # =========================================================================
    # Clients
    # =========================================================================

    def list_clients(self) -> list[Client]:
        return [deepcopy(c) for c in self._clients.values()]

    def get_client(self, client_id: int) -> Client:
        return deepcopy(self._require_client(client_id))

    def add_client(
        self,
        name: str,
        gender: Optional[str] = None,
        age: Optional[int] = None,
        anamnesis: Optional[Anamnesis] = None,
    ) -> Client:
        client = Client(
            id=self._next_client_id,
            name=name.strip(),
            gender=as_value(gender),
            age=age,
            anamnesis=deepcopy(anamnesis),
        )
        self._next_client_id += 1
        self._clients[client.id] = client
        logger.debug(f"Added client #{client.id}")
        return deepcopy(client)

    def update_client(
        self,
        client_id: int,
        name: str,
        gender: Optional[str] = None,
        age: Optional[int] = None,
    ) -> None:
        client = self._require_client(client_id)
        client.name = name.strip()
        client.gender = as_value(gender)
        client.age = age

    def set_anamnesis(self, client_id: int, anamnesis: Optional[Anamnesis]) -> None:
        self._require_client(client_id).anamnesis = deepcopy(anamnesis)

    def delete_client(self, client_id: int) -> None:
        case_ids = {cs.id for cs in self._cases.values() if cs.client_id == client_id}
        self._clients.pop(client_id, None)
        for case_id in case_ids:
            self._drop_case(case_id)
        logger.debug(f"Deleted client #{client_id} with {len(case_ids)} case(s)")

    # =========================================================================
    # Cases
    # =========================================================================

    def list_cases(self, client_id: int) -> list[Case]:
        cases = [replace(cs) for cs in self._cases.values() if cs.client_id == client_id]
        return newest_first(cases)

    def get_case(self, case_id: int) -> Case:
        return replace(self._require_case(case_id))

    def add_case(
        self,
        client_id: int,
        problem_category: str = "other",
        problem_text: str = "",
        started_at: Optional[str] = None,
        status: Optional[str] = None,
        severity: Optional[int] = None,
    ) -> Case:
        self._require_client(client_id)
        case = Case(
            id=self._next_case_id,
            client_id=client_id,
            problem_category=as_value(problem_category),
            problem_text=problem_text,
            started_at=started_at or datetime.now().astimezone().isoformat(),
            status=as_value(status) or "open",
            severity=severity,
        )
        self._next_case_id += 1
        self._cases[case.id] = case
        return replace(case)

    def update_case(self, case_id: int, **changes: Any) -> None:
        check_changes(changes, UPDATABLE_CASE_COLUMNS, "case")
        case = self._require_case(case_id)
        for key, value in normalize_case_changes(changes).items():
            setattr(case, key, value)

    def delete_case(self, case_id: int) -> None:
        self._drop_case(case_id)

    # =========================================================================
    # Sessions
    # =========================================================================

    def list_sessions(self, case_id: int) -> list[Session]:
        sessions = [replace(s) for s in self._sessions.values() if s.case_id == case_id]
        return newest_first(sessions)

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
        self._require_case(case_id)
        session = Session(
            id=self._next_session_id,
            case_id=case_id,
            started_at=started_at,
            duration_min=duration_min,
            method=as_value(method),
            sud_before=sud_before,
            sud_after=sud_after,
            emotional_release=emotional_release,
            insights=insights,
            notes=notes,
        )
        self._next_session_id += 1
        self._sessions[session.id] = session
        return replace(session)

    def update_session(self, session_id: int, **changes: Any) -> None:
        check_changes(changes, UPDATABLE_SESSION_COLUMNS, "session")
        session = self._sessions.get(session_id)
        if session is None:
            raise RecordNotFoundError(f"Session #{session_id} does not exist")
        for key, value in changes.items():
            setattr(session, key, as_value(value))

    def delete_session(self, session_id: int) -> None:
        self._sessions.pop(session_id, None)

    # =========================================================================
    # Reporting
    # =========================================================================

    def list_all_sessions_expanded(self) -> list[Row]:
        rows = []
        for session in newest_first(list(self._sessions.values())):
            case = self._cases.get(session.case_id)
            if case is None:
                continue
            client = self._clients.get(case.client_id)
            if client is None:
                continue
            rows.append(
                Row(session=replace(session), case=replace(case), client=deepcopy(client))
            )
        return rows

    # =========================================================================
    # Helpers
    # =========================================================================

    def _require_client(self, client_id: int) -> Client:
        client = self._clients.get(client_id)
        if client is None:
            raise RecordNotFoundError(f"Client #{client_id} does not exist")
        return client

    def _require_case(self, case_id: int) -> Case:
        case = self._cases.get(case_id)
        if case is None:
            raise RecordNotFoundError(f"Case #{case_id} does not exist")
        return case

    def _drop_case(self, case_id: int) -> None:
        self._cases.pop(case_id, None)
        for session_id in [s.id for s in self._sessions.values() if s.case_id == case_id]:
            del self._sessions[session_id]
