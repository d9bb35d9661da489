"""
Pytest configuration and shared fixtures for unit tests.

Provides a small row builder so tests can describe sessions in one line.
"""

import itertools

import pytest

from notizia.schemas.domain import Case, Client, Row, Session

_session_ids = itertools.count(1)


def make_row(
    client_id: int = 1,
    case_id: int = 1,
    *,
    session_id: int = None,
    name: str = None,
    gender: str = None,
    age: int = None,
    problem: str = "other",
    status: str = "open",
    started_at: str = "2024-03-01T10:00:00",
    method: str = "other",
    duration_min: float = None,
    sud_before: float = None,
    sud_after: float = None,
) -> Row:
    """Build one expanded session row."""
    client = Client(
        id=client_id,
        name=name or f"Client {client_id}",
        gender=gender,
        age=age,
    )
    case = Case(
        id=case_id,
        client_id=client_id,
        problem_category=problem,
        status=status,
        started_at=started_at,
    )
    session = Session(
        id=session_id if session_id is not None else next(_session_ids),
        case_id=case_id,
        started_at=started_at,
        duration_min=duration_min,
        method=method,
        sud_before=sud_before,
        sud_after=sud_after,
    )
    return Row(session=session, case=case, client=client)


@pytest.fixture
def row_factory():
    """Fixture exposing make_row."""
    return make_row


@pytest.fixture
def sample_rows() -> list[Row]:
    """
    Mixed practice data.

    - Client 1 (w, 35): panic case 1 (solved), 3 coaching sessions
    - Client 2 (m, 22): sleep case 2 (open), 2 hypnosis sessions
    - Client 3 (d, 67): panic case 3 (open), 1 coaching session
    - Client 4 (no gender, no age): other case 4 (dropped), 1 other session
    """
    return [
        make_row(1, 1, session_id=1, gender="w", age=35, problem="panic",
                 status="solved", method="coaching", started_at="2024-01-05T09:00:00",
                 duration_min=60, sud_before=8, sud_after=4),
        make_row(1, 1, session_id=2, gender="w", age=35, problem="panic",
                 status="solved", method="coaching", started_at="2024-01-12T09:00:00",
                 duration_min=60, sud_before=6, sud_after=3),
        make_row(1, 1, session_id=3, gender="w", age=35, problem="panic",
                 status="solved", method="coaching", started_at="2024-02-02T09:00:00",
                 duration_min=45, sud_before=4, sud_after=2),
        make_row(2, 2, session_id=4, gender="m", age=22, problem="sleep",
                 status="open", method="klassische_hypnose",
                 started_at="2024-02-10T14:00:00", duration_min=90),
        make_row(2, 2, session_id=5, gender="m", age=22, problem="sleep",
                 status="open", method="klassische_hypnose",
                 started_at="2024-02-24T14:00:00", duration_min=75,
                 sud_before=7, sud_after=7),
        make_row(3, 3, session_id=6, gender="d", age=67, problem="panic",
                 status="open", method="coaching", started_at="2024-03-01T11:00:00"),
        make_row(4, 4, session_id=7, problem="other", status="dropped",
                 method="other", started_at="2024-03-15T16:00:00", duration_min=30),
    ]
