"""
Pytest configuration and fixtures for performance tests.

Provides fixtures for generating large row sets and seeded databases.
"""

import random
from datetime import datetime, timedelta

import pytest

from notizia.config.constants import GENDERS, METHODS, PROBLEM_CATEGORIES
from notizia.schemas.domain import Case, Client, Row, Session
from notizia.storage import get_backend


def generate_rows(num_sessions: int, sessions_per_case: int = 5, seed: int = 42) -> list[Row]:
    """Generate expanded session rows without touching storage."""
    rng = random.Random(seed)
    base = datetime(2023, 1, 1, 9, 0)
    rows = []

    client = case = None
    for i in range(num_sessions):
        if i % sessions_per_case == 0:
            case_id = i // sessions_per_case + 1
            client = Client(
                id=case_id,
                name=f"Client {case_id}",
                gender=rng.choice(GENDERS + (None,)),
                age=rng.choice([None, rng.randint(10, 85)]),
            )
            case = Case(
                id=case_id,
                client_id=client.id,
                problem_category=rng.choice(PROBLEM_CATEGORIES),
                status=rng.choice(["open", "solved", "dropped", "Erledigt"]),
            )
        sud_before = rng.randint(3, 10)
        session = Session(
            id=i + 1,
            case_id=case.id,
            started_at=(base + timedelta(hours=rng.randint(0, 24 * 730))).isoformat(),
            duration_min=rng.choice([45, 60, 75, 90, None]),
            method=rng.choice(METHODS),
            sud_before=sud_before,
            sud_after=rng.randint(0, sud_before),
        )
        rows.append(Row(session=session, case=case, client=client))

    return rows


@pytest.fixture
def row_generator():
    """Factory fixture for generating row sets of a given size."""
    return generate_rows


@pytest.fixture
def seeded_sqlite_backend(tmp_path):
    """SQLite backend with 1,000 clients and 10,000 sessions."""
    backend = get_backend("sqlite", db_path=tmp_path / "perf.db")
    backend.initialize()

    rng = random.Random(7)
    for c in range(1000):
        client = backend.add_client(
            f"Client {c}", gender=rng.choice(GENDERS), age=rng.randint(18, 80)
        )
        case = backend.add_case(
            client.id,
            problem_category=rng.choice(PROBLEM_CATEGORIES),
            started_at="2024-01-01T09:00:00",
        )
        for s in range(10):
            backend.add_session(
                case.id,
                f"2024-{(s % 12) + 1:02d}-15T10:00:00",
                60,
                rng.choice(METHODS),
                8,
                rng.randint(0, 8),
            )

    yield backend
    backend.close()
