"""
Shared fixtures for integration tests.

Provides:
- Memory and temporary SQLite backends
- A parametrized backend fixture that runs a test against both
- A small seeded practice for pipeline and export tests
"""

from pathlib import Path

import pytest

from notizia.pipeline import ReportPipeline
from notizia.storage import StorageBackend, get_backend

# =============================================================================
# SAMPLE DATA
# =============================================================================


def seed_practice(backend: StorageBackend) -> dict:
    """
    Insert a small practice into a backend.

    - Anna (w, 35): panic case (solved) with 3 coaching sessions
    - Ben (m, 22): sleep case (open) with 2 hypnosis sessions
    - Dani (d, 67): panic case (open) with 1 coaching session

    Returns:
        Dictionary of created records by short name
    """
    anna = backend.add_client("Anna Berger", gender="w", age=35)
    ben = backend.add_client("Ben Koch", gender="m", age=22)
    dani = backend.add_client("Dani Wolf", gender="d", age=67)

    anna_case = backend.add_case(
        anna.id,
        problem_category="panic",
        problem_text="Panik in der U-Bahn;\nseit 2 Jahren",
        started_at="2024-01-01T09:00:00",
        status="solved",
    )
    ben_case = backend.add_case(
        ben.id,
        problem_category="sleep",
        problem_text="Einschlafprobleme",
        started_at="2024-02-01T09:00:00",
    )
    dani_case = backend.add_case(
        dani.id,
        problem_category="panic",
        started_at="2024-03-01T09:00:00",
    )

    sessions = [
        backend.add_session(anna_case.id, "2024-01-05T09:00:00", 60, "coaching", 8, 4),
        backend.add_session(anna_case.id, "2024-01-12T09:00:00", 60, "coaching", 6, 3),
        backend.add_session(anna_case.id, "2024-02-02T09:00:00", 45, "coaching", 4, 2),
        backend.add_session(ben_case.id, "2024-02-10T14:00:00", 90, "klassische_hypnose"),
        backend.add_session(ben_case.id, "2024-02-24T14:00:00", 75, "klassische_hypnose", 7, 7),
        backend.add_session(dani_case.id, "2024-12-31T11:00:00", None, "coaching"),
    ]

    return {
        "anna": anna,
        "ben": ben,
        "dani": dani,
        "anna_case": anna_case,
        "ben_case": ben_case,
        "dani_case": dani_case,
        "sessions": sessions,
    }


# =============================================================================
# BACKEND FIXTURES
# =============================================================================


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "test_notizia.db"


@pytest.fixture
def memory_backend():
    """Empty in-memory backend."""
    backend = get_backend("memory")
    backend.initialize()
    yield backend
    backend.close()


@pytest.fixture
def sqlite_backend(temp_db_path: Path):
    """Empty SQLite backend on a temporary file."""
    backend = get_backend("sqlite", db_path=temp_db_path)
    backend.initialize()
    yield backend
    backend.close()


@pytest.fixture(params=["memory", "sqlite"])
def backend(request, temp_db_path: Path):
    """Run the test once per backend type."""
    kwargs = {"db_path": temp_db_path} if request.param == "sqlite" else {}
    backend = get_backend(request.param, **kwargs)
    backend.initialize()
    yield backend
    backend.close()


@pytest.fixture
def practice(backend) -> dict:
    """Seed the sample practice into the backend and return its records."""
    return seed_practice(backend)


@pytest.fixture
def report_pipeline(backend, practice):
    """Report pipeline over the seeded backend."""
    with ReportPipeline(backend=backend) as pipeline:
        yield pipeline
