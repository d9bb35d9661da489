"""
Report pipeline over the storage abstraction.

Loads every session with its case and client from a StorageBackend,
applies a Query, and aggregates the matching rows into a Result and,
optionally, the cross-tabulations.

Stages:
1. Load: list_all_sessions_expanded()
2. Filter: filter_rows(rows, query)
3. Aggregate: run_analytics(matched)
4. Cross-tabulate: cross_tabulate(matched) (optional)
"""

import logging
import sys
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..reporting.analytics import Result, run_analytics
from ..reporting.crosstabs import CrossTabs, cross_tabulate
from ..reporting.filters import Query, filter_rows
from ..storage import StorageBackend, get_backend

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: int = logging.INFO, log_file: Optional[Path] = None) -> None:
    """
    Configure root logging for scripts.

    Args:
        level: Logging level (e.g. logging.DEBUG)
        log_file: Optional file that receives the same records as stderr
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
        force=True,
    )


@dataclass
class ReportRunResult:
    """Result of a report pipeline run."""

    success: bool
    query: Query
    started_at: datetime = field(default_factory=lambda: datetime.now().astimezone())
    completed_at: Optional[datetime] = None
    # Stats
    rows_loaded: int = 0
    rows_matched: int = 0
    # Output
    result: Optional[Result] = None
    crosstabs: Optional[CrossTabs] = None
    # Errors
    errors: list[str] = field(default_factory=list)

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get run duration in seconds."""
        if self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> dict:
        """Convert to dictionary for logging/serialization."""
        return {
            "success": self.success,
            "query": self.query.to_dict(),
            "started_at": self.started_at.isoformat(),
            "completed_at": (
                self.completed_at.isoformat() if self.completed_at else None
            ),
            "duration_seconds": self.duration_seconds,
            "rows_loaded": self.rows_loaded,
            "rows_matched": self.rows_matched,
            "result": self.result.to_dict() if self.result else None,
            "crosstabs": self.crosstabs.to_dict() if self.crosstabs else None,
            "errors": self.errors,
        }


class ReportPipeline:
    """
    Report pipeline using the storage abstraction.

    Works with the memory and SQLite backends through the StorageBackend
    interface. A backend passed in stays open after close(); a backend
    created here is closed with the pipeline.

    Example:
        with ReportPipeline(backend_type="sqlite", db_path=Path("data/notizia.db")) as p:
            run = p.run(Query(method="coaching"))
            print(run.result.total_sessions)
    """

    def __init__(
        self,
        backend: Optional[StorageBackend] = None,
        backend_type: Optional[str] = None,
        db_path: Optional[Path] = None,
    ):
        """
        Initialize the report pipeline.

        Args:
            backend: Pre-initialized StorageBackend (optional)
            backend_type: Backend type if creating new ('memory' or 'sqlite');
                          None reads it from settings
            db_path: Path to SQLite database (for sqlite backend)
        """
        if backend:
            self._backend = backend
            self._owns_backend = False
        else:
            kwargs = {}
            if db_path and backend_type in (None, "sqlite"):
                backend_type = "sqlite"
                kwargs["db_path"] = db_path
            self._backend = get_backend(backend_type, **kwargs)
            self._owns_backend = True

        self._backend_type = self._backend.backend_type
        self._initialized = False

        logger.info(f"ReportPipeline initialized with {self._backend_type} backend")

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    def initialize(self) -> None:
        """Initialize the backend (create tables if needed)."""
        if not self._initialized:
            self._backend.initialize()
            self._initialized = True

    def close(self) -> None:
        """Close the backend connection."""
        if self._owns_backend:
            self._backend.close()

    def __enter__(self) -> "ReportPipeline":
        """Context manager entry."""
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()

    def run(
        self,
        query: Optional[Query] = None,
        include_crosstabs: bool = True,
    ) -> ReportRunResult:
        """
        Run a report for a query.

        Args:
            query: Filter criteria (None reports on every session)
            include_crosstabs: Also compute the cross-tabulations

        Returns:
            ReportRunResult; on storage failure success is False and the
            message is in errors
        """
        query = query or Query()
        run = ReportRunResult(success=False, query=query)

        logger.info(f"Starting report run (query={query.to_dict()})")

        try:
            self.initialize()

            logger.info("[1/3] Loading sessions...")
            rows = self._backend.list_all_sessions_expanded()
            run.rows_loaded = len(rows)
            logger.info(f"  Loaded {run.rows_loaded:,} sessions")

            logger.info("[2/3] Filtering...")
            matched = filter_rows(rows, query)
            run.rows_matched = len(matched)
            logger.info(f"  {run.rows_matched:,} sessions match")

            if run.rows_matched == 0:
                logger.warning("  No sessions match the query")

            logger.info("[3/3] Aggregating...")
            run.result = run_analytics(matched)
            if include_crosstabs:
                run.crosstabs = cross_tabulate(matched)
            run.success = True

            if run.result.unparsed_timestamps:
                logger.warning(
                    f"  {run.result.unparsed_timestamps} sessions without "
                    f"a parseable start time"
                )

        except Exception as e:
            logger.exception(f"Report run failed: {e}")
            run.errors.append(str(e))

        run.completed_at = datetime.now().astimezone()

        if run.success:
            logger.info(f"Report completed in {run.duration_seconds:.2f}s")
        else:
            logger.error(f"Report failed: {run.errors}")

        return run
