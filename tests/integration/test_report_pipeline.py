"""
Integration tests for the report pipeline.

Tests the full load -> filter -> aggregate flow against both backends.
"""

import json
import logging

import pytest

from notizia.pipeline import ReportPipeline, setup_logging
from notizia.reporting import Query
from notizia.storage import QueryError
from notizia.storage.memory_backend import MemoryBackend


class TestReportPipelineRun:
    """Tests for ReportPipeline.run."""

    def test_run_without_query(self, report_pipeline):
        """All sessions are reported when no query is given."""
        run = report_pipeline.run()

        assert run.success is True
        assert run.rows_loaded == 6
        assert run.rows_matched == 6
        assert run.result.total_sessions == 6
        assert run.result.closed_cases == 1
        assert run.errors == []

    def test_run_with_method_filter(self, report_pipeline):
        """Only matching sessions are aggregated."""
        run = report_pipeline.run(Query(method="coaching"))

        assert run.rows_loaded == 6
        assert run.rows_matched == 4
        assert [(m.method, m.count) for m in run.result.sessions_by_method] == [
            ("coaching", 4)
        ]

    def test_run_with_min_sessions(self, report_pipeline):
        """Clients with fewer sessions are left out."""
        run = report_pipeline.run(Query(min_sessions_per_client=2))
        assert run.rows_matched == 5
        assert run.result.by_gender.d == 0

    def test_trend_across_year_boundary(self, report_pipeline):
        """The New Year's Eve session is in December and ISO week 2025-W01."""
        run = report_pipeline.run(Query(gender="d"))
        assert [k.key for k in run.result.trend_month] == ["2024-12"]
        assert [k.key for k in run.result.trend_week] == ["2025-W01"]

    def test_crosstabs_included(self, report_pipeline):
        """Cross-tabulations are computed by default."""
        run = report_pipeline.run()
        assert run.crosstabs is not None
        assert run.crosstabs.problem_distribution[0].key == "panic"
        assert run.crosstabs.avg_sessions_per_closed_case[0].avg == 3

    def test_crosstabs_skipped(self, report_pipeline):
        """include_crosstabs=False leaves them out."""
        run = report_pipeline.run(include_crosstabs=False)
        assert run.crosstabs is None

    def test_no_match(self, report_pipeline):
        """A query without matches still succeeds with empty statistics."""
        run = report_pipeline.run(Query(problem="pain"))
        assert run.success is True
        assert run.rows_matched == 0
        assert run.result.total_sessions == 0
        assert run.result.dur.mean is None

    def test_to_dict_is_json_serializable(self, report_pipeline):
        """The run result can be written as JSON."""
        data = report_pipeline.run(Query(problem="panic")).to_dict()
        text = json.dumps(data)
        assert '"totalSessions": 4' in text
        assert data["query"]["problem"] == "panic"
        assert data["duration_seconds"] >= 0

    def test_storage_failure_reported(self, monkeypatch, caplog):
        """Storage errors give success=False with the message in errors."""
        backend = MemoryBackend()

        def fail():
            raise QueryError("database is locked")

        monkeypatch.setattr(backend, "list_all_sessions_expanded", fail)

        with caplog.at_level(logging.ERROR):
            with ReportPipeline(backend=backend) as pipeline:
                run = pipeline.run()

        assert run.success is False
        assert run.errors == ["database is locked"]
        assert run.result is None
        assert run.completed_at is not None
        assert "Report run failed" in caplog.text


class TestReportPipelineBackends:
    """Backend ownership and construction."""

    def test_creates_sqlite_backend_from_path(self, temp_db_path):
        """A db_path creates and owns an SQLite backend."""
        with ReportPipeline(db_path=temp_db_path) as pipeline:
            assert pipeline.backend.backend_type == "sqlite"
            run = pipeline.run()
        assert run.success is True
        assert run.rows_loaded == 0

    def test_creates_memory_backend(self):
        """backend_type='memory' works without a path."""
        with ReportPipeline(backend_type="memory") as pipeline:
            assert pipeline.backend.backend_type == "memory"

    def test_passed_backend_stays_open(self, sqlite_backend):
        """A backend passed in is not closed with the pipeline."""
        with ReportPipeline(backend=sqlite_backend):
            pass
        sqlite_backend.add_client("Anna")
        assert len(sqlite_backend.list_clients()) == 1


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_log_file(self, tmp_path):
        """Records are also written to the log file."""
        log_file = tmp_path / "logs" / "report.log"
        setup_logging(level=logging.INFO, log_file=log_file)
        try:
            logging.getLogger("notizia.test").info("hello from test")
            for handler in logging.getLogger().handlers:
                handler.flush()
            assert "hello from test" in log_file.read_text(encoding="utf-8")
        finally:
            root = logging.getLogger()
            for handler in list(root.handlers):
                if isinstance(handler, logging.FileHandler):
                    root.removeHandler(handler)
                    handler.close()

    @pytest.mark.parametrize("level", [logging.DEBUG, logging.WARNING])
    def test_level(self, level):
        """The root logger gets the requested level."""
        root = logging.getLogger()
        previous = root.level
        try:
            setup_logging(level=level)
            assert root.level == level
        finally:
            root.setLevel(previous)
