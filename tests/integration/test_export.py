"""
Integration tests for session exports.

Tests CSV, JSON and Excel output from backend rows.
"""

import json

import pandas as pd
import pytest

from notizia.reporting import (
    Query,
    export_to_csv,
    export_to_excel,
    export_to_json,
    filter_rows,
    rows_to_dataframe,
)
from notizia.reporting.export import EXPORT_COLUMNS


@pytest.fixture
def rows(backend, practice):
    """All seeded rows, newest first."""
    return backend.list_all_sessions_expanded()


class TestRowsToDataframe:
    """Tests for rows_to_dataframe function."""

    def test_columns(self, rows):
        """Every export has the same column layout."""
        df = rows_to_dataframe(rows)
        assert list(df.columns) == EXPORT_COLUMNS
        assert len(df) == 6

    def test_empty_rows(self):
        """No rows gives an empty frame with all columns."""
        df = rows_to_dataframe([])
        assert df.empty
        assert list(df.columns) == EXPORT_COLUMNS

    def test_anonymize(self, rows, practice):
        """Client names are replaced by 'Client <id>'."""
        df = rows_to_dataframe(rows, anonymize=True)
        assert "Anna Berger" not in set(df["client"])
        assert f"Client {practice['anna'].id}" in set(df["client"])

    def test_closed_only(self, rows):
        """Only sessions of closed cases are kept."""
        df = rows_to_dataframe(rows, closed_only=True)
        assert len(df) == 3
        assert set(df["case_status"]) == {"solved"}

    def test_problem_text_on_one_line(self, rows):
        """Line breaks and separators in problem text are collapsed."""
        df = rows_to_dataframe(rows)
        texts = set(df["problem_text"])
        assert "Panik in der U-Bahn seit 2 Jahren" in texts

    def test_sud_delta_column(self, rows):
        """sud_delta is before minus after."""
        df = rows_to_dataframe(rows)
        first_anna = df[df["date"] == "2024-01-05T09:00:00"].iloc[0]
        assert first_anna["sud_delta"] == 4


class TestExportToCsv:
    """Tests for export_to_csv function."""

    def test_writes_semicolon_csv(self, rows, tmp_path):
        """The CSV uses ';' as separator and has a header row."""
        path = tmp_path / "out" / "sessions.csv"
        count = export_to_csv(rows, path)

        assert count == 6
        header = path.read_text(encoding="utf-8").splitlines()[0]
        assert header == ";".join(EXPORT_COLUMNS)

        df = pd.read_csv(path, sep=";")
        assert len(df) == 6

    def test_whole_numbers_without_decimals(self, backend, tmp_path):
        """Ages and minutes stay integers even when other rows lack them."""
        with_age = backend.add_client("Carla", age=34)
        without_age = backend.add_client("Dirk")
        case = backend.add_case(with_age.id)
        other_case = backend.add_case(without_age.id)
        backend.add_session(case.id, "2024-01-01T10:00:00", duration_min=60)
        backend.add_session(other_case.id, "2024-01-02T10:00:00")

        path = tmp_path / "gaps.csv"
        export_to_csv(backend.list_all_sessions_expanded(), path)
        text = path.read_text(encoding="utf-8")

        carla = next(line for line in text.splitlines() if ";Carla;" in line)
        assert ";34;" in carla
        assert ";60;" in carla
        assert ".0" not in text

    def test_fractional_values_kept(self, backend, tmp_path):
        """Non-whole ratings are written unchanged."""
        client = backend.add_client("Carla")
        case = backend.add_case(client.id)
        backend.add_session(case.id, "2024-01-01T10:00:00", sud_before=6.5, sud_after=2)

        path = tmp_path / "fractions.csv"
        export_to_csv(backend.list_all_sessions_expanded(), path)
        assert ";6.5;2;4.5" in path.read_text(encoding="utf-8")

    def test_filtered_and_anonymized(self, rows, tmp_path):
        """Filtering and options combine."""
        path = tmp_path / "coaching.csv"
        coaching = filter_rows(rows, Query(method="coaching"))
        count = export_to_csv(coaching, path, anonymize=True, closed_only=True)

        assert count == 3
        assert "Anna" not in path.read_text(encoding="utf-8")


class TestExportToJson:
    """Tests for export_to_json function."""

    def test_nested_records(self, rows, tmp_path):
        """Each record nests its case and session."""
        path = tmp_path / "sessions.json"
        count = export_to_json(rows, path)

        data = json.loads(path.read_text(encoding="utf-8"))
        assert count == len(data) == 6
        record = data[0]
        assert set(record) == {"date", "client", "gender", "age", "case", "session"}
        assert record["case"]["status"] in {"open", "solved"}
        assert "method" in record["session"]

    def test_without_sessions(self, rows, tmp_path):
        """include_sessions=False drops the session objects."""
        path = tmp_path / "cases.json"
        export_to_json(rows, path, include_sessions=False)
        data = json.loads(path.read_text(encoding="utf-8"))
        assert all("session" not in record for record in data)

    def test_keeps_umlauts(self, backend, tmp_path):
        """Non-ASCII text is written as-is."""
        client = backend.add_client("Jürgen Müller")
        case = backend.add_case(client.id, problem_text="Prüfungsangst")
        backend.add_session(case.id, "2024-01-01T10:00:00")
        path = tmp_path / "umlauts.json"
        export_to_json(backend.list_all_sessions_expanded(), path)
        assert "Jürgen Müller" in path.read_text(encoding="utf-8")


class TestExportToExcel:
    """Tests for export_to_excel function."""

    def test_sheets(self, rows, tmp_path):
        """The workbook has a Sessions and a Summary sheet."""
        path = tmp_path / "report.xlsx"
        count = export_to_excel(rows, path, anonymize=True)

        assert count == 6
        sheets = pd.read_excel(path, sheet_name=None, engine="openpyxl")
        assert set(sheets) == {"Sessions", "Summary"}
        assert len(sheets["Sessions"]) == 6
        assert list(sheets["Sessions"].columns) == EXPORT_COLUMNS

        summary = dict(zip(sheets["Summary"]["figure"], sheets["Summary"]["value"]))
        assert summary["sessions"] == 6
        assert summary["closed_cases"] == 1
        assert summary["method:coaching"] == 4

    def test_closed_only_summary(self, rows, tmp_path):
        """The summary describes the exported sessions only."""
        path = tmp_path / "closed.xlsx"
        count = export_to_excel(rows, path, closed_only=True)

        summary_df = pd.read_excel(path, sheet_name="Summary", engine="openpyxl")
        summary = dict(zip(summary_df["figure"], summary_df["value"]))
        assert count == 3
        assert summary["sessions"] == 3
