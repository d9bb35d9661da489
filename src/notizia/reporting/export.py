"""
Export of session rows to CSV, JSON and Excel.

Rows are flattened one line per session. Client names can be replaced
by "Client <id>" for anonymized hand-outs, and the export can be
restricted to sessions of closed cases.
"""

import json
import logging
from pathlib import Path
from typing import Iterable

import pandas as pd

from ..schemas.domain import Row, as_value, is_closed
from .analytics import run_analytics

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    "date",
    "client",
    "gender",
    "age",
    "problem_category",
    "problem_text",
    "case_status",
    "method",
    "duration_min",
    "sud_before",
    "sud_after",
    "sud_delta",
]

CSV_SEPARATOR = ";"


def client_display_name(row: Row, anonymize: bool) -> str:
    """Client name as it appears in exports."""
    if anonymize:
        return f"Client {row.client.id}"
    return row.client.name


def _clean_text(text: str) -> str:
    """Collapse line breaks and separators so a CSV cell stays on one line."""
    normalized = (text or "").replace("\r", "\n").replace(";", "\n")
    return " ".join(part.strip() for part in normalized.split("\n") if part.strip())


def _plain_number(value):
    """Whole floats become ints so 60.0 is written as 60."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def select_export_rows(rows: Iterable[Row], closed_only: bool = False) -> list[Row]:
    """Return the rows to export, optionally only those of closed cases."""
    rows = list(rows)
    if closed_only:
        rows = [r for r in rows if is_closed(r.case.status)]
    return rows


def rows_to_dataframe(
    rows: Iterable[Row],
    anonymize: bool = False,
    closed_only: bool = False,
) -> pd.DataFrame:
    """
    Flatten rows into a DataFrame with one line per session.

    Args:
        rows: Expanded session rows
        anonymize: Replace client names by "Client <id>"
        closed_only: Keep only sessions of closed cases

    Returns:
        DataFrame with EXPORT_COLUMNS
    """
    records = []
    for r in select_export_rows(rows, closed_only):
        records.append(
            {
                "date": r.session.started_at,
                "client": client_display_name(r, anonymize),
                "gender": as_value(r.client.gender),
                "age": _plain_number(r.client.age),
                "problem_category": as_value(r.case.problem_category),
                "problem_text": _clean_text(r.case.problem_text),
                "case_status": as_value(r.case.status),
                "method": as_value(r.session.method),
                "duration_min": _plain_number(r.session.duration_min),
                "sud_before": _plain_number(r.session.sud_before),
                "sud_after": _plain_number(r.session.sud_after),
                "sud_delta": _plain_number(r.session.sud_delta),
            }
        )
    # object dtype keeps ints as ints when a column has gaps
    return pd.DataFrame(records, columns=EXPORT_COLUMNS, dtype=object)


def export_to_csv(
    rows: Iterable[Row],
    output_path: Path,
    anonymize: bool = False,
    closed_only: bool = False,
) -> int:
    """
    Export rows to a semicolon-separated CSV file.

    Returns:
        Number of rows exported
    """
    df = rows_to_dataframe(rows, anonymize=anonymize, closed_only=closed_only)

    # Ensure output directory exists
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    df.to_csv(output_path, index=False, sep=CSV_SEPARATOR)
    logger.info(f"Exported {len(df)} sessions to {output_path}")

    return len(df)


def rows_to_records(
    rows: Iterable[Row],
    anonymize: bool = False,
    closed_only: bool = False,
    include_sessions: bool = True,
) -> list[dict]:
    """Nested per-session records for JSON export."""
    records = []
    for r in select_export_rows(rows, closed_only):
        record = {
            "date": r.session.started_at,
            "client": client_display_name(r, anonymize),
            "gender": as_value(r.client.gender),
            "age": _plain_number(r.client.age),
            "case": {
                "id": r.case.id,
                "problem_category": as_value(r.case.problem_category),
                "problem_text": r.case.problem_text,
                "status": as_value(r.case.status),
            },
        }
        if include_sessions:
            record["session"] = {
                "id": r.session.id,
                "method": as_value(r.session.method),
                "duration_min": _plain_number(r.session.duration_min),
                "sud_before": _plain_number(r.session.sud_before),
                "sud_after": _plain_number(r.session.sud_after),
            }
        records.append(record)
    return records


def export_to_json(
    rows: Iterable[Row],
    output_path: Path,
    anonymize: bool = False,
    closed_only: bool = False,
    include_sessions: bool = True,
) -> int:
    """
    Export rows to a JSON array of nested records.

    Returns:
        Number of rows exported
    """
    records = rows_to_records(
        rows,
        anonymize=anonymize,
        closed_only=closed_only,
        include_sessions=include_sessions,
    )

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(
        json.dumps(records, indent=2, ensure_ascii=False), encoding="utf-8"
    )
    logger.info(f"Exported {len(records)} sessions to {output_path}")

    return len(records)


def _summary_frame(rows: list[Row]) -> pd.DataFrame:
    """Key figures of run_analytics as a two-column sheet."""
    result = run_analytics(rows)
    figures = [
        ("sessions", result.total_sessions),
        ("closed_cases", result.closed_cases),
        ("duration_mean", result.dur.mean),
        ("duration_median", result.dur.median),
        ("sud_delta_mean", result.sud_delta.mean),
        ("sud_delta_median", result.sud_delta.median),
    ]
    figures.extend((f"method:{m.method}", m.count) for m in result.sessions_by_method)
    figures.extend((f"age:{a.label}", a.count) for a in result.by_age_class)
    return pd.DataFrame(figures, columns=["figure", "value"])


def export_to_excel(
    rows: Iterable[Row],
    output_path: Path,
    anonymize: bool = False,
    closed_only: bool = False,
) -> int:
    """
    Export rows to an Excel workbook.

    Sheets:
        - Sessions: One line per exported session
        - Summary: Key figures of the exported sessions

    Returns:
        Number of rows exported
    """
    selected = select_export_rows(rows, closed_only)
    df_sessions = rows_to_dataframe(selected, anonymize=anonymize)
    df_summary = _summary_frame(selected)

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
        df_sessions.to_excel(writer, sheet_name="Sessions", index=False)
        df_summary.to_excel(writer, sheet_name="Summary", index=False)

        # Adjust column widths for better readability
        for sheet_name in writer.sheets:
            worksheet = writer.sheets[sheet_name]
            for column_cells in worksheet.columns:
                col_letter = column_cells[0].column_letter
                header = column_cells[0].value

                if header == "problem_text":
                    worksheet.column_dimensions[col_letter].width = 60
                elif header in ("date", "figure"):
                    worksheet.column_dimensions[col_letter].width = 28
                else:
                    worksheet.column_dimensions[col_letter].width = max(
                        len(str(header)) + 2, 12
                    )

    logger.info(
        f"Exported {len(df_sessions)} sessions to {output_path} "
        f"(Summary: {len(df_summary)} figures)"
    )

    return len(df_sessions)
