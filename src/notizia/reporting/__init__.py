"""Reporting and analytics module."""

from .analytics import (
    GenderCounts,
    KeyCount,
    LabelCount,
    MethodCount,
    Result,
    Stat,
    number_stats,
    run_analytics,
)
from .crosstabs import (
    AgeBreakdown,
    CrossTabs,
    GenderBreakdown,
    MethodAverage,
    ProblemMethodAverage,
    age_by_method,
    age_by_problem,
    avg_sessions_per_case_by_problem_and_method,
    avg_sessions_per_closed_case_by_method,
    cross_tabulate,
    gender_by_method,
    gender_by_problem,
    problem_distribution,
)
from .export import export_to_csv, export_to_excel, export_to_json, rows_to_dataframe
from .filters import Query, filter_rows
from .saved_queries import SavedQuery, SavedQueryStore

__all__ = [
    # Filtering
    "Query",
    "filter_rows",
    # Aggregation
    "run_analytics",
    "number_stats",
    "Result",
    "Stat",
    "MethodCount",
    "KeyCount",
    "LabelCount",
    "GenderCounts",
    # Cross-tabulations
    "cross_tabulate",
    "problem_distribution",
    "gender_by_problem",
    "gender_by_method",
    "age_by_problem",
    "age_by_method",
    "avg_sessions_per_case_by_problem_and_method",
    "avg_sessions_per_closed_case_by_method",
    "CrossTabs",
    "GenderBreakdown",
    "AgeBreakdown",
    "ProblemMethodAverage",
    "MethodAverage",
    # Export
    "rows_to_dataframe",
    "export_to_csv",
    "export_to_json",
    "export_to_excel",
    # Saved queries
    "SavedQuery",
    "SavedQueryStore",
]
