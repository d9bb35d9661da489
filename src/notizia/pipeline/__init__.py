"""Report pipeline module."""

from .report_pipeline import ReportPipeline, ReportRunResult, setup_logging

__all__ = [
    "ReportPipeline",
    "ReportRunResult",
    "setup_logging",
]
