"""Diagnostics and run validation modules."""

from camerainit.validation.diagnostics import (
    DiagnosticsData,
    aggregate_outcomes,
    check_run_status,
    save_diagnostic_report,
)

__all__ = [
    "DiagnosticsData",
    "aggregate_outcomes",
    "check_run_status",
    "save_diagnostic_report",
]
