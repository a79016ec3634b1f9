"""Diagnostics helpers for the face presence runtime."""

from diagnostics.models import DiagnosticResult, DiagnosticStatus
from diagnostics.runner import format_results, overall_status, run_diagnostics

__all__ = [
    "DiagnosticResult",
    "DiagnosticStatus",
    "format_results",
    "overall_status",
    "run_diagnostics",
]
