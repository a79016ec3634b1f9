"""Diagnostics routines for the core subsystem."""

from __future__ import annotations

import importlib.util
import logging

from diagnostics.models import DiagnosticResult, DiagnosticStatus


def probe() -> DiagnosticResult:
    """Check that the presence logger is initialized and report its backend."""

    name = "core"
    from core import logging as core_logging

    logger = core_logging.logger
    if logger is None or not logger.handlers:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details="Core logger failed to initialize",
        )

    rich_available = importlib.util.find_spec("rich") is not None
    backend = "Rich logging enabled" if rich_available else "Rich logging not available (fallback)"
    level = logging.getLevelName(logger.getEffectiveLevel())
    return DiagnosticResult(
        name=name,
        status=DiagnosticStatus.PASS,
        details=f"{backend}; logger {logger.name} at {level}",
    )
