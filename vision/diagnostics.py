"""Diagnostics routines for the presence pipeline."""

from __future__ import annotations

from diagnostics.models import DiagnosticResult, DiagnosticStatus
from vision.pipeline import PresencePipeline


def probe(pipeline: PresencePipeline | None = None) -> DiagnosticResult:
    """Run a presence probe that checks the ingest queue backlog.

    Args:
        pipeline: Pipeline to inspect. A fresh one is built when omitted.

    Returns:
        Diagnostic result indicating pipeline health.
    """

    name = "vision"
    if pipeline is None:
        pipeline = PresencePipeline()
    status = pipeline.get_status()

    summary = (
        f"present={status['present']} rate={status['detection_rate']}% "
        f"frames={status['total_frames']} queue={status['queue_length']}"
    )
    max_size = int(status["queue_max_size"])
    if status["queue_dropped"]:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.WARN,
            details=f"Ingest queue dropped {status['queue_dropped']} results ({summary})",
        )
    if max_size and status["queue_length"] > max_size // 2:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.WARN,
            details=f"Ingest queue backlog above half capacity ({summary})",
        )
    return DiagnosticResult(name=name, status=DiagnosticStatus.PASS, details=summary)
