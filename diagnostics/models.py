"""Models for presence diagnostics results."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class DiagnosticStatus(str, Enum):
    """Outcome of a probe, ordered from healthy to broken."""

    PASS = "PASS"
    WARN = "WARN"
    FAIL = "FAIL"

    @property
    def severity(self) -> int:
        return ("PASS", "WARN", "FAIL").index(self.value)


@dataclass(frozen=True)
class DiagnosticResult:
    """Result for a single subsystem probe."""

    name: str
    status: DiagnosticStatus
    details: str
