"""Status text shown by on-screen presence overlays."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class OverlaySnapshot:
    """Values rendered by an overlay for the current tick."""

    is_present: bool
    confidence: float
    detection_rate: float
    total_frames: int


def overlay_lines(snapshot: OverlaySnapshot) -> list[str]:
    """Return the headline followed by the detail lines."""

    headline = "Face present" if snapshot.is_present else "No face detected"
    return [
        headline,
        f"confidence: {snapshot.confidence:.2f}",
        f"detection rate: {snapshot.detection_rate:.1f}%",
        f"total frames: {snapshot.total_frames}",
    ]
