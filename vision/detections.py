"""Detection result schemas produced by the upstream face detector.

Bounding boxes, when present, are normalized to the source frame dimensions
and represented as ``(x, y, width, height)`` with each value expected in the
inclusive range ``[0.0, 1.0]``.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Category:
    """Scored label attached to a detection."""

    score: float
    label: str = "face"
    index: int = -1


@dataclass(frozen=True)
class Detection:
    """Single face candidate with categories ordered by confidence."""

    categories: tuple[Category, ...] = ()
    bbox: tuple[float, float, float, float] | None = None


@dataclass(frozen=True)
class DetectionResult:
    """Detector output for one processed frame.

    ``None`` is used in place of a result when the detector produced nothing
    for a frame.
    """

    detections: tuple[Detection, ...] = field(default_factory=tuple)
    frame_id: int | None = None
    timestamp_ms: int | None = None

    @classmethod
    def from_scores(
        cls,
        scores: list[float],
        frame_id: int | None = None,
        label: str = "face",
    ) -> "DetectionResult":
        """Build a result with one single-category detection per score."""

        return cls(
            detections=tuple(
                Detection(categories=(Category(score=float(score), label=label),))
                for score in scores
            ),
            frame_id=frame_id,
        )
