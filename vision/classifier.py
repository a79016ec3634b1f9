"""Map a raw detector result to a presence verdict."""

from __future__ import annotations

from dataclasses import dataclass
import math

from vision.detections import DetectionResult


DEFAULT_CONFIDENCE_THRESHOLD = 0.5


@dataclass(frozen=True)
class PresenceVerdict:
    """Classification of a single frame."""

    is_present: bool
    confidence: float


ABSENT_VERDICT = PresenceVerdict(is_present=False, confidence=0.0)


def validate_threshold(threshold: float) -> float:
    """Return ``threshold`` as a float, rejecting values outside ``[0, 1]``."""

    value = float(threshold)
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"confidence threshold must be within [0, 1], got {threshold}")
    return value


def classify(
    result: DetectionResult | None,
    threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
) -> PresenceVerdict:
    """Classify one frame using the first category of the first detection.

    Detectors list the highest-confidence detection and category first, so
    only those are consulted. Missing or empty results count as absence and a
    detection without categories counts as zero confidence.
    """

    if result is None or not result.detections:
        return ABSENT_VERDICT

    categories = result.detections[0].categories
    score = _finite_score(categories[0].score) if categories else 0.0
    return PresenceVerdict(is_present=score >= threshold, confidence=score)


def _finite_score(value: float) -> float:
    score = float(value)
    if math.isnan(score) or math.isinf(score):
        return 0.0
    return max(0.0, min(1.0, score))
