import pytest

from vision.classifier import PresenceVerdict, classify, validate_threshold
from vision.detections import Category, Detection, DetectionResult


def test_absent_result_is_not_present() -> None:
    assert classify(None, 0.5) == PresenceVerdict(is_present=False, confidence=0.0)


@pytest.mark.parametrize("threshold", [0.0, 0.5, 1.0])
def test_empty_detections_are_absent_regardless_of_threshold(threshold: float) -> None:
    verdict = classify(DetectionResult(), threshold)

    assert verdict == PresenceVerdict(is_present=False, confidence=0.0)


def test_detection_without_categories_has_zero_confidence() -> None:
    result = DetectionResult(detections=(Detection(categories=()),))

    assert classify(result, 0.5) == PresenceVerdict(is_present=False, confidence=0.0)
    assert classify(result, 0.0) == PresenceVerdict(is_present=True, confidence=0.0)


def test_score_equal_to_threshold_is_present() -> None:
    verdict = classify(DetectionResult.from_scores([0.5]), 0.5)

    assert verdict.is_present is True
    assert verdict.confidence == 0.5


def test_score_below_threshold_is_absent_but_keeps_confidence() -> None:
    verdict = classify(DetectionResult.from_scores([0.49]), 0.5)

    assert verdict.is_present is False
    assert verdict.confidence == pytest.approx(0.49)


def test_only_first_detection_and_category_are_used() -> None:
    result = DetectionResult(
        detections=(
            Detection(categories=(Category(score=0.3), Category(score=0.99))),
            Detection(categories=(Category(score=0.95),)),
        )
    )

    assert classify(result, 0.5) == PresenceVerdict(is_present=False, confidence=0.3)


def test_classify_is_pure() -> None:
    result = DetectionResult.from_scores([0.7])

    assert classify(result, 0.6) == classify(result, 0.6)
    assert classify(result, 0.8).is_present is False


def test_validate_threshold_bounds() -> None:
    assert validate_threshold(0) == 0.0
    assert validate_threshold(1) == 1.0
    with pytest.raises(ValueError):
        validate_threshold(1.01)
    with pytest.raises(ValueError):
        validate_threshold(-0.1)


@pytest.mark.parametrize(
    ("score", "expected"),
    [(float("nan"), 0.0), (float("inf"), 0.0), (float("-inf"), 0.0), (1.7, 1.0), (-0.2, 0.0)],
)
def test_non_finite_or_out_of_range_scores_are_clamped(score: float, expected: float) -> None:
    result = DetectionResult(detections=(Detection(categories=(Category(score=score),)),))

    verdict = classify(result, 0.5)

    assert verdict.confidence == expected
    assert verdict.is_present is (expected >= 0.5)
