from vision.overlay import OverlaySnapshot, overlay_lines


def test_absent_overlay_text() -> None:
    lines = overlay_lines(
        OverlaySnapshot(is_present=False, confidence=0.0, detection_rate=0.0, total_frames=0)
    )

    assert lines == [
        "No face detected",
        "confidence: 0.00",
        "detection rate: 0.0%",
        "total frames: 0",
    ]
