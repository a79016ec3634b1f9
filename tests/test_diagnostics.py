"""Tests for diagnostics probes and runner."""

from __future__ import annotations

from core.diagnostics import probe as core_probe
from config.diagnostics import probe as config_probe
from diagnostics.models import DiagnosticResult, DiagnosticStatus
from diagnostics.runner import format_results, overall_status, run_diagnostics
from vision.detections import DetectionResult
from vision.diagnostics import probe as vision_probe
from vision.pipeline import PresencePipeline, PresenceSettings


def test_core_probe() -> None:
    """Core probe should pass when logging is available."""

    result = core_probe()
    assert result.status is DiagnosticStatus.PASS


def test_config_probe_offline(tmp_path) -> None:
    """Config probe should pass with a default config present."""

    config_dir = tmp_path / "config"
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / "default.yaml").write_text("{}", encoding="utf-8")

    result = config_probe(base_dir=tmp_path)
    assert result.status is DiagnosticStatus.PASS


def test_config_probe_rejects_invalid_threshold(tmp_path) -> None:
    config_dir = tmp_path / "config"
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / "default.yaml").write_text(
        "presence:\n  confidence_threshold: 2.0\n", encoding="utf-8"
    )

    result = config_probe(base_dir=tmp_path)
    assert result.status is DiagnosticStatus.FAIL


def test_config_probe_missing_directory(tmp_path) -> None:
    result = config_probe(base_dir=tmp_path)
    assert result.status is DiagnosticStatus.FAIL


def test_vision_probe_passes_for_idle_pipeline() -> None:
    assert vision_probe(PresencePipeline()).status is DiagnosticStatus.PASS


def test_vision_probe_warns_on_dropped_results() -> None:
    pipeline = PresencePipeline(PresenceSettings(queue_max_size=2))
    for _ in range(3):
        pipeline.enqueue(DetectionResult.from_scores([0.9]))

    result = vision_probe(pipeline)
    assert result.status is DiagnosticStatus.WARN
    assert "dropped 1" in result.details


def test_vision_probe_warns_on_backlog() -> None:
    pipeline = PresencePipeline(PresenceSettings(queue_max_size=4))
    for _ in range(3):
        pipeline.enqueue(None)

    assert vision_probe(pipeline).status is DiagnosticStatus.WARN


def test_runner_turns_probe_exceptions_into_failures() -> None:
    def exploding_probe() -> DiagnosticResult:
        raise RuntimeError("boom")

    results = run_diagnostics([core_probe, exploding_probe])

    assert results[1].name == "exploding_probe"
    assert results[1].status is DiagnosticStatus.FAIL
    assert overall_status(results) is DiagnosticStatus.FAIL
    assert "Overall: FAIL" in format_results(results)


def test_overall_status_picks_worst() -> None:
    results = [
        DiagnosticResult(name="a", status=DiagnosticStatus.PASS, details=""),
        DiagnosticResult(name="b", status=DiagnosticStatus.WARN, details=""),
    ]

    assert overall_status(results) is DiagnosticStatus.WARN
    assert overall_status([]) is DiagnosticStatus.PASS


def test_config_probe_applies_legacy_override_keys(tmp_path) -> None:
    """Config probe should validate override values the same way the app loads them."""

    config_dir = tmp_path / "config"
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / "default.yaml").write_text("{}", encoding="utf-8")
    (config_dir / "override.yaml").write_text(
        "presence_confidence_threshold: 5\n", encoding="utf-8"
    )

    result = config_probe(base_dir=tmp_path)
    assert result.status is DiagnosticStatus.FAIL
