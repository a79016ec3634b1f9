"""Tests for the command-line replay entry point."""

from __future__ import annotations

from pathlib import Path

import main
from config.controller import ConfigController
from vision.pipeline import PresencePipeline, PresenceSettings


def test_load_replay_normalizes_frames(tmp_path: Path) -> None:
    replay = tmp_path / "frames.yaml"
    replay.write_text(
        "\n".join(
            [
                "- [0.6]",
                "- null",
                "- []",
                "- [[0.3, 0.9]]",
                "- [{score: 0.8, label: face}]",
            ]
        ),
        encoding="utf-8",
    )

    frames = main.load_replay(replay)

    assert frames[0] == [{"categories": [{"score": 0.6}]}]
    assert frames[1] is None
    assert frames[2] == []
    assert frames[3] == [{"categories": [{"score": 0.3}, {"score": 0.9}]}]
    assert frames[4] == [{"categories": [{"score": 0.8, "label": "face"}]}]


def test_run_replay_processes_every_frame() -> None:
    pipeline = PresencePipeline(
        PresenceSettings(show_overlay=False, verbose_logging=False, detector_fps_cap=200)
    )
    entered: list[float] = []
    pipeline.on_entered(entered.append)

    main.run_replay(pipeline, [[0.6], [0.4], [0.7]], tick_hz=500.0)

    assert pipeline.total_frames() == 3
    assert entered == [0.6, 0.7]
    assert round(pipeline.detection_rate(), 1) == 66.7


def test_main_without_config_or_replay(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    ConfigController._instance = None

    assert main.main([]) == 0


def test_main_rejects_invalid_threshold(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    ConfigController._instance = None

    assert main.main(["--threshold", "3"]) == 2


def test_main_replay_file(tmp_path: Path, monkeypatch) -> None:
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "default.yaml").write_text(
        "presence:\n  detector_fps_cap: 200\n  show_overlay: false\n", encoding="utf-8"
    )
    replay = tmp_path / "frames.yaml"
    replay.write_text("- [0.9]\n- null\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    ConfigController._instance = None

    assert main.main(["--replay", str(replay), "--tick-hz", "500"]) == 0


def test_main_reports_invalid_config_through_error_log(tmp_path: Path, monkeypatch) -> None:
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "default.yaml").write_text(
        "presence:\n  show_overlay: maybe\n", encoding="utf-8"
    )
    monkeypatch.chdir(tmp_path)
    ConfigController._instance = None
    errors: list[str] = []
    monkeypatch.setattr(main, "log_error", errors.append)

    assert main.main([]) == 2
    assert errors and "Invalid presence configuration" in errors[0]


def test_main_warns_when_config_missing(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    ConfigController._instance = None
    warnings: list[str] = []
    monkeypatch.setattr(main, "log_warning", warnings.append)

    assert main.main([]) == 0
    assert any("Config file missing" in message for message in warnings)
