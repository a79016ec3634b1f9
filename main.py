"""Command-line entry point for the face presence runtime."""

from __future__ import annotations

import argparse
import dataclasses
from pathlib import Path
import sys
import time
from typing import Any

import yaml

from config import ConfigController
from core.logging import (
    enable_file_logging,
    log_error,
    log_info,
    log_warning,
    logger,
    set_level,
)
from vision import DetectorWorker, PresencePipeline, PresenceSettings


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Raw command-line arguments.

    Returns:
        Parsed arguments namespace.
    """

    parser = argparse.ArgumentParser(
        description="Track face presence from detector results."
    )
    parser.add_argument(
        "--diagnostics",
        action="store_true",
        help="Run diagnostics probes and exit.",
    )
    parser.add_argument(
        "--replay",
        type=Path,
        help="YAML file of recorded detector frames to feed through the pipeline.",
    )
    parser.add_argument(
        "--tick-hz",
        type=float,
        default=30.0,
        help="Consumer tick rate in ticks per second.",
    )
    parser.add_argument(
        "--threshold",
        type=float,
        help="Override the configured confidence threshold.",
    )
    return parser.parse_args(argv)


def load_config() -> dict[str, Any]:
    try:
        return ConfigController.get_instance().get_config()
    except FileNotFoundError as exc:
        log_warning(f"Config file missing ({exc}); using defaults")
        return {}


def load_replay(path: Path) -> list[Any]:
    """Load recorded frames; each frame is ``null`` or a list of detections."""

    with path.open("r", encoding="utf-8") as file:
        frames = yaml.safe_load(file) or []
    if not isinstance(frames, list):
        raise ValueError(f"Replay file {path} must contain a list of frames")
    return [_replay_frame(frame) for frame in frames]


def _replay_frame(frame: Any) -> Any:
    if frame is None:
        return None
    if not isinstance(frame, list):
        frame = [frame]
    detections = []
    for item in frame:
        if isinstance(item, list):
            detections.append({"categories": [_replay_category(entry) for entry in item]})
        else:
            detections.append({"categories": [_replay_category(item)]})
    return detections


def _replay_category(entry: Any) -> dict[str, Any]:
    if isinstance(entry, dict):
        return entry
    return {"score": entry}


def run_replay(pipeline: PresencePipeline, frames: list[Any], tick_hz: float) -> None:
    """Produce ``frames`` on a worker thread while ticking the pipeline."""

    frame_iter = iter(frames)
    worker = DetectorWorker(
        lambda: next(frame_iter),
        pipeline,
        fps_cap=pipeline.settings.detector_fps_cap,
        name="replay-detector-worker",
    )
    period_s = 1.0 / max(tick_hz, 1.0)
    worker.start()
    try:
        while worker.is_running() or pipeline.queue_length():
            pipeline.tick()
            time.sleep(period_s)
    finally:
        worker.stop()
        pipeline.close()


def main(argv: list[str] | None = None) -> int:
    """Application entry point.

    Args:
        argv: Optional list of command-line arguments.

    Returns:
        Process exit code.
    """

    if argv is None:
        argv = sys.argv[1:]

    args = parse_args(argv)
    config = load_config()
    set_level(str(config.get("logging_level", "INFO")))
    if config.get("file_logging_enabled", False):
        log_file_path = Path(str(config.get("log_file_path", "logs/face_presence.log")))
        enable_file_logging(log_file_path)
        logger.info("Writing logs to %s", log_file_path)

    if args.diagnostics:
        from diagnostics.run import main as diagnostics_main

        return diagnostics_main([])

    try:
        settings = PresenceSettings.from_config(config)
        if args.threshold is not None:
            settings = dataclasses.replace(settings, confidence_threshold=args.threshold)
    except (TypeError, ValueError) as exc:
        log_error(f"Invalid presence configuration: {exc}")
        return 2

    pipeline = PresencePipeline(settings)
    pipeline.on_entered(lambda confidence: log_info(f"Face entered ({confidence:.2f})", "bold green"))
    pipeline.on_left(lambda: log_info("Face left", "bold red"))

    if args.replay is None:
        logger.info("No replay file given; nothing to process")
        return 0

    try:
        frames = load_replay(args.replay)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        log_error(f"Could not load replay {args.replay}: {exc}")
        return 1

    try:
        run_replay(pipeline, frames, args.tick_hz)
    except KeyboardInterrupt:
        logger.info("Program terminated by user")

    stats = pipeline.statistics()
    logger.info(
        "Processed %s frames, %s present (%.1f%%)",
        stats.total_frames,
        stats.present_frames,
        stats.detection_rate,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
