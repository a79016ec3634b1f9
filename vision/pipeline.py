"""Per-tick presence pipeline fed by detector threads."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Callable

from core.logging import logger
from vision.classifier import (
    ABSENT_VERDICT,
    DEFAULT_CONFIDENCE_THRESHOLD,
    PresenceVerdict,
    classify,
    validate_threshold,
)
from vision.detections import DetectionResult
from vision.ingest_queue import IngestQueue, OverflowPolicy
from vision.overlay import OverlaySnapshot, overlay_lines
from vision.presence import EnteredCallback, LeftCallback, PresenceStateMachine
from vision.statistics import PresenceStatistics, StatisticsCollector


OverlayCallback = Callable[[list[str]], None]

_TRUE_STRINGS = {"true", "yes", "on", "1"}
_FALSE_STRINGS = {"false", "no", "off", "0"}


def parse_bool(value: Any, name: str = "value") -> bool:
    """Interpret booleans, 0/1 and the usual YAML-style strings."""

    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


@dataclass(frozen=True)
class PresenceSettings:
    """Runtime settings for the presence pipeline."""

    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD
    log_every_n_frames: int = 30
    verbose_logging: bool = True
    show_overlay: bool = True
    queue_max_size: int = 256
    queue_overflow_policy: str = OverflowPolicy.DROP_OLDEST.value
    confirm_frames: int = 1
    detector_fps_cap: int = 30

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "confidence_threshold", validate_threshold(self.confidence_threshold)
        )
        for name in ("log_every_n_frames", "queue_max_size", "confirm_frames", "detector_fps_cap"):
            object.__setattr__(self, name, int(getattr(self, name)))
        for name in ("verbose_logging", "show_overlay"):
            object.__setattr__(self, name, parse_bool(getattr(self, name), name))
        object.__setattr__(
            self,
            "queue_overflow_policy",
            OverflowPolicy(self.queue_overflow_policy).value,
        )

        if self.log_every_n_frames < 1:
            raise ValueError(
                f"log_every_n_frames must be >= 1, got {self.log_every_n_frames}"
            )
        if self.queue_max_size < 0:
            raise ValueError(f"queue_max_size must be >= 0, got {self.queue_max_size}")
        if self.confirm_frames < 1:
            raise ValueError(f"confirm_frames must be >= 1, got {self.confirm_frames}")
        if self.detector_fps_cap < 1:
            raise ValueError(f"detector_fps_cap must be >= 1, got {self.detector_fps_cap}")

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "PresenceSettings":
        """Build settings from the ``presence`` section of the loaded config."""

        section = dict(config.get("presence") or {})
        defaults = cls()
        return cls(
            confidence_threshold=section.get("confidence_threshold", defaults.confidence_threshold),
            log_every_n_frames=section.get("log_every_n_frames", defaults.log_every_n_frames),
            verbose_logging=section.get("verbose_logging", defaults.verbose_logging),
            show_overlay=section.get("show_overlay", defaults.show_overlay),
            queue_max_size=section.get("queue_max_size", defaults.queue_max_size),
            queue_overflow_policy=section.get("queue_overflow_policy", defaults.queue_overflow_policy),
            confirm_frames=section.get("confirm_frames", defaults.confirm_frames),
            detector_fps_cap=section.get("detector_fps_cap", defaults.detector_fps_cap),
        )


class PresencePipeline:
    """Owns the ingest queue, presence state and frame statistics.

    Producers call :meth:`enqueue` from any thread. The host loop calls
    :meth:`tick` once per frame; each tick processes at most one result so
    that draining follows the host's tick rate. All other methods belong to
    the consumer thread.
    """

    def __init__(self, settings: PresenceSettings | None = None) -> None:
        self.settings = settings or PresenceSettings()
        self._queue = IngestQueue(
            max_size=self.settings.queue_max_size,
            overflow_policy=self.settings.queue_overflow_policy,
        )
        self._state = PresenceStateMachine(confirm_frames=self.settings.confirm_frames)
        self._stats = StatisticsCollector()
        self._last_verdict: PresenceVerdict = ABSENT_VERDICT
        self._processed_frames = 0
        self._overlay_callback: OverlayCallback | None = None

        logger.info(
            "[PRESENCE] Pipeline ready (threshold=%.2f overlay=%s verbose=%s "
            "queue_max_size=%s overflow=%s confirm_frames=%s)",
            self.settings.confidence_threshold,
            self.settings.show_overlay,
            self.settings.verbose_logging,
            self.settings.queue_max_size,
            self.settings.queue_overflow_policy,
            self.settings.confirm_frames,
        )

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "PresencePipeline":
        return cls(PresenceSettings.from_config(config))

    # Producer side

    def enqueue(self, result: DetectionResult | None) -> None:
        """Hand a detector result to the pipeline; safe from any thread."""

        self._queue.enqueue(result)

    # Consumer side

    def tick(self) -> bool:
        """Process at most one queued result; returns False when idle."""

        has_item, result = self._queue.try_dequeue_one()
        if not has_item:
            return False

        verdict = classify(result, self.settings.confidence_threshold)
        self._last_verdict = verdict
        self._state.update(verdict)
        self._stats.record(verdict)
        self._processed_frames += 1

        if (
            self.settings.verbose_logging
            and self._processed_frames % self.settings.log_every_n_frames == 0
        ):
            logger.info(
                "[PRESENCE] Face %s | confidence: %.2f | detection rate: %.1f%%",
                "present" if verdict.is_present else "absent",
                verdict.confidence,
                self._stats.rate(),
            )

        if self.settings.show_overlay:
            self._emit_overlay()
        return True

    def on_entered(self, callback: EnteredCallback) -> None:
        """Register a listener called with the confidence when a face appears."""

        self._state.add_entered_listener(callback)

    def on_left(self, callback: LeftCallback) -> None:
        """Register a listener called when the face disappears."""

        self._state.add_left_listener(callback)

    def set_overlay_callback(self, callback: OverlayCallback | None) -> None:
        self._overlay_callback = callback

    def is_present(self) -> bool:
        return self._state.is_present

    def last_confidence(self) -> float:
        return self._last_verdict.confidence

    def detection_rate(self) -> float:
        return self._stats.rate()

    def total_frames(self) -> int:
        return self._stats.total_frames

    def statistics(self) -> PresenceStatistics:
        return self._stats.snapshot()

    def queue_length(self) -> int:
        return len(self._queue)

    def reset(self) -> None:
        """Zero the frame counters; presence and last confidence are kept."""

        self._stats.reset()
        logger.info("[PRESENCE] Statistics reset")

    def close(self) -> int:
        """Discard results still waiting in the queue; returns how many."""

        discarded = self._queue.clear()
        if discarded:
            logger.info("[PRESENCE] Discarded %s pending results on close", discarded)
        return discarded

    def update_settings(self, **changes: Any) -> PresenceSettings:
        """Apply configuration changes; invalid values raise ``ValueError``."""

        settings = dataclasses.replace(self.settings, **changes)
        if (
            settings.queue_max_size != self.settings.queue_max_size
            or settings.queue_overflow_policy != self.settings.queue_overflow_policy
        ):
            self._queue.configure(settings.queue_max_size, settings.queue_overflow_policy)
        if settings.confirm_frames != self.settings.confirm_frames:
            self._state.confirm_frames = settings.confirm_frames
        self.settings = settings
        logger.debug("[PRESENCE] Settings updated: %s", changes)
        return settings

    def get_status(self) -> dict[str, int | float | bool]:
        """Return pipeline metrics for diagnostics and health checks."""

        return {
            "present": self.is_present(),
            "last_confidence": round(self.last_confidence(), 3),
            "detection_rate": round(self.detection_rate(), 1),
            "total_frames": self._stats.total_frames,
            "present_frames": self._stats.present_frames,
            "queue_length": len(self._queue),
            "queue_max_size": self._queue.max_size,
            "queue_dropped": self._queue.dropped_count,
            "queue_high_water_mark": self._queue.high_water_mark,
        }

    def overlay_snapshot(self) -> OverlaySnapshot:
        return OverlaySnapshot(
            is_present=self.is_present(),
            confidence=self.last_confidence(),
            detection_rate=self.detection_rate(),
            total_frames=self._stats.total_frames,
        )

    def _emit_overlay(self) -> None:
        lines = overlay_lines(self.overlay_snapshot())
        if self._overlay_callback is None:
            logger.debug("[OVERLAY] %s", " | ".join(lines))
            return
        try:
            self._overlay_callback(lines)
        except Exception:
            logger.exception("[OVERLAY] Overlay callback failed")
