"""Frame counters for the presence loop."""

from __future__ import annotations

from dataclasses import dataclass

from vision.classifier import PresenceVerdict


@dataclass(frozen=True)
class PresenceStatistics:
    """Point-in-time copy of the frame counters."""

    total_frames: int
    present_frames: int
    detection_rate: float


class StatisticsCollector:
    """Counts processed frames and frames classified as present."""

    def __init__(self) -> None:
        self._total_frames = 0
        self._present_frames = 0

    @property
    def total_frames(self) -> int:
        return self._total_frames

    @property
    def present_frames(self) -> int:
        return self._present_frames

    def record(self, verdict: PresenceVerdict) -> None:
        self._total_frames += 1
        if verdict.is_present:
            self._present_frames += 1

    def rate(self) -> float:
        """Return the percentage of frames classified as present."""

        if self._total_frames == 0:
            return 0.0
        return self._present_frames / self._total_frames * 100.0

    def reset(self) -> None:
        self._total_frames = 0
        self._present_frames = 0

    def snapshot(self) -> PresenceStatistics:
        return PresenceStatistics(
            total_frames=self._total_frames,
            present_frames=self._present_frames,
            detection_rate=self.rate(),
        )
