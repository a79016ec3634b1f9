"""Presence state machine with edge-triggered enter/leave callbacks."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from core.logging import logger
from vision.classifier import PresenceVerdict


EnteredCallback = Callable[[float], None]
LeftCallback = Callable[[], None]


class PresenceState(str, Enum):
    """Whether a face is currently in front of the camera."""

    ABSENT = "absent"
    PRESENT = "present"


@dataclass(frozen=True)
class PresenceTransition:
    """A single flip of the presence state."""

    previous: PresenceState
    current: PresenceState
    confidence: float


class PresenceStateMachine:
    """Tracks presence and fires listeners exactly once per state flip.

    With the default ``confirm_frames=1`` a single contrary frame is enough
    to flip the state. Larger values require that many consecutive contrary
    verdicts before the transition happens.
    """

    def __init__(self, confirm_frames: int = 1) -> None:
        if confirm_frames < 1:
            raise ValueError(f"confirm_frames must be >= 1, got {confirm_frames}")
        self._confirm_frames = confirm_frames
        self._current = PresenceState.ABSENT
        self._previous = PresenceState.ABSENT
        self._pending = 0
        self._entered_listeners: list[EnteredCallback] = []
        self._left_listeners: list[LeftCallback] = []

    @property
    def state(self) -> PresenceState:
        return self._current

    @property
    def previous_state(self) -> PresenceState:
        return self._previous

    @property
    def is_present(self) -> bool:
        return self._current is PresenceState.PRESENT

    @property
    def confirm_frames(self) -> int:
        return self._confirm_frames

    @confirm_frames.setter
    def confirm_frames(self, value: int) -> None:
        if value < 1:
            raise ValueError(f"confirm_frames must be >= 1, got {value}")
        self._confirm_frames = value
        self._pending = 0

    def add_entered_listener(self, callback: EnteredCallback) -> None:
        self._entered_listeners.append(callback)

    def remove_entered_listener(self, callback: EnteredCallback) -> None:
        if callback in self._entered_listeners:
            self._entered_listeners.remove(callback)

    def add_left_listener(self, callback: LeftCallback) -> None:
        self._left_listeners.append(callback)

    def remove_left_listener(self, callback: LeftCallback) -> None:
        if callback in self._left_listeners:
            self._left_listeners.remove(callback)

    def update(self, verdict: PresenceVerdict) -> PresenceTransition | None:
        """Feed one verdict; returns the transition if the state flipped."""

        if verdict.is_present == self.is_present:
            self._pending = 0
            return None

        self._pending += 1
        if self._pending < self._confirm_frames:
            logger.debug(
                "[PRESENCE] pending flip %s/%s",
                self._pending,
                self._confirm_frames,
            )
            return None

        self._pending = 0
        new_state = PresenceState.PRESENT if verdict.is_present else PresenceState.ABSENT
        transition = PresenceTransition(
            previous=self._current,
            current=new_state,
            confidence=verdict.confidence,
        )
        self._previous = self._current
        self._current = new_state

        if new_state is PresenceState.PRESENT:
            logger.info("[PRESENCE] Face entered (confidence %.2f)", verdict.confidence)
            self._notify_entered(verdict.confidence)
        else:
            logger.info("[PRESENCE] Face left")
            self._notify_left()
        return transition

    def reset(self) -> None:
        """Return to ``ABSENT`` without firing listeners."""

        self._current = PresenceState.ABSENT
        self._previous = PresenceState.ABSENT
        self._pending = 0

    def _notify_entered(self, confidence: float) -> None:
        for callback in list(self._entered_listeners):
            try:
                callback(confidence)
            except Exception:
                logger.exception("[PRESENCE] Entered listener failed")

    def _notify_left(self) -> None:
        for callback in list(self._left_listeners):
            try:
                callback()
            except Exception:
                logger.exception("[PRESENCE] Left listener failed")
