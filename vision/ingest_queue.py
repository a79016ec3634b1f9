"""Thread-safe hand-off queue from detector threads to the presence loop."""

from __future__ import annotations

from collections import deque
from enum import Enum
import threading
from typing import Deque

from core.logging import logger
from vision.detections import DetectionResult


class OverflowPolicy(str, Enum):
    """What to discard when a bounded queue is full."""

    DROP_OLDEST = "drop_oldest"
    DROP_NEWEST = "drop_newest"


class IngestQueue:
    """FIFO buffer written by any thread and drained by a single consumer.

    ``None`` is a legal item (the detector had no result for a frame), so
    ``try_dequeue_one`` reports emptiness with a flag rather than a value.
    """

    def __init__(
        self,
        max_size: int = 256,
        overflow_policy: OverflowPolicy | str = OverflowPolicy.DROP_OLDEST,
    ) -> None:
        self._lock = threading.Lock()
        self._queue: Deque[DetectionResult | None] = deque()
        self._max_size = 0
        self._policy = OverflowPolicy.DROP_OLDEST
        self._dropped = 0
        self._high_water_mark = 0
        self._overflow_warned = False
        self.configure(max_size, overflow_policy)

    def configure(self, max_size: int, overflow_policy: OverflowPolicy | str) -> None:
        """Change capacity and overflow policy; ``max_size=0`` means unbounded."""

        if max_size < 0:
            raise ValueError(f"queue max_size must be >= 0, got {max_size}")
        policy = OverflowPolicy(overflow_policy)
        with self._lock:
            self._max_size = int(max_size)
            self._policy = policy
            if self._max_size:
                while len(self._queue) > self._max_size:
                    self._discard_locked()

    def enqueue(self, result: DetectionResult | None) -> None:
        """Append a result at the tail. Never blocks and never raises."""

        warn_depth = -1
        with self._lock:
            if self._max_size and len(self._queue) >= self._max_size:
                if self._policy is OverflowPolicy.DROP_NEWEST:
                    self._dropped += 1
                else:
                    self._queue.popleft()
                    self._dropped += 1
                    self._queue.append(result)
                if not self._overflow_warned:
                    self._overflow_warned = True
                    warn_depth = len(self._queue)
            else:
                self._queue.append(result)
                self._high_water_mark = max(self._high_water_mark, len(self._queue))

        if warn_depth >= 0:
            logger.warning(
                "[QUEUE] Ingest queue full (%s items); applying %s",
                warn_depth,
                self._policy.value,
            )

    def try_dequeue_one(self) -> tuple[bool, DetectionResult | None]:
        """Pop the head item; returns ``(False, None)`` when empty."""

        with self._lock:
            if not self._queue:
                return False, None
            item = self._queue.popleft()
            if self._overflow_warned and len(self._queue) <= self._max_size // 2:
                self._overflow_warned = False
            return True, item

    def clear(self) -> int:
        """Discard every pending item and return how many were discarded."""

        with self._lock:
            discarded = len(self._queue)
            self._queue.clear()
            self._overflow_warned = False
            return discarded

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def overflow_policy(self) -> OverflowPolicy:
        return self._policy

    @property
    def dropped_count(self) -> int:
        with self._lock:
            return self._dropped

    @property
    def high_water_mark(self) -> int:
        with self._lock:
            return self._high_water_mark

    def __len__(self) -> int:
        with self._lock:
            return len(self._queue)

    def _discard_locked(self) -> None:
        if self._policy is OverflowPolicy.DROP_NEWEST:
            self._queue.pop()
        else:
            self._queue.popleft()
        self._dropped += 1
