"""Background thread that feeds face detector output into the presence pipeline."""

from __future__ import annotations

import math
import threading
import time
from typing import Any, Callable, Protocol

from core.logging import logger
from vision.detections import Category, Detection, DetectionResult


class ResultSink(Protocol):
    """Anything accepting detector results, usually a ``PresencePipeline``."""

    def enqueue(self, result: DetectionResult | None) -> None:
        ...


DetectFn = Callable[[], Any]


class DetectorWorker:
    """Calls ``detect`` at up to ``fps_cap`` frames per second on a daemon thread.

    ``detect`` may return ``None``, a :class:`DetectionResult`, or a list of raw
    detections. Raw detections are mappings or objects exposing either a
    ``categories`` list or a flat ``score``/``label`` pair.
    """

    def __init__(
        self,
        detect: DetectFn,
        sink: ResultSink,
        fps_cap: int = 30,
        name: str = "face-detector-worker",
    ) -> None:
        self._detect = detect
        self._sink = sink
        self._fps_cap = max(1, int(fps_cap))
        self._name = name
        self._lock = threading.Lock()
        self._worker_thread: threading.Thread | None = None
        self._worker_stop = threading.Event()
        self._frame_id = 0
        self._frames_published = 0
        self._detect_failures = 0

    def start(self) -> None:
        """Start the worker thread (safe to call repeatedly)."""

        with self._lock:
            if self._worker_thread is not None:
                if self._worker_thread.is_alive():
                    return
                self._worker_thread = None
            self._worker_stop.clear()
            self._worker_thread = threading.Thread(
                target=self._worker_loop,
                name=self._name,
                daemon=True,
            )
            self._worker_thread.start()
        logger.info("[DETECTOR] Worker started (fps_cap=%s)", self._fps_cap)

    def stop(self, timeout: float = 2.0) -> None:
        """Signal the worker to stop and wait for it (safe to call repeatedly)."""

        with self._lock:
            worker = self._worker_thread
            self._worker_stop.set()

        if worker is None:
            return
        worker.join(timeout=timeout)
        if worker.is_alive():
            logger.warning("[DETECTOR] Worker did not stop within timeout")
            return

        with self._lock:
            if self._worker_thread is worker:
                self._worker_thread = None

    def is_running(self) -> bool:
        with self._lock:
            return bool(self._worker_thread and self._worker_thread.is_alive())

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the worker exits on its own; returns True if it did."""

        with self._lock:
            worker = self._worker_thread
        if worker is None:
            return True
        worker.join(timeout=timeout)
        return not worker.is_alive()

    def get_runtime_status(self) -> dict[str, int]:
        with self._lock:
            return {
                "loop_alive": int(bool(self._worker_thread and self._worker_thread.is_alive())),
                "frames_published": self._frames_published,
                "detect_failures": self._detect_failures,
            }

    def _worker_loop(self) -> None:
        period_s = 1.0 / self._fps_cap
        while not self._worker_stop.is_set():
            loop_start = time.monotonic()
            try:
                raw = self._detect()
            except StopIteration:
                logger.info("[DETECTOR] Detector exhausted; worker exiting")
                break
            except Exception:
                logger.exception("[DETECTOR] Detector call failed")
                with self._lock:
                    self._detect_failures += 1
            else:
                self.publish(raw)

            elapsed_s = time.monotonic() - loop_start
            self._worker_stop.wait(max(0.0, period_s - elapsed_s))

    def publish(self, raw: Any) -> None:
        """Normalize one raw detector output and hand it to the sink."""

        with self._lock:
            self._frame_id += 1
            frame_id = self._frame_id
        result = self.convert_result(raw, frame_id)
        self._sink.enqueue(result)
        with self._lock:
            self._frames_published += 1

    def convert_result(self, raw: Any, frame_id: int | None = None) -> DetectionResult | None:
        if raw is None:
            return None
        if isinstance(raw, DetectionResult):
            return raw
        nested = self._get(raw, "detections")
        if nested is not None:
            raw = list(nested)
        elif not isinstance(raw, (list, tuple)):
            raw = [raw]
        detections = tuple(
            detection
            for detection in (self._convert_detection(item) for item in raw)
            if detection is not None
        )
        return DetectionResult(
            detections=detections,
            frame_id=frame_id,
            timestamp_ms=int(time.time() * 1000),
        )

    def _convert_detection(self, raw: Any) -> Detection | None:
        if isinstance(raw, Detection):
            return raw
        if isinstance(raw, (int, float)):
            return Detection(categories=(Category(score=self._extract_score(raw)),))

        categories_raw = self._get(raw, "categories")
        if categories_raw is None:
            if self._get(raw, "score") is None and self._get(raw, "confidence") is None:
                return None
            categories_raw = [raw]

        categories = tuple(self._convert_category(item) for item in categories_raw)
        return Detection(categories=categories, bbox=self._extract_bbox(raw))

    def _convert_category(self, raw: Any) -> Category:
        if isinstance(raw, Category):
            return raw
        if isinstance(raw, (int, float)):
            return Category(score=self._extract_score(raw))
        score = self._get(raw, "score")
        if score is None:
            score = self._get(raw, "confidence")
        label = self._get(raw, "label")
        if label is None:
            label = self._get(raw, "category_name")
        label = str(label).strip() if label is not None else ""
        index = self._get(raw, "index")
        return Category(
            score=self._extract_score(score),
            label=label or "face",
            index=int(index) if isinstance(index, int) else -1,
        )

    def _get(self, raw: Any, key: str) -> Any:
        if isinstance(raw, dict):
            return raw.get(key)
        return getattr(raw, key, None)

    def _extract_score(self, value: Any) -> float:
        try:
            score = float(value)
        except (TypeError, ValueError):
            return 0.0
        if math.isnan(score) or math.isinf(score):
            return 0.0
        return max(0.0, min(1.0, score))

    def _extract_bbox(self, raw: Any) -> tuple[float, float, float, float] | None:
        bbox = self._get(raw, "bbox")
        if not isinstance(bbox, (list, tuple)) or len(bbox) < 4:
            return None
        try:
            x, y, w, h = (float(value) for value in bbox[:4])
        except (TypeError, ValueError):
            return None
        if any(math.isnan(value) or math.isinf(value) for value in (x, y, w, h)):
            return None
        x = max(0.0, min(1.0, x))
        y = max(0.0, min(1.0, y))
        return (x, y, max(0.0, min(1.0 - x, w)), max(0.0, min(1.0 - y, h)))
