"""Vision package exports."""

from vision.classifier import PresenceVerdict, classify
from vision.detections import Category, Detection, DetectionResult
from vision.detector_worker import DetectorWorker
from vision.ingest_queue import IngestQueue, OverflowPolicy
from vision.pipeline import PresencePipeline, PresenceSettings
from vision.presence import PresenceState, PresenceStateMachine
from vision.statistics import StatisticsCollector

__all__ = [
    "Category",
    "Detection",
    "DetectionResult",
    "DetectorWorker",
    "IngestQueue",
    "OverflowPolicy",
    "PresencePipeline",
    "PresenceSettings",
    "PresenceState",
    "PresenceStateMachine",
    "PresenceVerdict",
    "StatisticsCollector",
    "classify",
]
