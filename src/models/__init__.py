"""
Typed models for the part identifier.

Inference output, normalized detection records, display batches and config.
"""

from .frame import FrameData
from .detection import BoundingBox, DetectionRecord, LabeledDetection
from .inference import (
    CenterBox,
    ClassPrediction,
    ClassificationResult,
    DetectionResult,
    InferenceResult,
    RawDetection,
)
from .batch import AggregationBatch, DetectionMode, ResultsView, ViewState
from .config import (
    Config,
    CameraConfig,
    ClassifierConfig,
    DetectorConfig,
    SheetLoggerConfig,
    LiveConfig,
    UploadConfig,
    GridScanConfig,
    WebConfig,
    DEFAULT_PART_LABELS,
)

__all__ = [
    # Frame
    "FrameData",
    # Detection
    "BoundingBox",
    "DetectionRecord",
    "LabeledDetection",
    # Inference output
    "CenterBox",
    "ClassPrediction",
    "ClassificationResult",
    "DetectionResult",
    "InferenceResult",
    "RawDetection",
    # Batches
    "AggregationBatch",
    "DetectionMode",
    "ResultsView",
    "ViewState",
    # Config
    "Config",
    "CameraConfig",
    "ClassifierConfig",
    "DetectorConfig",
    "SheetLoggerConfig",
    "LiveConfig",
    "UploadConfig",
    "GridScanConfig",
    "WebConfig",
    "DEFAULT_PART_LABELS",
]
