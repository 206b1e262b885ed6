"""
Convert raw inference output into DetectionRecords.

Pure transforms: no thresholds, no clamping. Out-of-range confidences pass
through unchanged and an empty or missing prediction list becomes an empty
record list.
"""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

from models.detection import BoundingBox, DetectionRecord
from models.inference import (
    CenterBox,
    ClassPrediction,
    ClassificationResult,
    DetectionResult,
    InferenceResult,
    RawDetection,
)


def now_ms() -> int:
    return int(time.time() * 1000)


def normalize_prediction(pred: ClassPrediction, timestamp: int) -> DetectionRecord:
    return DetectionRecord(label=pred.label, confidence=pred.score, timestamp=timestamp)


def normalize_detection(det: RawDetection, timestamp: int) -> DetectionRecord:
    box = det.box
    return DetectionRecord(
        label=det.label,
        confidence=det.score,
        timestamp=timestamp,
        bbox=BoundingBox.from_center(box.cx, box.cy, box.width, box.height),
    )


def normalize(result: Optional[InferenceResult], timestamp: Optional[int] = None) -> List[DetectionRecord]:
    """
    Normalize either inference variant into DetectionRecords.

    Args:
        result: ClassificationResult or DetectionResult (None is treated as empty).
        timestamp: Capture time in epoch ms; defaults to now.
    """
    ts = now_ms() if timestamp is None else timestamp
    if result is None:
        return []
    if isinstance(result, ClassificationResult):
        return [normalize_prediction(p, ts) for p in (result.predictions or [])]
    if isinstance(result, DetectionResult):
        return [normalize_detection(d, ts) for d in (result.detections or [])]
    raise TypeError(f"Unsupported inference result: {type(result).__name__}")


def parse_roboflow_response(data: Optional[Dict[str, Any]]) -> DetectionResult:
    """
    Parse a Roboflow detect response into a DetectionResult.

    Roboflow boxes are center-anchored; they stay that way here and are
    converted by normalize().
    """
    data = data or {}
    detections = [
        RawDetection(
            label=str(p.get("class", "")),
            score=float(p.get("confidence", 0.0)),
            box=CenterBox(
                cx=float(p.get("x", 0.0)),
                cy=float(p.get("y", 0.0)),
                width=float(p.get("width", 0.0)),
                height=float(p.get("height", 0.0)),
            ),
            class_id=int(p.get("class_id") or 0),
        )
        for p in (data.get("predictions") or [])
    ]
    image = data.get("image") or {}
    return DetectionResult(
        detections=detections,
        source_width=int(image.get("width") or 640),
        source_height=int(image.get("height") or 640),
    )
