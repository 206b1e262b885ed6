"""
Raw inference output models.

The two inference sources return differently shaped results. They are kept
as two explicit variants so the normalizer can convert each one without
probing for fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Union


@dataclass(frozen=True)
class ClassPrediction:
    """One (label, probability) pair from an image classifier."""
    label: str
    score: float


@dataclass(frozen=True)
class CenterBox:
    """A center-anchored box as returned by the detection API."""
    cx: float
    cy: float
    width: float
    height: float


@dataclass(frozen=True)
class RawDetection:
    """One localized detection from the detection API."""
    label: str
    score: float
    box: CenterBox
    class_id: int = 0


@dataclass(frozen=True)
class ClassificationResult:
    """Ranked predictions over the whole image; no localization."""
    predictions: List[ClassPrediction] = field(default_factory=list)


@dataclass(frozen=True)
class DetectionResult:
    """Localized detections plus the image size the boxes refer to."""
    detections: List[RawDetection] = field(default_factory=list)
    source_width: int = 640
    source_height: int = 640


InferenceResult = Union[ClassificationResult, DetectionResult]


def source_size(result: InferenceResult) -> Optional[tuple[int, int]]:
    """Return (width, height) of the boxes' coordinate space, if any."""
    if isinstance(result, DetectionResult):
        return (result.source_width, result.source_height)
    return None
