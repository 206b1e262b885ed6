"""
Detection models for part identification results.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class BoundingBox:
    """
    A bounding box in source-image pixel coordinates.

    Attributes:
        x: Left edge x coordinate.
        y: Top edge y coordinate.
        width: Box width.
        height: Box height.
    """
    x: float
    y: float
    width: float
    height: float

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def area(self) -> float:
        return self.width * self.height

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x, y, width, height) tuple."""
        return (self.x, self.y, self.width, self.height)

    def as_int_tuple(self) -> Tuple[int, int, int, int]:
        """Return as integer (x, y, width, height) tuple."""
        return (int(self.x), int(self.y), int(self.width), int(self.height))

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_center(cls, cx: float, cy: float, w: float, h: float) -> "BoundingBox":
        """Create from a center-anchored (cx, cy, width, height) box."""
        return cls(x=cx - w / 2, y=cy - h / 2, width=w, height=h)


@dataclass(frozen=True)
class DetectionRecord:
    """
    One observed part candidate.

    Attributes:
        label: Part name from the model's catalog (not validated here).
        confidence: Model/API certainty, nominally 0-1.
        timestamp: Capture time in epoch milliseconds.
        bbox: Location in the source image, when the source can localize.
    """
    label: str
    confidence: float
    timestamp: int
    bbox: Optional[BoundingBox] = None

    def with_bbox(self, bbox: Optional[BoundingBox]) -> "DetectionRecord":
        return replace(self, bbox=bbox)


@dataclass(frozen=True)
class LabeledDetection:
    """A record with its per-batch display label and 1-based instance ordinal."""
    record: DetectionRecord
    display_label: str
    ordinal: int = 1

    @property
    def label(self) -> str:
        return self.record.label

    @property
    def confidence(self) -> float:
        return self.record.confidence

    @property
    def timestamp(self) -> int:
        return self.record.timestamp

    @property
    def bbox(self) -> Optional[BoundingBox]:
        return self.record.bbox

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "label": self.label,
            "display_label": self.display_label,
            "ordinal": self.ordinal,
            "confidence": self.confidence,
            "timestamp": self.timestamp,
        }
        if self.bbox is not None:
            d["bbox"] = self.bbox.to_dict()
        return d
