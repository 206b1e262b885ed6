"""
Batch and view models handed to the presentation layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .detection import LabeledDetection


class DetectionMode(str, Enum):
    """Where a batch came from."""
    UPLOAD = "upload"
    WEBCAM = "webcam"


class ViewState(str, Enum):
    """Tri-state results panel (plus the plain empty state)."""
    PROCESSING = "processing"
    NOT_RECOGNIZED = "not_recognized"
    NO_RESULTS = "no_results"
    RESULTS = "results"


@dataclass(frozen=True)
class AggregationBatch:
    """
    Display-ready records produced from one image or one video frame.

    Attributes:
        records: Filtered, sorted and numbered detections.
        is_irrelevant: True when nothing in the unfiltered batch cleared the threshold.
        is_processing: True while an inference call for this view is outstanding.
        source_size: (width, height) the boxes refer to, when known.
        generation: Live-session generation that produced the batch (0 for uploads).
    """
    records: Tuple[LabeledDetection, ...] = ()
    is_irrelevant: bool = False
    is_processing: bool = False
    source_size: Optional[Tuple[int, int]] = None
    generation: int = 0

    @classmethod
    def empty(cls, is_processing: bool = False) -> "AggregationBatch":
        return cls(records=(), is_irrelevant=False, is_processing=is_processing)


@dataclass(frozen=True)
class ResultsView:
    """What the results panel shows for a batch."""
    state: ViewState
    title: str
    message: str
    records: List[LabeledDetection] = field(default_factory=list)
    is_irrelevant: bool = False
    is_processing: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "title": self.title,
            "message": self.message,
            "records": [r.to_dict() for r in self.records],
            "is_irrelevant": self.is_irrelevant,
            "is_processing": self.is_processing,
        }
