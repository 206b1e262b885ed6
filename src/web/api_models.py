from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from aggregation.presentation import confidence_band
from models.batch import AggregationBatch, ResultsView
from models.detection import LabeledDetection


class BoundingBoxModel(BaseModel):
    x: float
    y: float
    width: float
    height: float


class DetectionModel(BaseModel):
    label: str
    display_label: str
    ordinal: int = 1
    confidence: float
    confidence_band: str = Field(..., description="high|medium|low")
    timestamp: int = Field(..., description="Capture time, epoch milliseconds")
    bbox: Optional[BoundingBoxModel] = None

    @classmethod
    def from_labeled(cls, det: LabeledDetection) -> "DetectionModel":
        bbox = det.bbox
        return cls(
            label=det.label,
            display_label=det.display_label,
            ordinal=det.ordinal,
            confidence=det.confidence,
            confidence_band=confidence_band(det.confidence),
            timestamp=det.timestamp,
            bbox=BoundingBoxModel(**bbox.to_dict()) if bbox is not None else None,
        )


class BatchResponse(BaseModel):
    """
    One results-panel view. `state` is processing|not_recognized|no_results|results.
    """
    state: str
    title: str
    message: str
    records: List[DetectionModel] = Field(default_factory=list)
    is_irrelevant: bool = False
    is_processing: bool = False
    source_width: Optional[int] = None
    source_height: Optional[int] = None

    @classmethod
    def from_view(cls, view: ResultsView, batch: AggregationBatch) -> "BatchResponse":
        width, height = batch.source_size or (None, None)
        return cls(
            state=view.state.value,
            title=view.title,
            message=view.message,
            records=[DetectionModel.from_labeled(r) for r in view.records],
            is_irrelevant=view.is_irrelevant,
            is_processing=view.is_processing,
            source_width=width,
            source_height=height,
        )


class LiveStatusResponse(BaseModel):
    active: bool
    threshold: float
    generation: int
    dropped_ticks: int = 0
    last_error: Optional[str] = None
    results: BatchResponse


class ThresholdRequest(BaseModel):
    value: Optional[float] = Field(None, description="Threshold 0-1, clamped to the live range")
    preset: Optional[str] = Field(None, description="sensitive|balanced|strict")


class HealthResponse(BaseModel):
    status: str = Field(..., description="ready|loading|unavailable")
    classifier_ready: bool
    classifier_error: Optional[str] = None
    detector_enabled: bool
    sheet_logging_enabled: bool
    live_active: bool
    platform: str
    python: str
    timestamp: float


class LabelsResponse(BaseModel):
    labels: List[str]
