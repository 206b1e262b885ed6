"""
Presentation adapter: turns a batch into the results-panel view.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

from models.batch import AggregationBatch, DetectionMode, ResultsView, ViewState
from models.detection import DetectionRecord
from .aggregator import aggregate, assign_display_labels

NOT_RECOGNIZED_TITLE = "Not a Jaw Crusher Part"
WEBCAM_MAX_RECORDS = 10

_MESSAGES = {
    ViewState.PROCESSING: (
        "Processing...",
        {DetectionMode.WEBCAM: "Analyzing live feed", DetectionMode.UPLOAD: "Identifying parts in image"},
    ),
    ViewState.NOT_RECOGNIZED: (
        NOT_RECOGNIZED_TITLE,
        {
            DetectionMode.WEBCAM: "The object in view is not recognized as a jaw crusher component.",
            DetectionMode.UPLOAD: "The uploaded image is not recognized as a jaw crusher component.",
        },
    ),
    ViewState.NO_RESULTS: (
        "No results yet",
        {
            DetectionMode.WEBCAM: "Aim camera at a part to begin detection",
            DetectionMode.UPLOAD: "Upload an image to identify parts",
        },
    ),
}


def confidence_band(confidence: float) -> str:
    if confidence >= 0.8:
        return "high"
    if confidence >= 0.6:
        return "medium"
    return "low"


def build_batch(
    records: Sequence[DetectionRecord],
    threshold: float,
    source_size: Optional[Tuple[int, int]] = None,
    generation: int = 0,
) -> AggregationBatch:
    """aggregate() + assign_display_labels() packed into an immutable batch."""
    outcome = aggregate(records, threshold)
    return AggregationBatch(
        records=tuple(assign_display_labels(outcome.records)),
        is_irrelevant=outcome.is_irrelevant,
        is_processing=False,
        source_size=source_size,
        generation=generation,
    )


def derive_state(batch: AggregationBatch) -> ViewState:
    # Processing wins while nothing is shown; irrelevance is checked before emptiness.
    if batch.is_processing and not batch.records:
        return ViewState.PROCESSING
    if batch.is_irrelevant:
        return ViewState.NOT_RECOGNIZED
    if not batch.records:
        return ViewState.NO_RESULTS
    return ViewState.RESULTS


def derive_view(
    batch: AggregationBatch, mode: DetectionMode, max_records: int = WEBCAM_MAX_RECORDS
) -> ResultsView:
    """Webcam views show at most `max_records` records; uploads show all."""
    mode = DetectionMode(mode)
    state = derive_state(batch)
    records = list(batch.records)
    if mode is DetectionMode.WEBCAM:
        records = records[:max_records]

    if state is ViewState.RESULTS:
        n = len(batch.records)
        title = "Detection Results"
        message = f"{n} part{'s' if n != 1 else ''} detected"
    else:
        title, by_mode = _MESSAGES[state]
        message = by_mode[mode]
        records = []

    return ResultsView(
        state=state,
        title=title,
        message=message,
        records=records,
        is_irrelevant=batch.is_irrelevant,
        is_processing=batch.is_processing,
    )
