"""
Aggregation layer: normalize raw inference output and turn it into
de-duplicated, numbered, threshold-gated batches.
"""

from .normalizer import normalize, parse_roboflow_response
from .aggregator import AggregationOutcome, aggregate, assign_display_labels, remove_near_duplicates
from .cooldown import CooldownState, DEFAULT_COOLDOWN_MS, LOG_MIN_CONFIDENCE
from .grid_scan import GridScanner
from .presentation import build_batch, confidence_band, derive_state, derive_view

__all__ = [
    "normalize",
    "parse_roboflow_response",
    "AggregationOutcome",
    "aggregate",
    "assign_display_labels",
    "remove_near_duplicates",
    "CooldownState",
    "DEFAULT_COOLDOWN_MS",
    "LOG_MIN_CONFIDENCE",
    "GridScanner",
    "build_batch",
    "confidence_band",
    "derive_state",
    "derive_view",
]
