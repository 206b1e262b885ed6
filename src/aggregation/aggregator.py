"""
Batch aggregation: relevance decision, threshold filter, ordering, numbering
and near-duplicate removal.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence

from models.detection import DetectionRecord, LabeledDetection


@dataclass(frozen=True)
class AggregationOutcome:
    """Filtered records plus the batch-level relevance flag."""
    records: List[DetectionRecord] = field(default_factory=list)
    is_irrelevant: bool = True


def highest_confidence(records: Iterable[DetectionRecord]) -> float:
    """Max confidence over records, 0 for an empty batch."""
    return max((r.confidence for r in records), default=0.0)


def aggregate(records: Sequence[DetectionRecord], confidence_filter_threshold: float) -> AggregationOutcome:
    """
    Filter and order one batch.

    The irrelevance flag is taken from the unfiltered batch, so "nothing
    cleared the bar" stays distinguishable from "some records were dropped".
    sorted() is stable, so ties keep their batch order.
    """
    records = list(records or [])
    is_irrelevant = highest_confidence(records) < confidence_filter_threshold
    kept = [r for r in records if r.confidence >= confidence_filter_threshold]
    kept = sorted(kept, key=lambda r: r.confidence, reverse=True)
    return AggregationOutcome(records=kept, is_irrelevant=is_irrelevant)


def assign_display_labels(records: Sequence[DetectionRecord]) -> List[LabeledDetection]:
    """
    Number repeated labels in the order given.

    A label seen once keeps its bare text; a label seen k > 1 times becomes
    "label #1" .. "label #k". Ordinals are per batch only.
    """
    totals = Counter(r.label for r in records)
    seen: Dict[str, int] = {}
    out: List[LabeledDetection] = []
    for r in records:
        seen[r.label] = seen.get(r.label, 0) + 1
        ordinal = seen[r.label]
        display = f"{r.label} #{ordinal}" if totals[r.label] > 1 else r.label
        out.append(LabeledDetection(record=r, display_label=display, ordinal=ordinal))
    return out


def remove_near_duplicates(records: Sequence[DetectionRecord], similarity_window: float = 0.1) -> List[DetectionRecord]:
    """
    Drop records that repeat an earlier record's label with a confidence
    within similarity_window of it.

    The first-encountered record of a group wins, not the most confident one.
    """
    unique: List[DetectionRecord] = []
    for r in records:
        if any(
            u.label == r.label and abs(u.confidence - r.confidence) < similarity_window
            for u in unique
        ):
            continue
        unique.append(r)
    return unique
