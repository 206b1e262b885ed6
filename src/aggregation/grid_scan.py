"""
Grid scan: approximate multi-part localization with a whole-image classifier.

The image is cut into a grid of overlapping tiles, each tile is classified on
its own, and the top prediction of each tile becomes a record whose box is
the tile itself. Boxes are therefore as coarse as the grid.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional

import numpy as np

from models.config import GridScanConfig
from models.detection import BoundingBox, DetectionRecord
from models.inference import ClassificationResult
from .aggregator import remove_near_duplicates
from .normalizer import normalize, now_ms


@dataclass(frozen=True)
class Tile:
    """A tile rectangle in integer pixel coordinates."""
    x: int
    y: int
    width: int
    height: int

    def crop(self, image: np.ndarray) -> np.ndarray:
        return image[self.y:self.y + self.height, self.x:self.x + self.width]

    def to_bbox(self) -> BoundingBox:
        return BoundingBox(x=float(self.x), y=float(self.y), width=float(self.width), height=float(self.height))


def _spans(length: int, count: int, overlap: float) -> List[tuple[int, int]]:
    """Offsets and sizes of `count` equal spans with fractional `overlap` covering `length`."""
    count = max(1, int(count))
    overlap = min(max(float(overlap), 0.0), 0.9)
    size = length / (count - (count - 1) * overlap)
    step = size * (1 - overlap)
    spans = []
    for i in range(count):
        start = int(round(i * step))
        end = length if i == count - 1 else int(round(i * step + size))
        spans.append((start, max(1, end - start)))
    return spans


def iter_tiles(width: int, height: int, rows: int, cols: int, overlap: float) -> Iterator[Tile]:
    """Yield tiles row by row, left to right."""
    for y, h in _spans(height, rows, overlap):
        for x, w in _spans(width, cols, overlap):
            yield Tile(x=x, y=y, width=w, height=h)


class GridScanner:
    """Runs a classifier over overlapping tiles of one image."""

    def __init__(self, config: Optional[GridScanConfig] = None):
        self.config = config or GridScanConfig()

    def tiles(self, image: np.ndarray) -> List[Tile]:
        h, w = image.shape[:2]
        return list(iter_tiles(w, h, self.config.rows, self.config.cols, self.config.overlap))

    def scan(
        self,
        image: np.ndarray,
        classify: Callable[[np.ndarray], ClassificationResult],
        timestamp: Optional[int] = None,
    ) -> List[DetectionRecord]:
        """
        Classify each tile and return de-duplicated tile records in scan order.

        Records are not thresholded here; callers aggregate them like any
        other batch.
        """
        ts = now_ms() if timestamp is None else timestamp
        candidates: List[DetectionRecord] = []
        for tile in self.tiles(image):
            records = normalize(classify(tile.crop(image)), timestamp=ts)
            if not records:
                continue
            top = max(records, key=lambda r: r.confidence)
            candidates.append(top.with_bbox(tile.to_bbox()))

        unique = remove_near_duplicates(candidates, self.config.similarity_window)
        logging.debug(f"Grid scan: tiles={len(candidates)}, unique={len(unique)}")
        return unique
