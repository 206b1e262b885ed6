"""
Identification pipeline: inference source -> normalizer -> aggregator.

One call produces one AggregationBatch. The remote detector is the primary
source; if it fails for any reason the same frame is retried once on the
local classifier before the failure is reported.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from aggregation.cooldown import LOG_MIN_CONFIDENCE
from aggregation.grid_scan import GridScanner
from aggregation.normalizer import normalize
from aggregation.presentation import build_batch
from inference.backend import Classifier, Detector, InferenceUnavailable
from inference.handle import ModelHandle
from models.batch import AggregationBatch
from models.detection import DetectionRecord
from models.frame import FrameData
from models.inference import source_size
from sinks.sheet_logger import DetectionLog, SheetLogger, SOURCE_UPLOAD

STRATEGY_DETECT = "detect"
STRATEGY_GRID = "grid"
STRATEGIES = (STRATEGY_DETECT, STRATEGY_GRID)


@dataclass
class PipelineConfig:
    """
    Attributes:
        upload_threshold: Display filter threshold for uploads.
        strategy: "detect" (detector with classifier fallback) or "grid" (tile scan).
        log_min_confidence: Records above this are sent to the logging sink.
    """
    upload_threshold: float = 0.6
    strategy: str = STRATEGY_DETECT
    log_min_confidence: float = LOG_MIN_CONFIDENCE


class IdentificationPipeline:
    def __init__(
        self,
        classifier: ModelHandle[Classifier],
        detector: Optional[Detector] = None,
        grid_scanner: Optional[GridScanner] = None,
        sheet_logger: Optional[SheetLogger] = None,
        config: Optional[PipelineConfig] = None,
    ):
        self.classifier = classifier
        self.detector = detector
        self.grid_scanner = grid_scanner or GridScanner()
        self.sheet_logger = sheet_logger
        self.config = config or PipelineConfig()

    async def _classify(self, frame: FrameData) -> List[DetectionRecord]:
        classifier = await self.classifier.get()
        try:
            result = await asyncio.to_thread(classifier.classify, frame.frame)
        except InferenceUnavailable:
            raise
        except Exception as e:
            raise InferenceUnavailable(f"Classifier prediction failed: {e}") from e
        return normalize(result, timestamp=frame.timestamp_ms)

    async def _grid_scan(self, frame: FrameData) -> List[DetectionRecord]:
        classifier = await self.classifier.get()
        try:
            return await asyncio.to_thread(
                self.grid_scanner.scan, frame.frame, classifier.classify, frame.timestamp_ms
            )
        except InferenceUnavailable:
            raise
        except Exception as e:
            raise InferenceUnavailable(f"Grid scan failed: {e}") from e

    async def infer(
        self, frame: FrameData, strategy: str = STRATEGY_DETECT
    ) -> Tuple[List[DetectionRecord], Optional[Tuple[int, int]]]:
        """
        Run inference for one frame and return (records, box coordinate size).

        Raises:
            InferenceUnavailable: If no inference path produced a result.
        """
        if strategy == STRATEGY_GRID:
            return await self._grid_scan(frame), frame.size
        if strategy != STRATEGY_DETECT:
            raise ValueError(f"Unknown strategy: {strategy}")

        if self.detector is not None:
            try:
                result = await asyncio.to_thread(self.detector.detect, frame)
                return normalize(result, timestamp=frame.timestamp_ms), source_size(result)
            except Exception as e:
                logging.warning(f"Primary detector failed, falling back to classifier: {e}")

        return await self._classify(frame), frame.size

    async def identify(
        self,
        frame: FrameData,
        threshold: float,
        strategy: str = STRATEGY_DETECT,
        generation: int = 0,
    ) -> AggregationBatch:
        records, size = await self.infer(frame, strategy)
        batch = build_batch(records, threshold, source_size=size, generation=generation)
        logging.debug(
            f"Batch: total={len(records)}, kept={len(batch.records)}, "
            f"threshold={threshold}, irrelevant={batch.is_irrelevant}"
        )
        return batch

    async def identify_upload(
        self,
        data: bytes,
        threshold: Optional[float] = None,
        strategy: Optional[str] = None,
    ) -> AggregationBatch:
        """
        Identify parts in one uploaded image and log confident records.

        Logging walks the unfiltered records, so anything above the log floor
        is recorded even when the display threshold hides it.

        Raises:
            ValueError: If the upload is not a decodable image.
            InferenceUnavailable: If both inference paths fail.
        """
        frame = FrameData.from_bytes(data, source="upload")
        t = self.config.upload_threshold if threshold is None else threshold
        records, size = await self.infer(frame, strategy or self.config.strategy)
        batch = build_batch(records, t, source_size=size)
        await self.log_records(records, SOURCE_UPLOAD)
        return batch

    async def log_records(self, records: Iterable[DetectionRecord], source: str) -> int:
        """Send every record above the log floor to the sink, one at a time."""
        if self.sheet_logger is None:
            return 0
        sent = 0
        for rec in records:
            if rec.confidence <= self.config.log_min_confidence:
                continue
            entry = DetectionLog(part=rec.label, confidence=rec.confidence, source=source)
            if await asyncio.to_thread(self.sheet_logger.log, entry):
                sent += 1
        return sent
