from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from aggregation.grid_scan import GridScanner
from capture.base import CaptureSource
from capture.opencv_source import create_source_from_config
from inference.backend import Classifier, Detector
from inference.cpu_backend import CpuClassifierConfig, UltralyticsClassifier
from inference.handle import ModelHandle
from inference.roboflow_backend import RoboflowDetector
from live.session import LiveSession
from models.config import Config
from pipeline.engine import IdentificationPipeline, PipelineConfig
from sinks.sheet_logger import SheetLogger


@dataclass
class RuntimeContext:
    """Owns the long-lived services; avoids global singletons."""

    config: Config
    classifier: ModelHandle[Classifier]
    detector: Optional[Detector]
    sheet_logger: SheetLogger
    pipeline: IdentificationPipeline
    live: LiveSession

    @property
    def labels(self) -> list[str]:
        return list(self.config.labels)

    async def close(self) -> None:
        await self.live.close()
        self.classifier.close()
        close_detector = getattr(self.detector, "close", None)
        if callable(close_detector):
            close_detector()
        self.sheet_logger.close()


def default_classifier_factory(config: Config) -> Callable[[], Classifier]:
    ccfg = config.classifier

    def factory() -> Classifier:
        if ccfg.backend != "ultralytics":
            raise ValueError(f"Unsupported classifier backend: {ccfg.backend}")
        return UltralyticsClassifier(
            CpuClassifierConfig(
                model=ccfg.model,
                metadata_path=ccfg.metadata_path,
                top_k=int(ccfg.top_k),
                class_name_overrides=ccfg.class_name_overrides,
            )
        )

    return factory


def build_context(
    config: Config,
    classifier_factory: Optional[Callable[[], Classifier]] = None,
    detector: Optional[Detector] = None,
    sheet_logger: Optional[SheetLogger] = None,
    source_factory: Optional[Callable[[], CaptureSource]] = None,
) -> RuntimeContext:
    """Wire the services from config; any piece can be injected instead."""
    classifier = ModelHandle(classifier_factory or default_classifier_factory(config), name="classifier")

    if detector is None and config.detector.enabled:
        detector = RoboflowDetector(config.detector)
    if detector is None:
        logging.info("Detection API disabled, using classifier only")

    sheet_logger = sheet_logger or SheetLogger(config.sheet_logger)
    pipeline = IdentificationPipeline(
        classifier=classifier,
        detector=detector,
        grid_scanner=GridScanner(config.grid_scan),
        sheet_logger=sheet_logger,
        config=PipelineConfig(
            upload_threshold=config.upload.confidence_threshold,
            strategy=config.upload.strategy,
            log_min_confidence=config.sheet_logger.min_confidence,
        ),
    )

    camera_cfg = config.camera.to_dict()
    live = LiveSession(
        pipeline=pipeline,
        source_factory=source_factory or (lambda: create_source_from_config(camera_cfg)),
        config=config.live,
        sheet_logger=sheet_logger,
    )
    return RuntimeContext(
        config=config,
        classifier=classifier,
        detector=detector,
        sheet_logger=sheet_logger,
        pipeline=pipeline,
        live=live,
    )
