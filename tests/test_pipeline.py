"""
Tests for the identification pipeline: detector with classifier fallback,
grid scan and upload logging.
"""

import asyncio
from unittest.mock import MagicMock

import pytest

from aggregation.grid_scan import GridScanner
from conftest import FakeClassifier
from inference.backend import InferenceUnavailable
from inference.handle import ModelHandle
from models.config import GridScanConfig
from models.frame import FrameData
from models.inference import CenterBox, DetectionResult, RawDetection
from pipeline.engine import IdentificationPipeline, PipelineConfig, STRATEGY_GRID
from sinks.sheet_logger import SOURCE_UPLOAD


class MockDetector:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = 0

    def detect(self, image):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result


class FrameDetector:
    """Reads only FrameData attributes, as a Detector implementation would."""

    def __init__(self):
        self.seen = []

    def detect(self, frame: FrameData) -> DetectionResult:
        h, w = frame.frame.shape[:2]
        self.seen.append((frame.width, frame.height, w, h))
        return DetectionResult(
            detections=[RawDetection("Flywheel", 0.88, CenterBox(w / 2, h / 2, w / 4, h / 4))],
            source_width=frame.width,
            source_height=frame.height,
        )


def _detections(*items, size=(1280, 720)):
    return DetectionResult(
        detections=[RawDetection(label, score, CenterBox(100, 100, 40, 20)) for label, score in items],
        source_width=size[0],
        source_height=size[1],
    )


def _pipeline(classifier=None, detector=None, sheet_logger=None, **cfg):
    clf = classifier or FakeClassifier()
    return IdentificationPipeline(
        classifier=ModelHandle(lambda: clf, name="classifier"),
        detector=detector,
        grid_scanner=GridScanner(GridScanConfig(rows=2, cols=2, overlap=0.25)),
        sheet_logger=sheet_logger,
        config=PipelineConfig(**cfg),
    )


class TestPipelineConfig:
    def test_default_values(self):
        config = PipelineConfig()
        assert config.upload_threshold == 0.6
        assert config.strategy == "detect"
        assert config.log_min_confidence == 0.5


class TestIdentify:

    def test_detector_result_used(self, blank_frame):
        detector = MockDetector(result=_detections(("Pitman", 0.9), ("Pitman", 0.62), ("Flywheel", 0.3)))
        classifier = FakeClassifier()
        pipeline = _pipeline(classifier=classifier, detector=detector)

        batch = asyncio.run(pipeline.identify(blank_frame, 0.6))

        assert [d.display_label for d in batch.records] == ["Pitman #1", "Pitman #2"]
        assert batch.records[0].bbox.as_tuple() == (80, 90, 40, 20)
        assert batch.source_size == (1280, 720)
        assert classifier.calls == 0

    def test_detector_receives_frame_data(self, blank_frame):
        detector = FrameDetector()
        classifier = FakeClassifier()
        pipeline = _pipeline(classifier=classifier, detector=detector)

        batch = asyncio.run(pipeline.identify(blank_frame, 0.6))

        assert detector.seen == [(160, 120, 160, 120)]
        assert classifier.calls == 0
        assert [d.label for d in batch.records] == ["Flywheel"]
        assert batch.source_size == (160, 120)

    def test_falls_back_to_classifier(self, blank_frame):
        detector = MockDetector(error=InferenceUnavailable("503 Service Unavailable"))
        classifier = FakeClassifier(predictions=[("Toggle Plate", 0.83), ("Pitman", 0.1)])
        pipeline = _pipeline(classifier=classifier, detector=detector)

        batch = asyncio.run(pipeline.identify(blank_frame, 0.6))

        assert detector.calls == 1
        assert classifier.calls == 1
        assert [d.label for d in batch.records] == ["Toggle Plate"]
        assert batch.records[0].bbox is None
        assert batch.source_size == (160, 120)

    def test_falls_back_on_unexpected_detector_error(self, blank_frame):
        pipeline = _pipeline(detector=MockDetector(error=KeyError("predictions")))

        batch = asyncio.run(pipeline.identify(blank_frame, 0.6))

        assert batch.records[0].label == "Pitman"

    def test_both_paths_failing_raises(self, blank_frame):
        pipeline = _pipeline(
            classifier=FakeClassifier(error=RuntimeError("bad tensor")),
            detector=MockDetector(error=InferenceUnavailable("down")),
        )

        with pytest.raises(InferenceUnavailable):
            asyncio.run(pipeline.identify(blank_frame, 0.6))

    def test_no_detector_uses_classifier(self, blank_frame):
        batch = asyncio.run(_pipeline().identify(blank_frame, 0.6))

        assert batch.records[0].label == "Pitman"
        assert batch.is_irrelevant is False

    def test_low_confidence_batch_is_irrelevant(self, blank_frame):
        pipeline = _pipeline(classifier=FakeClassifier(predictions=[("Jaw Crusher Bearings", 0.55)]))

        batch = asyncio.run(pipeline.identify(blank_frame, 0.6))

        assert batch.records == ()
        assert batch.is_irrelevant is True

    def test_generation_carried(self, blank_frame):
        batch = asyncio.run(_pipeline().identify(blank_frame, 0.6, generation=7))

        assert batch.generation == 7

    def test_grid_strategy(self, blank_frame):
        detector = MockDetector(result=_detections(("Flywheel", 0.99)))
        pipeline = _pipeline(classifier=FakeClassifier(predictions=[("Pitman", 0.9)]), detector=detector)

        batch = asyncio.run(pipeline.identify(blank_frame, 0.6, strategy=STRATEGY_GRID))

        assert detector.calls == 0
        assert len(batch.records) == 1
        assert batch.records[0].bbox is not None

    def test_unknown_strategy_rejected(self, blank_frame):
        with pytest.raises(ValueError):
            asyncio.run(_pipeline().identify(blank_frame, 0.6, strategy="segment"))


class TestIdentifyUpload:

    def test_logs_records_above_floor(self, jpeg_bytes):
        sheet_logger = MagicMock()
        sheet_logger.log.return_value = True
        detector = MockDetector(result=_detections(("Pitman", 0.9), ("Flywheel", 0.7), ("Cheek Plates", 0.4)))
        pipeline = _pipeline(detector=detector, sheet_logger=sheet_logger, upload_threshold=0.3)

        batch = asyncio.run(pipeline.identify_upload(jpeg_bytes))

        assert len(batch.records) == 3
        logged = [c.args[0] for c in sheet_logger.log.call_args_list]
        assert [(e.part, e.source) for e in logged] == [("Pitman", SOURCE_UPLOAD), ("Flywheel", SOURCE_UPLOAD)]

    def test_logs_records_below_display_threshold(self, jpeg_bytes):
        sheet_logger = MagicMock()
        sheet_logger.log.return_value = True
        classifier = FakeClassifier(predictions=[("Pitman", 0.9), ("Flywheel", 0.55)])
        pipeline = _pipeline(classifier=classifier, sheet_logger=sheet_logger)

        batch = asyncio.run(pipeline.identify_upload(jpeg_bytes))

        assert [d.label for d in batch.records] == ["Pitman"]
        logged = [c.args[0] for c in sheet_logger.log.call_args_list]
        assert [e.part for e in logged] == ["Pitman", "Flywheel"]

    def test_uses_upload_threshold_by_default(self, jpeg_bytes):
        pipeline = _pipeline(classifier=FakeClassifier(predictions=[("Pitman", 0.65)]))

        batch = asyncio.run(pipeline.identify_upload(jpeg_bytes))

        assert len(batch.records) == 1

    def test_explicit_threshold(self, jpeg_bytes):
        pipeline = _pipeline(classifier=FakeClassifier(predictions=[("Pitman", 0.65)]))

        batch = asyncio.run(pipeline.identify_upload(jpeg_bytes, threshold=0.7))

        assert batch.is_irrelevant is True

    def test_rejects_non_image(self):
        with pytest.raises(ValueError):
            asyncio.run(_pipeline().identify_upload(b"%PDF-1.4"))
