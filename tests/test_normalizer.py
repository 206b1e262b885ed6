"""
Tests for converting classifier and detector output into DetectionRecords.
"""

import pytest

from aggregation.normalizer import normalize, parse_roboflow_response
from models.inference import (
    CenterBox,
    ClassPrediction,
    ClassificationResult,
    DetectionResult,
    RawDetection,
    source_size,
)


class TestNormalize:

    def test_classification_keeps_order_and_has_no_box(self, t0):
        result = ClassificationResult(
            predictions=[ClassPrediction("Pitman", 0.9), ClassPrediction("Flywheel", 0.05)]
        )

        records = normalize(result, timestamp=t0)

        assert [(r.label, r.confidence) for r in records] == [("Pitman", 0.9), ("Flywheel", 0.05)]
        assert all(r.bbox is None for r in records)
        assert all(r.timestamp == t0 for r in records)

    def test_center_box_converted_to_top_left(self, t0):
        result = DetectionResult(
            detections=[RawDetection("Pitman", 0.8, CenterBox(cx=100, cy=100, width=40, height=20))]
        )

        (record,) = normalize(result, timestamp=t0)

        assert record.bbox.as_tuple() == (80, 90, 40, 20)

    def test_empty_and_missing_are_empty(self, t0):
        assert normalize(ClassificationResult(predictions=[]), timestamp=t0) == []
        assert normalize(DetectionResult(detections=[]), timestamp=t0) == []
        assert normalize(None, timestamp=t0) == []

    def test_confidence_not_clamped(self, t0):
        result = ClassificationResult(predictions=[ClassPrediction("Pitman", 1.5)])

        assert normalize(result, timestamp=t0)[0].confidence == 1.5

    def test_timestamp_defaults_to_now(self):
        records = normalize(ClassificationResult(predictions=[ClassPrediction("Pitman", 0.9)]))

        assert records[0].timestamp > 1_600_000_000_000

    def test_unknown_result_type_rejected(self):
        with pytest.raises(TypeError):
            normalize({"predictions": []})


class TestParseRoboflowResponse:

    def test_parses_predictions_and_image_size(self):
        data = {
            "predictions": [
                {"x": 100, "y": 100, "width": 40, "height": 20, "confidence": 0.87, "class": "Flywheel", "class_id": 2}
            ],
            "image": {"width": 1280, "height": 720},
        }

        result = parse_roboflow_response(data)

        assert source_size(result) == (1280, 720)
        det = result.detections[0]
        assert det.label == "Flywheel"
        assert det.score == 0.87
        assert det.class_id == 2
        assert det.box == CenterBox(100.0, 100.0, 40.0, 20.0)

    def test_missing_fields_use_defaults(self):
        result = parse_roboflow_response({"predictions": [{"class": "Pitman", "confidence": 0.7}]})

        assert source_size(result) == (640, 640)
        assert result.detections[0].class_id == 0

    def test_empty_response(self):
        result = parse_roboflow_response(None)

        assert result.detections == []
