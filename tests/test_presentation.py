"""
Tests for batch building and the results-panel view.
"""

from dataclasses import replace

import pytest

from aggregation.presentation import (
    NOT_RECOGNIZED_TITLE,
    build_batch,
    confidence_band,
    derive_state,
    derive_view,
)
from conftest import rec
from models.batch import AggregationBatch, DetectionMode, ViewState


class TestConfidenceBand:

    @pytest.mark.parametrize(
        "confidence,band",
        [(0.95, "high"), (0.8, "high"), (0.79, "medium"), (0.6, "medium"), (0.59, "low"), (0.0, "low")],
    )
    def test_bands(self, confidence, band):
        assert confidence_band(confidence) == band


class TestBuildBatch:

    def test_numbered_and_sorted(self):
        batch = build_batch([rec("Pitman", 0.62), rec("Flywheel", 0.3), rec("Pitman", 0.9)], 0.6)

        assert [d.display_label for d in batch.records] == ["Pitman #1", "Pitman #2"]
        assert [d.confidence for d in batch.records] == [0.9, 0.62]
        assert batch.is_irrelevant is False
        assert batch.is_processing is False

    def test_carries_source_size_and_generation(self):
        batch = build_batch([rec("Pitman", 0.9)], 0.6, source_size=(1280, 720), generation=4)

        assert batch.source_size == (1280, 720)
        assert batch.generation == 4

    def test_batch_is_immutable(self):
        batch = build_batch([rec("Pitman", 0.9)], 0.6)

        assert isinstance(batch.records, tuple)
        with pytest.raises(AttributeError):
            batch.is_irrelevant = True


class TestDeriveState:

    def test_processing_takes_priority(self):
        batch = AggregationBatch(records=(), is_irrelevant=True, is_processing=True)

        assert derive_state(batch) is ViewState.PROCESSING

    def test_irrelevance_checked_before_emptiness(self):
        batch = build_batch([], 0.6)

        assert derive_state(batch) is ViewState.NOT_RECOGNIZED

    def test_plain_empty_is_no_results(self):
        assert derive_state(AggregationBatch.empty()) is ViewState.NO_RESULTS

    def test_records_show_results(self):
        assert derive_state(build_batch([rec("Pitman", 0.9)], 0.6)) is ViewState.RESULTS

    def test_records_shown_while_next_call_outstanding(self):
        batch = replace(build_batch([rec("Pitman", 0.9)], 0.6), is_processing=True)

        assert derive_state(batch) is ViewState.RESULTS


class TestDeriveView:

    def test_not_recognized_messages_differ_by_mode(self):
        batch = build_batch([rec("Bearing", 0.55)], 0.6)

        upload = derive_view(batch, DetectionMode.UPLOAD)
        webcam = derive_view(batch, DetectionMode.WEBCAM)

        assert upload.title == webcam.title == NOT_RECOGNIZED_TITLE == "Not a Jaw Crusher Part"
        assert upload.message == "The uploaded image is not recognized as a jaw crusher component."
        assert webcam.message == "The object in view is not recognized as a jaw crusher component."
        assert upload.records == []

    def test_no_results_text_distinct_from_not_recognized(self):
        view = derive_view(AggregationBatch.empty(), DetectionMode.WEBCAM)

        assert view.title == "No results yet"
        assert view.message == "Aim camera at a part to begin detection"

    def test_processing_messages(self):
        batch = AggregationBatch.empty(is_processing=True)

        assert derive_view(batch, DetectionMode.WEBCAM).message == "Analyzing live feed"
        assert derive_view(batch, DetectionMode.UPLOAD).message == "Identifying parts in image"
        assert derive_view(batch, DetectionMode.UPLOAD).title == "Processing..."

    def test_results_message_counts_parts(self):
        one = derive_view(build_batch([rec("Pitman", 0.9)], 0.6), DetectionMode.UPLOAD)
        two = derive_view(build_batch([rec("Pitman", 0.9), rec("Flywheel", 0.7)], 0.6), DetectionMode.UPLOAD)

        assert one.message == "1 part detected"
        assert two.message == "2 parts detected"

    def test_webcam_view_truncated(self):
        batch = build_batch([rec(f"Part {i}", 0.9) for i in range(15)], 0.6)

        assert len(derive_view(batch, DetectionMode.WEBCAM).records) == 10
        assert len(derive_view(batch, DetectionMode.WEBCAM, max_records=3).records) == 3
        assert len(derive_view(batch, DetectionMode.UPLOAD).records) == 15

    def test_mode_accepts_string(self):
        view = derive_view(AggregationBatch.empty(), "upload")

        assert view.message == "Upload an image to identify parts"

    def test_to_dict(self):
        view = derive_view(build_batch([rec("Pitman", 0.9)], 0.6), DetectionMode.UPLOAD)

        d = view.to_dict()

        assert d["state"] == "results"
        assert d["records"][0]["display_label"] == "Pitman"
        assert "bbox" not in d["records"][0]
