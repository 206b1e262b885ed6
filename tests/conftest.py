"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.detection import DetectionRecord  # noqa: E402
from models.frame import FrameData  # noqa: E402
from models.inference import ClassPrediction, ClassificationResult  # noqa: E402

T0 = 1_700_000_000_000


def rec(label, confidence, timestamp=T0, bbox=None):
    return DetectionRecord(label=label, confidence=confidence, timestamp=timestamp, bbox=bbox)


class FakeClassifier:
    """Returns a fixed ranked prediction list for any image."""

    def __init__(self, predictions=None, error=None):
        self.predictions = predictions if predictions is not None else [("Pitman", 0.9), ("Flywheel", 0.05)]
        self.error = error
        self.calls = 0
        self.closed = False

    def classify(self, image):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return ClassificationResult(predictions=[ClassPrediction(label=l, score=s) for l, s in self.predictions])

    def close(self):
        self.closed = True


class FakeSource:
    """CaptureSource stand-in that yields a blank frame per read."""

    def __init__(self, open_error=None):
        self.open_error = open_error
        self.opened = False
        self.closed = False
        self.reads = 0

    def open(self):
        if self.open_error is not None:
            raise self.open_error
        self.opened = True

    def read(self):
        self.reads += 1
        return FrameData.from_numpy(np.zeros((120, 160, 3), dtype=np.uint8), source="webcam")

    def close(self):
        self.closed = True


@pytest.fixture
def t0():
    return T0


@pytest.fixture
def blank_frame():
    return FrameData.from_numpy(np.zeros((120, 160, 3), dtype=np.uint8), source="upload", timestamp=T0 / 1000.0)


@pytest.fixture
def fake_classifier():
    return FakeClassifier()


@pytest.fixture
def jpeg_bytes():
    """A small valid JPEG."""
    import cv2

    img = np.full((64, 96, 3), 127, dtype=np.uint8)
    ok, buf = cv2.imencode(".jpg", img)
    assert ok
    return buf.tobytes()


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
camera:
  backend: "opencv"
  device_id: 0
  resolution: [640, 480]
  fps: 30

classifier:
  backend: "ultralytics"
  model: "models/test-cls.pt"
  top_k: 7

detector:
  enabled: false

live:
  confidence_threshold: 0.8
  cooldown_ms: 5000

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "camera": {
            "backend": "opencv",
            "device_id": 0,
            "resolution": [1280, 720],
            "fps": 30,
        },
        "classifier": {
            "backend": "ultralytics",
            "model": "models/jaw-crusher-cls.pt",
            "top_k": 7,
        },
        "detector": {
            "enabled": True,
            "model_id": "jaw-crusher-parts-identification/3",
            "jpeg_quality": 0.8,
        },
        "live": {
            "interval_ms": 1000,
            "confidence_threshold": 0.8,
            "min_threshold": 0.3,
            "max_threshold": 0.95,
            "cooldown_ms": 5000,
        },
        "upload": {
            "confidence_threshold": 0.6,
            "strategy": "detect",
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
