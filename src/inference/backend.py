"""
Inference backend interfaces.

Classifiers rank labels for the whole image; detectors return localized
detections in the image's own pixel space.
"""

from __future__ import annotations

from typing import Protocol

import numpy as np

from models.frame import FrameData
from models.inference import ClassificationResult, DetectionResult


class InferenceUnavailable(RuntimeError):
    """The inference source failed to load or failed on a call."""


class Classifier(Protocol):
    def classify(self, image: np.ndarray) -> ClassificationResult:
        ...


class Detector(Protocol):
    def detect(self, frame: FrameData) -> DetectionResult:
        """Detect parts in a captured or uploaded frame (BGR pixels in frame.frame)."""
        ...
