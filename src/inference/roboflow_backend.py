"""
Remote detection backend (Roboflow hosted inference API).

POSTs the image as a multipart `file` field and parses the center-anchored
predictions. Any transport or HTTP failure is raised as InferenceUnavailable
so the pipeline can fall back to the local classifier.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

import numpy as np
import requests

from aggregation.normalizer import parse_roboflow_response
from models.config import DetectorConfig
from models.frame import FrameData
from models.inference import DetectionResult
from .backend import Detector, InferenceUnavailable

ImageInput = Union[np.ndarray, bytes, FrameData]


class RoboflowDetector(Detector):
    def __init__(self, cfg: DetectorConfig, session: Optional[requests.Session] = None):
        self.cfg = cfg
        self._session = session or requests.Session()

    def _encode(self, image: ImageInput) -> bytes:
        if isinstance(image, bytes):
            return image
        if isinstance(image, np.ndarray):
            image = FrameData.from_numpy(image)
        return image.encode_jpeg(self.cfg.jpeg_quality)

    def detect(self, image: ImageInput) -> DetectionResult:
        if not self.cfg.api_key:
            raise InferenceUnavailable("Detection API key is not configured")

        payload = self._encode(image)
        try:
            response = self._session.post(
                self.cfg.endpoint,
                params={"api_key": self.cfg.api_key},
                files={"file": ("image.jpg", payload, "image/jpeg")},
                timeout=self.cfg.timeout,
            )
        except requests.RequestException as e:
            raise InferenceUnavailable(f"Detection API request failed: {e}") from e

        if response.status_code >= 400:
            raise InferenceUnavailable(
                f"Detection API request failed: {response.status_code} {response.reason} - {response.text}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise InferenceUnavailable(f"Detection API returned invalid JSON: {e}") from e

        result = parse_roboflow_response(data)
        logging.debug(
            f"Detection API: {len(result.detections)} detections "
            f"({result.source_width}x{result.source_height})"
        )
        return result

    def test_connection(self) -> bool:
        """Send a small solid red image and report whether the call succeeded."""
        probe = np.zeros((100, 100, 3), dtype=np.uint8)
        probe[:, :, 2] = 255
        try:
            self.detect(probe)
            return True
        except InferenceUnavailable as e:
            logging.error(f"Detection API connection test failed: {e}")
            return False

    def close(self) -> None:
        self._session.close()
