"""
OpenCV-based capture source for USB webcams (device index) and video
devices given by path.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import cv2

from models.frame import FrameData
from .base import (
    CameraNotFound,
    CameraPermissionDenied,
    CaptureConfig,
    CaptureSource,
)


@dataclass
class OpenCVCaptureConfig(CaptureConfig):
    """
    Attributes:
        device_id: Camera index (int) or device/file path (str).
        max_retries: Attempts before giving up on opening the device.
        buffer_size: OpenCV capture buffer size (lower = fresher frames).
    """
    device_id: Union[int, str] = 0
    max_retries: int = 3
    buffer_size: int = 1

    @classmethod
    def from_camera_config(cls, camera_cfg: Dict[str, Any], source_id: str = "webcam") -> "OpenCVCaptureConfig":
        """Adapter: Create from the `camera` section of the config."""
        resolution = camera_cfg.get("resolution")
        if resolution:
            resolution = tuple(resolution)
        return cls(
            source_id=source_id,
            resolution=resolution,
            fps=camera_cfg.get("fps"),
            device_id=camera_cfg.get("device_id", 0),
            max_retries=camera_cfg.get("max_retries", 3),
            buffer_size=camera_cfg.get("buffer_size", 1),
        )


def _device_path(device_id: Union[int, str]) -> Optional[str]:
    if isinstance(device_id, int):
        return f"/dev/video{device_id}" if os.name == "posix" else None
    return device_id


class OpenCVCaptureSource(CaptureSource):
    def __init__(self, config: OpenCVCaptureConfig):
        super().__init__(config)
        self._cv_config = config
        self._cap: Optional[cv2.VideoCapture] = None

    @property
    def device_id(self) -> Union[int, str]:
        return self._cv_config.device_id

    def open(self) -> None:
        if self._is_open:
            return
        self._initialize(retry_count=0)
        self._is_open = True
        self._frame_index = 0
        logging.info(
            f"Capture opened: source_id={self.source_id}, device={self.device_id}, "
            f"resolution={self._cv_config.resolution}"
        )

    def _raise_open_failure(self) -> None:
        path = _device_path(self.device_id)
        if path and os.path.exists(path) and not os.access(path, os.R_OK):
            raise CameraPermissionDenied(f"Permission denied for camera device {path}")
        raise CameraNotFound(
            f"Failed to open camera {self.device_id} after {self._cv_config.max_retries} attempts"
        )

    def _initialize(self, retry_count: int = 0) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None

        if retry_count > 0:
            wait_time = min(2 ** retry_count, 10)
            logging.info(
                f"Retrying camera (attempt {retry_count + 1}/{self._cv_config.max_retries}) after {wait_time}s"
            )
            time.sleep(wait_time)

        self._cap = cv2.VideoCapture(self.device_id)
        if not self._cap.isOpened():
            self._cap.release()
            self._cap = None
            if retry_count < self._cv_config.max_retries - 1:
                logging.warning(f"Failed to open camera {self.device_id}, retrying...")
                return self._initialize(retry_count + 1)
            self._raise_open_failure()

        if isinstance(self.device_id, int) and self._cv_config.resolution:
            w, h = self._cv_config.resolution
            self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, w)
            self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, h)
            if self._cv_config.fps:
                self._cap.set(cv2.CAP_PROP_FPS, self._cv_config.fps)
            self._cap.set(cv2.CAP_PROP_BUFFERSIZE, self._cv_config.buffer_size)

    def read(self) -> Optional[FrameData]:
        if not self._is_open or self._cap is None:
            return None

        ret, frame = self._cap.read()
        if not ret or frame is None:
            logging.warning(f"Failed to read frame from {self.source_id}")
            return None

        self._frame_index += 1
        return FrameData.from_numpy(
            frame,
            timestamp=time.time(),
            frame_index=self._frame_index,
            source=self.source_id,
        )

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        if self._is_open:
            logging.info(f"Capture closed: source_id={self.source_id}")
        self._is_open = False


def create_source_from_config(camera_cfg: Dict[str, Any], source_id: str = "webcam") -> CaptureSource:
    backend = camera_cfg.get("backend", "opencv")
    if backend != "opencv":
        raise ValueError(f"Unsupported camera backend: {backend}")
    return OpenCVCaptureSource(OpenCVCaptureConfig.from_camera_config(camera_cfg, source_id=source_id))
