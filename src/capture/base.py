"""
CaptureSource interface for live frame sources.

Lifecycle:
    1. Create instance with config
    2. Call open() to acquire the device
    3. Call read() repeatedly to get frames
    4. Call close() to release the device

Sources are also context managers, so acquisition is scoped:
    with OpenCVCaptureSource(config) as source:
        frame_data = source.read()
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from models.frame import FrameData


class CaptureDeviceError(RuntimeError):
    """The capture device could not be acquired."""

    user_message = "Could not access the camera."


class CameraPermissionDenied(CaptureDeviceError):
    user_message = "Camera access was denied. Please allow camera access and start the webcam again."


class CameraNotFound(CaptureDeviceError):
    user_message = "No camera was found. Connect a camera and start the webcam again."


@dataclass
class CaptureConfig:
    """
    Base configuration for capture sources.

    Attributes:
        source_id: Identifier for this source (e.g., "webcam").
        resolution: Requested (width, height). None = device default.
        fps: Requested frames per second. None = device default.
        metadata: Additional source-specific configuration.
    """
    source_id: str = "webcam"
    resolution: Optional[tuple[int, int]] = None
    fps: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class CaptureSource(ABC):
    def __init__(self, config: CaptureConfig):
        self._config = config
        self._is_open = False
        self._frame_index = 0

    @property
    def source_id(self) -> str:
        return self._config.source_id

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def frame_index(self) -> int:
        return self._frame_index

    @abstractmethod
    def open(self) -> None:
        """
        Acquire the device. Must be called before read().

        Raises:
            CaptureDeviceError: If the device is missing or access is denied.
        """

    @abstractmethod
    def read(self) -> Optional[FrameData]:
        """Return the next frame, or None if no frame is available right now."""

    @abstractmethod
    def close(self) -> None:
        """Release the device. Safe to call multiple times."""

    def __enter__(self) -> "CaptureSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
