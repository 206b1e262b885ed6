"""
Capture layer for live frame sources.

Each source implements the CaptureSource interface and returns FrameData
objects; acquisition is scoped with open()/close() or a with-block.
"""

from .base import (
    CaptureSource,
    CaptureConfig,
    CaptureDeviceError,
    CameraPermissionDenied,
    CameraNotFound,
)
from .opencv_source import OpenCVCaptureSource, OpenCVCaptureConfig, create_source_from_config

__all__ = [
    "CaptureSource",
    "CaptureConfig",
    "CaptureDeviceError",
    "CameraPermissionDenied",
    "CameraNotFound",
    "OpenCVCaptureSource",
    "OpenCVCaptureConfig",
    "create_source_from_config",
]
