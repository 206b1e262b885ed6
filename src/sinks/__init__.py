"""
Best-effort external sinks for detections.
"""

from .sheet_logger import DetectionLog, SheetLogger, SOURCE_UPLOAD, SOURCE_WEBCAM

__all__ = ["DetectionLog", "SheetLogger", "SOURCE_UPLOAD", "SOURCE_WEBCAM"]
