"""
FrameData model for captured frames and uploaded images.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np


@dataclass
class FrameData:
    """
    Pixels plus capture metadata for one image handed to inference.

    Attributes:
        frame: Image as a numpy array (BGR format).
        width: Frame width in pixels.
        height: Frame height in pixels.
        timestamp: Unix timestamp (seconds) when the frame was captured.
        frame_index: Sequential frame number since the source was opened.
        source: Identifier for the camera or upload.
    """
    frame: np.ndarray
    width: int
    height: int
    timestamp: float
    frame_index: int = 0
    source: Optional[str] = None

    @classmethod
    def from_numpy(
        cls,
        frame: np.ndarray,
        timestamp: Optional[float] = None,
        frame_index: int = 0,
        source: Optional[str] = None,
    ) -> "FrameData":
        """Create FrameData from a numpy array."""
        h, w = frame.shape[:2]
        return cls(
            frame=frame,
            width=w,
            height=h,
            timestamp=time.time() if timestamp is None else timestamp,
            frame_index=frame_index,
            source=source,
        )

    @classmethod
    def from_bytes(cls, data: bytes, source: Optional[str] = "upload") -> "FrameData":
        """
        Decode an encoded image (JPEG, PNG, ...) into a frame.

        Raises:
            ValueError: If the bytes are not a decodable image.
        """
        buf = np.frombuffer(data or b"", dtype=np.uint8)
        frame = cv2.imdecode(buf, cv2.IMREAD_COLOR) if buf.size else None
        if frame is None:
            raise ValueError("Not a valid image file")
        return cls.from_numpy(frame, source=source)

    @property
    def timestamp_ms(self) -> int:
        return int(self.timestamp * 1000)

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)

    def encode_jpeg(self, quality: float = 0.8) -> bytes:
        """Encode the frame as JPEG; quality is 0-1 like a canvas blob."""
        q = int(max(0.0, min(1.0, quality)) * 100)
        ok, buf = cv2.imencode(".jpg", self.frame, [int(cv2.IMWRITE_JPEG_QUALITY), q])
        if not ok:
            raise RuntimeError("Failed to encode JPEG")
        return buf.tobytes()
