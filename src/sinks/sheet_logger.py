"""
Best-effort detection logging to a Google Sheet via an Apps Script web app.

Nothing is read back from the sink. A failed request is logged and retried
once as a bare POST without headers; if that fails too the entry is dropped.
Errors never propagate to the caller.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from typing import Optional

import requests

from models.config import SheetLoggerConfig

SOURCE_UPLOAD = "Upload"
SOURCE_WEBCAM = "Webcam"


@dataclass(frozen=True)
class DetectionLog:
    """
    One logged detection.

    confidence stays a 0-1 decimal; the sheet formats it as a percentage.
    """
    part: str
    confidence: float
    source: str

    def to_json(self) -> str:
        return json.dumps(asdict(self))


class SheetLogger:
    def __init__(self, cfg: SheetLoggerConfig, session: Optional[requests.Session] = None):
        self.cfg = cfg
        self._session = session or requests.Session()

    @property
    def enabled(self) -> bool:
        return bool(self.cfg.url)

    def log(self, entry: DetectionLog) -> bool:
        """Send one entry. Returns True if a request went out without raising."""
        if not self.enabled:
            logging.warning("Sheet logger URL is not configured. Skipping sheet logging.")
            return False

        body = entry.to_json()
        try:
            logging.debug(f"Logging to sheet: {body}")
            self._session.post(
                self.cfg.url,
                data=body,
                headers={"Content-Type": "application/json"},
                timeout=self.cfg.timeout,
            )
            logging.info(f"Detection logged to sheet: {entry.part} ({entry.confidence:.3f}, {entry.source})")
            return True
        except requests.RequestException as e:
            logging.error(f"Error logging to sheet: {e}")

        try:
            logging.info("Retrying sheet logging with simplified request...")
            self._session.post(self.cfg.url, data=body, timeout=self.cfg.timeout)
            logging.info("Fallback sheet request sent")
            return True
        except requests.RequestException as e:
            logging.error(f"Fallback sheet request also failed: {e}")
            return False

    def close(self) -> None:
        self._session.close()
