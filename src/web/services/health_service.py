from __future__ import annotations

import platform
import time
from dataclasses import dataclass
from typing import Any, Dict

from runtime.context import RuntimeContext


@dataclass
class HealthService:
    ctx: RuntimeContext

    def model_status(self) -> str:
        handle = self.ctx.classifier
        if handle.is_ready:
            return "ready"
        if handle.is_loading:
            return "loading"
        return "unavailable" if handle.last_error else "loading"

    def get_health_summary(self) -> Dict[str, Any]:
        return {
            "status": self.model_status(),
            "classifier_ready": self.ctx.classifier.is_ready,
            "classifier_error": self.ctx.classifier.last_error,
            "detector_enabled": self.ctx.detector is not None,
            "sheet_logging_enabled": self.ctx.sheet_logger.enabled,
            "live_active": self.ctx.live.active,
            "platform": platform.platform(),
            "python": platform.python_version(),
            "timestamp": time.time(),
        }
