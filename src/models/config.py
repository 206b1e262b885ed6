"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


DEFAULT_PART_LABELS = [
    "Cheek Plates",
    "Eccentric Shaft",
    "Flywheel",
    "Jaw Crusher Bearings",
    "Jaw Plates",
    "Pitman",
    "Toggle Plate",
]


@dataclass
class CameraConfig:
    """Camera configuration."""
    backend: str = "opencv"
    device_id: Union[int, str] = 0
    resolution: List[int] = field(default_factory=lambda: [1280, 720])
    fps: int = 30
    max_retries: int = 3

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CameraConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            backend=d.get("backend", "opencv"),
            device_id=d.get("device_id", 0),
            resolution=d.get("resolution", [1280, 720]),
            fps=d.get("fps", 30),
            max_retries=d.get("max_retries", 3),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "device_id": self.device_id,
            "resolution": self.resolution,
            "fps": self.fps,
            "max_retries": self.max_retries,
        }


@dataclass
class ClassifierConfig:
    """Local image classifier configuration."""
    backend: str = "ultralytics"
    model: str = "models/jaw-crusher-cls.pt"
    metadata_path: Optional[str] = "models/metadata.json"
    top_k: int = 7
    class_name_overrides: Optional[Dict[int, str]] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ClassifierConfig":
        return cls(
            backend=d.get("backend", "ultralytics"),
            model=d.get("model", "models/jaw-crusher-cls.pt"),
            metadata_path=d.get("metadata_path", "models/metadata.json"),
            top_k=d.get("top_k", 7),
            class_name_overrides=d.get("class_name_overrides"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "backend": self.backend,
            "model": self.model,
            "metadata_path": self.metadata_path,
            "top_k": self.top_k,
        }
        if self.class_name_overrides is not None:
            d["class_name_overrides"] = self.class_name_overrides
        return d


@dataclass
class DetectorConfig:
    """Remote detection API configuration."""
    enabled: bool = True
    api_url: str = "https://detect.roboflow.com"
    model_id: str = "jaw-crusher-parts-identification/3"
    api_key: str = ""
    timeout: float = 30.0
    jpeg_quality: float = 0.8

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectorConfig":
        return cls(
            enabled=d.get("enabled", True),
            api_url=d.get("api_url", "https://detect.roboflow.com"),
            model_id=d.get("model_id", "jaw-crusher-parts-identification/3"),
            api_key=os.environ.get("ROBOFLOW_API_KEY") or d.get("api_key", ""),
            timeout=d.get("timeout", 30.0),
            jpeg_quality=d.get("jpeg_quality", 0.8),
        )

    @property
    def endpoint(self) -> str:
        return f"{self.api_url.rstrip('/')}/{self.model_id}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "api_url": self.api_url,
            "model_id": self.model_id,
            "api_key": self.api_key,
            "timeout": self.timeout,
            "jpeg_quality": self.jpeg_quality,
        }


@dataclass
class SheetLoggerConfig:
    """Google Sheets (Apps Script) logging sink configuration."""
    url: str = ""
    timeout: float = 10.0
    min_confidence: float = 0.5

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SheetLoggerConfig":
        return cls(
            url=os.environ.get("SHEET_LOGGER_URL") or d.get("url", ""),
            timeout=d.get("timeout", 10.0),
            min_confidence=d.get("min_confidence", 0.5),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "timeout": self.timeout,
            "min_confidence": self.min_confidence,
        }


@dataclass
class LiveConfig:
    """Live (webcam) detection settings."""
    interval_ms: int = 1000
    confidence_threshold: float = 0.8
    min_threshold: float = 0.3
    max_threshold: float = 0.95
    cooldown_ms: int = 5000
    max_display: int = 10

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LiveConfig":
        return cls(
            interval_ms=d.get("interval_ms", 1000),
            confidence_threshold=d.get("confidence_threshold", 0.8),
            min_threshold=d.get("min_threshold", 0.3),
            max_threshold=d.get("max_threshold", 0.95),
            cooldown_ms=d.get("cooldown_ms", 5000),
            max_display=d.get("max_display", 10),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "interval_ms": self.interval_ms,
            "confidence_threshold": self.confidence_threshold,
            "min_threshold": self.min_threshold,
            "max_threshold": self.max_threshold,
            "cooldown_ms": self.cooldown_ms,
            "max_display": self.max_display,
        }


@dataclass
class UploadConfig:
    """Single-image upload settings."""
    confidence_threshold: float = 0.6
    strategy: str = "detect"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "UploadConfig":
        return cls(
            confidence_threshold=d.get("confidence_threshold", 0.6),
            strategy=d.get("strategy", "detect"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "confidence_threshold": self.confidence_threshold,
            "strategy": self.strategy,
        }


@dataclass
class GridScanConfig:
    """Overlapping-tile scan used to localize several parts with the classifier."""
    rows: int = 3
    cols: int = 3
    overlap: float = 0.25
    similarity_window: float = 0.1

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "GridScanConfig":
        return cls(
            rows=d.get("rows", 3),
            cols=d.get("cols", 3),
            overlap=d.get("overlap", 0.25),
            similarity_window=d.get("similarity_window", 0.1),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rows": self.rows,
            "cols": self.cols,
            "overlap": self.overlap,
            "similarity_window": self.similarity_window,
        }


@dataclass
class WebConfig:
    """HTTP server settings."""
    host: str = "0.0.0.0"
    port: int = 5000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(host=d.get("host", "0.0.0.0"), port=d.get("port", 5000))

    def to_dict(self) -> Dict[str, Any]:
        return {"host": self.host, "port": self.port}


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    camera: CameraConfig = field(default_factory=CameraConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    sheet_logger: SheetLoggerConfig = field(default_factory=SheetLoggerConfig)
    live: LiveConfig = field(default_factory=LiveConfig)
    upload: UploadConfig = field(default_factory=UploadConfig)
    grid_scan: GridScanConfig = field(default_factory=GridScanConfig)
    web: WebConfig = field(default_factory=WebConfig)
    labels: List[str] = field(default_factory=lambda: list(DEFAULT_PART_LABELS))
    log_path: str = "logs/part_identifier.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            camera=CameraConfig.from_dict(d.get("camera", {}) or {}),
            classifier=ClassifierConfig.from_dict(d.get("classifier", {}) or {}),
            detector=DetectorConfig.from_dict(d.get("detector", {}) or {}),
            sheet_logger=SheetLoggerConfig.from_dict(d.get("sheet_logger", {}) or {}),
            live=LiveConfig.from_dict(d.get("live", {}) or {}),
            upload=UploadConfig.from_dict(d.get("upload", {}) or {}),
            grid_scan=GridScanConfig.from_dict(d.get("grid_scan", {}) or {}),
            web=WebConfig.from_dict(d.get("web", {}) or {}),
            labels=d.get("labels") or list(DEFAULT_PART_LABELS),
            log_path=d.get("log_path", "logs/part_identifier.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or logging)."""
        return {
            "camera": self.camera.to_dict(),
            "classifier": self.classifier.to_dict(),
            "detector": self.detector.to_dict(),
            "sheet_logger": self.sheet_logger.to_dict(),
            "live": self.live.to_dict(),
            "upload": self.upload.to_dict(),
            "grid_scan": self.grid_scan.to_dict(),
            "web": self.web.to_dict(),
            "labels": self.labels,
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
