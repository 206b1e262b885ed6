"""
CPU classifier backend.

Uses an Ultralytics classification model (e.g. a YOLO-cls export trained on
the part catalog). Label names come from the config overrides, then from an
optional metadata.json next to the model, then from the model itself.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np

from models.inference import ClassPrediction, ClassificationResult
from .backend import Classifier, InferenceUnavailable


@dataclass(frozen=True)
class CpuClassifierConfig:
    model: str
    metadata_path: Optional[str] = None
    top_k: int = 7
    class_name_overrides: Optional[Dict[int, str]] = None


def load_metadata_labels(path: Optional[str]) -> List[str]:
    """Read the `labels` list from a model metadata file, if present."""
    if not path or not os.path.exists(path):
        return []
    with open(path, "r") as f:
        meta = json.load(f) or {}
    return [str(x) for x in (meta.get("labels") or [])]


class UltralyticsClassifier(Classifier):
    def __init__(self, cfg: CpuClassifierConfig):
        self.cfg = cfg
        try:
            from ultralytics import YOLO  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "Ultralytics is not installed. Install with `pip install ultralytics`."
            ) from e

        try:
            self._model = YOLO(cfg.model, task="classify")
        except Exception as e:
            raise InferenceUnavailable(f"Failed to load classifier model {cfg.model}: {e}") from e

        self._metadata_labels = load_metadata_labels(cfg.metadata_path)
        logging.info(f"Classifier loaded: model={cfg.model}, labels={self.labels}")

    @property
    def labels(self) -> List[str]:
        names = getattr(self._model, "names", None) or {}
        return [self._label_for(i, names) for i in sorted(names)] or list(self._metadata_labels)

    def _label_for(self, class_id: int, names: Dict[int, str]) -> str:
        if self.cfg.class_name_overrides and class_id in self.cfg.class_name_overrides:
            return self.cfg.class_name_overrides[class_id]
        if class_id < len(self._metadata_labels):
            return self._metadata_labels[class_id]
        return names.get(class_id) or str(class_id)

    def classify(self, image: np.ndarray) -> ClassificationResult:
        try:
            results = self._model.predict(source=image, verbose=False)
        except Exception as e:
            raise InferenceUnavailable(f"Classifier prediction failed: {e}") from e
        if not results:
            return ClassificationResult()

        r0 = results[0]
        names = getattr(r0, "names", None) or {}
        probs = getattr(r0, "probs", None)
        if probs is None:
            return ClassificationResult()

        data = probs.data.cpu().numpy() if hasattr(probs.data, "cpu") else np.asarray(probs.data)
        order = np.argsort(-data, kind="stable")[: max(1, self.cfg.top_k)]
        return ClassificationResult(
            predictions=[
                ClassPrediction(label=self._label_for(int(k), names), score=float(data[k]))
                for k in order
            ]
        )

    def close(self) -> None:
        self._model = None
