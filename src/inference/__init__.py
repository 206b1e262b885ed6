"""
Inference sources: local classifier, remote detection API, and the model
handle that owns their lifecycle.
"""

from .backend import Classifier, Detector, InferenceUnavailable
from .handle import ModelHandle

__all__ = ["Classifier", "Detector", "InferenceUnavailable", "ModelHandle"]
