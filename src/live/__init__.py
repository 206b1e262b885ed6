"""
Live webcam detection session.
"""

from .session import LiveSession, THRESHOLD_PRESETS

__all__ = ["LiveSession", "THRESHOLD_PRESETS"]
