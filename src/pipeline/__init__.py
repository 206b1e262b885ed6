"""
Identification pipeline for uploaded images and live frames.
"""

from .engine import (
    IdentificationPipeline,
    PipelineConfig,
    STRATEGIES,
    STRATEGY_DETECT,
    STRATEGY_GRID,
)

__all__ = [
    "IdentificationPipeline",
    "PipelineConfig",
    "STRATEGIES",
    "STRATEGY_DETECT",
    "STRATEGY_GRID",
]
