"""
Pipeline Package

Sequential execution of image filter stages.
"""

from .interfaces import PipelineStage, PipelineResult, StageResult
from .executor import FilterPipeline, apply_filters

__all__ = [
    "PipelineStage",
    "PipelineResult",
    "StageResult",
    "FilterPipeline",
    "apply_filters",
]
