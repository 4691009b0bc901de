"""
Pipeline Interfaces

Data structures shared by the filter pipeline. A stage is anything callable
that maps an image list to a narrowed image list; Filter subclasses are the
usual implementation but plain functions work as well.
"""

from dataclasses import dataclass, field
from typing import Callable, List

from imageprune.images import ImageRecord

PipelineStage = Callable[[List[ImageRecord]], List[ImageRecord]]


def stage_name(stage: PipelineStage) -> str:
    """Best-effort display name for a stage."""
    return getattr(stage, "name", None) or getattr(stage, "__name__", None) or stage.__class__.__name__


@dataclass
class StageResult:
    """
    Execution details of a single stage.

    Attributes:
        stage_name: Name of the stage
        input_count: Number of candidate images the stage received
        output_count: Number of images the stage kept
        execution_time: Time taken by the stage in seconds
    """
    stage_name: str
    input_count: int = 0
    output_count: int = 0
    execution_time: float = 0.0

    @property
    def filtered_out(self) -> int:
        return self.input_count - self.output_count


@dataclass
class PipelineResult:
    """
    Result of a successful pipeline run.

    Failed runs raise instead of returning a result, so a PipelineResult
    always holds a complete selection.

    Attributes:
        images: Images that passed every stage, in input order
        stage_results: Per-stage execution details, in execution order
        execution_time: Total time for the run in seconds
    """
    images: List[ImageRecord] = field(default_factory=list)
    stage_results: List[StageResult] = field(default_factory=list)
    execution_time: float = 0.0

    @property
    def stages_executed(self) -> int:
        return len(self.stage_results)

    def summary(self) -> str:
        """One-line description of how each stage narrowed the list."""
        if not self.stage_results:
            return f"{len(self.images)} image(s), no filters applied"
        steps = ", ".join(
            f"{r.stage_name}: {r.input_count}->{r.output_count}" for r in self.stage_results
        )
        return f"{len(self.images)} image(s) selected ({steps})"
