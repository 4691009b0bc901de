"""
Pipeline Executor

Runs filter stages strictly in sequence, each consuming the previous stage's
output. The first failing stage stops the run and its error propagates; a
failed run never yields a partial selection.
"""

import logging
import time
from typing import Iterable, List, Optional

from imageprune.core.exceptions import ErrorCode, ErrorContext, ImagePruneError
from imageprune.images import ImageRecord

from .interfaces import PipelineResult, PipelineStage, StageResult, stage_name


class FilterPipeline:
    """
    Ordered sequence of filter stages.

    Stages run one after another on a single thread; there is no parallel
    stage execution. An empty pipeline is the identity transform.

    Args:
        stages: Initial stages, in execution order
    """

    def __init__(self, stages: Optional[Iterable[PipelineStage]] = None):
        self.stages: List[PipelineStage] = list(stages or [])
        self.logger = logging.getLogger("imageprune.pipeline")

    def add_stage(self, stage: PipelineStage, position: int = -1) -> None:
        """
        Add a stage to the pipeline.

        Args:
            stage: Stage to add
            position: Position to insert the stage (-1 for end)
        """
        if position == -1:
            self.stages.append(stage)
        else:
            self.stages.insert(position, stage)

    def run(self, images: Iterable[ImageRecord]) -> PipelineResult:
        """
        Execute every stage against the images.

        Args:
            images: Candidate images, in listing order

        Returns:
            PipelineResult with the final selection and per-stage details

        Raises:
            ImagePruneError: From the first stage that fails
        """
        start_time = time.time()
        current = list(images)
        stage_results: List[StageResult] = []

        for index, stage in enumerate(self.stages):
            name = stage_name(stage)
            stage_start = time.time()
            try:
                narrowed = list(stage(current))
            except ImagePruneError as e:
                if not e.context.stage:
                    e.context.stage = name
                self.logger.debug(f"Stage {index} ({name}) failed: {e.message}")
                raise
            except Exception as e:
                self.logger.error(f"Unexpected error in stage {index} ({name}): {e}")
                raise ImagePruneError(
                    f"filter stage {name!r} failed: {e}",
                    error_code=ErrorCode.INTERNAL_ERROR,
                    context=ErrorContext(operation="filter_pipeline", stage=name),
                    cause=e
                ) from e

            stage_results.append(StageResult(
                stage_name=name,
                input_count=len(current),
                output_count=len(narrowed),
                execution_time=time.time() - stage_start
            ))
            self.logger.debug(f"Stage {name}: {len(current)} -> {len(narrowed)} image(s)")
            current = narrowed

        return PipelineResult(
            images=current,
            stage_results=stage_results,
            execution_time=time.time() - start_time
        )

    def apply(self, images: Iterable[ImageRecord]) -> List[ImageRecord]:
        """Execute the pipeline and return only the selected images."""
        return self.run(images).images

    def __len__(self) -> int:
        return len(self.stages)

    def __str__(self) -> str:
        return f"FilterPipeline({' -> '.join(stage_name(s) for s in self.stages)})"


def apply_filters(images: Iterable[ImageRecord], *stages: PipelineStage) -> List[ImageRecord]:
    """
    Apply stages left to right and return the resulting image list.

    Raises:
        ImagePruneError: From the first stage that fails; nothing is returned
    """
    return FilterPipeline(stages).apply(images)
