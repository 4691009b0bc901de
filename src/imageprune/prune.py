"""
Prune Selection

The entry point list and prune commands call. It drives parsing, stage
compilation and the filter pipeline against a point-in-time inventory
snapshot, and hands prune selections to the inventory for deletion.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional

from imageprune.core.exceptions import ReferenceFormatError
from imageprune.core.pipeline import FilterPipeline, PipelineResult
from imageprune.filters import DanglingFilter, FilterFactory, FilterSet, parse_filters
from imageprune.images import ImageRecord
from imageprune.inventory import ImageInventory
from imageprune.reference import parse_docker_ref

logger = logging.getLogger(__name__)


def canonical_name(name: str) -> str:
    """
    Canonical form of an image name for in-use comparisons.

    ``alpine:3.19`` and ``docker.io/library/alpine:3.19`` share one form.
    Names outside the reference grammar are compared as given.
    """
    try:
        return str(parse_docker_ref(name))
    except ReferenceFormatError:
        return name


@dataclass
class PruneReport:
    """
    Outcome of a prune request.

    Attributes:
        selected: Images the filters selected for removal
        deleted: Images the inventory reported as removed
        dry_run: True when nothing was handed to the inventory
    """
    selected: List[ImageRecord] = field(default_factory=list)
    deleted: List[ImageRecord] = field(default_factory=list)
    dry_run: bool = False


class PruneSelectionCoordinator:
    """
    Selects images for listing or pruning.

    Each call parses its own filters and builds its own stages, so calls
    share no mutable state. Filters are parsed before the inventory is
    touched. Selection is all-or-nothing: any parse, resolution, label-read
    or pattern error propagates and no partial list is returned.

    Args:
        inventory: Image store collaborator
        now: Reference time for until= durations; defaults to apply time
    """

    def __init__(self, inventory: ImageInventory, now: Optional[datetime] = None):
        self.inventory = inventory
        self.factory = FilterFactory(inventory, now=now)

    def _execute(self, images: Iterable[ImageRecord], filter_set: FilterSet) -> PipelineResult:
        stages = self.factory.compile(filter_set)
        result = FilterPipeline(stages).run(images)
        logger.info(result.summary())
        return result

    def run(self, all_images: Iterable[ImageRecord], raw_filters: Iterable[str]) -> PipelineResult:
        """
        Filter an image snapshot and return the full pipeline result.

        Raises:
            ImagePruneError: On the first failure
        """
        return self._execute(all_images, parse_filters(raw_filters))

    def select(self, all_images: Iterable[ImageRecord], raw_filters: Iterable[str]) -> List[ImageRecord]:
        """
        Filter an image snapshot.

        Args:
            all_images: Full inventory snapshot, in listing order
            raw_filters: Raw filter strings such as ``dangling=true``

        Returns:
            The selected images, in their original order

        Raises:
            ImagePruneError: On the first failure
        """
        return self.run(all_images, raw_filters).images

    def list_images(self, raw_filters: Iterable[str] = ()) -> List[ImageRecord]:
        """Select from the inventory's current listing."""
        filter_set = parse_filters(raw_filters)
        return self._execute(self.inventory.list_images(), filter_set).images

    def prune_candidates(self, raw_filters: Iterable[str] = (), all_images: bool = False) -> List[ImageRecord]:
        """
        Select the images a prune should remove.

        By default only dangling images are candidates. With ``all_images``
        every image not referenced by a container is a candidate. User
        filters narrow the candidates further.

        Args:
            raw_filters: Raw filter strings
            all_images: Consider tagged images too

        Returns:
            Images to remove
        """
        filter_set = parse_filters(raw_filters)
        snapshot = self.inventory.list_images()

        if all_images:
            in_use = {canonical_name(name) for name in self.inventory.containers()}
            candidates = [image for image in snapshot if canonical_name(image.name) not in in_use]
            logger.debug(f"{len(snapshot) - len(candidates)} image(s) in use by containers")
        else:
            candidates = DanglingFilter(True).apply(snapshot)

        return self._execute(candidates, filter_set).images

    def prune(
        self,
        raw_filters: Iterable[str] = (),
        all_images: bool = False,
        dry_run: bool = False
    ) -> PruneReport:
        """
        Select prune candidates and hand them to the inventory for removal.

        Args:
            raw_filters: Raw filter strings
            all_images: Consider tagged images too
            dry_run: Only report the selection

        Returns:
            PruneReport describing the selection and deletion
        """
        selected = self.prune_candidates(raw_filters, all_images=all_images)
        if dry_run or not selected:
            return PruneReport(selected=selected, dry_run=dry_run)

        deleted = self.inventory.delete(selected)
        logger.info(f"Pruned {len(deleted)} of {len(selected)} selected image(s)")
        return PruneReport(selected=selected, deleted=deleted)
