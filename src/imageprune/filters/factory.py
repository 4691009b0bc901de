"""
Filter Factory for compiling parsed filters into pipeline stages.

Turns a FilterSet into the ordered list of filter stages the pipeline runs.
References given to before=/since= are resolved against the inventory here,
so resolution failures surface before any stage runs.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from imageprune.filters.base import Filter
from imageprune.filters.created import CreatedAtFilter, UntilFilter
from imageprune.filters.dangling import DanglingFilter
from imageprune.filters.label import LabelFilter
from imageprune.filters.parser import FilterSet, parse_filters
from imageprune.filters.reference import ReferenceFilter
from imageprune.inventory import ImageInventory


class FilterFactory:
    """
    Compiles filter sets into stages bound to an inventory.

    Stage order is fixed: creation time, until, label, reference, dangling.
    Only constraints that are present produce a stage, so an empty filter
    set compiles to no stages at all.

    Args:
        inventory: Inventory used to resolve references and read labels
        now: Reference time for until= durations; defaults to apply time
    """

    def __init__(self, inventory: ImageInventory, now: Optional[datetime] = None):
        self.inventory = inventory
        self.now = now
        self.logger = logging.getLogger(__name__)

    def compile(self, filter_set: FilterSet) -> List[Filter]:
        """
        Build the ordered stage list for a filter set.

        Args:
            filter_set: Parsed filters

        Returns:
            Filter stages in execution order

        Raises:
            ReferenceResolutionFailure: If a before=/since= reference cannot be resolved
        """
        stages: List[Filter] = []

        if filter_set.before or filter_set.since:
            stages.append(CreatedAtFilter.from_references(
                self.inventory, before=filter_set.before, since=filter_set.since
            ))
        if filter_set.until is not None:
            stages.append(UntilFilter(filter_set.until, now=self.now))
        if filter_set.labels:
            stages.append(LabelFilter(self.inventory, filter_set.labels))
        if filter_set.reference:
            stages.append(ReferenceFilter(filter_set.reference))
        if filter_set.dangling is not None:
            stages.append(DanglingFilter(filter_set.dangling))

        self.logger.debug(f"Compiled {len(stages)} stage(s): {[stage.name for stage in stages]}")
        return stages

    def create_from_strings(self, raw_filters: Iterable[str]) -> List[Filter]:
        """Parse raw filter strings and compile them in one step."""
        return self.compile(parse_filters(raw_filters))
