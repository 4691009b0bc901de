"""
Abstract Filter Base Classes

Defines the interface every predicate stage implements. A stage takes the
candidate image list and returns the narrowed list, or raises. Stages are
stateless once constructed; they may close over resolved timestamps or
compiled patterns, and some (labels) read from the inventory while running.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Iterable, List

from imageprune.images import ImageRecord

ImagePredicate = Callable[[ImageRecord], bool]


def select(images: Iterable[ImageRecord], predicate: ImagePredicate) -> List[ImageRecord]:
    """
    Keep the images the predicate accepts, preserving order.

    Any exception raised by the predicate propagates and no partial list is
    returned.
    """
    return [image for image in images if predicate(image)]


class Filter(ABC):
    """
    Abstract base class for all image filter stages.

    Filters are composable: the pipeline feeds each stage the output of the
    previous one. A filter constructed with an empty constraint is the
    identity transform.
    """

    def __init__(self):
        self.logger = logging.getLogger(f"imageprune.filters.{self.__class__.__name__}")

    @property
    @abstractmethod
    def name(self) -> str:
        """Short name of the filter, used in logs and pipeline metrics."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description of what the filter does."""
        pass

    @abstractmethod
    def apply(self, images: List[ImageRecord]) -> List[ImageRecord]:
        """
        Narrow an image list.

        Args:
            images: Candidate images, in listing order

        Returns:
            The images that pass, in their original relative order

        Raises:
            ImagePruneError: If the filter cannot be evaluated
        """
        pass

    def __call__(self, images: List[ImageRecord]) -> List[ImageRecord]:
        return self.apply(images)

    def __str__(self) -> str:
        return f"{self.name}: {self.description}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.description!r})"
