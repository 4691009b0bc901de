"""
Dangling-image filtering.

An image is dangling when its name carries no tag: ``<none>``,
``<none>:<none>``, an empty name or a digested name without a tag
(``repo@sha256:...``).
"""

from typing import List

from imageprune.filters.base import Filter, select
from imageprune.images import ImageRecord


def is_dangling(image: ImageRecord) -> bool:
    return image.is_dangling


class DanglingFilter(Filter):
    """
    Partition images on whether they are dangling.

    Args:
        dangling: True keeps only untagged images, False only tagged ones
    """

    def __init__(self, dangling: bool):
        super().__init__()
        self.dangling = dangling

    @property
    def name(self) -> str:
        return "dangling"

    @property
    def description(self) -> str:
        return "Untagged images only" if self.dangling else "Tagged images only"

    def apply(self, images: List[ImageRecord]) -> List[ImageRecord]:
        if self.dangling:
            return select(images, is_dangling)
        return select(images, lambda image: not is_dangling(image))


def dangling_images() -> DanglingFilter:
    """Filter keeping only untagged images."""
    return DanglingFilter(True)


def tagged_images() -> DanglingFilter:
    """Filter keeping only tagged images."""
    return DanglingFilter(False)
