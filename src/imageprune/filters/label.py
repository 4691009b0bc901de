"""
Label-based filtering for images.

Matches the labels declared in each image's configuration. Reading that
configuration goes through the inventory, so unlike the other stages this
one performs I/O per candidate image.
"""

from typing import Dict, List, Mapping

from imageprune.filters.base import Filter
from imageprune.images import ImageRecord
from imageprune.inventory import ImageInventory


def matches_any_label(image_labels: Mapping[str, str], labels: Mapping[str, str]) -> bool:
    """
    Check whether an image carries any of the requested labels.

    A requested label matches when the key is present on the image and the
    requested value is empty or equal to the image's value. An empty request
    matches nothing.

    Args:
        image_labels: Labels declared in the image config
        labels: Requested key -> value ("" means any value)

    Returns:
        True if at least one requested label matches
    """
    for key, value in labels.items():
        if key in image_labels and (value == "" or image_labels[key] == value):
            return True
    return False


class LabelFilter(Filter):
    """
    Keep images whose config declares at least one of the requested labels.

    Requests are OR'd together. Config reads happen in candidate order and
    the first failure aborts the stage.

    Args:
        inventory: Inventory used to read image configs
        labels: Requested key -> value ("" means key present with any value)
    """

    def __init__(self, inventory: ImageInventory, labels: Mapping[str, str]):
        super().__init__()
        self.inventory = inventory
        self.labels: Dict[str, str] = dict(labels)

    @property
    def name(self) -> str:
        return "label"

    @property
    def description(self) -> str:
        if not self.labels:
            return "No label filtering (all images pass)"
        requested = [f"{k}={v}" if v else k for k, v in self.labels.items()]
        return f"Images labelled with any of: {', '.join(requested)}"

    def apply(self, images: List[ImageRecord]) -> List[ImageRecord]:
        if not self.labels:
            return list(images)

        kept = []
        for image in images:
            # LabelReadFailure propagates and aborts the whole selection
            image_labels = self.inventory.read_labels(image)
            if matches_any_label(image_labels, self.labels):
                kept.append(image)
        return kept
