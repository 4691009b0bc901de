"""
ImagePrune

Filter and prune selection for container image inventories. Parses
``key=value`` filter expressions, compiles them into predicate stages and
runs them over an image listing to choose what to list or remove.
"""

__version__ = "0.1.0"

from imageprune.images import ImageRecord
from imageprune.inventory import ImageInventory, InMemoryInventory, SnapshotInventory
from imageprune.prune import PruneReport, PruneSelectionCoordinator

__all__ = [
    "__version__",
    "ImageRecord",
    "ImageInventory",
    "InMemoryInventory",
    "SnapshotInventory",
    "PruneReport",
    "PruneSelectionCoordinator",
]
