"""
ImagePrune CLI Package

Typer-based command-line interface for listing and pruning images.
"""

from imageprune import __version__

__all__ = ["__version__"]
