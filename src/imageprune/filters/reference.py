"""
Reference-pattern filtering for images.

Every pattern must match an image for it to pass. A pattern matches when
either the familiar shell-style match (``hello-world``, ``example/app:v?``)
succeeds against the parsed reference, or the pattern as a regular
expression is found anywhere in the raw image name. Each pattern must also
compile as a regular expression, so ``*/app:v*`` is rejected.
"""

import re
from typing import List, Optional, Pattern, Sequence

from imageprune.core.exceptions import PatternCompileFailure, ReferenceFormatError
from imageprune.filters.base import Filter
from imageprune.images import ImageRecord
from imageprune.reference import Reference, familiar_match, parse_any_reference


def compile_patterns(patterns: Sequence[str]) -> List[Pattern]:
    """
    Compile reference patterns as regular expressions.

    Raises:
        PatternCompileFailure: If any pattern is not a valid regex
    """
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as e:
            raise PatternCompileFailure(pattern, str(e), cause=e) from e
    return compiled


def _parse_image_reference(name: str) -> Optional[Reference]:
    try:
        return parse_any_reference(name)
    except ReferenceFormatError:
        return None


def matches_references(image: ImageRecord, patterns: Sequence[str],
                       compiled: Optional[Sequence[Pattern]] = None) -> bool:
    """
    Check an image against every reference pattern.

    Names that are not valid references (``<none>``) can still match
    through the regular-expression strategy.

    Args:
        image: Image to test
        patterns: Reference patterns; all must match
        compiled: Pre-compiled regexes for ``patterns``

    Returns:
        True if each pattern matches by at least one strategy

    Raises:
        PatternCompileFailure: If a pattern is malformed
    """
    if compiled is None:
        compiled = compile_patterns(patterns)

    reference = _parse_image_reference(image.name)
    for pattern, regex in zip(patterns, compiled):
        familiar = reference is not None and familiar_match(pattern, reference)
        if not familiar and regex.search(image.name) is None:
            return False
    return True


class ReferenceFilter(Filter):
    """
    Keep images whose name matches all of the given reference patterns.

    Args:
        patterns: Reference patterns (shell-style or regular expressions)
    """

    def __init__(self, patterns: Sequence[str]):
        super().__init__()
        self.patterns: List[str] = list(patterns)

    @property
    def name(self) -> str:
        return "reference"

    @property
    def description(self) -> str:
        if not self.patterns:
            return "No reference filtering (all images pass)"
        return f"Images matching all of: {', '.join(self.patterns)}"

    def apply(self, images: List[ImageRecord]) -> List[ImageRecord]:
        if not self.patterns or not images:
            return list(images)

        compiled = compile_patterns(self.patterns)
        kept = []
        for image in images:
            if matches_references(image, self.patterns, compiled):
                kept.append(image)
        return kept
