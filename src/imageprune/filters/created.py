"""
Creation-time filtering for images.

Two stages live here:

- CreatedAtFilter keeps images created strictly between the creation times
  of the ``since=`` and ``before=`` reference images.
- UntilFilter keeps images created strictly before a point in time given as
  a duration (``24h``) or an RFC 3339 timestamp.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from dateutil import parser as date_parser

from imageprune.core.exceptions import (
    ErrorCode, ImagePruneError, NoUntilTimestamp, ReferenceFormatError,
    ReferenceResolutionFailure, UnparsableUntilTimestamp
)
from imageprune.filters.base import Filter, select
from imageprune.images import EPOCH, ImageRecord, ensure_utc
from imageprune.inventory import ImageInventory
from imageprune.reference import parse_any

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,  # U+00B5 micro sign
    "μs": 1e-6,  # U+03BC greek mu
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)"
DURATION_RE = re.compile(r"^([-+]?)((?:" + _DURATION_PART + r")+)$")
DURATION_PART_RE = re.compile(_DURATION_PART)


def parse_duration(value: str) -> timedelta:
    """
    Parse a Go-style duration string such as ``3h``, ``1h30m`` or ``-1.5h``.

    Args:
        value: Duration string; ``0`` is accepted without a unit

    Returns:
        The duration as a timedelta

    Raises:
        ValueError: If the string is not a valid duration
    """
    if value in ("0", "+0", "-0"):
        return timedelta(0)
    match = DURATION_RE.match(value)
    if match is None:
        raise ValueError(f"invalid duration {value!r}")

    seconds = sum(
        float(number) * _DURATION_UNITS[unit]
        for number, unit in DURATION_PART_RE.findall(match.group(2))
    )
    if match.group(1) == "-":
        seconds = -seconds
    return timedelta(seconds=seconds)


def parse_until_timestamp(value: str, now: Optional[datetime] = None) -> datetime:
    """
    Resolve an ``until=`` value to a point in time.

    Durations are subtracted from ``now``; anything else must be an
    RFC 3339 / ISO 8601 timestamp (naive timestamps are taken as UTC).

    Raises:
        NoUntilTimestamp: If the value is empty
        UnparsableUntilTimestamp: If the value is neither form
    """
    if not value:
        raise NoUntilTimestamp()

    try:
        duration = parse_duration(value)
    except ValueError:
        pass
    else:
        return (now or datetime.now(timezone.utc)) - duration

    try:
        return ensure_utc(date_parser.isoparse(value))
    except (ValueError, OverflowError) as e:
        raise UnparsableUntilTimestamp(value, cause=e) from e


def image_created_between(image: ImageRecord, lower: datetime, upper: datetime) -> bool:
    """True when the image was created strictly after ``lower`` and strictly before ``upper``."""
    created = ensure_utc(image.created_at)
    return lower < created < upper


def image_created_before(image: ImageRecord, cutoff: datetime) -> bool:
    """True when the image was created strictly before ``cutoff``."""
    return ensure_utc(image.created_at) < cutoff


def reference_queries(reference: str) -> List[str]:
    """
    Build the inventory queries that locate a before=/since= reference.

    Both the canonical form (``docker.io/library/alpine:latest``) and the raw
    string as typed are queried, so either stored representation matches.

    Raises:
        ReferenceResolutionFailure: If the reference cannot be parsed
    """
    try:
        canonical = parse_any(reference)
    except ReferenceFormatError as e:
        raise ReferenceResolutionFailure(
            f"cannot parse image reference {reference!r}: {e.reason}",
            reference=reference,
            error_code=ErrorCode.REFERENCE_INVALID_FORMAT,
            cause=e
        ) from e

    queries = [f"name=={canonical}"]
    if reference != str(canonical):
        queries.append(f"name=={reference}")
    return queries


def resolve_reference_times(inventory: ImageInventory, references: Sequence[str]) -> List[datetime]:
    """
    Look up the creation times of every image matched by the references.

    Raises:
        ReferenceResolutionFailure: If a reference is malformed or matches no image
    """
    times = []
    for reference in references:
        try:
            matches = inventory.resolve(reference_queries(reference))
        except ReferenceResolutionFailure:
            raise
        except ImagePruneError as e:
            raise ReferenceResolutionFailure(
                f"failed to look up image {reference!r}: {e.message}",
                reference=reference,
                cause=e
            ) from e
        if not matches:
            raise ReferenceResolutionFailure(f"no such image: {reference}", reference=reference)
        times.extend(ensure_utc(image.created_at) for image in matches)
    return times


class CreatedAtFilter(Filter):
    """
    Keep images created between two bounds, both exclusive.

    The lower bound defaults to the UNIX epoch and the upper bound to the
    time the filter runs. An image used as its own before/since reference
    is therefore excluded.

    Args:
        lower: Exclusive lower bound, or None for the epoch
        upper: Exclusive upper bound, or None for "now" at apply time
    """

    def __init__(self, lower: Optional[datetime] = None, upper: Optional[datetime] = None):
        super().__init__()
        self.lower = ensure_utc(lower) if lower is not None else None
        self.upper = ensure_utc(upper) if upper is not None else None

    @classmethod
    def from_references(
        cls,
        inventory: ImageInventory,
        before: Sequence[str] = (),
        since: Sequence[str] = ()
    ) -> 'CreatedAtFilter':
        """
        Resolve before=/since= references into concrete bounds.

        The upper bound is the latest creation time among all images the
        before references resolve to; the lower bound is the earliest among
        the since references.

        Raises:
            ReferenceResolutionFailure: If any reference cannot be resolved
        """
        upper = max(resolve_reference_times(inventory, before)) if before else None
        lower = min(resolve_reference_times(inventory, since)) if since else None
        return cls(lower=lower, upper=upper)

    @property
    def name(self) -> str:
        return "created"

    @property
    def description(self) -> str:
        lower = self.lower.isoformat() if self.lower else "epoch"
        upper = self.upper.isoformat() if self.upper else "now"
        return f"Images created after {lower} and before {upper}"

    def apply(self, images: List[ImageRecord]) -> List[ImageRecord]:
        lower = self.lower or EPOCH
        upper = self.upper or datetime.now(timezone.utc)
        self.logger.debug(f"Keeping images created in ({lower.isoformat()}, {upper.isoformat()})")
        return select(images, lambda image: image_created_between(image, lower, upper))


class UntilFilter(Filter):
    """
    Keep images created before the given timestamp.

    The timestamp is resolved when the filter runs, so an empty or
    unparsable value raises from :meth:`apply`.

    Args:
        until: Duration (``3h``) or RFC 3339 timestamp
        now: Reference time for durations; defaults to the time of apply
    """

    def __init__(self, until: str, now: Optional[datetime] = None):
        super().__init__()
        self.until = until
        self.now = now

    @property
    def name(self) -> str:
        return "until"

    @property
    def description(self) -> str:
        return f"Images created before {self.until or '<unset>'}"

    def apply(self, images: List[ImageRecord]) -> List[ImageRecord]:
        cutoff = parse_until_timestamp(self.until, self.now)
        self.logger.debug(f"Keeping images created before {cutoff.isoformat()}")
        return select(images, lambda image: image_created_before(image, cutoff))
