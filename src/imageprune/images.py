"""
Image Records

The image record is the unit every filter selects on. Records are immutable
once listed: filters only ever choose subsets, they never modify a record.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from dateutil import parser as date_parser

from imageprune.reference import parse_repo_tag

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Return a timezone-aware datetime, treating naive values as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_created_at(value: Union[str, int, float, datetime, None]) -> datetime:
    """
    Parse a creation time from a snapshot or API payload.

    Args:
        value: ISO 8601 string, UNIX timestamp, datetime, or None

    Returns:
        Timezone-aware datetime (the epoch when value is None)

    Raises:
        ValueError: If the value cannot be interpreted as a time
    """
    if value is None:
        return EPOCH
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str):
        return ensure_utc(date_parser.isoparse(value))
    raise ValueError(f"Invalid created_at value: {value!r}")


@dataclass(frozen=True)
class ImageRecord:
    """
    A single image as listed by the image store.

    Attributes:
        name: Fully qualified reference name, or an untagged form such as
            ``<none>`` or a bare digest
        created_at: Creation time (timezone-aware)
        labels: Store-level labels attached to the image record
        config_digest: Digest of the image configuration blob; the labels
            declared in the image config are read through the inventory
        target_digest: Digest of the manifest/index the name points to
    """
    name: str
    created_at: datetime = EPOCH
    labels: Dict[str, str] = field(default_factory=dict)
    config_digest: Optional[str] = None
    target_digest: Optional[str] = None

    @property
    def repository(self) -> str:
        return parse_repo_tag(self.name)[0]

    @property
    def tag(self) -> str:
        return parse_repo_tag(self.name)[1]

    @property
    def is_dangling(self) -> bool:
        """True when the image name carries no tag (``<none>``-style names)."""
        return self.tag == ""

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the record to a dictionary for serialization.

        Returns:
            Dictionary with ISO 8601 creation time
        """
        return {
            'name': self.name,
            'created_at': self.created_at.isoformat(),
            'labels': dict(self.labels),
            'config_digest': self.config_digest,
            'target_digest': self.target_digest,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ImageRecord':
        """
        Create an ImageRecord from a dictionary (deserialization).

        Args:
            data: Dictionary with at least a ``name`` key

        Returns:
            ImageRecord instance
        """
        if 'name' not in data:
            raise ValueError("Image record requires a 'name' field")
        return cls(
            name=str(data['name']),
            created_at=parse_created_at(data.get('created_at')),
            labels={str(k): str(v) for k, v in (data.get('labels') or {}).items()},
            config_digest=data.get('config_digest'),
            target_digest=data.get('target_digest'),
        )
