"""
Image Inventory

Read access to the image store used by the filter engine, plus the delete
hook the prune command hands its selection to. The filter engine only talks
to the store through ImageInventory; concurrent mutation of the real store
and isolation between callers are the inventory's concern.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

import yaml

from imageprune.core.exceptions import ErrorCode, InventoryError, LabelReadFailure
from imageprune.images import ImageRecord

logger = logging.getLogger(__name__)

QUERY_RE = re.compile(r"^(?P<field>[A-Za-z_][A-Za-z0-9_.]*)(?P<op>==|!=|~=)(?P<value>.*)$", re.DOTALL)
SUPPORTED_FIELDS = {"name", "target.digest", "config.digest"}


@dataclass(frozen=True)
class Query:
    """A single ``field<op>value`` inventory query."""
    field: str
    op: str
    value: str

    def matches(self, record: ImageRecord) -> bool:
        actual = self._field_value(record)
        if self.op == "==":
            return actual == self.value
        if self.op == "!=":
            return actual != self.value
        return re.search(self.value, actual or "") is not None

    def _field_value(self, record: ImageRecord) -> Optional[str]:
        if self.field == "name":
            return record.name
        if self.field == "target.digest":
            return record.target_digest
        return record.config_digest


def parse_query(expression: str) -> Query:
    """
    Parse an inventory query expression such as ``name==alpine:3.19``.

    Raises:
        InventoryError: If the expression is malformed or uses an unknown field
    """
    match = QUERY_RE.match(expression)
    if match is None:
        raise InventoryError(
            f"invalid inventory query {expression!r}",
            error_code=ErrorCode.INVENTORY_INVALID_QUERY
        )
    query = Query(match.group("field"), match.group("op"), match.group("value"))
    if query.field not in SUPPORTED_FIELDS:
        raise InventoryError(
            f"unsupported query field {query.field!r} in {expression!r}",
            error_code=ErrorCode.INVENTORY_INVALID_QUERY
        )
    if query.op == "~=":
        try:
            re.compile(query.value)
        except re.error as e:
            raise InventoryError(
                f"invalid regular expression in query {expression!r}: {e}",
                error_code=ErrorCode.INVENTORY_INVALID_QUERY,
                cause=e
            ) from e
    return query


class ImageInventory(ABC):
    """
    Abstract access to an image store.

    ``resolve`` and ``read_labels`` are the two reads the filter engine
    performs; both surface failures synchronously and are never retried.
    """

    @abstractmethod
    def list_images(self) -> List[ImageRecord]:
        """Return a point-in-time snapshot of all images, in listing order."""
        pass

    @abstractmethod
    def resolve(self, expressions: Sequence[str]) -> List[ImageRecord]:
        """
        Return the images matching any of the query expressions.

        Args:
            expressions: Queries such as ``name==docker.io/library/alpine:3.19``;
                an empty sequence matches every image

        Returns:
            Matching images, in listing order

        Raises:
            InventoryError: If a query is malformed or the store cannot be read
        """
        pass

    @abstractmethod
    def read_labels(self, record: ImageRecord) -> Dict[str, str]:
        """
        Return the labels declared in an image's configuration.

        Raises:
            LabelReadFailure: If the configuration cannot be read
        """
        pass

    def containers(self) -> List[str]:
        """Names of the images referenced by containers (in use)."""
        return []

    def delete(self, records: Iterable[ImageRecord]) -> List[ImageRecord]:
        """Remove images from the store and return the ones removed."""
        raise InventoryError(
            f"{self.__class__.__name__} does not support deleting images",
            error_code=ErrorCode.INVENTORY_WRITE_FAILED
        )


class InMemoryInventory(ImageInventory):
    """
    Inventory backed by in-memory records and a content-addressed config store.

    Args:
        images: Image records in listing order
        configs: Config digest -> labels declared in that config
        containers: Image names referenced by containers
    """

    def __init__(
        self,
        images: Optional[Iterable[ImageRecord]] = None,
        configs: Optional[Dict[str, Dict[str, str]]] = None,
        containers: Optional[Iterable[str]] = None
    ):
        self._images: List[ImageRecord] = list(images or [])
        self._configs: Dict[str, Dict[str, str]] = dict(configs or {})
        self._containers: List[str] = list(containers or [])

    def list_images(self) -> List[ImageRecord]:
        return list(self._images)

    def resolve(self, expressions: Sequence[str]) -> List[ImageRecord]:
        queries = [parse_query(expression) for expression in expressions]
        if not queries:
            return self.list_images()
        return [image for image in self._images if any(q.matches(image) for q in queries)]

    def read_labels(self, record: ImageRecord) -> Dict[str, str]:
        if not record.config_digest:
            raise LabelReadFailure(record.name, "image has no config digest")
        try:
            return dict(self._configs[record.config_digest])
        except KeyError:
            raise LabelReadFailure(
                record.name, f"config blob {record.config_digest} not found"
            ) from None

    def containers(self) -> List[str]:
        return list(self._containers)

    def delete(self, records: Iterable[ImageRecord]) -> List[ImageRecord]:
        # Names repeat across untagged images; remove each requested record once
        pending = list(records)
        kept: List[ImageRecord] = []
        deleted: List[ImageRecord] = []
        for image in self._images:
            if image in pending:
                pending.remove(image)
                deleted.append(image)
            else:
                kept.append(image)
        self._images = kept
        logger.info(f"Deleted {len(deleted)} image(s)")
        return deleted


class SnapshotInventory(InMemoryInventory):
    """
    Inventory loaded from a YAML or JSON snapshot file.

    Snapshot layout::

        images:
          - name: docker.io/library/alpine:3.19
            created_at: "2024-01-01T00:00:00Z"
            config_digest: sha256:...
        configs:
          sha256:...:
            labels: {org: example}
        containers:
          - id: web
            image: docker.io/library/alpine:3.19

    Deleting images rewrites the snapshot file.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        data = self._load(self.path)
        try:
            images = [ImageRecord.from_dict(entry) for entry in data.get('images') or []]
            configs = {
                str(digest): {str(k): str(v) for k, v in ((blob or {}).get('labels') or {}).items()}
                for digest, blob in (data.get('configs') or {}).items()
            }
            containers = [str(entry['image']) for entry in data.get('containers') or []]
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            raise InventoryError(f"Invalid snapshot {self.path}: {e}", cause=e) from e

        self._container_entries: List[Dict[str, Any]] = list(data.get('containers') or [])
        super().__init__(images, configs, containers)
        logger.debug(f"Loaded {len(images)} image(s) from {self.path}")

    @staticmethod
    def _load(path: Path) -> Dict[str, Any]:
        if not path.exists():
            raise InventoryError(
                f"Snapshot file not found: {path}",
                error_code=ErrorCode.INVENTORY_NOT_FOUND
            )
        try:
            with open(path, 'r', encoding='utf-8') as f:
                if path.suffix.lower() == '.json':
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except (IOError, yaml.YAMLError, json.JSONDecodeError) as e:
            raise InventoryError(f"Failed to load snapshot {path}: {e}", cause=e) from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise InventoryError(f"Snapshot {path} must contain a mapping at the top level")
        return data

    def delete(self, records: Iterable[ImageRecord]) -> List[ImageRecord]:
        deleted = super().delete(records)
        if deleted:
            self.save()
        return deleted

    def save(self) -> None:
        """Write the current images back to the snapshot file."""
        data = {
            'images': [image.to_dict() for image in self._images],
            'configs': {digest: {'labels': labels} for digest, labels in self._configs.items()},
            'containers': self._container_entries,
        }
        try:
            with open(self.path, 'w', encoding='utf-8') as f:
                if self.path.suffix.lower() == '.json':
                    json.dump(data, f, indent=2)
                else:
                    yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
        except (IOError, yaml.YAMLError) as e:
            raise InventoryError(
                f"Failed to write snapshot {self.path}: {e}",
                error_code=ErrorCode.INVENTORY_WRITE_FAILED,
                cause=e
            ) from e
