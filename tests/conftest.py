"""
Shared Test Configuration and Fixtures

Provides a fixed reference time, a sample image inventory covering tagged,
dangling and digested images, and snapshot files built from it.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, List

import pytest
import yaml

from imageprune.images import ImageRecord
from imageprune.inventory import InMemoryInventory


NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_digest(char: str) -> str:
    """Build a syntactically valid sha256 digest from a single hex character."""
    return "sha256:" + char * 64


@pytest.fixture
def now() -> datetime:
    """Fixed reference time for time-based filters."""
    return NOW


@pytest.fixture
def sample_images() -> List[ImageRecord]:
    """Image listing in store order, oldest first."""
    return [
        ImageRecord(
            name="docker.io/library/alpine:3.18",
            created_at=NOW - timedelta(hours=72),
            config_digest=make_digest("1"),
            target_digest=make_digest("a"),
        ),
        ImageRecord(
            name="docker.io/library/alpine:3.19",
            created_at=NOW - timedelta(hours=48),
            config_digest=make_digest("2"),
            target_digest=make_digest("b"),
        ),
        ImageRecord(
            name="docker.io/library/hello-world:latest",
            created_at=NOW - timedelta(hours=24),
            config_digest=make_digest("3"),
            target_digest=make_digest("c"),
        ),
        ImageRecord(
            name="public.ecr.aws/docker/library/hello-world:latest",
            created_at=NOW - timedelta(hours=12),
            config_digest=make_digest("4"),
            target_digest=make_digest("d"),
        ),
        ImageRecord(
            name="<none>:<none>",
            created_at=NOW - timedelta(hours=6),
            config_digest=make_digest("5"),
            target_digest=make_digest("e"),
        ),
        ImageRecord(
            name="docker.io/library/busybox@" + make_digest("f"),
            created_at=NOW - timedelta(hours=1),
            config_digest=make_digest("6"),
            target_digest=make_digest("f"),
        ),
        ImageRecord(
            name="docker.io/example/app:v1",
            created_at=NOW,
            config_digest=make_digest("7"),
            target_digest=make_digest("0"),
        ),
    ]


@pytest.fixture
def sample_configs() -> Dict[str, Dict[str, str]]:
    """Labels declared in each image config, keyed by config digest."""
    return {
        make_digest("1"): {},
        make_digest("2"): {"org": "alpine"},
        make_digest("3"): {"org": "com.containerd.nerdctl"},
        make_digest("4"): {"foo": "bar"},
        make_digest("5"): {},
        make_digest("6"): {},
        make_digest("7"): {"org": "example", "tier": "web"},
    }


@pytest.fixture
def inventory(sample_images, sample_configs) -> InMemoryInventory:
    """In-memory inventory with one running container using the app image."""
    return InMemoryInventory(
        sample_images,
        sample_configs,
        containers=["docker.io/example/app:v1"],
    )


@pytest.fixture
def snapshot_data(sample_images, sample_configs) -> dict:
    """Snapshot file contents matching the sample inventory."""
    return {
        "images": [image.to_dict() for image in sample_images],
        "configs": {digest: {"labels": labels} for digest, labels in sample_configs.items()},
        "containers": [{"id": "web", "image": "docker.io/example/app:v1"}],
    }


@pytest.fixture
def snapshot_file(tmp_path, snapshot_data):
    """YAML snapshot of the sample inventory on disk."""
    path = tmp_path / "images.yaml"
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(snapshot_data, f, sort_keys=False)
    return path

