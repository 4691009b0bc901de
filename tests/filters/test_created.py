"""
Tests for creation-time filtering.

Covers duration and timestamp parsing for until=, the exclusive time window
used by before=/since=, and reference resolution against the inventory.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from imageprune.core.exceptions import (
    ErrorCode, InventoryError, InvalidUntilTimestamp, NoUntilTimestamp,
    ReferenceResolutionFailure, UnparsableUntilTimestamp
)
from imageprune.filters.created import (
    CreatedAtFilter, UntilFilter, image_created_before, image_created_between,
    parse_duration, parse_until_timestamp, reference_queries, resolve_reference_times
)
from imageprune.images import EPOCH, ImageRecord
from imageprune.inventory import InMemoryInventory


class TestParseDuration:
    """Test Go-style duration parsing."""

    @pytest.mark.parametrize("value,expected", [
        ("3h", timedelta(hours=3)),
        ("1h30m", timedelta(hours=1, minutes=30)),
        ("90s", timedelta(seconds=90)),
        ("1.5h", timedelta(minutes=90)),
        ("250ms", timedelta(milliseconds=250)),
        ("-2h", timedelta(hours=-2)),
        ("+5m", timedelta(minutes=5)),
        ("0", timedelta(0)),
    ])
    def test_valid_durations(self, value, expected):
        assert parse_duration(value) == expected

    @pytest.mark.parametrize("value", ["", "3", "h", "3d", "1h 30m", "2024-01-01"])
    def test_invalid_durations(self, value):
        with pytest.raises(ValueError):
            parse_duration(value)


class TestParseUntilTimestamp:
    """Test resolution of until= values."""

    def test_empty_value(self, now):
        with pytest.raises(NoUntilTimestamp) as exc_info:
            parse_until_timestamp("", now)
        assert exc_info.value.error_code == ErrorCode.FILTER_NO_UNTIL_TIMESTAMP

    def test_unparsable_value(self, now):
        with pytest.raises(UnparsableUntilTimestamp) as exc_info:
            parse_until_timestamp("-2006-01-02T15:04:05Z07:00", now)
        assert exc_info.value.value == "-2006-01-02T15:04:05Z07:00"

    def test_errors_share_base_class(self, now):
        for value in ("", "not a time"):
            with pytest.raises(InvalidUntilTimestamp):
                parse_until_timestamp(value, now)

    def test_duration_is_relative_to_now(self, now):
        assert parse_until_timestamp("3h", now) == now - timedelta(hours=3)

    def test_rfc3339_timestamp(self, now):
        expected = datetime(2024, 1, 2, 15, 4, 5, tzinfo=timezone.utc)
        assert parse_until_timestamp("2024-01-02T15:04:05Z", now) == expected

    def test_timestamp_with_offset(self, now):
        result = parse_until_timestamp("2024-01-02T17:04:05+02:00", now)
        assert result == datetime(2024, 1, 2, 15, 4, 5, tzinfo=timezone.utc)

    def test_naive_timestamp_is_utc(self, now):
        result = parse_until_timestamp("2024-01-02T15:04:05", now)
        assert result.tzinfo is not None
        assert result == datetime(2024, 1, 2, 15, 4, 5, tzinfo=timezone.utc)


class TestTimeWindow:
    """Test the exclusive window predicates."""

    def test_falls_between(self):
        image = ImageRecord("a:1", created_at=datetime(2000, 1, 1, tzinfo=timezone.utc))
        assert image_created_between(image, EPOCH, datetime.now(timezone.utc))

    def test_exclusive_left(self):
        image = ImageRecord("a:1", created_at=EPOCH)
        assert not image_created_between(image, EPOCH, datetime.now(timezone.utc))

    def test_exclusive_right(self):
        moment = datetime(2000, 1, 1, tzinfo=timezone.utc)
        image = ImageRecord("a:1", created_at=moment)
        assert not image_created_between(image, EPOCH, moment)

    def test_created_before_is_strict(self, now):
        assert image_created_before(ImageRecord("a:1", created_at=now - timedelta(seconds=1)), now)
        assert not image_created_before(ImageRecord("a:1", created_at=now), now)


class TestReferenceResolution:
    """Test resolving before=/since= references through the inventory."""

    def test_queries_include_canonical_and_raw(self):
        assert reference_queries("alpine") == [
            "name==docker.io/library/alpine:latest",
            "name==alpine",
        ]

    def test_queries_skip_duplicate_raw(self):
        assert reference_queries("docker.io/library/alpine:3.19") == [
            "name==docker.io/library/alpine:3.19",
        ]

    def test_queries_for_image_id(self):
        image_id = "a" * 64
        assert reference_queries(image_id) == [f"name==sha256:{image_id}", f"name=={image_id}"]

    def test_unparsable_reference(self):
        with pytest.raises(ReferenceResolutionFailure) as exc_info:
            reference_queries("Not A Reference")
        assert exc_info.value.error_code == ErrorCode.REFERENCE_INVALID_FORMAT

    def test_short_name_resolves(self, inventory, now):
        times = resolve_reference_times(inventory, ["alpine:3.19"])
        assert times == [now - timedelta(hours=48)]

    def test_untagged_sentinel_is_not_a_reference(self, now):
        inventory = InMemoryInventory([ImageRecord("<none>:<none>", created_at=now)])
        with pytest.raises(ReferenceResolutionFailure):
            resolve_reference_times(inventory, ["<none>:<none>"])

    def test_missing_reference(self, inventory):
        with pytest.raises(ReferenceResolutionFailure) as exc_info:
            resolve_reference_times(inventory, ["alpine:9.99"])
        assert "no such image" in exc_info.value.message
        assert exc_info.value.reference == "alpine:9.99"
        assert exc_info.value.error_code == ErrorCode.REFERENCE_NOT_FOUND

    def test_inventory_failure_is_wrapped(self):
        inventory = Mock()
        inventory.resolve.side_effect = InventoryError("store offline")
        with pytest.raises(ReferenceResolutionFailure) as exc_info:
            resolve_reference_times(inventory, ["alpine"])
        assert isinstance(exc_info.value.cause, InventoryError)

    def test_multiple_matches_all_count(self, now):
        inventory = InMemoryInventory([
            ImageRecord("docker.io/library/alpine:latest", created_at=now - timedelta(hours=2)),
            ImageRecord("alpine", created_at=now - timedelta(hours=1)),
        ])
        times = resolve_reference_times(inventory, ["alpine"])
        assert sorted(times) == [now - timedelta(hours=2), now - timedelta(hours=1)]


class TestCreatedAtFilter:
    """Test the before=/since= stage."""

    def test_before_keeps_older_images(self, inventory, sample_images):
        stage = CreatedAtFilter.from_references(inventory, before=["hello-world"])
        result = stage.apply(sample_images)
        assert [i.name for i in result] == [
            "docker.io/library/alpine:3.18",
            "docker.io/library/alpine:3.19",
        ]

    def test_since_keeps_newer_images(self, inventory, sample_images):
        stage = CreatedAtFilter.from_references(inventory, since=["busybox@sha256:" + "f" * 64])
        result = stage.apply(sample_images)
        assert [i.name for i in result] == ["docker.io/example/app:v1"]

    def test_before_uses_latest_reference(self, inventory, sample_images):
        stage = CreatedAtFilter.from_references(inventory, before=["alpine:3.18", "hello-world"])
        assert stage.upper == sample_images[2].created_at

    def test_since_uses_earliest_reference(self, inventory, sample_images):
        stage = CreatedAtFilter.from_references(inventory, since=["hello-world", "alpine:3.19"])
        assert stage.lower == sample_images[1].created_at

    def test_window_between_since_and_before(self, inventory, sample_images):
        stage = CreatedAtFilter.from_references(
            inventory, before=["public.ecr.aws/docker/library/hello-world:latest"], since=["alpine:3.18"]
        )
        result = stage.apply(sample_images)
        assert [i.name for i in result] == [
            "docker.io/library/alpine:3.19",
            "docker.io/library/hello-world:latest",
        ]

    def test_image_is_never_its_own_bound(self, inventory, sample_images):
        stage = CreatedAtFilter.from_references(inventory, before=["alpine:3.19"], since=["alpine:3.19"])
        assert stage.apply(sample_images) == []

    def test_missing_reference_fails_at_compile(self, inventory):
        with pytest.raises(ReferenceResolutionFailure):
            CreatedAtFilter.from_references(inventory, before=["nosuch"])

    def test_default_bounds(self, now):
        images = [
            ImageRecord("a:1", created_at=EPOCH),
            ImageRecord("b:1", created_at=now),
            ImageRecord("c:1", created_at=datetime.now(timezone.utc) + timedelta(days=1)),
        ]
        assert [i.name for i in CreatedAtFilter().apply(images)] == ["b:1"]

    def test_name_and_description(self):
        stage = CreatedAtFilter()
        assert stage.name == "created"
        assert "epoch" in stage.description
        assert "now" in stage.description


class TestUntilFilter:
    """Test the until= stage."""

    def test_images_older_than_three_hours(self, now):
        images = [
            ImageRecord("image:yesterday", created_at=now - timedelta(hours=24)),
            ImageRecord("image:today", created_at=now - timedelta(hours=12)),
            ImageRecord("image:latest", created_at=now),
        ]
        result = UntilFilter("3h", now=now).apply(images)
        assert [i.name for i in result] == ["image:yesterday", "image:today"]

    def test_boundary_is_exclusive(self, now):
        images = [ImageRecord("image:edge", created_at=now - timedelta(hours=3))]
        assert UntilFilter("3h", now=now).apply(images) == []

    def test_absolute_timestamp(self, sample_images):
        cutoff = sample_images[2].created_at.isoformat()
        result = UntilFilter(cutoff).apply(sample_images)
        assert [i.name for i in result] == [
            "docker.io/library/alpine:3.18",
            "docker.io/library/alpine:3.19",
        ]

    def test_empty_timestamp_raises_on_apply(self):
        stage = UntilFilter("")
        with pytest.raises(NoUntilTimestamp):
            stage.apply([])

    def test_unparsable_timestamp_raises_on_apply(self):
        with pytest.raises(UnparsableUntilTimestamp):
            UntilFilter("yesterday-ish").apply([])

    def test_defaults_to_current_time(self):
        images = [ImageRecord("old:1", created_at=EPOCH)]
        assert UntilFilter("1h").apply(images) == images

    def test_name(self):
        assert UntilFilter("3h").name == "until"
