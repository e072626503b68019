from __future__ import annotations

from datetime import datetime, timedelta, timezone

from ecr_exporter.models import ImageRecord, RepositoryRecord, aggregate_images

T0 = datetime(2024, 3, 1, tzinfo=timezone.utc)


def test_repository_record_from_api_parses_fields():
    payload = {
        "repositoryArn": "arn:aws:ecr:us-east-1:123456789012:repository/demo",
        "registryId": "123456789012",
        "repositoryName": "demo",
        "repositoryUri": "123456789012.dkr.ecr.us-east-1.amazonaws.com/demo",
    }

    record = RepositoryRecord.from_api(payload)

    assert record.name == "demo"
    assert record.uri == "123456789012.dkr.ecr.us-east-1.amazonaws.com/demo"
    assert record.is_identifiable


def test_repository_record_keeps_missing_fields_missing():
    record = RepositoryRecord.from_api({"repositoryName": "demo"})

    assert record.uri is None
    assert not record.is_identifiable


def test_image_record_normalises_timestamps_to_utc():
    local = datetime(2024, 3, 1, 9, 0, tzinfo=timezone(timedelta(hours=9)))
    record = ImageRecord.from_api(
        {
            "imageSizeInBytes": 1024,
            "imagePushedAt": local,
            "lastRecordedPullTime": datetime(2024, 3, 2, 0, 0),
        }
    )

    assert record.size_bytes == 1024
    assert record.pushed_at == T0
    assert record.pushed_at.tzinfo == timezone.utc
    assert record.last_pulled_at == datetime(2024, 3, 2, tzinfo=timezone.utc)


def test_image_record_accepts_iso_strings():
    record = ImageRecord.from_api({"imagePushedAt": "2024-03-01T00:00:00Z"})

    assert record.pushed_at == T0
    assert record.size_bytes is None
    assert record.last_pulled_at is None


def test_aggregate_images_takes_maximum_timestamps_independently():
    images = [
        ImageRecord(size_bytes=None, pushed_at=T0, last_pulled_at=T0 + timedelta(days=3)),
        ImageRecord(size_bytes=50, pushed_at=T0 + timedelta(days=2), last_pulled_at=None),
        ImageRecord(size_bytes=150, pushed_at=T0 + timedelta(days=1), last_pulled_at=T0),
    ]

    aggregate = aggregate_images(images)

    assert aggregate.image_count == 3
    assert (aggregate.size_min, aggregate.size_max, aggregate.size_avg) == (50, 150, 100.0)
    assert aggregate.latest_push == T0 + timedelta(days=2)
    assert aggregate.latest_pull == T0 + timedelta(days=3)


def test_aggregate_images_keeps_first_of_equal_timestamps():
    first = T0
    same_instant = T0.astimezone(timezone(timedelta(hours=-5)))

    aggregate = aggregate_images([ImageRecord(pushed_at=first), ImageRecord(pushed_at=same_instant)])

    assert aggregate.latest_push is first


def test_aggregate_images_without_sizes_or_timestamps():
    aggregate = aggregate_images([ImageRecord(), ImageRecord()])

    assert aggregate.image_count == 2
    assert aggregate.size_min is None and aggregate.size_max is None and aggregate.size_avg is None
    assert aggregate.latest_push is None
    assert aggregate.latest_pull is None


def test_aggregate_images_empty():
    aggregate = aggregate_images([])

    assert aggregate.image_count == 0
    assert aggregate.size_avg is None
