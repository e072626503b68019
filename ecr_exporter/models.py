"""Domain models used by the exporter."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable


UTC = timezone.utc


@dataclass(slots=True, frozen=True)
class RepositoryRecord:
    """A repository as listed by ``DescribeRepositories``.

    Both identifying fields stay optional here: a record the API returns
    without them is rejected by the scrape, not defaulted by the parser.
    """

    name: str | None
    uri: str | None

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "RepositoryRecord":
        """Convert a ``repositories`` entry into a :class:`RepositoryRecord`."""

        return cls(
            name=payload.get("repositoryName"),
            uri=payload.get("repositoryUri"),
        )

    @property
    def is_identifiable(self) -> bool:
        return bool(self.name) and bool(self.uri)


@dataclass(slots=True, frozen=True)
class ImageRecord:
    """The parts of an ``imageDetails`` entry the exporter aggregates."""

    size_bytes: int | None = None
    pushed_at: datetime | None = None
    last_pulled_at: datetime | None = None

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "ImageRecord":
        size = payload.get("imageSizeInBytes")
        return cls(
            size_bytes=int(size) if size is not None else None,
            pushed_at=_as_utc(payload.get("imagePushedAt")),
            last_pulled_at=_as_utc(payload.get("lastRecordedPullTime")),
        )


@dataclass(slots=True)
class RepositoryAggregate:
    """Per-repository statistics recomputed on every scrape."""

    image_count: int
    size_min: int | None = None
    size_max: int | None = None
    size_avg: float | None = None
    latest_push: datetime | None = None
    latest_pull: datetime | None = None


def aggregate_images(images: Iterable[ImageRecord]) -> RepositoryAggregate:
    """Summarise the images of one repository.

    Size statistics only consider images that report a size; the average is
    taken over those sizes, not over the image count. The latest timestamps
    keep the first image reaching the maximum, in the order given.
    """

    image_count = 0
    sizes: list[int] = []
    latest_push: datetime | None = None
    latest_pull: datetime | None = None

    for image in images:
        image_count += 1
        if image.size_bytes is not None:
            sizes.append(image.size_bytes)
        if image.pushed_at is not None and (latest_push is None or image.pushed_at > latest_push):
            latest_push = image.pushed_at
        if image.last_pulled_at is not None and (latest_pull is None or image.last_pulled_at > latest_pull):
            latest_pull = image.last_pulled_at

    aggregate = RepositoryAggregate(image_count=image_count, latest_push=latest_push, latest_pull=latest_pull)
    if sizes:
        aggregate.size_min = min(sizes)
        aggregate.size_max = max(sizes)
        aggregate.size_avg = float(sum(sizes)) / len(sizes)
    return aggregate


def _as_utc(value: Any) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=UTC)
    if isinstance(value, str):
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        value = datetime.fromisoformat(value)
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


__all__ = ["ImageRecord", "RepositoryAggregate", "RepositoryRecord", "aggregate_images"]
