"""High level orchestration for one scrape of the registry."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from .deadline import Deadline
from .ecr_client import RegistryAPIError, RegistryClient
from .models import RepositoryAggregate, RepositoryRecord, aggregate_images

LOGGER = logging.getLogger(__name__)

REPOSITORY_LABELS = ("repository_name", "repository_uri")


@dataclass(slots=True, frozen=True)
class MetricDescriptor:
    name: str
    documentation: str
    labels: tuple[str, ...] = ()
    kind: str = "gauge"


@dataclass(slots=True, frozen=True)
class MetricSample:
    descriptor: MetricDescriptor
    value: float
    label_values: tuple[str, ...] = ()


MetricSink = Callable[[MetricSample], None]


@dataclass(slots=True)
class ScrapeResult:
    repository_count: int
    aggregates: dict[str, RepositoryAggregate] = field(default_factory=dict)
    error_count: int = 0
    duration_seconds: float = 0.0


class ScrapeEngine:
    """Walks every repository and its images and emits the exporter's metrics.

    The engine holds no state between scrapes: counters and timers live in
    :meth:`collect`, so overlapping scrapes stay independent.
    """

    def __init__(self, client: RegistryClient, *, namespace: str = "ecr", timeout: float | None = 300.0) -> None:
        self._client = client
        self._timeout = timeout

        def descriptor(name: str, documentation: str, labels: tuple[str, ...] = (), kind: str = "gauge") -> MetricDescriptor:
            return MetricDescriptor(f"{namespace}_{name}", documentation, labels, kind)

        self.repository_count = descriptor("repositories_total", "Total number of ECR repositories")
        self.image_count = descriptor("images_total", "Number of images in ECR repository", REPOSITORY_LABELS)
        self.image_size_max = descriptor("image_size_max_bytes", "Maximum image size in repository (bytes)", REPOSITORY_LABELS)
        self.image_size_min = descriptor("image_size_min_bytes", "Minimum image size in repository (bytes)", REPOSITORY_LABELS)
        self.image_size_avg = descriptor("image_size_avg_bytes", "Average image size in repository (bytes)", REPOSITORY_LABELS)
        self.latest_push_time = descriptor("latest_push_timestamp", "Timestamp of latest image push", REPOSITORY_LABELS)
        self.latest_pull_time = descriptor("latest_pull_timestamp", "Timestamp of latest image pull", REPOSITORY_LABELS)
        self.scrape_errors = descriptor("scrape_errors_total", "Total number of scrape errors", kind="counter")
        self.scrape_duration = descriptor("scrape_duration_seconds", "Duration of the scrape")

    def describe(self) -> list[MetricDescriptor]:
        return [
            self.repository_count,
            self.image_count,
            self.image_size_max,
            self.image_size_min,
            self.image_size_avg,
            self.latest_push_time,
            self.latest_pull_time,
            self.scrape_errors,
            self.scrape_duration,
        ]

    def collect(self, sink: MetricSink, deadline: Deadline | None = None) -> ScrapeResult:
        """Run one scrape cycle, pushing each sample into ``sink`` as it is produced.

        Registry failures never escape: each one adds to the error count and
        leaves a zero or omitted metric behind. Exceptions raised by ``sink``
        propagate.
        """

        start = time.perf_counter()
        deadline = deadline or Deadline(self._timeout)
        result = ScrapeResult(repository_count=0)

        LOGGER.info("Starting metrics collection")
        try:
            repositories = self._client.list_repositories(deadline)
        except RegistryAPIError as exc:
            LOGGER.error("Failed to get repositories (%s): %s", exc.kind, exc)
            result.error_count += 1
            sink(MetricSample(self.repository_count, 0))
        else:
            LOGGER.info("Found %s repositories", len(repositories))
            result.repository_count = len(repositories)
            sink(MetricSample(self.repository_count, float(len(repositories))))

            for index, repository in enumerate(repositories, start=1):
                LOGGER.debug("Processing repository %s/%s: %s", index, len(repositories), repository.name)
                result.error_count += self._collect_repository(repository, deadline, sink, result)

        result.duration_seconds = time.perf_counter() - start
        sink(MetricSample(self.scrape_errors, float(result.error_count)))
        sink(MetricSample(self.scrape_duration, result.duration_seconds))
        LOGGER.info(
            "Metrics collection completed in %.2f seconds with %s errors",
            result.duration_seconds,
            result.error_count,
        )
        return result

    def _collect_repository(
        self,
        repository: RepositoryRecord,
        deadline: Deadline,
        sink: MetricSink,
        result: ScrapeResult,
    ) -> int:
        """Emit the metrics of one repository and return the errors it caused."""

        if not repository.is_identifiable:
            problem = "missing" if repository.name is None or repository.uri is None else "empty"
            LOGGER.error(
                "Repository record has %s name or URI (name=%r, uri=%r), skipping",
                problem,
                repository.name,
                repository.uri,
            )
            return 1

        labels = (repository.name, repository.uri)
        try:
            images = self._client.list_images(deadline, repository.name)
        except RegistryAPIError as exc:
            LOGGER.warning("Failed to get images for repository %s (%s): %s", repository.name, exc.kind, exc)
            sink(MetricSample(self.image_count, 0, labels))
            return 1

        aggregate = aggregate_images(images)
        result.aggregates[repository.name] = aggregate
        sink(MetricSample(self.image_count, float(aggregate.image_count), labels))
        if aggregate.image_count == 0:
            return 0

        if aggregate.size_min is not None:
            sink(MetricSample(self.image_size_min, float(aggregate.size_min), labels))
            sink(MetricSample(self.image_size_max, float(aggregate.size_max), labels))
            sink(MetricSample(self.image_size_avg, aggregate.size_avg, labels))
        # Whole Unix seconds.
        if aggregate.latest_push is not None:
            sink(MetricSample(self.latest_push_time, float(int(aggregate.latest_push.timestamp())), labels))
        if aggregate.latest_pull is not None:
            sink(MetricSample(self.latest_pull_time, float(int(aggregate.latest_pull.timestamp())), labels))
        return 0


__all__ = ["MetricDescriptor", "MetricSample", "MetricSink", "ScrapeEngine", "ScrapeResult"]
