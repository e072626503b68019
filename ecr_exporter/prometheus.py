"""prometheus_client integration for the scrape engine."""

from __future__ import annotations

from typing import Iterator

from prometheus_client.core import CollectorRegistry, CounterMetricFamily, GaugeMetricFamily, Metric
from prometheus_client.registry import Collector

from .collector import MetricDescriptor, MetricSample, ScrapeEngine


def _family(descriptor: MetricDescriptor) -> Metric:
    if descriptor.kind == "counter":
        return CounterMetricFamily(descriptor.name, descriptor.documentation, labels=descriptor.labels)
    return GaugeMetricFamily(descriptor.name, descriptor.documentation, labels=descriptor.labels)


class EngineCollector(Collector):
    """Runs one scrape per registry collection.

    The text exposition groups samples by metric family, so samples pushed by
    the engine are appended to their family and the families are yielded in
    descriptor order once the scrape finishes.
    """

    def __init__(self, engine: ScrapeEngine) -> None:
        self._engine = engine

    def describe(self) -> Iterator[Metric]:
        for descriptor in self._engine.describe():
            yield _family(descriptor)

    def collect(self) -> Iterator[Metric]:
        families = {descriptor.name: _family(descriptor) for descriptor in self._engine.describe()}

        def sink(sample: MetricSample) -> None:
            families[sample.descriptor.name].add_metric(list(sample.label_values), sample.value)

        self._engine.collect(sink)
        yield from families.values()


def register_collector(engine: ScrapeEngine, registry: CollectorRegistry | None = None) -> CollectorRegistry:
    """Register ``engine`` on ``registry`` (a fresh one by default) and return it."""

    registry = registry if registry is not None else CollectorRegistry(auto_describe=True)
    registry.register(EngineCollector(engine))
    return registry


__all__ = ["EngineCollector", "register_collector"]
