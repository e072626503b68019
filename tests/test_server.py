"""Tests for the HTTP endpoints."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from ecr_exporter.collector import ScrapeEngine
from ecr_exporter.ecr_client import RegistryClient
from ecr_exporter.health import get_health_status, render_health_html
from ecr_exporter.prometheus import register_collector
from ecr_exporter.server import create_app
from fakes import FakeECR, repository


@pytest.fixture
def client() -> TestClient:
    ecr = FakeECR([[repository("a", "u1")]], {"a": [[{"imageSizeInBytes": 5}]]})
    registry = register_collector(ScrapeEngine(RegistryClient(ecr)))
    return TestClient(create_app(registry))


def test_metrics_endpoint_serves_exposition(client):
    response = client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert 'ecr_images_total{repository_name="a",repository_uri="u1"} 1.0' in response.text


@pytest.mark.parametrize(
    ("headers", "params"),
    [({"Accept": "application/json"}, None), ({}, {"format": "json"})],
)
def test_health_returns_json_when_requested(client, headers, params):
    response = client.get("/health", headers=headers, params=params)

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/json"
    payload = response.json()
    assert payload["status"] == "OK"
    assert payload["cpu"]["num_cpu"] >= 1
    datetime.fromisoformat(payload["timestamp"])


def test_health_defaults_to_html(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "Status: OK" in response.text


def test_index_links_endpoints(client):
    response = client.get("/")

    assert response.status_code == 200
    assert 'href="/metrics"' in response.text
    assert 'href="/health"' in response.text


def test_get_health_status_reports_uptime():
    started = datetime.now(timezone.utc) - timedelta(hours=1)

    health = get_health_status(started)

    assert health.status == "OK"
    assert health.uptime.startswith("1:00:")
    assert health.threads >= 1
    assert health.memory.max_rss_mb > 0
    assert health.memory.gc_collections >= 0


def test_render_health_html_includes_values():
    health = get_health_status()

    html = render_health_html(health)

    assert health.timestamp in html
    assert "CPU Cores" in html
