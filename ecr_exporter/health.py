"""Health diagnostics for the exporter process."""

from __future__ import annotations

import gc
import os
import resource
import sys
import threading
from datetime import datetime, timezone
from html import escape

from pydantic import BaseModel, Field

UTC = timezone.utc
STARTED_AT = datetime.now(tz=UTC)


class MemoryStats(BaseModel):
    max_rss_mb: float = Field(description="Peak resident set size of the process.")
    gc_collections: int = Field(description="Garbage collector runs across all generations.")


class CPUStats(BaseModel):
    num_cpu: int
    num_threads: int


class HealthStatus(BaseModel):
    status: str
    uptime: str
    memory: MemoryStats
    cpu: CPUStats
    threads: int
    timestamp: str


def get_health_status(started_at: datetime = STARTED_AT) -> HealthStatus:
    now = datetime.now(tz=UTC)
    uptime = now - started_at
    threads = threading.active_count()

    return HealthStatus(
        status="OK",
        uptime=str(uptime).split(".")[0],
        threads=threads,
        timestamp=now.isoformat(timespec="seconds"),
        memory=MemoryStats(
            max_rss_mb=_max_rss_mb(),
            gc_collections=sum(generation["collections"] for generation in gc.get_stats()),
        ),
        cpu=CPUStats(num_cpu=os.cpu_count() or 1, num_threads=threads),
    )


def _max_rss_mb() -> float:
    max_rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # Reported in bytes on macOS, kilobytes elsewhere.
    if sys.platform == "darwin":
        return max_rss / 1024 / 1024
    return max_rss / 1024


def render_health_html(health: HealthStatus) -> str:
    rows = [
        ("Uptime", health.uptime),
        ("Threads", str(health.threads)),
        ("CPU Cores", str(health.cpu.num_cpu)),
        ("Peak Memory", f"{health.memory.max_rss_mb:.2f} MB"),
        ("GC Runs", str(health.memory.gc_collections)),
    ]
    table = "\n".join(
        f'        <tr><td>{escape(label)}</td><td class="value">{escape(value)}</td></tr>' for label, value in rows
    )
    return f"""<!DOCTYPE html>
<html>
<head>
    <title>ECR Exporter Health</title>
    <meta http-equiv="refresh" content="30">
    <style>
        body {{ font-family: Arial, sans-serif; margin: 40px; }}
        .status {{ color: green; font-weight: bold; }}
        .value {{ font-weight: bold; color: #333; }}
        table {{ border-collapse: collapse; width: 100%; max-width: 600px; }}
        th, td {{ border: 1px solid #ddd; padding: 12px; text-align: left; }}
        th {{ background-color: #f2f2f2; }}
    </style>
</head>
<body>
    <h1>ECR Prometheus Exporter Health Status</h1>
    <p class="status">Status: {escape(health.status)}</p>
    <p>Last Updated: {escape(health.timestamp)}</p>

    <h2>System Metrics</h2>
    <table>
        <tr><th>Metric</th><th>Value</th></tr>
{table}
    </table>

    <p style="margin-top: 30px;">
        <a href="/">Home</a> |
        <a href="/metrics">View Metrics</a> |
        <a href="/health?format=json">JSON Format</a>
    </p>
</body>
</html>
"""


INDEX_HTML = """<!DOCTYPE html>
<html>
<head>
    <title>ECR Exporter</title>
    <style>
        body { font-family: Arial, sans-serif; margin: 40px; }
        .link { display: block; margin: 10px 0; padding: 10px; background: #f5f5f5; text-decoration: none; border-radius: 5px; }
        .link:hover { background: #e5e5e5; }
    </style>
</head>
<body>
    <h1>ECR Prometheus Exporter</h1>
    <p>Monitor your AWS ECR repositories with Prometheus metrics</p>

    <h2>Available Endpoints:</h2>
    <a href="/metrics" class="link">Prometheus Metrics</a>
    <a href="/health" class="link">Health Status</a>
    <a href="/health?format=json" class="link">Health Status (JSON)</a>

    <h2>Metrics Exported:</h2>
    <ul>
        <li>Total ECR repositories</li>
        <li>Image count per repository</li>
        <li>Image size statistics (min, max, avg)</li>
        <li>Latest push/pull timestamps</li>
        <li>Scrape performance metrics</li>
    </ul>
</body>
</html>
"""


__all__ = ["HealthStatus", "INDEX_HTML", "STARTED_AT", "get_health_status", "render_health_html"]
