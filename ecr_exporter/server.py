"""HTTP surface of the exporter."""

from __future__ import annotations

from datetime import datetime

from fastapi import FastAPI, Request, Response
from fastapi.responses import HTMLResponse, JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

from .health import INDEX_HTML, STARTED_AT, get_health_status, render_health_html


def create_app(registry: CollectorRegistry, started_at: datetime | None = None) -> FastAPI:
    """Create the FastAPI application serving metrics and health views."""

    app = FastAPI(title="ECR Prometheus Exporter", docs_url=None, redoc_url=None, openapi_url=None)
    started = started_at or STARTED_AT

    # Sync handlers run in the threadpool; a scrape blocks on the registry API.
    @app.get("/metrics", include_in_schema=False)
    def metrics() -> Response:
        return Response(generate_latest(registry), media_type=CONTENT_TYPE_LATEST)

    @app.get("/health", include_in_schema=False)
    def health(request: Request, format: str | None = None) -> Response:
        status = get_health_status(started)
        if request.headers.get("accept") == "application/json" or format == "json":
            return JSONResponse(status.model_dump())
        return HTMLResponse(render_health_html(status))

    @app.get("/", include_in_schema=False)
    def index() -> HTMLResponse:
        return HTMLResponse(INDEX_HTML)

    return app


__all__ = ["create_app"]
