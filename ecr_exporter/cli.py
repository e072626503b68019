"""Command line interface for the ECR exporter."""

from __future__ import annotations

import logging
from typing import Optional

import typer
import uvicorn
from botocore.exceptions import BotoCoreError
from prometheus_client import generate_latest

from .collector import ScrapeEngine
from .config import AppConfig
from .deadline import Deadline
from .ecr_client import RegistryAPIError, RegistryClient, create_ecr_client
from .prometheus import register_collector
from .server import create_app

LOGGER = logging.getLogger(__name__)

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "critical": logging.CRITICAL,
}

CONNECTIVITY_TIMEOUT = 30.0

app = typer.Typer(add_completion=False)


def configure_logging(level: str) -> None:
    name = (level or "info").strip().lower()
    resolved = LOG_LEVELS.get(name)
    logging.basicConfig(
        level=resolved or logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    if resolved is None:
        LOGGER.warning(
            "Invalid LOG_LEVEL '%s', defaulting to 'info'. Valid levels: %s", level, ", ".join(sorted(LOG_LEVELS))
        )
    LOGGER.info("Logging configured at %s", logging.getLevelName(resolved or logging.INFO).lower())


def _load_config(region: Optional[str], log_level: Optional[str], **overrides) -> AppConfig:
    overrides = {key: value for key, value in overrides.items() if value}
    if region:
        overrides["region"] = region
    if log_level:
        overrides["log_level"] = log_level
    try:
        config = AppConfig.from_env(overrides=overrides)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    configure_logging(config.log_level)
    return config


def _build_client(config: AppConfig) -> RegistryClient:
    LOGGER.info("Creating ECR client...")
    try:
        ecr = create_ecr_client(config.registry, scrape_timeout=config.scrape.timeout)
    except BotoCoreError as exc:
        LOGGER.critical("Failed to create ECR client: %s", exc)
        raise typer.Exit(code=1) from exc
    return RegistryClient(ecr, page_size=config.registry.page_size)


def _check_connectivity(client: RegistryClient) -> bool:
    LOGGER.info("Testing AWS connectivity...")
    try:
        client.probe(Deadline(CONNECTIVITY_TIMEOUT))
    except RegistryAPIError as exc:
        LOGGER.error("AWS connectivity test failed (%s): %s", exc.kind, exc)
        return False
    LOGGER.info("AWS connectivity test successful")
    return True


@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, help="Address to listen on"),
    port: Optional[int] = typer.Option(None, help="Port to listen on"),
    region: Optional[str] = typer.Option(None, help="AWS region"),
    log_level: Optional[str] = typer.Option(None, help="Logging level"),
) -> None:
    """Serve Prometheus metrics for the configured registry."""

    config = _load_config(region, log_level, host=host, port=port)
    LOGGER.info("Starting ECR Prometheus Exporter")

    client = _build_client(config)
    if not _check_connectivity(client):
        LOGGER.info("Continuing anyway, metrics collection will show errors...")

    engine = ScrapeEngine(client, namespace=config.scrape.namespace, timeout=config.scrape.timeout)
    registry = register_collector(engine)

    LOGGER.info("Server starting on %s:%s", config.server.host, config.server.port)
    uvicorn.run(create_app(registry), host=config.server.host, port=config.server.port, log_config=None)


@app.command("scrape")
def scrape(
    region: Optional[str] = typer.Option(None, help="AWS region"),
    log_level: Optional[str] = typer.Option(None, help="Logging level"),
) -> None:
    """Run a single scrape and print the metrics in text exposition format."""

    config = _load_config(region, log_level)
    client = _build_client(config)
    engine = ScrapeEngine(client, namespace=config.scrape.namespace, timeout=config.scrape.timeout)
    typer.echo(generate_latest(register_collector(engine)).decode("utf-8"), nl=False)


@app.command("check")
def check(
    region: Optional[str] = typer.Option(None, help="AWS region"),
    log_level: Optional[str] = typer.Option(None, help="Logging level"),
) -> None:
    """Verify credentials and connectivity to the registry API."""

    config = _load_config(region, log_level)
    if not _check_connectivity(_build_client(config)):
        raise typer.Exit(code=1)
    typer.echo("ok")


__all__ = ["app", "configure_logging"]
