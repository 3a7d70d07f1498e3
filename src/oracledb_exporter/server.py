"""HTTP serving layer.

Exposes the exporter's registry in the Prometheus text format, plus a small
landing page and a health endpoint.
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Response
from fastapi.responses import HTMLResponse
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

from oracledb_exporter import __version__
from oracledb_exporter.config import Settings
from oracledb_exporter.exporter import Exporter

logger = structlog.get_logger()


def landing_page(metrics_path: str) -> str:
    return (
        f"<html><head><title>Oracle DB Exporter {__version__}</title></head>"
        f"<body><h1>Oracle DB Exporter {__version__}</h1>"
        f"<p><a href='{metrics_path}'>Metrics</a></p></body></html>"
    )


def create_app(settings: Settings, exporter: Exporter | None = None) -> FastAPI:
    """Create the FastAPI application.

    The exporter is registered in a registry of its own. Registration calls
    ``Exporter.describe``, which runs one collection pass, unless
    ``settings.describe_on_start`` is off.
    """
    if exporter is None:
        exporter = Exporter(settings.data_source_name)

    registry = CollectorRegistry(auto_describe=settings.describe_on_start)
    if settings.describe_on_start:
        registry.register(exporter)
    else:
        # Without a describe hook the registry skips the startup pass.
        registry.register(_CollectOnly(exporter))

    app = FastAPI(title="oracledb-exporter", version=__version__)
    app.state.exporter = exporter
    app.state.registry = registry

    page = landing_page(settings.metrics_path)

    @app.get("/", response_class=HTMLResponse)
    def index() -> str:
        return page

    @app.get("/health")
    def health() -> dict:
        return {
            "status": "healthy",
            "service": "oracledb-exporter",
            "version": __version__,
        }

    # Sync handler: runs in the threadpool so a slow pass does not block the event loop.
    @app.get(settings.metrics_path)
    def metrics() -> Response:
        return Response(content=generate_latest(registry), media_type=CONTENT_TYPE_LATEST)

    logger.info("metrics endpoint ready", path=settings.metrics_path)
    return app


class _CollectOnly:
    """Exposes only ``collect`` so registration does not trigger a pass."""

    def __init__(self, exporter: Exporter) -> None:
        self._exporter = exporter

    def collect(self):
        return self._exporter.collect()
