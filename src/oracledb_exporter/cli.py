"""Command-line entry point.

Flags mirror the classic exporter flags and override environment settings.
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence

import structlog
import uvicorn
from pydantic import ValidationError

from oracledb_exporter import __version__
from oracledb_exporter.config import Settings, split_listen_address
from oracledb_exporter.exceptions import ExporterError
from oracledb_exporter.logging import configure_logging
from oracledb_exporter.server import create_app

logger = structlog.get_logger()

# flag destination -> Settings field
_OVERRIDES = {
    "listen_address": "listen_address",
    "metrics_path": "metrics_path",
    "log_level": "log_level",
    "log_format": "log_format",
}


def create_parser() -> argparse.ArgumentParser:
    """Create the CLI parser."""
    parser = argparse.ArgumentParser(
        prog="oracledb-exporter",
        description="Prometheus exporter for Oracle DB metrics. The DSN is read from DATA_SOURCE_NAME.",
    )
    parser.add_argument(
        "--web.listen-address",
        dest="listen_address",
        default=None,
        help="Address to listen on for web interface and telemetry (default: :9161)",
    )
    parser.add_argument(
        "--web.telemetry-path",
        dest="metrics_path",
        default=None,
        help="Path under which to expose metrics (default: /metrics)",
    )
    parser.add_argument(
        "--log.level",
        dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        default=None,
        help="Log level (default: INFO)",
    )
    parser.add_argument(
        "--log.format",
        dest="log_format",
        choices=["json", "console"],
        default=None,
        help="Log format (default: json)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    """Read settings from the environment, with command-line flags taking precedence."""
    overrides = {
        field: getattr(args, dest)
        for dest, field in _OVERRIDES.items()
        if getattr(args, dest, None) is not None
    }
    return Settings(**overrides)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the exporter until interrupted."""
    args = create_parser().parse_args(argv)

    try:
        settings = load_settings(args)
        host, port = split_listen_address(settings.listen_address)
    except (ValidationError, ExporterError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    configure_logging(settings.log_level, settings.log_format)
    logger.info("Starting oracledb_exporter", version=__version__)
    if not settings.data_source_name:
        logger.warning("DATA_SOURCE_NAME is not set, every scrape will report the database as down")

    app = create_app(settings)

    logger.info("Listening on", address=settings.listen_address, metrics_path=settings.metrics_path)
    uvicorn.run(app, host=host, port=port, log_config=None, access_log=False)
    return 0
