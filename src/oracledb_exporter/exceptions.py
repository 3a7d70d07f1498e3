"""Custom exceptions.

Classifies the failures that can happen while collecting metrics from
Oracle DB, rendering them, and loading configuration.
"""

from __future__ import annotations


class ExporterError(Exception):
    """Base class for exporter errors."""


class CollectorError(ExporterError):
    """A sub-collector failed.

    Raised when a query or row scan against Oracle DB fails, or when a row
    holds data the collector cannot turn into a finite sample.
    """

    def __init__(self, collector_name: str, message: str) -> None:
        self.collector_name = collector_name
        super().__init__(f"[{collector_name}] {message}")


class DatabaseConnectionError(ExporterError):
    """Opening the connection or the liveness probe failed."""


class LabelSchemaError(ExporterError):
    """Label values do not match the label keys declared for a family."""


class ConfigurationError(ExporterError):
    """Invalid environment or command-line configuration."""
