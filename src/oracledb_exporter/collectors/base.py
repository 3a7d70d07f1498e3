"""Shared plumbing for sub-collectors.

A sub-collector is a plain function ``(connection, sink) -> None`` that runs
one query, scans each row and emits samples. Failures are raised as
:class:`CollectorError`; whatever was emitted before the failure stays in the
sink.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

import structlog
from oracledb import Connection

from oracledb_exporter.exceptions import CollectorError
from oracledb_exporter.models import MetricSink

logger = structlog.get_logger()

CollectorFunc = Callable[[Connection, MetricSink], None]
Column = tuple[str, type]


@dataclass(frozen=True)
class SubCollector:
    """A named entry of the collector roster.

    ``name`` is the ``collector`` label of the scrape error counter.
    """

    name: str
    func: CollectorFunc

    def __call__(self, connection: Connection, sink: MetricSink) -> None:
        self.func(connection, sink)


def fetch_rows(connection: Connection, collector: str, query: str) -> list[tuple[Any, ...]]:
    """Run ``query`` and return all rows.

    Raises:
        CollectorError: if executing the query or fetching fails
    """
    log = logger.bind(collector=collector)
    log.debug("query started")

    try:
        cursor = connection.cursor()
        try:
            cursor.execute(query)
            rows = cursor.fetchall()
        finally:
            cursor.close()
    except Exception as e:
        log.error("query failed", error=str(e), query=query.strip()[:200])
        raise CollectorError(collector, str(e)) from e

    log.debug("query completed", rows=len(rows))
    return rows


def scan(collector: str, row: Sequence[Any], columns: Sequence[Column]) -> tuple[Any, ...]:
    """Convert a result row according to ``columns``.

    Each column is a ``(name, type)`` pair with ``type`` being ``str`` or
    ``float``. NULL is never accepted.

    Raises:
        CollectorError: on a column count mismatch, a NULL, or a value that
            cannot be converted
    """
    if len(row) != len(columns):
        raise CollectorError(collector, f"expected {len(columns)} columns, got {len(row)}")

    values = []
    for (column, kind), value in zip(columns, row):
        if value is None:
            raise CollectorError(collector, f"NULL value in column {column}")
        try:
            values.append(kind(value))
        except (TypeError, ValueError) as e:
            raise CollectorError(collector, f"cannot convert {column}={value!r} to {kind.__name__}") from e
    return tuple(values)


def ratio(collector: str, numerator: float, denominator: float, what: str) -> float:
    """Divide, turning a zero denominator into a collector failure."""
    if denominator == 0:
        raise CollectorError(collector, f"division by zero computing {what}")
    return numerator / denominator
