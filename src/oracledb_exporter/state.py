"""Exporter self-metrics.

:class:`CollectionState` is updated once per pass and exposed next to the
domain metrics. It is owned by one exporter instance rather than living in
module globals, so each exporter (and each test) has its own counters.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from oracledb_exporter.models import MetricDescriptor, MetricKind, MetricSample
from oracledb_exporter.naming import EXPORTER_SUBSYSTEM

DURATION = MetricDescriptor.build(
    EXPORTER_SUBSYSTEM,
    "last_scrape_duration_seconds",
    "Duration of the last scrape of metrics from Oracle DB.",
)
TOTAL_SCRAPES = MetricDescriptor.build(
    EXPORTER_SUBSYSTEM,
    "scrapes_total",
    "Total number of times Oracle DB was scraped for metrics.",
    kind=MetricKind.COUNTER,
)
LAST_ERROR = MetricDescriptor.build(
    EXPORTER_SUBSYSTEM,
    "last_scrape_error",
    "Whether the last scrape of metrics from Oracle DB resulted in an error (1 for error, 0 for success).",
)
SCRAPE_ERRORS = MetricDescriptor.build(
    EXPORTER_SUBSYSTEM,
    "scrape_errors_total",
    "Total number of times an error occurred scraping an Oracle database.",
    label_keys=("collector",),
    kind=MetricKind.COUNTER,
)
UP = MetricDescriptor.build("", "up", "Whether the Oracle database server is up.")


@dataclass
class CollectionState:
    """Duration, error flag, scrape counters and ``up`` of the last pass.

    Counters only ever go up; gauges are overwritten by each pass.
    """

    last_duration: float = 0.0
    last_error: bool = False
    total_scrapes: int = 0
    collector_errors: dict[str, int] = field(default_factory=dict)
    up: bool = False

    def record_scrape(self) -> None:
        self.total_scrapes += 1

    def record_collector_error(self, collector: str) -> None:
        self.collector_errors[collector] = self.collector_errors.get(collector, 0) + 1

    def finish_pass(self, duration: float, error: bool) -> None:
        self.last_duration = duration
        self.last_error = error

    def samples(self) -> Iterator[MetricSample]:
        """Yield the state as samples.

        Only collectors that have failed at least once have an error series.
        """
        yield MetricSample.create(DURATION, self.last_duration)
        yield MetricSample.create(TOTAL_SCRAPES, self.total_scrapes)
        yield MetricSample.create(LAST_ERROR, 1 if self.last_error else 0)
        for collector, count in self.collector_errors.items():
            yield MetricSample.create(SCRAPE_ERRORS, count, collector)
        yield MetricSample.create(UP, 1 if self.up else 0)
