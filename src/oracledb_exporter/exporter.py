"""Collection pass orchestration.

:class:`Exporter` implements the ``collect`` / ``describe`` pair that
``prometheus_client`` registries expect from a custom collector.

A pass opens a connection, runs the liveness probe, then runs every
sub-collector in roster order. A failing sub-collector only bumps its own
error counter; a failed connection or probe ends the pass early with
``up`` at 0 and ``last_scrape_error`` at 1.
"""

from __future__ import annotations

import queue
import threading
import time
from collections.abc import Callable, Iterable

import oracledb
import structlog
from prometheus_client.core import Metric

from oracledb_exporter.collectors import ROSTER, SubCollector
from oracledb_exporter.exceptions import DatabaseConnectionError
from oracledb_exporter.models import (
    MetricDescriptor,
    MetricSink,
    QueueSink,
    SampleBuffer,
    to_descriptor_families,
    to_metric_families,
)
from oracledb_exporter.state import CollectionState

logger = structlog.get_logger()

PING_QUERY = "SELECT 1 FROM DUAL"

# End-of-pass marker on the describe handoff queue.
_DONE = object()


class Exporter:
    """Collects Oracle DB metrics for the given DSN.

    Args:
        dsn: Oracle connection string, e.g. ``user/password@host:1521/service``
        connect: connection factory called as ``connect(dsn=...)``
        collectors: sub-collectors, run in the given order
        state: collection state; a fresh one is created when omitted
    """

    def __init__(
        self,
        dsn: str,
        *,
        connect: Callable[..., oracledb.Connection] | None = None,
        collectors: Iterable[SubCollector] = ROSTER,
        state: CollectionState | None = None,
    ) -> None:
        self.dsn = dsn
        self.collectors = tuple(collectors)
        self.state = state if state is not None else CollectionState()
        self._connect = connect or oracledb.connect
        # Passes never overlap, so state updates from concurrent scrapes
        # cannot interleave.
        self._lock = threading.Lock()

    def collect(self) -> list[Metric]:
        """Run one pass and return domain metrics followed by self-metrics."""
        with self._lock:
            buffer = SampleBuffer()
            self.scrape(buffer)
            samples = [*buffer, *self.state.samples()]
        return to_metric_families(samples)

    def describe(self) -> list[Metric]:
        """Return the families seen during one real pass, without samples."""
        return to_descriptor_families(self.describe_descriptors())

    def describe_descriptors(self) -> list[MetricDescriptor]:
        """Learn the metric descriptors by running one collection pass.

        We cannot know in advance what metrics the collectors will generate,
        so this runs a pass and keeps the descriptor of every emitted sample.
        That needs a working connection: if Oracle DB is unavailable, or a
        family happens to have no rows, the result is incomplete.

        The pass runs in the calling thread and feeds a consumer thread through
        a bounded queue; the consumer is joined before returning.
        """
        handoff: queue.Queue = queue.Queue(maxsize=1)
        descriptors: dict[str, MetricDescriptor] = {}

        def drain() -> None:
            while True:
                sample = handoff.get()
                if sample is _DONE:
                    return
                descriptors.setdefault(sample.name, sample.descriptor)

        consumer = threading.Thread(target=drain, name="oracledb-exporter-describe", daemon=True)
        consumer.start()
        try:
            with self._lock:
                sink = QueueSink(handoff)
                self.scrape(sink)
                for sample in self.state.samples():
                    sink.emit(sample)
        finally:
            handoff.put(_DONE)
            consumer.join()

        return list(descriptors.values())

    def scrape(self, sink: MetricSink) -> None:
        """Run one pass, emitting domain samples into ``sink``.

        Updates the collection state but does not emit it. Never raises for
        database failures.
        """
        state = self.state
        state.record_scrape()
        begun = time.perf_counter()
        error = True
        failed: list[str] = []

        try:
            connection = self._open()
            try:
                self._ping(connection)
                state.up = True
                error = False
                failed = self._run_collectors(connection, sink)
            finally:
                self._close(connection)
        except DatabaseConnectionError:
            state.up = False
        finally:
            state.finish_pass(time.perf_counter() - begun, error)

        logger.info(
            "scrape finished",
            duration_seconds=round(state.last_duration, 4),
            up=state.up,
            error=error,
            failed_collectors=failed,
        )

    def _open(self) -> oracledb.Connection:
        try:
            return self._connect(dsn=self.dsn)
        except Exception as e:
            logger.error("error opening connection to database", error=str(e))
            raise DatabaseConnectionError(f"connection failed: {e}") from e

    def _ping(self, connection: oracledb.Connection) -> None:
        try:
            cursor = connection.cursor()
            try:
                cursor.execute(PING_QUERY)
                cursor.fetchall()
            finally:
                cursor.close()
        except Exception as e:
            logger.error("error pinging oracle", error=str(e))
            raise DatabaseConnectionError(f"liveness probe failed: {e}") from e

    def _close(self, connection: oracledb.Connection) -> None:
        try:
            connection.close()
        except Exception as e:
            logger.warning("error closing connection", error=str(e))

    def _run_collectors(self, connection: oracledb.Connection, sink: MetricSink) -> list[str]:
        failed = []
        for collector in self.collectors:
            log = logger.bind(collector=collector.name)
            try:
                collector(connection, sink)
            except Exception as e:
                log.error("error scraping collector", error=str(e))
                self.state.record_collector_error(collector.name)
                failed.append(collector.name)
        return failed
