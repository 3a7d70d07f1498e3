"""Instance-wide activity, wait and cache collectors.

Reads the v$sysstat, v$waitclassmetric, v$buffer_pool_statistics,
v$librarycache and v$sysmetric views.
"""

from __future__ import annotations

from oracledb import Connection

from oracledb_exporter.collectors.base import fetch_rows, ratio, scan
from oracledb_exporter.models import MetricDescriptor, MetricKind, MetricSample, MetricSink
from oracledb_exporter.naming import clean_name

ACTIVITY_QUERY = """
SELECT name, value
FROM v$sysstat
WHERE name IN ('parse count (total)', 'execute count', 'user commits', 'user rollbacks')
"""

WAIT_TIME_QUERY = """
SELECT n.wait_class, m.time_waited, m.intsize_csec
FROM v$waitclassmetric m, v$system_wait_class n
WHERE m.wait_class_id = n.wait_class_id
AND n.wait_class != 'Idle'
"""

BUFFER_POOL_QUERY = """
SELECT name, physical_reads, db_block_gets, consistent_gets
FROM v$buffer_pool_statistics
"""

HIT_SGA_QUERY = """
SELECT SUM(pinhits), SUM(pins)
FROM v$librarycache
"""

RESPONSE_TIME_QUERY = """
SELECT metric_name, value
FROM sys.v_$sysmetric
WHERE metric_name IN ('Database CPU Time Ratio', 'Database Wait Time Ratio')
AND intsize_csec = (SELECT MAX(intsize_csec) FROM sys.v_$sysmetric)
"""

BUFFER_HITS = MetricDescriptor.build("buffer", "hits", "buffer hits percentage.", label_keys=("table",))
SGA_HITS = MetricDescriptor.build("sga", "hits", "sga hits percentage.")
RESPONSE_TIME = MetricDescriptor.build("response", "time", "database response time.", label_keys=("type",))


def collect_activity(connection: Connection, sink: MetricSink) -> None:
    """Emit one counter per v$sysstat statistic, named after the statistic."""
    for row in fetch_rows(connection, "activity", ACTIVITY_QUERY):
        name, value = scan("activity", row, (("name", str), ("value", float)))
        descriptor = MetricDescriptor.build(
            "activity",
            clean_name(name),
            "Generic counter metric from v$sysstat view in Oracle.",
            kind=MetricKind.COUNTER,
        )
        sink.emit(MetricSample.create(descriptor, value))


def collect_wait_time(connection: Connection, sink: MetricSink) -> None:
    """Emit the average active sessions waiting in each non-idle wait class."""
    columns = (("wait_class", str), ("time_waited", float), ("intsize_csec", float))
    for row in fetch_rows(connection, "wait_time", WAIT_TIME_QUERY):
        wait_class, time_waited, intsize_csec = scan("wait_time", row, columns)
        value = round(ratio("wait_time", time_waited, intsize_csec, f"{wait_class} wait time"), 3)
        descriptor = MetricDescriptor.build(
            "wait_time",
            clean_name(wait_class),
            "Generic counter metric from v$waitclassmetric view in Oracle.",
            kind=MetricKind.COUNTER,
        )
        sink.emit(MetricSample.create(descriptor, value))


def collect_buffer_pool(connection: Connection, sink: MetricSink) -> None:
    """Emit the hit ratio of each buffer pool.

    ``1 - physical_reads / (db_block_gets + consistent_gets)``; a pool with no
    logical reads fails the collector rather than emitting NaN.
    """
    columns = (
        ("name", str),
        ("physical_reads", float),
        ("db_block_gets", float),
        ("consistent_gets", float),
    )
    for row in fetch_rows(connection, "buffer", BUFFER_POOL_QUERY):
        name, physical_reads, db_block_gets, consistent_gets = scan("buffer", row, columns)
        hit_ratio = 1 - ratio("buffer", physical_reads, db_block_gets + consistent_gets, f"{name} hit ratio")
        sink.emit(MetricSample.create(BUFFER_HITS, hit_ratio, clean_name(name)))


def collect_hit_sga(connection: Connection, sink: MetricSink) -> None:
    """Emit the library cache hit ratio, ``sum(pinhits) / sum(pins)``."""
    for row in fetch_rows(connection, "sga", HIT_SGA_QUERY):
        pinhits, pins = scan("sga", row, (("pinhits", float), ("pins", float)))
        sink.emit(MetricSample.create(SGA_HITS, ratio("sga", pinhits, pins, "library cache hit ratio")))


def collect_response_time(connection: Connection, sink: MetricSink) -> None:
    for row in fetch_rows(connection, "response_time", RESPONSE_TIME_QUERY):
        name, value = scan("response_time", row, (("metric_name", str), ("value", float)))
        sink.emit(MetricSample.create(RESPONSE_TIME, value, clean_name(name)))
