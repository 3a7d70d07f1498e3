"""Storage collectors: tablespaces, ASM disk groups, data files and force logging."""

from __future__ import annotations

from oracledb import Connection

from oracledb_exporter.collectors.base import fetch_rows, ratio, scan
from oracledb_exporter.models import MetricDescriptor, MetricSample, MetricSink
from oracledb_exporter.naming import clean_name

# Permanent tablespaces from dba_data_files/dba_free_space, temporary ones
# from dba_temp_files with free space derived from gv$sort_segment.
TABLESPACE_QUERY = """
SELECT
  Z.name,
  dt.status,
  dt.contents,
  dt.extent_management,
  Z.bytes,
  Z.max_bytes,
  Z.free_bytes
FROM
(
  SELECT
    X.name                   AS name,
    SUM(nvl(X.free_bytes,0)) AS free_bytes,
    SUM(X.bytes)             AS bytes,
    SUM(X.max_bytes)         AS max_bytes
  FROM
    (
      SELECT
        ddf.tablespace_name AS name,
        ddf.status AS status,
        ddf.bytes AS bytes,
        SUM(dfs.bytes) AS free_bytes,
        CASE
          WHEN ddf.maxbytes = 0 THEN ddf.bytes
          ELSE ddf.maxbytes
        END AS max_bytes
      FROM
        sys.dba_data_files ddf,
        sys.dba_tablespaces dt,
        sys.dba_free_space dfs
      WHERE ddf.tablespace_name = dt.tablespace_name
      AND ddf.file_id = dfs.file_id(+)
      GROUP BY
        ddf.tablespace_name,
        ddf.file_name,
        ddf.status,
        ddf.bytes,
        ddf.maxbytes
    ) X
  GROUP BY X.name
  UNION ALL
  SELECT
    Y.name                   AS name,
    MAX(nvl(Y.free_bytes,0)) AS free_bytes,
    SUM(Y.bytes)             AS bytes,
    SUM(Y.max_bytes)         AS max_bytes
  FROM
    (
      SELECT
        dtf.tablespace_name AS name,
        dtf.status AS status,
        dtf.bytes AS bytes,
        (
          SELECT
            ((f.total_blocks - s.tot_used_blocks)*vp.value)
          FROM
            (SELECT tablespace_name, SUM(used_blocks) tot_used_blocks FROM gv$sort_segment WHERE tablespace_name != 'DUMMY' GROUP BY tablespace_name) s,
            (SELECT tablespace_name, SUM(blocks) total_blocks FROM dba_temp_files WHERE tablespace_name != 'DUMMY' GROUP BY tablespace_name) f,
            (SELECT value FROM v$parameter WHERE name = 'db_block_size') vp
          WHERE f.tablespace_name = s.tablespace_name AND f.tablespace_name = dtf.tablespace_name
        ) AS free_bytes,
        CASE
          WHEN dtf.maxbytes = 0 THEN dtf.bytes
          ELSE dtf.maxbytes
        END AS max_bytes
      FROM
        sys.dba_temp_files dtf
    ) Y
  GROUP BY Y.name
) Z, sys.dba_tablespaces dt
WHERE
  Z.name = dt.tablespace_name
"""

ASM_DISK_QUERY = """
SELECT group_number, name, free_mb, total_mb
FROM v$asm_diskgroup
"""

DATA_FILE_QUERY = """
SELECT file#, name, status
FROM v$datafile
WHERE status != 'SYSTEM'
"""

FORCE_LOG_QUERY = """
SELECT force_logging
FROM v$database
"""

_TABLESPACE_LABELS = ("tablespace", "type")
TABLESPACE_BYTES = MetricDescriptor.build(
    "tablespace", "bytes", "Generic gauge metric of tablespaces bytes in Oracle.", label_keys=_TABLESPACE_LABELS
)
TABLESPACE_MAX_BYTES = MetricDescriptor.build(
    "tablespace", "max_bytes", "Generic gauge metric of tablespaces max bytes in Oracle.", label_keys=_TABLESPACE_LABELS
)
TABLESPACE_FREE = MetricDescriptor.build(
    "tablespace", "free", "Generic gauge metric of tablespaces free bytes in Oracle.", label_keys=_TABLESPACE_LABELS
)
ASM_DISK_USAGE = MetricDescriptor.build("asm", "disk_usage", "asm disk usage", label_keys=("type", "group_name"))
DATA_FILE_STATUS = MetricDescriptor.build("data_file", "status", "data file status", label_keys=("file", "filename"))
FORCE_LOG = MetricDescriptor.build("force", "log", "force log")


def collect_tablespace(connection: Connection, sink: MetricSink) -> None:
    """Emit size, max size and free bytes for every tablespace.

    The ``type`` label is the tablespace contents (PERMANENT, TEMPORARY, UNDO).
    """
    columns = (
        ("name", str),
        ("status", str),
        ("contents", str),
        ("extent_management", str),
        ("bytes", float),
        ("max_bytes", float),
        ("free_bytes", float),
    )
    for row in fetch_rows(connection, "tablespace", TABLESPACE_QUERY):
        name, _status, contents, _extent_management, size, max_size, free = scan("tablespace", row, columns)
        sink.emit(MetricSample.create(TABLESPACE_BYTES, size, name, contents))
        sink.emit(MetricSample.create(TABLESPACE_MAX_BYTES, max_size, name, contents))
        sink.emit(MetricSample.create(TABLESPACE_FREE, free, name, contents))


def collect_asm_disk(connection: Connection, sink: MetricSink) -> None:
    """Emit the used fraction of each ASM disk group, ``1 - free_mb / total_mb``."""
    columns = (("group_number", str), ("name", str), ("free_mb", float), ("total_mb", float))
    for row in fetch_rows(connection, "asm_disk", ASM_DISK_QUERY):
        group_number, name, free_mb, total_mb = scan("asm_disk", row, columns)
        used = 1 - ratio("asm_disk", free_mb, total_mb, f"{name} usage")
        sink.emit(MetricSample.create(ASM_DISK_USAGE, used, clean_name(name), group_number))


def collect_data_file(connection: Connection, sink: MetricSink) -> None:
    """Emit 1 for ONLINE data files and 0 for everything else."""
    columns = (("file#", str), ("name", str), ("status", str))
    for row in fetch_rows(connection, "date_file", DATA_FILE_QUERY):
        file_number, filename, status = scan("date_file", row, columns)
        value = 1 if status == "ONLINE" else 0
        sink.emit(MetricSample.create(DATA_FILE_STATUS, value, file_number, clean_name(filename)))


def collect_force_log(connection: Connection, sink: MetricSink) -> None:
    for row in fetch_rows(connection, "force_log", FORCE_LOG_QUERY):
        (force_logging,) = scan("force_log", row, (("force_logging", str),))
        sink.emit(MetricSample.create(FORCE_LOG, 1 if force_logging == "YES" else 0))
