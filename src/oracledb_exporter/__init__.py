"""Oracle DB exporter for Prometheus.

Queries Oracle DB system views on every scrape and exposes sessions, wait
times, tablespace usage, cache hit ratios and more as Prometheus metrics.

Usage:
    DATA_SOURCE_NAME=system/oracle@localhost:1521/XE oracledb-exporter
    python -m oracledb_exporter --web.listen-address :9161
"""

__version__ = "0.2.0"

from oracledb_exporter.exporter import Exporter  # noqa: E402
from oracledb_exporter.state import CollectionState  # noqa: E402

__all__ = ["CollectionState", "Exporter", "__version__"]
