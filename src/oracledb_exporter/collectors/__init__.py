"""Oracle DB sub-collectors.

Each collector runs one query against Oracle DB and emits samples; on
failure it raises CollectorError. ROSTER fixes the order they run in.
"""

from oracledb_exporter.collectors.base import SubCollector
from oracledb_exporter.collectors.sessions import (
    collect_session_time,
    collect_session_wait,
    collect_sessions,
    collect_transaction_wait_time,
    collect_user_number,
)
from oracledb_exporter.collectors.storage import (
    collect_asm_disk,
    collect_data_file,
    collect_force_log,
    collect_tablespace,
)
from oracledb_exporter.collectors.system import (
    collect_activity,
    collect_buffer_pool,
    collect_hit_sga,
    collect_response_time,
    collect_wait_time,
)

# (error counter label, collector function)
ROSTER: tuple[SubCollector, ...] = (
    SubCollector("activity", collect_activity),
    SubCollector("tablespace", collect_tablespace),
    SubCollector("wait_time", collect_wait_time),
    SubCollector("sessions", collect_sessions),
    SubCollector("buffer", collect_buffer_pool),
    SubCollector("sga", collect_hit_sga),
    SubCollector("user_number", collect_user_number),
    SubCollector("response_time", collect_response_time),
    SubCollector("asm_disk", collect_asm_disk),
    SubCollector("date_file", collect_data_file),
    SubCollector("session_wait", collect_session_wait),
    SubCollector("force_log", collect_force_log),
    SubCollector("session_user", collect_session_time),
    SubCollector("transaction", collect_transaction_wait_time),
)

__all__ = [
    "ROSTER",
    "SubCollector",
    # System collectors
    "collect_activity",
    "collect_wait_time",
    "collect_buffer_pool",
    "collect_hit_sga",
    "collect_response_time",
    # Storage collectors
    "collect_tablespace",
    "collect_asm_disk",
    "collect_data_file",
    "collect_force_log",
    # Session collectors
    "collect_sessions",
    "collect_user_number",
    "collect_session_wait",
    "collect_session_time",
    "collect_transaction_wait_time",
]
