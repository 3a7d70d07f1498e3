"""Session, user and transaction collectors.

Mostly reads v$session, plus v$active_session_history for accumulated wait
time and dba_users for the user count.
"""

from __future__ import annotations

from oracledb import Connection

from oracledb_exporter.collectors.base import fetch_rows, scan
from oracledb_exporter.models import MetricDescriptor, MetricSample, MetricSink

SESSIONS_QUERY = "SELECT status, type, COUNT(*) FROM v$session GROUP BY status, type"

USER_NUMBER_QUERY = "SELECT COUNT(1) FROM dba_users"

SESSION_WAIT_QUERY = """
SELECT
  s.sid,
  s.username,
  SUM(ash.wait_time + ash.time_waited) total_wait_time
FROM v$active_session_history ash, v$session s
WHERE ash.session_id = s.sid
GROUP BY s.sid, s.username
ORDER BY total_wait_time DESC
"""

SESSION_TIME_QUERY = """
SELECT
  username,
  terminal,
  program,
  ROUND((SYSDATE - logon_time) * (24 * 60 * 60), 1) AS seconds_logged_on,
  ROUND(last_call_et, 1) AS seconds_for_current_sql
FROM v$session
WHERE status = 'ACTIVE'
AND username IS NOT NULL
ORDER BY seconds_logged_on DESC
"""

TRANSACTION_WAIT_QUERY = """
SELECT sid, event, blocking_session, last_call_et
FROM v$session
WHERE status = 'ACTIVE'
AND blocking_session IS NOT NULL
"""

SESSIONS_ACTIVITY = MetricDescriptor.build(
    "sessions",
    "activity",
    "Gauge metric with count of sessions by status and type",
    label_keys=("status", "type"),
)
# Kept so existing dashboards don't break; superseded by sessions_activity.
SESSIONS_ACTIVE = MetricDescriptor.build(
    "sessions",
    "active",
    "Gauge metric with count of sessions marked ACTIVE. "
    "DEPRECATED: use sum(oracledb_sessions_activity{status='ACTIVE'}) instead.",
)
SESSIONS_INACTIVE = MetricDescriptor.build(
    "sessions",
    "inactive",
    "Gauge metric with count of sessions marked INACTIVE. "
    "DEPRECATED: use sum(oracledb_sessions_activity{status='INACTIVE'}) instead.",
)
USER_NUMBER = MetricDescriptor.build("user", "number", "user number.")
SESSION_WAIT = MetricDescriptor.build(
    "session", "wait_second", "session wait second", label_keys=("sid", "username")
)
_SESSION_USER_LABELS = ("username", "terminal", "program")
SESSIONS_LOGGED_TIME = MetricDescriptor.build(
    "sessions", "logged_time", "logged time unit second", label_keys=_SESSION_USER_LABELS
)
SESSIONS_SQL_TIME = MetricDescriptor.build(
    "sessions", "sql_time", "current sql time unit second", label_keys=_SESSION_USER_LABELS
)
TRANSACTION_WAIT_TIME = MetricDescriptor.build(
    "transaction", "wait_time", "transaction wait time", label_keys=("sid", "event", "blocking_session")
)


def collect_sessions(connection: Connection, sink: MetricSink) -> None:
    """Emit session counts by status and type.

    Also emits the deprecated ``sessions_active`` / ``sessions_inactive``
    totals once all rows are read.
    """
    active = 0.0
    inactive = 0.0
    columns = (("status", str), ("type", str), ("count", float))
    for row in fetch_rows(connection, "sessions", SESSIONS_QUERY):
        status, session_type, count = scan("sessions", row, columns)
        sink.emit(MetricSample.create(SESSIONS_ACTIVITY, count, status, session_type))
        if status == "ACTIVE":
            active += count
        elif status == "INACTIVE":
            inactive += count

    sink.emit(MetricSample.create(SESSIONS_ACTIVE, active))
    sink.emit(MetricSample.create(SESSIONS_INACTIVE, inactive))


def collect_user_number(connection: Connection, sink: MetricSink) -> None:
    for row in fetch_rows(connection, "user_number", USER_NUMBER_QUERY):
        (number,) = scan("user_number", row, (("count", float),))
        sink.emit(MetricSample.create(USER_NUMBER, number))


def collect_session_wait(connection: Connection, sink: MetricSink) -> None:
    """Emit the wait time accumulated in ASH per session."""
    columns = (("sid", str), ("username", str), ("total_wait_time", float))
    for row in fetch_rows(connection, "session_wait", SESSION_WAIT_QUERY):
        sid, username, value = scan("session_wait", row, columns)
        sink.emit(MetricSample.create(SESSION_WAIT, value, sid, username))


def collect_session_time(connection: Connection, sink: MetricSink) -> None:
    """Emit logon duration and current SQL duration of active user sessions."""
    columns = (
        ("username", str),
        ("terminal", str),
        ("program", str),
        ("seconds_logged_on", float),
        ("seconds_for_current_sql", float),
    )
    for row in fetch_rows(connection, "session_user", SESSION_TIME_QUERY):
        username, terminal, program, logged_on, current_sql = scan("session_user", row, columns)
        sink.emit(MetricSample.create(SESSIONS_LOGGED_TIME, logged_on, username, terminal, program))
        sink.emit(MetricSample.create(SESSIONS_SQL_TIME, current_sql, username, terminal, program))


def collect_transaction_wait_time(connection: Connection, sink: MetricSink) -> None:
    """Emit how long each blocked active session has been waiting."""
    columns = (("sid", str), ("event", str), ("blocking_session", str), ("last_call_et", float))
    for row in fetch_rows(connection, "transaction", TRANSACTION_WAIT_QUERY):
        sid, event, blocking_session, elapsed = scan("transaction", row, columns)
        sink.emit(MetricSample.create(TRANSACTION_WAIT_TIME, elapsed, sid, event, blocking_session))
