"""collectors/system.py tests"""

from __future__ import annotations

from collections.abc import Callable
from unittest.mock import MagicMock

import pytest

from oracledb_exporter.collectors.system import (
    collect_activity,
    collect_buffer_pool,
    collect_hit_sga,
    collect_response_time,
    collect_wait_time,
)
from oracledb_exporter.exceptions import CollectorError
from oracledb_exporter.models import MetricKind, SampleBuffer


class TestCollectActivity:
    """collect_activity tests"""

    def test_emits_counter_per_statistic(
        self, mock_connection: MagicMock, sink: SampleBuffer, grouped: Callable
    ) -> None:
        """Statistic names are cleaned into the family name"""
        mock_connection.cursor.return_value.fetchall.return_value = [
            ("parse count (total)", 1500),
            ("user commits", 42),
        ]

        collect_activity(mock_connection, sink)

        values = grouped(sink)
        assert values["oracledb_activity_parse_count_total"] == [((), 1500.0)]
        assert values["oracledb_activity_user_commits"] == [((), 42.0)]
        assert all(s.descriptor.kind is MetricKind.COUNTER for s in sink)

    def test_empty_result_emits_nothing(self, mock_connection: MagicMock, sink: SampleBuffer) -> None:
        collect_activity(mock_connection, sink)

        assert len(sink) == 0

    def test_raises_collector_error_on_exception(self, mock_connection: MagicMock, sink: SampleBuffer) -> None:
        mock_connection.cursor.return_value.execute.side_effect = Exception("ORA-03113")

        with pytest.raises(CollectorError) as exc_info:
            collect_activity(mock_connection, sink)

        assert "activity" in str(exc_info.value)


class TestCollectWaitTime:
    """collect_wait_time tests"""

    def test_divides_time_waited_by_interval(
        self, mock_connection: MagicMock, sink: SampleBuffer, grouped: Callable
    ) -> None:
        mock_connection.cursor.return_value.fetchall.return_value = [
            ("User I/O", 1234, 6000),
            ("Concurrency", 30, 6000),
        ]

        collect_wait_time(mock_connection, sink)

        values = grouped(sink)
        assert values["oracledb_wait_time_user_io"] == [((), 0.206)]
        assert values["oracledb_wait_time_concurrency"] == [((), 0.005)]

    def test_idle_class_excluded_in_query(self, mock_connection: MagicMock, sink: SampleBuffer) -> None:
        collect_wait_time(mock_connection, sink)

        query = mock_connection.cursor.return_value.execute.call_args[0][0]
        assert "wait_class != 'Idle'" in query

    def test_zero_interval_fails(self, mock_connection: MagicMock, sink: SampleBuffer) -> None:
        mock_connection.cursor.return_value.fetchall.return_value = [("Commit", 10, 0)]

        with pytest.raises(CollectorError):
            collect_wait_time(mock_connection, sink)


class TestCollectBufferPool:
    """collect_buffer_pool tests"""

    def test_hit_ratio(self, mock_connection: MagicMock, sink: SampleBuffer, grouped: Callable) -> None:
        """1 - 50 / (70 + 30) = 0.5"""
        mock_connection.cursor.return_value.fetchall.return_value = [("DEFAULT", 50, 70, 30)]

        collect_buffer_pool(mock_connection, sink)

        assert grouped(sink)["oracledb_buffer_hits"] == [(("default",), 0.5)]

    def test_division_by_zero_is_collector_error(self, mock_connection: MagicMock, sink: SampleBuffer) -> None:
        """A pool without logical reads fails instead of emitting NaN"""
        mock_connection.cursor.return_value.fetchall.return_value = [("KEEP", 0, 0, 0)]

        with pytest.raises(CollectorError) as exc_info:
            collect_buffer_pool(mock_connection, sink)

        assert "buffer" in str(exc_info.value)
        assert len(sink) == 0

    def test_rows_before_failure_are_kept(self, mock_connection: MagicMock, sink: SampleBuffer) -> None:
        mock_connection.cursor.return_value.fetchall.return_value = [
            ("DEFAULT", 50, 70, 30),
            ("KEEP", 0, 0, 0),
        ]

        with pytest.raises(CollectorError):
            collect_buffer_pool(mock_connection, sink)

        assert len(sink) == 1


class TestCollectHitSga:
    """collect_hit_sga tests"""

    def test_hit_ratio(self, mock_connection: MagicMock, sink: SampleBuffer, grouped: Callable) -> None:
        mock_connection.cursor.return_value.fetchall.return_value = [(950, 1000)]

        collect_hit_sga(mock_connection, sink)

        assert grouped(sink)["oracledb_sga_hits"] == [((), 0.95)]

    def test_null_sums_fail(self, mock_connection: MagicMock, sink: SampleBuffer) -> None:
        """SUM over an empty library cache returns NULL"""
        mock_connection.cursor.return_value.fetchall.return_value = [(None, None)]

        with pytest.raises(CollectorError):
            collect_hit_sga(mock_connection, sink)

    def test_zero_pins_fail(self, mock_connection: MagicMock, sink: SampleBuffer) -> None:
        mock_connection.cursor.return_value.fetchall.return_value = [(0, 0)]

        with pytest.raises(CollectorError):
            collect_hit_sga(mock_connection, sink)


class TestCollectResponseTime:
    """collect_response_time tests"""

    def test_emits_gauge_per_ratio(self, mock_connection: MagicMock, sink: SampleBuffer, grouped: Callable) -> None:
        mock_connection.cursor.return_value.fetchall.return_value = [
            ("Database CPU Time Ratio", 87.5),
            ("Database Wait Time Ratio", 12.5),
        ]

        collect_response_time(mock_connection, sink)

        assert grouped(sink)["oracledb_response_time"] == [
            (("database_cpu_time_ratio",), 87.5),
            (("database_wait_time_ratio",), 12.5),
        ]
