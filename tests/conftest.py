"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock

import pytest

from oracledb_exporter.models import SampleBuffer

Responses = dict[str, Any]


def _connection_for(responses: Responses) -> MagicMock:
    """Mock connection whose cursors answer by matching a query substring.

    Queries without a matching key return no rows. A value that is an
    exception is raised from ``execute``.
    """
    connection = MagicMock()

    def new_cursor() -> MagicMock:
        cursor = MagicMock()

        def execute(query: str) -> None:
            for key, result in responses.items():
                if key in query:
                    if isinstance(result, Exception):
                        raise result
                    cursor.fetchall.return_value = list(result)
                    return
            cursor.fetchall.return_value = []

        cursor.execute.side_effect = execute
        return cursor

    connection.cursor.side_effect = new_cursor
    return connection


@pytest.fixture
def make_connection() -> Callable[[Responses], MagicMock]:
    """Factory for mock Oracle connections."""
    return _connection_for


@pytest.fixture
def mock_connection() -> MagicMock:
    """Mock connection whose single cursor returns no rows."""
    connection = MagicMock()
    connection.cursor.return_value.fetchall.return_value = []
    return connection


@pytest.fixture
def sink() -> SampleBuffer:
    return SampleBuffer()


def values_by_name(buffer: SampleBuffer) -> dict[str, list[tuple[tuple[str, ...], float]]]:
    """Group buffered samples by family name as (label values, value) pairs."""
    grouped: dict[str, list[tuple[tuple[str, ...], float]]] = {}
    for sample in buffer:
        grouped.setdefault(sample.name, []).append((sample.label_values, sample.value))
    return grouped


@pytest.fixture
def grouped() -> Callable[[SampleBuffer], dict]:
    return values_by_name
