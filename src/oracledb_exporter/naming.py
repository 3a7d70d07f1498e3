"""Metric name helpers."""

from __future__ import annotations

NAMESPACE = "oracledb"
EXPORTER_SUBSYSTEM = "exporter"

# Applied in order; spaces become underscores, the rest is dropped.
_REPLACEMENTS = (
    (" ", "_"),
    ("(", ""),
    (")", ""),
    ("/", ""),
)


def build_fq_name(namespace: str, subsystem: str, name: str) -> str:
    """Join the non-empty parts of a metric name with underscores.

    >>> build_fq_name("oracledb", "", "up")
    'oracledb_up'
    """
    return "_".join(part for part in (namespace, subsystem, name) if part)


def clean_name(value: str) -> str:
    """Turn an Oracle-supplied name into something Prometheus accepts.

    Oracle gives us names like ``parse count (total)``; this lowercases them
    and strips the characters that are not valid in a metric name.
    """
    for old, new in _REPLACEMENTS:
        value = value.replace(old, new)
    return value.lower()
