#!/usr/bin/env python3
"""Oracle DB exporter entry point.

Usage:
    python -m oracledb_exporter
    python -m oracledb_exporter --web.listen-address :9161 --web.telemetry-path /metrics
"""

from __future__ import annotations

import sys

from oracledb_exporter.cli import main

if __name__ == "__main__":
    sys.exit(main())
