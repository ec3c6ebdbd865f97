"""Pytest fixtures and configuration for TrafficLens tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Generator

import pytest

from trafficlens.store.database import DatabaseStore
from trafficlens.store.frames import FrameStore


@pytest.fixture
def sample_records() -> dict[str, list[dict[str, Any]]]:
    """Aggregated rows for two captures across every dimension."""
    return {
        "protocols": [
            {"capture_id": 1, "protocol": "TCP", "count": 900},
            {"capture_id": 1, "protocol": "UDP", "count": 300},
            {"capture_id": 2, "protocol": "TCP", "count": 100},
            {"capture_id": 2, "protocol": "ICMP", "count": 20},
        ],
        "ports": [
            {"capture_id": 1, "port": 80, "protocol": "TCP", "count": 100},
            {"capture_id": 1, "port": 443, "protocol": "TCP", "count": 50},
            {"capture_id": 1, "port": 22, "protocol": "TCP", "count": 30},
            {"capture_id": 2, "port": 53, "protocol": "UDP", "count": 70},
            {"capture_id": 2, "port": 443, "protocol": "TCP", "count": 25},
        ],
        "talkers": [
            {
                "capture_id": 1,
                "ip": "10.0.0.5",
                "bytes_sent": 1000,
                "bytes_received": 2000,
                "packets_sent": 10,
                "packets_received": 20,
            },
            {
                "capture_id": 1,
                "ip": "10.0.0.9",
                "bytes_sent": 500,
                "bytes_received": 500,
                "packets_sent": 5,
                "packets_received": 5,
            },
            {
                "capture_id": 2,
                "ip": "10.0.0.9",
                "bytes_sent": 4000,
                "bytes_received": 0,
                "packets_sent": 40,
                "packets_received": 0,
            },
        ],
        "dns_domains": [
            {"capture_id": 1, "domain": "example.com", "query_count": 12},
            {"capture_id": 1, "domain": "updates.vendor.net", "query_count": 40},
            {"capture_id": 2, "domain": "example.com", "query_count": 3},
        ],
        "destinations": [
            {"capture_id": 1, "address": "93.184.216.34", "connection_count": 4, "bytes_total": 8000},
            {"capture_id": 1, "address": "1.1.1.1", "connection_count": 30, "bytes_total": 1200},
            {"capture_id": 2, "address": "93.184.216.34", "connection_count": 1, "bytes_total": 100},
        ],
    }


@pytest.fixture
def frame_store(sample_records: dict[str, list[dict[str, Any]]]) -> FrameStore:
    """FrameStore over the sample records."""
    return FrameStore.from_records(sample_records)


@pytest.fixture
def db_path(tmp_path: Path, sample_records: dict[str, list[dict[str, Any]]]) -> Path:
    """SQLite database file loaded with the sample records."""
    path = tmp_path / "traffic.db"
    with DatabaseStore(str(path)) as store:
        store.create_schema()
        for dimension, rows in sample_records.items():
            for row in rows:
                store.insert_rows(dimension, [row], row["capture_id"])
    return path


@pytest.fixture
def db_store(db_path: Path) -> Generator[DatabaseStore, None, None]:
    """Open DatabaseStore over the sample database."""
    store = DatabaseStore(str(db_path))
    yield store
    store.close()
