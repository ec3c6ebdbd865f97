"""Tests for the SQL row source."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from trafficlens.analysis.summary import SummaryAssembler
from trafficlens.core.config import Config
from trafficlens.core.errors import StoreUnavailableError
from trafficlens.store.base import RowSource
from trafficlens.store.database import DatabaseStore, detect_database_backend
from trafficlens.store.frames import FrameStore


class TestDetectBackend:
    """Tests for DSN detection."""

    def test_plain_path_is_sqlite(self) -> None:
        info = detect_database_backend("traffic.db")
        assert info.backend == "sqlite"
        assert info.dsn == "traffic.db"

    def test_sqlite_url(self) -> None:
        assert detect_database_backend("sqlite:///tmp/traffic.db").dsn == "/tmp/traffic.db"
        assert detect_database_backend("sqlite://").dsn == ":memory:"

    def test_postgres_url(self) -> None:
        info = detect_database_backend("postgresql://user@localhost/traffic")
        assert info.backend == "postgres"

    def test_unsupported_scheme(self) -> None:
        with pytest.raises(ValueError):
            detect_database_backend("mysql://localhost/traffic")


class TestDatabaseStore:
    """Tests for DatabaseStore reads and writes."""

    def test_is_row_source(self, db_store: DatabaseStore) -> None:
        assert isinstance(db_store, RowSource)

    def test_grouped_sums_for_capture(self, db_store: DatabaseStore) -> None:
        assert db_store.port_rows(1) == [
            {"port": 80, "protocol": "TCP", "count": 100},
            {"port": 443, "protocol": "TCP", "count": 50},
            {"port": 22, "protocol": "TCP", "count": 30},
        ]

    def test_grouped_sums_across_captures(self, db_store: DatabaseStore) -> None:
        rows = {row["ip"]: row for row in db_store.talker_rows()}
        assert rows["10.0.0.9"]["bytes_sent"] == 4500
        assert rows["10.0.0.9"]["packets_received"] == 5

    def test_groups_in_first_inserted_order(self, db_store: DatabaseStore) -> None:
        assert [row["domain"] for row in db_store.dns_rows()] == [
            "example.com",
            "updates.vendor.net",
        ]

    def test_unknown_capture_reads_empty(self, db_store: DatabaseStore) -> None:
        assert db_store.destination_rows(42) == []

    def test_insert_defaults_missing_measures(self, tmp_path: Path) -> None:
        with DatabaseStore(str(tmp_path / "t.db")) as store:
            store.create_schema()
            store.insert_rows("destinations", [{"address": "8.8.8.8", "bytes_total": 9}], 5)
            assert store.destination_rows(5) == [
                {"address": "8.8.8.8", "connection_count": 0, "bytes_total": 9}
            ]

    def test_insert_requires_key_columns(self, tmp_path: Path) -> None:
        with DatabaseStore(str(tmp_path / "t.db")) as store:
            store.create_schema()
            with pytest.raises(KeyError):
                store.insert_rows("ports", [{"protocol": "TCP", "count": 1}], 1)

    def test_insert_empty(self, tmp_path: Path) -> None:
        with DatabaseStore(str(tmp_path / "t.db")) as store:
            store.create_schema()
            assert store.insert_rows("protocols", [], 1) == 0

    def test_unknown_dimension(self, db_store: DatabaseStore) -> None:
        with pytest.raises(ValueError):
            db_store.grouped_rows("packets")
        with pytest.raises(ValueError):
            db_store.insert_rows("packets", [{}])

    def test_missing_tables_raise_store_unavailable(self, tmp_path: Path) -> None:
        with DatabaseStore(str(tmp_path / "empty.db")) as store:
            with pytest.raises(StoreUnavailableError) as exc_info:
                store.protocol_rows()
        assert isinstance(exc_info.value.__cause__, sqlite3.Error)

    def test_read_only_missing_file_not_created(self, tmp_path: Path) -> None:
        path = tmp_path / "typo.db"

        with pytest.raises(StoreUnavailableError, match="Cannot open SQLite database"):
            DatabaseStore(str(path), read_only=True)

        assert not path.exists()

    def test_read_only_store_reads(self, db_path: Path) -> None:
        with DatabaseStore(str(db_path), read_only=True) as store:
            assert list(store.protocol_rows(2)) == [
                {"protocol": "TCP", "count": 100},
                {"protocol": "ICMP", "count": 20},
            ]

    def test_read_only_store_rejects_writes(self, db_path: Path) -> None:
        with DatabaseStore(str(db_path), read_only=True) as store:
            with pytest.raises(StoreUnavailableError):
                store.insert_rows("protocols", [{"protocol": "UDP", "count": 1}], 3)

    def test_in_memory_database(self) -> None:
        with DatabaseStore(":memory:") as store:
            store.create_schema()
            store.insert_rows("protocols", [{"protocol": "UDP", "count": 4}], 1)
            store.insert_rows("protocols", [{"protocol": "UDP", "count": 6}], 2)
            assert store.protocol_rows() == [{"protocol": "UDP", "count": 10}]

    def test_matches_frame_store(
        self,
        db_store: DatabaseStore,
        frame_store: FrameStore,
    ) -> None:
        for capture_id in (None, 1, 2):
            from_db = SummaryAssembler(db_store).assemble(capture_id)
            from_frames = SummaryAssembler(frame_store).assemble(capture_id)
            assert from_db == from_frames

    def test_parallel_reads_share_connection(self, db_store: DatabaseStore) -> None:
        sequential = SummaryAssembler(db_store).assemble(1)
        parallel = SummaryAssembler(db_store, Config(parallel=True)).assemble(1)
        assert parallel == sequential
