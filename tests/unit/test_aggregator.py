"""Tests for per-dimension aggregators."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest

from trafficlens.analysis.aggregator import (
    DestinationAggregator,
    DNSDomainAggregator,
    PortAggregator,
    ProtocolAggregator,
    TalkerAggregator,
)
from trafficlens.core.errors import InvalidScopeError, StoreUnavailableError
from trafficlens.core.models import (
    DestinationStat,
    DNSDomainCount,
    PortCount,
    ProtocolCount,
    TalkerStat,
)
from trafficlens.store.frames import FrameStore


class TestAggregate:
    """Grouping and summing semantics, independent of the source."""

    def test_protocols_grouped_without_limit(self) -> None:
        rows = [{"protocol": f"P{i}", "count": i} for i in range(30)]
        rows.append({"protocol": "P0", "count": 100})

        result = ProtocolAggregator().aggregate(rows)

        assert len(result) == 30
        assert result[0] == ProtocolCount("P0", 100)

    def test_ports_grouped_by_port_and_protocol(self) -> None:
        rows = [
            {"port": 53, "protocol": "UDP", "count": 10},
            {"port": 53, "protocol": "TCP", "count": 4},
            {"port": 53, "protocol": "UDP", "count": 5},
        ]

        result = PortAggregator().aggregate(rows)

        assert result == [PortCount(53, "UDP", 15), PortCount(53, "TCP", 4)]

    def test_ports_limited_to_twenty(self) -> None:
        rows = [{"port": 1000 + i, "protocol": "TCP", "count": i} for i in range(30)]

        result = PortAggregator().aggregate(rows)

        assert len(result) == 20
        assert result[0].port == 1029
        assert result[-1].port == 1010

    def test_talkers_ranked_by_total_bytes(self) -> None:
        rows = [
            {"ip": "10.0.0.9", "bytes_sent": 500, "bytes_received": 500, "packets_sent": 5, "packets_received": 5},
            {"ip": "10.0.0.5", "bytes_sent": 1000, "bytes_received": 2000, "packets_sent": 10, "packets_received": 20},
        ]

        result = TalkerAggregator().aggregate(rows)

        assert [t.ip for t in result] == ["10.0.0.5", "10.0.0.9"]
        assert result[0].total_bytes == 3000
        assert result[1].total_bytes == 1000

    def test_talker_measures_summed_independently(self) -> None:
        rows = [
            {"ip": "a", "bytes_sent": 1, "bytes_received": 2, "packets_sent": 3, "packets_received": 4},
            {"ip": "a", "bytes_sent": 10, "bytes_received": 20, "packets_sent": 30, "packets_received": 40},
        ]

        assert TalkerAggregator().aggregate(rows) == [TalkerStat("a", 11, 22, 33, 44)]

    def test_domains_limited_to_fifty(self) -> None:
        rows = [{"domain": f"d{i}.example", "query_count": i} for i in range(60)]

        result = DNSDomainAggregator().aggregate(rows)

        assert len(result) == 50
        assert result[0] == DNSDomainCount("d59.example", 59)

    def test_talkers_limited_to_twenty(self) -> None:
        rows = [
            {
                "ip": f"10.0.1.{i}",
                "bytes_sent": i * 10,
                "bytes_received": i,
                "packets_sent": 1,
                "packets_received": 1,
            }
            for i in range(25)
        ]

        result = TalkerAggregator().aggregate(rows)

        assert len(result) == 20
        assert result[0] == TalkerStat("10.0.1.24", 240, 24, 1, 1)
        assert result[-1].ip == "10.0.1.5"

    def test_destinations_limited_to_twenty(self) -> None:
        rows = [
            {"address": f"192.0.2.{i}", "connection_count": 25 - i, "bytes_total": i * 100}
            for i in range(25)
        ]

        result = DestinationAggregator().aggregate(rows)

        assert len(result) == 20
        assert result[0] == DestinationStat("192.0.2.24", 1, 2400)
        assert result[-1].address == "192.0.2.5"

    def test_destinations_ranked_by_bytes(self) -> None:
        rows = [
            {"address": "1.1.1.1", "connection_count": 90, "bytes_total": 10},
            {"address": "8.8.8.8", "connection_count": 1, "bytes_total": 500},
            {"address": "1.1.1.1", "connection_count": 10, "bytes_total": 5},
        ]

        result = DestinationAggregator().aggregate(rows)

        assert result == [
            DestinationStat("8.8.8.8", 1, 500),
            DestinationStat("1.1.1.1", 100, 15),
        ]

    def test_ties_keep_first_seen_order(self) -> None:
        rows = [
            {"port": 9001, "protocol": "TCP", "count": 5},
            {"port": 9000, "protocol": "TCP", "count": 5},
        ]

        assert [p.port for p in PortAggregator().aggregate(rows)] == [9001, 9000]

    @pytest.mark.parametrize(
        "aggregator",
        [
            ProtocolAggregator(),
            PortAggregator(),
            TalkerAggregator(),
            DNSDomainAggregator(),
            DestinationAggregator(),
        ],
    )
    def test_empty_rows(self, aggregator: Any) -> None:
        assert aggregator.aggregate([]) == []

    def test_custom_limit(self) -> None:
        rows = [{"port": p, "protocol": "TCP", "count": 1} for p in range(10)]
        assert len(PortAggregator(limit=3).aggregate(rows)) == 3

    def test_invalid_limit(self) -> None:
        with pytest.raises(ValueError):
            PortAggregator(limit=0)


class TestFetch:
    """Reading through a row source."""

    def test_fetch_scoped(self, frame_store: FrameStore) -> None:
        result = PortAggregator().fetch(frame_store, 2)
        assert result == [PortCount(53, "UDP", 70), PortCount(443, "TCP", 25)]

    def test_fetch_all_captures(self, frame_store: FrameStore) -> None:
        result = PortAggregator().fetch(frame_store)
        assert result[0] == PortCount(80, "TCP", 100)
        assert PortCount(443, "TCP", 75) in result

    def test_fetch_accepts_string_scope(self, frame_store: FrameStore) -> None:
        assert TalkerAggregator().fetch(frame_store, "2") == [TalkerStat("10.0.0.9", 4000, 0, 40, 0)]

    def test_invalid_scope_rejected_before_read(self) -> None:
        source = MagicMock()

        with pytest.raises(InvalidScopeError):
            PortAggregator().fetch(source, "abc")

        source.port_rows.assert_not_called()

    def test_read_failure_wrapped(self) -> None:
        source = MagicMock()
        source.dns_rows.side_effect = ConnectionError("connection refused")

        with pytest.raises(StoreUnavailableError) as exc_info:
            DNSDomainAggregator().fetch(source, 1)

        assert isinstance(exc_info.value.__cause__, ConnectionError)

    def test_store_error_propagates_unchanged(self) -> None:
        source = MagicMock()
        error = StoreUnavailableError("down")
        source.protocol_rows.side_effect = error

        with pytest.raises(StoreUnavailableError) as exc_info:
            ProtocolAggregator().fetch(source)

        assert exc_info.value is error

    @pytest.mark.parametrize(
        "row",
        [
            {"port": 80, "protocol": "TCP", "count": -5},
            {"port": 70000, "protocol": "TCP", "count": 1},
            {"port": "http", "protocol": "TCP", "count": 1},
            {"protocol": "TCP", "count": 1},
        ],
    )
    def test_malformed_rows_become_store_unavailable(self, row: dict[str, Any]) -> None:
        source = MagicMock()
        source.port_rows.return_value = [row]

        with pytest.raises(StoreUnavailableError, match="Invalid ports rows") as exc_info:
            PortAggregator().fetch(source, 1)

        assert isinstance(exc_info.value.__cause__, (KeyError, ValueError))
