"""Data models for aggregated traffic observations and summaries."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from ..utils.port_classifier import ServiceCategory


def _count(row: Mapping[str, Any], key: str) -> int:
    """Read a non-negative integer measure from a row.

    Missing or NULL measures count as zero, matching a SQL SUM over no
    values.
    """
    value = row.get(key)
    if value is None:
        return 0
    number = int(value)
    if number < 0:
        raise ValueError(f"{key} must be non-negative, got {number}")
    return number


@dataclass(frozen=True)
class ProtocolCount:
    """Packet count for one protocol label."""

    protocol: str
    count: int

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> ProtocolCount:
        return cls(protocol=str(row["protocol"]), count=_count(row, "count"))

    def to_dict(self) -> dict[str, Any]:
        return {"protocol": self.protocol, "count": self.count}


@dataclass(frozen=True)
class PortCount:
    """Observation count for a (port, protocol) pair."""

    port: int
    protocol: str
    count: int

    def __post_init__(self) -> None:
        if not 0 <= self.port <= 65535:
            raise ValueError(f"port must be in 0-65535, got {self.port}")

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> PortCount:
        return cls(
            port=int(row["port"]),
            protocol=str(row["protocol"]),
            count=_count(row, "count"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"port": self.port, "protocol": self.protocol, "count": self.count}


@dataclass(frozen=True)
class TalkerStat:
    """Traffic totals for a single host."""

    ip: str
    bytes_sent: int = 0
    bytes_received: int = 0
    packets_sent: int = 0
    packets_received: int = 0

    @property
    def total_bytes(self) -> int:
        return self.bytes_sent + self.bytes_received

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> TalkerStat:
        return cls(
            ip=str(row["ip"]),
            bytes_sent=_count(row, "bytes_sent"),
            bytes_received=_count(row, "bytes_received"),
            packets_sent=_count(row, "packets_sent"),
            packets_received=_count(row, "packets_received"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "ip": self.ip,
            "bytes_sent": self.bytes_sent,
            "bytes_received": self.bytes_received,
            "packets_sent": self.packets_sent,
            "packets_received": self.packets_received,
        }


@dataclass(frozen=True)
class DNSDomainCount:
    """Query count for a DNS domain."""

    domain: str
    query_count: int

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> DNSDomainCount:
        return cls(domain=str(row["domain"]), query_count=_count(row, "query_count"))

    def to_dict(self) -> dict[str, Any]:
        return {"domain": self.domain, "query_count": self.query_count}


@dataclass(frozen=True)
class DestinationStat:
    """Connection and byte totals for an external destination."""

    address: str
    connection_count: int = 0
    bytes_total: int = 0

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> DestinationStat:
        return cls(
            address=str(row["address"]),
            connection_count=_count(row, "connection_count"),
            bytes_total=_count(row, "bytes_total"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "connection_count": self.connection_count,
            "bytes_total": self.bytes_total,
        }


@dataclass(frozen=True)
class CategoryPort:
    """A single port's contribution to a category."""

    port: int
    service: str
    count: int

    def to_dict(self) -> dict[str, Any]:
        return {"port": self.port, "service": self.service, "count": self.count}


@dataclass(frozen=True)
class CategorySummary:
    """Rolled-up count for a service category.

    Attributes:
        category: The service category.
        count: Sum of counts over every contributing port, including
            ports dropped from ``ports`` by truncation.
        ports: Top contributing ports, highest count first.
    """

    category: ServiceCategory
    count: int
    ports: tuple[CategoryPort, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "count": self.count,
            "ports": [port.to_dict() for port in self.ports],
        }


@dataclass(frozen=True)
class TrafficSummary:
    """Combined, ranked traffic summary for one capture scope."""

    protocols: tuple[ProtocolCount, ...] = ()
    ports: tuple[PortCount, ...] = ()
    talkers: tuple[TalkerStat, ...] = ()
    dns_domains: tuple[DNSDomainCount, ...] = ()
    destinations: tuple[DestinationStat, ...] = ()
    categories: tuple[CategorySummary, ...] = ()
    capture_id: int | None = field(default=None, compare=False)

    def is_empty(self) -> bool:
        """True when every section is empty."""
        return not any(
            (
                self.protocols,
                self.ports,
                self.talkers,
                self.dns_domains,
                self.destinations,
                self.categories,
            )
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON-serializable response shape."""
        return {
            "protocols": [p.to_dict() for p in self.protocols],
            "ports": [p.to_dict() for p in self.ports],
            "talkers": [t.to_dict() for t in self.talkers],
            "dnsDomains": [d.to_dict() for d in self.dns_domains],
            "destinations": [d.to_dict() for d in self.destinations],
            "categories": [c.to_dict() for c in self.categories],
        }
