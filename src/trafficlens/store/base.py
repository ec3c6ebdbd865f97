"""Row source interface consumed by the aggregators."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Protocol, runtime_checkable

Row = Mapping[str, Any]

#: Dimension names and the measure columns each one carries.
DIMENSIONS: dict[str, tuple[str, ...]] = {
    "protocols": ("protocol", "count"),
    "ports": ("port", "protocol", "count"),
    "talkers": ("ip", "bytes_sent", "bytes_received", "packets_sent", "packets_received"),
    "dns_domains": ("domain", "query_count"),
    "destinations": ("address", "connection_count", "bytes_total"),
}


@runtime_checkable
class RowSource(Protocol):
    """Protocol for stores that serve aggregated rows per capture.

    Each read returns the rows of one dimension. When ``capture_id`` is
    given, only rows recorded for that capture are returned; None means
    rows from every capture. Failures should surface as
    ``StoreUnavailableError``.
    """

    def protocol_rows(self, capture_id: int | None = None) -> Iterable[Row]:
        """Rows with ``protocol`` and ``count``."""

    def port_rows(self, capture_id: int | None = None) -> Iterable[Row]:
        """Rows with ``port``, ``protocol`` and ``count``."""

    def talker_rows(self, capture_id: int | None = None) -> Iterable[Row]:
        """Rows with ``ip`` and byte/packet totals in both directions."""

    def dns_rows(self, capture_id: int | None = None) -> Iterable[Row]:
        """Rows with ``domain`` and ``query_count``."""

    def destination_rows(self, capture_id: int | None = None) -> Iterable[Row]:
        """Rows with ``address``, ``connection_count`` and ``bytes_total``."""
