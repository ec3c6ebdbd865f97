"""Per-dimension grouping, summing and ranking of aggregated rows.

Each aggregator reads the rows for one dimension from a row source,
groups them by the dimension key in first-seen order, sums the numeric
measures and finally ranks and truncates the result with ``top_n``.
The grouping is applied even if the source already grouped its rows,
so the result does not depend on how the source filters or groups.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Generic, Hashable, Iterable, Mapping, TypeVar

from ..core.errors import StoreUnavailableError, TrafficLensError
from ..core.models import (
    DestinationStat,
    DNSDomainCount,
    PortCount,
    ProtocolCount,
    TalkerStat,
)
from ..core.scope import CaptureScope, parse_capture_scope
from .ranking import top_n

if TYPE_CHECKING:
    from ..store.base import RowSource

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Aggregator(ABC, Generic[T]):
    """Base class for a single-dimension aggregation.

    Subclasses define how a row is parsed, which key it groups under,
    how two records with the same key merge and what they rank by.
    """

    #: Dimension name used in logs and metrics.
    dimension: str = ""

    def __init__(self, limit: int | None = None) -> None:
        """Initialize the aggregator.

        Args:
            limit: Maximum number of entries kept after ranking.
                None keeps every group.
        """
        if limit is not None and limit <= 0:
            raise ValueError("limit must be positive")
        self.limit = limit

    @abstractmethod
    def read(self, source: RowSource, capture_id: int | None) -> Iterable[Mapping[str, Any]]:
        """Read raw rows for this dimension from the source."""

    @abstractmethod
    def parse(self, row: Mapping[str, Any]) -> T:
        """Convert a raw row into a record."""

    @abstractmethod
    def group_key(self, record: T) -> Hashable:
        """Key that records are grouped under."""

    @abstractmethod
    def merge(self, total: T, record: T) -> T:
        """Add ``record``'s measures into ``total``."""

    @abstractmethod
    def rank_count(self, record: T) -> int:
        """Count used to rank grouped records."""

    def aggregate(self, rows: Iterable[Mapping[str, Any]]) -> list[T]:
        """Group, sum, rank and truncate raw rows.

        Args:
            rows: Raw rows for this dimension, already scoped.

        Returns:
            Ranked records, at most ``limit`` of them.
        """
        groups: dict[Hashable, T] = {}
        for row in rows:
            record = self.parse(row)
            key = self.group_key(record)
            current = groups.get(key)
            groups[key] = record if current is None else self.merge(current, record)

        return top_n(groups.values(), self.rank_count, self.limit)

    def fetch(self, source: RowSource, scope: CaptureScope | int | str | None = None) -> list[T]:
        """Read and aggregate this dimension for a capture scope.

        Args:
            source: Row source to read from.
            scope: Capture scope or raw capture identifier.

        Returns:
            Ranked records for the scope.

        Raises:
            InvalidScopeError: If the scope is not a valid capture id.
                Raised before the source is touched.
            StoreUnavailableError: If reading from the source fails or it
                returns rows that cannot be parsed.
        """
        scope = parse_capture_scope(scope)

        try:
            rows = list(self.read(source, scope.capture_id))
        except TrafficLensError:
            logger.error("Reading %s rows for %s failed", self.dimension, scope)
            raise
        except Exception as exc:
            logger.error("Reading %s rows for %s failed: %s", self.dimension, scope, exc)
            raise StoreUnavailableError(
                f"Failed to read {self.dimension} rows: {exc}",
                context=str(scope),
            ) from exc

        # Malformed stored rows are a store fault, not a caller error
        try:
            records = self.aggregate(rows)
        except (KeyError, TypeError, ValueError) as exc:
            logger.error("Invalid %s rows for %s: %s", self.dimension, scope, exc)
            raise StoreUnavailableError(
                f"Invalid {self.dimension} rows in store: {exc}",
                context=str(scope),
            ) from exc

        logger.debug(
            "Aggregated %d %s rows into %d entries for %s",
            len(rows),
            self.dimension,
            len(records),
            scope,
        )
        return records


class ProtocolAggregator(Aggregator[ProtocolCount]):
    """Sums packet counts per protocol label. Unlimited by default."""

    dimension = "protocols"

    def read(self, source: RowSource, capture_id: int | None) -> Iterable[Mapping[str, Any]]:
        return source.protocol_rows(capture_id)

    def parse(self, row: Mapping[str, Any]) -> ProtocolCount:
        return ProtocolCount.from_row(row)

    def group_key(self, record: ProtocolCount) -> Hashable:
        return record.protocol

    def merge(self, total: ProtocolCount, record: ProtocolCount) -> ProtocolCount:
        return ProtocolCount(protocol=total.protocol, count=total.count + record.count)

    def rank_count(self, record: ProtocolCount) -> int:
        return record.count


class PortAggregator(Aggregator[PortCount]):
    """Sums counts per (port, protocol) pair."""

    dimension = "ports"

    def __init__(self, limit: int | None = 20) -> None:
        super().__init__(limit)

    def read(self, source: RowSource, capture_id: int | None) -> Iterable[Mapping[str, Any]]:
        return source.port_rows(capture_id)

    def parse(self, row: Mapping[str, Any]) -> PortCount:
        return PortCount.from_row(row)

    def group_key(self, record: PortCount) -> Hashable:
        return (record.port, record.protocol)

    def merge(self, total: PortCount, record: PortCount) -> PortCount:
        return PortCount(
            port=total.port,
            protocol=total.protocol,
            count=total.count + record.count,
        )

    def rank_count(self, record: PortCount) -> int:
        return record.count


class TalkerAggregator(Aggregator[TalkerStat]):
    """Sums byte and packet totals per host, ranked by total bytes."""

    dimension = "talkers"

    def __init__(self, limit: int | None = 20) -> None:
        super().__init__(limit)

    def read(self, source: RowSource, capture_id: int | None) -> Iterable[Mapping[str, Any]]:
        return source.talker_rows(capture_id)

    def parse(self, row: Mapping[str, Any]) -> TalkerStat:
        return TalkerStat.from_row(row)

    def group_key(self, record: TalkerStat) -> Hashable:
        return record.ip

    def merge(self, total: TalkerStat, record: TalkerStat) -> TalkerStat:
        return TalkerStat(
            ip=total.ip,
            bytes_sent=total.bytes_sent + record.bytes_sent,
            bytes_received=total.bytes_received + record.bytes_received,
            packets_sent=total.packets_sent + record.packets_sent,
            packets_received=total.packets_received + record.packets_received,
        )

    def rank_count(self, record: TalkerStat) -> int:
        return record.total_bytes


class DNSDomainAggregator(Aggregator[DNSDomainCount]):
    """Sums query counts per domain."""

    dimension = "dns_domains"

    def __init__(self, limit: int | None = 50) -> None:
        super().__init__(limit)

    def read(self, source: RowSource, capture_id: int | None) -> Iterable[Mapping[str, Any]]:
        return source.dns_rows(capture_id)

    def parse(self, row: Mapping[str, Any]) -> DNSDomainCount:
        return DNSDomainCount.from_row(row)

    def group_key(self, record: DNSDomainCount) -> Hashable:
        return record.domain

    def merge(self, total: DNSDomainCount, record: DNSDomainCount) -> DNSDomainCount:
        return DNSDomainCount(
            domain=total.domain,
            query_count=total.query_count + record.query_count,
        )

    def rank_count(self, record: DNSDomainCount) -> int:
        return record.query_count


class DestinationAggregator(Aggregator[DestinationStat]):
    """Sums connections and bytes per destination, ranked by bytes."""

    dimension = "destinations"

    def __init__(self, limit: int | None = 20) -> None:
        super().__init__(limit)

    def read(self, source: RowSource, capture_id: int | None) -> Iterable[Mapping[str, Any]]:
        return source.destination_rows(capture_id)

    def parse(self, row: Mapping[str, Any]) -> DestinationStat:
        return DestinationStat.from_row(row)

    def group_key(self, record: DestinationStat) -> Hashable:
        return record.address

    def merge(self, total: DestinationStat, record: DestinationStat) -> DestinationStat:
        return DestinationStat(
            address=total.address,
            connection_count=total.connection_count + record.connection_count,
            bytes_total=total.bytes_total + record.bytes_total,
        )

    def rank_count(self, record: DestinationStat) -> int:
        return record.bytes_total
