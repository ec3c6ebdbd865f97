"""Assembly of the combined traffic summary."""

from __future__ import annotations

import logging
import time
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import TYPE_CHECKING, Any

from ..core.config import Config
from ..core.errors import TrafficLensError
from ..core.models import TrafficSummary
from ..core.scope import CaptureScope, parse_capture_scope
from .aggregator import (
    Aggregator,
    DestinationAggregator,
    DNSDomainAggregator,
    PortAggregator,
    ProtocolAggregator,
    TalkerAggregator,
)
from .categories import build_categories

if TYPE_CHECKING:
    from ..monitoring.base import MetricsSink
    from ..store.base import RowSource

logger = logging.getLogger(__name__)


class SummaryAssembler:
    """Builds a TrafficSummary from a row source.

    The five dimensions are independent and can be read sequentially or
    concurrently; both give identical results. Categories are built from
    the limited port ranking once it is available. Any failure fails the
    whole assembly and no partial summary is returned.

    Example:
        >>> assembler = SummaryAssembler(DatabaseStore("traffic.db"))
        >>> summary = assembler.assemble(capture_id=3)
        >>> summary.categories[0].category
        <ServiceCategory.WEB: 'Web'>
    """

    def __init__(
        self,
        source: RowSource,
        config: Config | None = None,
        metrics: MetricsSink | None = None,
    ) -> None:
        """Initialize the assembler.

        Args:
            source: Row source serving the five dimensions.
            config: Limits and concurrency options. Uses defaults if None.
            metrics: Optional metrics sink for monitoring.
        """
        self.source = source
        self.config = config or Config()
        self.metrics = metrics
        self.aggregators: dict[str, Aggregator[Any]] = {
            "protocols": ProtocolAggregator(),
            "ports": PortAggregator(self.config.port_limit),
            "talkers": TalkerAggregator(self.config.talker_limit),
            "dns_domains": DNSDomainAggregator(self.config.domain_limit),
            "destinations": DestinationAggregator(self.config.destination_limit),
        }

    def assemble(self, capture_id: CaptureScope | int | str | None = None) -> TrafficSummary:
        """Assemble the summary for a capture.

        Args:
            capture_id: Capture scope or raw capture identifier. None
                spans all captures.

        Returns:
            The combined summary.

        Raises:
            InvalidScopeError: If the capture id is invalid. No rows are
                read in that case.
            StoreUnavailableError: If any dimension read fails.
        """
        scope = parse_capture_scope(capture_id)
        start = time.perf_counter()

        if self.config.parallel:
            results = self._fetch_parallel(scope)
        else:
            results = self._fetch_sequential(scope)

        categories = build_categories(
            results["ports"],
            port_limit=self.config.category_port_limit,
        )

        summary = TrafficSummary(
            protocols=tuple(results["protocols"]),
            ports=tuple(results["ports"]),
            talkers=tuple(results["talkers"]),
            dns_domains=tuple(results["dns_domains"]),
            destinations=tuple(results["destinations"]),
            categories=tuple(categories),
            capture_id=scope.capture_id,
        )

        elapsed = time.perf_counter() - start
        if self.metrics:
            self.metrics.observe_assembly_time(elapsed)
        logger.info(
            "Assembled traffic summary for %s in %.3fs (%d ports, %d categories)",
            scope,
            elapsed,
            len(summary.ports),
            len(summary.categories),
        )
        return summary

    def _fetch_one(self, name: str, scope: CaptureScope) -> list[Any]:
        try:
            records = self.aggregators[name].fetch(self.source, scope)
        except TrafficLensError as exc:
            if self.metrics:
                self.metrics.observe_error(name, exc)
            raise
        if self.metrics:
            self.metrics.observe_rows(name, len(records))
        return records

    def _fetch_sequential(self, scope: CaptureScope) -> dict[str, list[Any]]:
        return {name: self._fetch_one(name, scope) for name in self.aggregators}

    def _fetch_parallel(self, scope: CaptureScope) -> dict[str, list[Any]]:
        with ThreadPoolExecutor(
            max_workers=self.config.max_workers,
            thread_name_prefix="trafficlens",
        ) as executor:
            futures: dict[str, Future[list[Any]]] = {
                name: executor.submit(self._fetch_one, name, scope)
                for name in self.aggregators
            }
            done, pending = wait(futures.values(), return_when=FIRST_EXCEPTION)
            for future in pending:
                future.cancel()
            # Report the first failure in dimension order
            for future in futures.values():
                if future in done and future.exception() is not None:
                    raise future.exception()  # type: ignore[misc]
            return {name: future.result() for name, future in futures.items()}


def summarize(
    source: RowSource,
    capture_id: CaptureScope | int | str | None = None,
    config: Config | None = None,
) -> TrafficSummary:
    """Assemble a traffic summary in one call.

    Args:
        source: Row source serving the five dimensions.
        capture_id: Capture scope or raw capture identifier.
        config: Optional configuration.

    Returns:
        The combined summary.
    """
    return SummaryAssembler(source, config=config).assemble(capture_id)
