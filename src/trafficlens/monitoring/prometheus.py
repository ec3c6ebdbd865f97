"""Prometheus metrics for summary assembly."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from prometheus_client import CollectorRegistry

from .base import MetricsSink


class PrometheusMetrics(MetricsSink):
    """Prometheus-backed metrics sink."""

    def __init__(
        self,
        namespace: str = "trafficlens",
        registry: "CollectorRegistry | None" = None,
    ) -> None:
        """Initialize Prometheus metrics.

        Args:
            namespace: Metric namespace prefix.
            registry: Optional CollectorRegistry for isolated metrics.
        """
        try:
            from prometheus_client import CollectorRegistry, Counter, Histogram
        except ImportError as exc:
            raise ImportError(
                "Prometheus metrics require prometheus-client. "
                "Install with: pip install prometheus-client"
            ) from exc

        self.registry = registry or CollectorRegistry()

        self.summaries_total = Counter(
            "summaries_total",
            "Total traffic summaries assembled",
            namespace=namespace,
            registry=self.registry,
        )
        self.entries_total = Counter(
            "entries_total",
            "Ranked entries produced by dimension",
            ["dimension"],
            namespace=namespace,
            registry=self.registry,
        )
        self.errors_total = Counter(
            "errors_total",
            "Total errors by stage",
            ["stage"],
            namespace=namespace,
            registry=self.registry,
        )
        self.assembly_seconds = Histogram(
            "assembly_duration_seconds",
            "Summary assembly duration in seconds",
            namespace=namespace,
            registry=self.registry,
        )

    def observe_rows(self, dimension: str, count: int) -> None:
        self.entries_total.labels(dimension=dimension).inc(count)

    def observe_assembly_time(self, seconds: float) -> None:
        self.summaries_total.inc()
        self.assembly_seconds.observe(seconds)

    def observe_error(self, stage: str, error: Exception | None = None) -> None:
        self.errors_total.labels(stage=stage).inc()


def start_prometheus_server(
    port: int,
    addr: str = "0.0.0.0",
    registry: "CollectorRegistry | None" = None,
) -> None:
    """Start a Prometheus HTTP metrics server."""
    try:
        from prometheus_client import start_http_server
    except ImportError as exc:
        raise ImportError(
            "Prometheus metrics require prometheus-client. "
            "Install with: pip install prometheus-client"
        ) from exc

    if registry is None:
        start_http_server(port, addr=addr)
    else:
        start_http_server(port, addr=addr, registry=registry)
