"""Metrics sink interfaces."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsSink(Protocol):
    """Protocol for metrics sinks used by the summary assembler."""

    def observe_rows(self, dimension: str, count: int) -> None:
        """Record the number of ranked entries produced for a dimension."""

    def observe_assembly_time(self, seconds: float) -> None:
        """Record how long a summary assembly took."""

    def observe_error(self, stage: str, error: Exception | None = None) -> None:
        """Record an error from an assembly stage."""
