"""Aggregation, ranking and category rollups."""

from __future__ import annotations

from .aggregator import (
    Aggregator,
    DestinationAggregator,
    DNSDomainAggregator,
    PortAggregator,
    ProtocolAggregator,
    TalkerAggregator,
)
from .categories import build_categories
from .ranking import top_n
from .summary import SummaryAssembler, summarize

__all__ = [
    "Aggregator",
    "DestinationAggregator",
    "DNSDomainAggregator",
    "PortAggregator",
    "ProtocolAggregator",
    "SummaryAssembler",
    "TalkerAggregator",
    "build_categories",
    "summarize",
    "top_n",
]
