"""Category rollups derived from the ranked port list.

Totals are computed from whatever port list is passed in. The assembler
passes the already-limited port ranking, so a category total covers only
the top ports and can be lower than the category's share of all traffic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from ..core.models import CategoryPort, CategorySummary, PortCount
from ..utils.port_classifier import ServiceCategory, classify_port
from .ranking import top_n

DEFAULT_CATEGORY_PORT_LIMIT = 5


@dataclass
class _CategoryTotals:
    """Running totals for one category during accumulation."""

    count: int = 0
    ports: list[CategoryPort] = field(default_factory=list)


def build_categories(
    ports: Iterable[PortCount],
    port_limit: int = DEFAULT_CATEGORY_PORT_LIMIT,
) -> list[CategorySummary]:
    """Roll port counts up into ranked service categories.

    Works in two passes. The first classifies every port and accumulates
    each category's total and contributions. The second ranks categories
    by total and keeps each category's top ``port_limit`` ports. Ports
    dropped by that truncation still count toward the total.

    Args:
        ports: Port counts, normally the limited port ranking.
        port_limit: Number of ports kept per category.

    Returns:
        Category summaries, highest total first. Ties keep the order in
        which categories were first seen.
    """
    if port_limit <= 0:
        raise ValueError("port_limit must be positive")

    totals: dict[ServiceCategory, _CategoryTotals] = {}
    for entry in ports:
        category, service = classify_port(entry.port)
        bucket = totals.setdefault(category, _CategoryTotals())
        bucket.count += entry.count
        bucket.ports.append(CategoryPort(port=entry.port, service=service, count=entry.count))

    ranked = top_n(totals.items(), lambda item: item[1].count)
    return [
        CategorySummary(
            category=category,
            count=bucket.count,
            ports=tuple(top_n(bucket.ports, lambda p: p.count, port_limit)),
        )
        for category, bucket in ranked
    ]
