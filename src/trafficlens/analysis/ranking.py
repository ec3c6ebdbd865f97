"""Top-N selection shared by every ranked list."""

from __future__ import annotations

from typing import Callable, Iterable, TypeVar

T = TypeVar("T")


def top_n(items: Iterable[T], count: Callable[[T], int], n: int | None = None) -> list[T]:
    """Return the items with the highest counts, highest first.

    The sort is stable, so items with equal counts keep their input
    order. Applying it twice gives the same result as applying it once.

    Args:
        items: Items to rank.
        count: Extracts the ranking count from an item.
        n: Maximum number of items to return. None keeps everything.

    Returns:
        At most ``n`` items ordered by descending count.
    """
    if n is not None and n < 0:
        raise ValueError("n must be non-negative")

    # sorted() keeps equal keys in input order even with reverse=True
    ranked = sorted(items, key=count, reverse=True)
    if n is None:
        return ranked
    return ranked[:n]
