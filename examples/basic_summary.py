#!/usr/bin/env python3
"""Basic traffic summary from a SQLite database.

This example demonstrates summarizing aggregated capture observations
with TrafficLens, both for a single capture and across all captures.

Usage:
    python basic_summary.py traffic.db [capture_id]
"""

from __future__ import annotations

import sys

import trafficlens as tl
from trafficlens.output import to_dataframe


def main() -> None:
    """Print the ranked summary for a capture."""
    if len(sys.argv) < 2:
        print("Usage: python basic_summary.py <database> [capture_id]")
        sys.exit(1)

    database = sys.argv[1]
    capture_id = sys.argv[2] if len(sys.argv) > 2 else None

    try:
        with tl.DatabaseStore(database) as store:
            summary = tl.summarize(store, capture_id=capture_id)
    except tl.TrafficLensError as exc:
        print(f"Failed to summarize: {exc}")
        sys.exit(1)

    if summary.is_empty():
        print("No traffic recorded for this capture")
        return

    print("Traffic categories")
    print("-" * 40)
    for category in summary.categories:
        services = ", ".join(p.service for p in category.ports)
        print(f"  {category.category.value:<14} {category.count:>10,}  {services}")
    print()

    print("Top talkers")
    print("-" * 40)
    print(to_dataframe(summary, "talkers").head(5).to_string(index=False))


if __name__ == "__main__":
    main()
