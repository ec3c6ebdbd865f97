"""Export handlers for traffic summaries."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from ..core.models import TrafficSummary

#: Section names accepted by the tabular exporters, as they appear in JSON.
SECTIONS = ("protocols", "ports", "talkers", "dnsDomains", "destinations", "categories")


def _json_default(value: Any) -> Any:
    if isinstance(value, np.generic):
        return value.item()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_json(
    summary: TrafficSummary,
    path: str | Path | None = None,
    indent: int | None = 2,
) -> str:
    """Serialize a summary to JSON.

    Args:
        summary: Summary to serialize.
        path: Optional output file. The JSON text is returned either way.
        indent: JSON indentation, None for compact output.

    Returns:
        The JSON text.
    """
    text = json.dumps(summary.to_dict(), indent=indent, default=_json_default)
    if path is not None:
        Path(path).write_text(text + "\n", encoding="utf-8")
    return text


def section_rows(summary: TrafficSummary, section: str) -> list[dict[str, Any]]:
    """Flat rows for one summary section.

    Categories are flattened to one row per displayed port, carrying the
    category name and total alongside the port's own count. A category
    with no displayed ports still yields one row.

    Args:
        summary: Summary to read from.
        section: One of ``SECTIONS``.

    Returns:
        List of row dictionaries.
    """
    if section not in SECTIONS:
        raise ValueError(f"Unknown section: {section}. Use one of: {', '.join(SECTIONS)}")

    data = summary.to_dict()
    if section != "categories":
        return data[section]

    rows: list[dict[str, Any]] = []
    for category in data["categories"]:
        if not category["ports"]:
            rows.append(
                {
                    "category": category["category"],
                    "category_count": category["count"],
                    "port": None,
                    "service": None,
                    "count": None,
                }
            )
        for port in category["ports"]:
            rows.append(
                {
                    "category": category["category"],
                    "category_count": category["count"],
                    "port": port["port"],
                    "service": port["service"],
                    "count": port["count"],
                }
            )
    return rows


def to_dataframe(summary: TrafficSummary, section: str) -> pd.DataFrame:
    """Convert one summary section to a pandas DataFrame.

    Args:
        summary: Summary to convert.
        section: One of ``SECTIONS``.

    Returns:
        DataFrame with one row per entry, in ranked order.
    """
    rows = section_rows(summary, section)
    if not rows:
        return pd.DataFrame()
    return pd.DataFrame(rows)


def to_csv(summary: TrafficSummary, section: str, path: str | Path) -> None:
    """Write one summary section to a CSV file.

    Args:
        summary: Summary to export.
        section: One of ``SECTIONS``.
        path: Output file path.
    """
    df = to_dataframe(summary, section)
    df.to_csv(Path(path), index=False)
