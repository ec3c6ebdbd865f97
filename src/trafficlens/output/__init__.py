"""Export handlers for traffic summaries."""

from __future__ import annotations

from .formats import SECTIONS, section_rows, to_csv, to_dataframe, to_json

__all__ = [
    "SECTIONS",
    "section_rows",
    "to_csv",
    "to_dataframe",
    "to_json",
]
