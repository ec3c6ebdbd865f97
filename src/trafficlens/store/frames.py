"""In-memory row source over pandas DataFrames."""

from __future__ import annotations

from typing import Any, Mapping

import numpy as np
import pandas as pd

from .base import DIMENSIONS, Row


def _native(value: Any) -> Any:
    """Convert numpy scalars and NaN to plain Python values."""
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and np.isnan(value):
        return None
    return value


class FrameStore:
    """Serve dimension rows from pandas DataFrames.

    Each frame holds the rows of one dimension, optionally with a
    ``capture_id`` column. Frames without that column have no capture
    attribution, so they only contribute to reads that span all captures.
    Missing dimensions read as empty.

    Example:
        >>> ports = pd.DataFrame({"port": [80], "protocol": ["TCP"], "count": [12]})
        >>> store = FrameStore({"ports": ports})
        >>> store.port_rows()
        [{'port': 80, 'protocol': 'TCP', 'count': 12}]
    """

    def __init__(self, frames: Mapping[str, pd.DataFrame] | None = None) -> None:
        """Initialize the store.

        Args:
            frames: DataFrames keyed by dimension name.
        """
        frames = dict(frames or {})
        unknown = set(frames) - set(DIMENSIONS)
        if unknown:
            raise ValueError(f"Unknown dimensions: {', '.join(sorted(unknown))}")
        self._frames = frames

    @classmethod
    def from_records(cls, records: Mapping[str, list[dict[str, Any]]]) -> FrameStore:
        """Build a store from lists of row dictionaries keyed by dimension."""
        return cls({name: pd.DataFrame(rows) for name, rows in records.items()})

    def rows(self, dimension: str, capture_id: int | None = None) -> list[Row]:
        """Rows for one dimension in frame order.

        Args:
            dimension: Dimension name.
            capture_id: Capture to filter on, or None for all captures.

        Returns:
            Row mappings restricted to the dimension's columns.
        """
        if dimension not in DIMENSIONS:
            raise ValueError(f"Unknown dimension: {dimension}")

        df = self._frames.get(dimension)
        if df is None or df.empty:
            return []

        if capture_id is not None:
            if "capture_id" not in df.columns:
                return []
            df = df[df["capture_id"] == capture_id]

        df = df.reindex(columns=list(DIMENSIONS[dimension]))
        return [
            {col: _native(value) for col, value in zip(df.columns, values)}
            for values in df.itertuples(index=False, name=None)
        ]

    def protocol_rows(self, capture_id: int | None = None) -> list[Row]:
        return self.rows("protocols", capture_id)

    def port_rows(self, capture_id: int | None = None) -> list[Row]:
        return self.rows("ports", capture_id)

    def talker_rows(self, capture_id: int | None = None) -> list[Row]:
        return self.rows("talkers", capture_id)

    def dns_rows(self, capture_id: int | None = None) -> list[Row]:
        return self.rows("dns_domains", capture_id)

    def destination_rows(self, capture_id: int | None = None) -> list[Row]:
        return self.rows("destinations", capture_id)
