"""Row sources for aggregated capture observations."""

from __future__ import annotations

from .base import DIMENSIONS, Row, RowSource
from .database import DatabaseInfo, DatabaseStore, detect_database_backend
from .frames import FrameStore

__all__ = [
    "DIMENSIONS",
    "DatabaseInfo",
    "DatabaseStore",
    "FrameStore",
    "Row",
    "RowSource",
    "detect_database_backend",
]
