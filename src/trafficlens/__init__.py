"""TrafficLens - ranked, categorized network traffic summaries.

TrafficLens turns pre-aggregated capture observations (protocol counts,
port counts, per-host totals, DNS query counts and destination stats)
into ranked summaries, and rolls port counts up into service categories.

Example:
    >>> import trafficlens as tl
    >>> with tl.DatabaseStore("traffic.db") as store:
    ...     summary = tl.summarize(store, capture_id=3)
    >>> summary.categories[0].category.value
    'Web'

Classifying a single port:
    >>> tl.classify_port(5432)
    PortClassification(category=<ServiceCategory.DATABASE: 'Database'>, service='PostgreSQL')
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as _pkg_version


def _resolve_version() -> str:
    """Resolve the installed package version."""
    try:
        return _pkg_version("trafficlens")
    except PackageNotFoundError:
        # Source checkout without an installed distribution.
        return "0.0.0"


__version__ = _resolve_version()

from .analysis.summary import SummaryAssembler, summarize
from .core.config import Config
from .core.errors import InvalidScopeError, StoreUnavailableError, TrafficLensError
from .core.models import CategorySummary, TrafficSummary
from .core.scope import CaptureScope, parse_capture_scope
from .store.database import DatabaseStore
from .store.frames import FrameStore
from .utils.port_classifier import ServiceCategory, classify_port

from . import analysis
from . import core
from . import monitoring
from . import output
from . import store
from . import utils

__all__ = [
    "__version__",
    "CaptureScope",
    "CategorySummary",
    "Config",
    "DatabaseStore",
    "FrameStore",
    "InvalidScopeError",
    "ServiceCategory",
    "StoreUnavailableError",
    "SummaryAssembler",
    "TrafficLensError",
    "TrafficSummary",
    "classify_port",
    "parse_capture_scope",
    "summarize",
    "analysis",
    "core",
    "monitoring",
    "output",
    "store",
    "utils",
]
