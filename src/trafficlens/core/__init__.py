"""Core data models, scoping and configuration."""

from __future__ import annotations

from .config import Config
from .errors import InvalidScopeError, StoreUnavailableError, TrafficLensError
from .models import (
    CategoryPort,
    CategorySummary,
    DestinationStat,
    DNSDomainCount,
    PortCount,
    ProtocolCount,
    TalkerStat,
    TrafficSummary,
)
from .scope import CaptureScope, parse_capture_scope

__all__ = [
    "CaptureScope",
    "CategoryPort",
    "CategorySummary",
    "Config",
    "DestinationStat",
    "DNSDomainCount",
    "InvalidScopeError",
    "PortCount",
    "ProtocolCount",
    "StoreUnavailableError",
    "TalkerStat",
    "TrafficLensError",
    "TrafficSummary",
    "parse_capture_scope",
]
