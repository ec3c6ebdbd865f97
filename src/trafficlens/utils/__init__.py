"""Utility functions for traffic classification."""

from __future__ import annotations

from .port_classifier import (
    WELL_KNOWN_PORTS,
    PortClassification,
    ServiceCategory,
    classify_port,
    get_port_category,
    get_port_service,
)

__all__ = [
    "WELL_KNOWN_PORTS",
    "PortClassification",
    "ServiceCategory",
    "classify_port",
    "get_port_category",
    "get_port_service",
]
