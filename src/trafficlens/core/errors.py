"""Exceptions raised by TrafficLens."""

from __future__ import annotations


class TrafficLensError(Exception):
    """Base class for all TrafficLens errors.

    Args:
        message: Short description of the failure.
        context: Optional detail about where the failure happened.
        suggestion: Optional hint that may help recover from it.
    """

    def __init__(
        self,
        message: str = "",
        *,
        context: str | None = None,
        suggestion: str | None = None,
    ) -> None:
        super().__init__(message)
        self.context = context
        self.suggestion = suggestion


class InvalidScopeError(TrafficLensError, ValueError):
    """Raised when a capture identifier is not a non-negative integer."""


class StoreUnavailableError(TrafficLensError, RuntimeError):
    """Raised when a grouped read against the row source fails."""
