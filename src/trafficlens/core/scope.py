"""Capture scoping for aggregation requests."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

from .errors import InvalidScopeError

logger = logging.getLogger(__name__)

_DECIMAL_RE = re.compile(r"^[0-9]+$")

#: Largest capture id a signed 64-bit database column can hold.
MAX_CAPTURE_ID = 2**63 - 1


@dataclass(frozen=True)
class CaptureScope:
    """Optional capture filter applied to every aggregation.

    Attributes:
        capture_id: Capture to filter on, or None for all captures.
    """

    capture_id: int | None = None

    def __post_init__(self) -> None:
        if self.capture_id is not None:
            if isinstance(self.capture_id, bool) or not isinstance(self.capture_id, int):
                raise InvalidScopeError(
                    f"Capture id must be an integer, got {type(self.capture_id).__name__}"
                )
            if self.capture_id < 0:
                raise InvalidScopeError(
                    f"Capture id must be non-negative, got {self.capture_id}"
                )
            if self.capture_id > MAX_CAPTURE_ID:
                raise InvalidScopeError(
                    f"Capture id must be at most {MAX_CAPTURE_ID}, got {self.capture_id}"
                )

    @property
    def is_global(self) -> bool:
        """True when the scope spans all captures."""
        return self.capture_id is None

    def __str__(self) -> str:
        if self.capture_id is None:
            return "all captures"
        return f"capture {self.capture_id}"


def parse_capture_scope(value: Any) -> CaptureScope:
    """Parse a raw capture identifier into a CaptureScope.

    None and blank strings select all captures. Integers and decimal
    strings must be non-negative and fit a signed 64-bit column. Anything
    else is rejected instead of being coerced into a filter that silently
    matches nothing.

    Args:
        value: Raw capture identifier, e.g. a query-string parameter.

    Returns:
        The validated CaptureScope.

    Raises:
        InvalidScopeError: If the value is not a valid non-negative integer.
    """
    if isinstance(value, CaptureScope):
        return value

    if value is None:
        return CaptureScope()

    if isinstance(value, bool):
        raise _reject(value, "booleans are not capture ids")

    if isinstance(value, int):
        if value < 0:
            raise _reject(value, "capture ids are non-negative")
        return _bounded(value, value)

    if isinstance(value, float):
        if not value.is_integer() or value < 0:
            raise _reject(value, "capture ids are non-negative whole numbers")
        return _bounded(value, int(value))

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return CaptureScope()
        if not _DECIMAL_RE.match(text):
            raise _reject(value, "capture ids are decimal integers")
        # Longer digit strings cannot fit and may exceed int() conversion limits
        if len(text.lstrip("0")) > len(str(MAX_CAPTURE_ID)):
            raise _reject(value, f"capture ids are at most {MAX_CAPTURE_ID}")
        return _bounded(value, int(text))

    raise _reject(value, f"unsupported type {type(value).__name__}")


def _bounded(value: Any, capture_id: int) -> CaptureScope:
    if capture_id > MAX_CAPTURE_ID:
        raise _reject(value, f"capture ids are at most {MAX_CAPTURE_ID}")
    return CaptureScope(capture_id)


def _reject(value: Any, reason: str) -> InvalidScopeError:
    logger.warning("Rejected capture id %r: %s", value, reason)
    return InvalidScopeError(
        f"Invalid capture id {value!r}: {reason}",
        context="capture scope",
        suggestion="Pass a non-negative integer, or omit it to span all captures.",
    )
