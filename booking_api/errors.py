"""Exceptions raised while handling a booking request.

Each class maps to one response shape in ``booking_api.handler``:

  ConfigurationError      → 500, support contact attached
  BookingValidationError  → 400, never forwarded upstream
  UpstreamError           → upstream status when known, else 500
"""

from __future__ import annotations

from typing import Any


class BookingServiceError(Exception):
    """Base class for failures surfaced to the caller as a JSON error."""

    status_code: int = 500


class ConfigurationError(BookingServiceError):
    """Server-side misconfiguration (missing key, empty event type set)."""


class BookingValidationError(BookingServiceError):
    """The request was rejected before any outbound call."""

    status_code = 400

    def __init__(self, message: str, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra


class UpstreamError(BookingServiceError):
    """The scheduling provider or payment handshake failed."""

    def __init__(self, detail: str, status_code: int | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.upstream_status = status_code
        self.status_code = status_code or 500
