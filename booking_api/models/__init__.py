"""Data models for the booking layer."""

from .booking import (
    BookingConfirmation,
    BookingError,
    BookingRequest,
    OutboundBookingPayload,
)

__all__ = [
    "BookingConfirmation",
    "BookingError",
    "BookingRequest",
    "OutboundBookingPayload",
]
