"""Pydantic models for booking requests and responses.

Field names are snake_case in Python and camelCase on the wire.
"""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class BookingRequest(_CamelModel):
    """Booking submitted by the caller. Untrusted; the handler validates it."""

    duration: Optional[str] = None
    district: Optional[str] = None
    start_time: Optional[str] = None  # passed through as-is
    end_time: Optional[str] = None
    attendee_name: Optional[str] = None
    attendee_email: Optional[str] = None
    attendee_phone: Optional[str] = None
    location: Optional[str] = None


class AttendeeResponses(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    district: Optional[str] = None
    duration: Optional[str] = None


class BookingMetadata(_CamelModel):
    city: str
    booking_type: str
    payment_method: str


class OutboundBookingPayload(_CamelModel):
    """Body sent to the scheduling provider's ``POST /bookings``."""

    event_type_id: str
    start: Optional[str] = None
    end: Optional[str] = None
    time_zone: str
    responses: AttendeeResponses
    metadata: BookingMetadata


class BookingConfirmation(_CamelModel):
    """Returned to the caller after a successful paid booking."""

    success: bool = True
    booking_id: Union[int, str]  # provider id, type preserved
    duration: str
    amount: float
    tax: float
    total: float
    payment_status: str
    confirmation_number: str
    next_steps: str = ""


class BookingError(_CamelModel):
    """Structured error body. Contact fields are set for server/upstream faults."""

    error: str
    details: Optional[str] = None
    valid_durations: Optional[list[str]] = None
    available_districts: Optional[list[str]] = None
    support_contact: Optional[str] = None
    support_phone: Optional[str] = None
