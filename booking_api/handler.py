"""Booking request handler — validate, pay, book, translate.

One linear pipeline per request, with no state kept between requests:

  1. Signing key present?            (500 if not)
  2. Body is a JSON object?          (400 if not)
  3. Duration is a known tier?       (400 in strict mode)
  4. District is served?             (400 if not)
  5. Pick an event type at random    (500 if the tier has none)
  6. POST /bookings through the paying channel
  7. Decode receipt, price the confirmation

Every failure ends as a ``BookingError`` body; nothing propagates to the
web framework.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import ValidationError

from booking_api.config import BookingConfiguration, PricingTier
from booking_api.errors import (
    BookingServiceError,
    BookingValidationError,
    ConfigurationError,
    UpstreamError,
)
from booking_api.models.booking import (
    AttendeeResponses,
    BookingConfirmation,
    BookingError,
    BookingMetadata,
    BookingRequest,
    OutboundBookingPayload,
)
from booking_api.providers.base import PaymentChannel, PaymentTerms

log = logging.getLogger("booking_api.handler")

BOOKINGS_PATH = "/bookings"
PREFLIGHT_MAX_AGE = "86400"


def redact_pii(value: Optional[str]) -> str:
    """Mask PII for logging — show first 3 and last 2 chars only."""
    if not value or len(value) <= 5:
        return "***"
    return value[:3] + "***" + value[-2:]


@dataclass
class HandlerResult:
    """Framework-neutral HTTP response."""

    status_code: int
    body: Optional[dict[str, Any]] = None
    headers: dict[str, str] = field(default_factory=dict)


class BookingHandler:
    """Turns a booking submission into a paid provider booking.

    Typical use::

        handler = BookingHandler(config, channel, signing_key=settings.private_key)
        result = await handler.handle(await request.json())
    """

    def __init__(
        self,
        config: BookingConfiguration,
        channel: PaymentChannel,
        *,
        signing_key: str = "",
        rng: Optional[random.Random] = None,
    ) -> None:
        self._config = config
        self._channel = channel
        self._signing_key = signing_key
        self._rng = rng or random.Random()

    # ── CORS ──────────────────────────────────────────────────────

    def cors_headers(self, preflight: bool = False) -> dict[str, str]:
        origin = self._config.allowed_origin
        headers = {"Access-Control-Allow-Origin": origin}
        if origin != "*":
            headers["Vary"] = "Origin"
        if preflight:
            headers["Access-Control-Allow-Methods"] = "POST, OPTIONS"
            headers["Access-Control-Allow-Headers"] = "Content-Type"
            headers["Access-Control-Max-Age"] = PREFLIGHT_MAX_AGE
        return headers

    def preflight(self) -> HandlerResult:
        """Answer a CORS preflight. Never contacts the providers."""
        return HandlerResult(204, None, self.cors_headers(preflight=True))

    # ── Pipeline steps ────────────────────────────────────────────

    def _parse(self, body: Any) -> BookingRequest:
        if not isinstance(body, dict):
            raise BookingValidationError("Request body must be a JSON object")
        try:
            return BookingRequest.model_validate(body)
        except ValidationError as exc:
            fields = sorted({".".join(str(p) for p in err["loc"]) for err in exc.errors()})
            raise BookingValidationError(
                "Invalid booking fields: " + ", ".join(fields)
            ) from exc

    def _select_tier(self, duration: Optional[str]) -> PricingTier:
        tier = self._config.tier_for(duration)
        if tier is None:
            valid = self._config.durations
            raise BookingValidationError(
                f"Invalid booking duration. Choose {', '.join(valid)}",
                valid_durations=valid,
            )
        return tier

    def _check_district(self, district: Optional[str]) -> None:
        if district not in self._config.allowed_districts:
            raise BookingValidationError(
                "Service unavailable in this district",
                available_districts=list(self._config.allowed_districts),
            )

    def _choose_event_type(self, duration: str, tier: PricingTier) -> str:
        if not tier.usable:
            raise ConfigurationError(f"No event types configured for {duration} bookings")
        return self._rng.choice(tier.event_type_ids)

    def _build_payload(self, req: BookingRequest, event_type_id: str) -> OutboundBookingPayload:
        cfg = self._config
        return OutboundBookingPayload(
            event_type_id=event_type_id,
            start=req.start_time,
            end=req.end_time,
            time_zone=cfg.timezone,
            responses=AttendeeResponses(
                name=req.attendee_name,
                email=req.attendee_email,
                phone=req.attendee_phone,
                location=req.location,
                district=req.district,
                duration=req.duration,
            ),
            metadata=BookingMetadata(
                city=cfg.city,
                booking_type=cfg.booking_type,
                payment_method=cfg.payment_method,
            ),
        )

    # ── Responses ─────────────────────────────────────────────────

    def _error(self, exc: BookingServiceError) -> HandlerResult:
        cfg = self._config
        if isinstance(exc, BookingValidationError):
            body = BookingError(error=exc.message, **exc.extra)
        else:
            body = BookingError(
                error=f"Failed to process {cfg.city} booking",
                details=str(exc),
                support_contact=cfg.support_email,
                support_phone=cfg.support_phone,
            )
        return HandlerResult(exc.status_code, body.to_wire(), self.cors_headers())

    # ── Entry point ───────────────────────────────────────────────

    async def handle(self, body: Any) -> HandlerResult:
        """Validate ``body``, book it with payment, and build the response."""
        cfg = self._config
        try:
            if not self._signing_key:
                raise ConfigurationError("Server configuration error")

            req = self._parse(body)
            tier = self._select_tier(req.duration)
            self._check_district(req.district)

            duration = req.duration or cfg.fallback_duration
            event_type_id = self._choose_event_type(duration, tier)
            payload = self._build_payload(req, event_type_id)
            terms = PaymentTerms(
                amount=tier.price,
                tax_rate=tier.tax_rate,
                currency=cfg.currency,
                description=f"{cfg.brand_prefix} {duration} Booking",
            )

            log.info(
                "Booking %s in %s for %s (event type %s)",
                duration,
                req.district,
                redact_pii(req.attendee_email),
                event_type_id,
            )
            result = await self._channel.post(
                BOOKINGS_PATH,
                payload.to_wire(),
                signing_key=self._signing_key,
                terms=terms,
            )

            booking_id = result.booking_id
            confirmation = BookingConfirmation(
                booking_id=booking_id,
                duration=duration,
                amount=float(tier.price),
                tax=float(tier.tax),
                total=float(tier.total),
                payment_status=result.payment_status,
                confirmation_number=f"{cfg.brand_prefix}-{booking_id}",
                next_steps=cfg.next_steps,
            )
        except BookingValidationError as exc:
            log.info("Booking rejected: %s", exc.message)
            return self._error(exc)
        except UpstreamError as exc:
            log.error(
                "%s booking error (upstream status %s): %s",
                cfg.brand_prefix,
                exc.upstream_status,
                exc.detail,
            )
            return self._error(exc)
        except BookingServiceError as exc:
            log.error("%s booking error: %s", cfg.brand_prefix, exc)
            return self._error(exc)
        except Exception as exc:
            log.exception("%s booking error", cfg.brand_prefix)
            return self._error(UpstreamError(str(exc)))

        log.info("Booking confirmed: %s", confirmation.confirmation_number)
        return HandlerResult(200, confirmation.to_wire(), self.cors_headers())
