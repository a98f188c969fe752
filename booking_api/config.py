"""Application configuration via environment variables.

``Settings`` holds the raw environment values.  ``BookingConfiguration`` is
the frozen view the handler works from; it is built once at startup by
``build_booking_configuration`` and never mutated afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from types import MappingProxyType
from typing import Mapping

from pydantic_settings import BaseSettings

log = logging.getLogger("booking_api.config")

CENT = Decimal("0.01")

# Base prices per duration tier: (price, tax rate)
DEFAULT_TIERS: dict[str, tuple[str, str]] = {
    "15min": ("25.00", "0.08"),
    "30min": ("45.00", "0.08"),
    "90min": ("120.00", "0.08"),
}


class Settings(BaseSettings):
    # Payment signer (hex private key)
    private_key: str = ""

    # Scheduling provider
    calcom_base_url: str = "https://api.cal.com/v1"
    calcom_api_key: str = ""
    request_timeout: float = 30.0

    # Event type identifiers
    atl_event_type_ids: str = ""
    tier_event_type_ids: dict[str, str] = {}
    default_event_type_id: str = ""

    # Booking policy
    strict_duration_validation: bool = True
    fallback_duration: str = "30min"
    timezone: str = "America/New_York"
    allowed_districts: str = "Downtown,Midtown,Buckhead,West End"
    allowed_origin: str = "*"

    # Branding and support
    currency: str = "USD"
    brand_prefix: str = "ATL5D"
    city: str = "Atlanta"
    booking_type: str = "ATL5D_Public"
    payment_method: str = "x402"
    support_email: str = "hi@atl5d.com"
    support_phone: str = "(404) 889-5545"

    # Server
    host: str = "127.0.0.1"
    port: int = 8080
    debug: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    def validate_startup(self) -> list[str]:
        """Validate configuration at startup. Returns warnings, raises on errors."""
        warnings: list[str] = []

        if self.request_timeout <= 0:
            raise ValueError("REQUEST_TIMEOUT must be a positive number of seconds.")

        unknown = set(self.tier_event_type_ids) - set(DEFAULT_TIERS)
        if unknown:
            raise ValueError(
                "TIER_EVENT_TYPE_IDS names unknown durations: "
                + ", ".join(sorted(unknown))
            )

        if not self.strict_duration_validation and self.fallback_duration not in DEFAULT_TIERS:
            raise ValueError(
                f"FALLBACK_DURATION {self.fallback_duration!r} is not a known duration."
            )

        # Signing key — bookings fail per request without it
        if not self.private_key:
            warnings.append(
                "PRIVATE_KEY not set. Every booking will fail with a configuration error."
            )

        if not _split_ids(self.atl_event_type_ids) and not self.default_event_type_id:
            missing = [
                name for name in DEFAULT_TIERS
                if not _split_ids(self.tier_event_type_ids.get(name, ""))
            ]
            if missing:
                warnings.append(
                    "No event type IDs configured for: " + ", ".join(missing)
                    + ". Bookings for these durations will be rejected."
                )

        if not _split_ids(self.allowed_districts):
            warnings.append("ALLOWED_DISTRICTS is empty — every district will be rejected.")

        return warnings


def _split_ids(raw: str) -> tuple[str, ...]:
    """Split a comma-separated value, dropping blanks."""
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class PricingTier:
    """A duration tier: candidate event types plus its price and tax rate."""

    event_type_ids: tuple[str, ...]
    price: Decimal
    tax_rate: Decimal

    def __post_init__(self) -> None:
        if self.price < 0:
            raise ValueError(f"price must be non-negative, got {self.price}")
        if self.tax_rate < 0:
            raise ValueError(f"tax_rate must be non-negative, got {self.tax_rate}")

    @property
    def usable(self) -> bool:
        return bool(self.event_type_ids)

    @property
    def tax(self) -> Decimal:
        return (self.price * self.tax_rate).quantize(CENT, rounding=ROUND_HALF_UP)

    @property
    def total(self) -> Decimal:
        return (self.price * (1 + self.tax_rate)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class BookingConfiguration:
    """Read-only booking rules shared by every request."""

    tiers: Mapping[str, PricingTier]
    timezone: str
    allowed_districts: tuple[str, ...]
    allowed_origin: str = "*"
    strict_duration_validation: bool = True
    fallback_duration: str = "30min"
    currency: str = "USD"
    brand_prefix: str = "ATL5D"
    city: str = "Atlanta"
    booking_type: str = "ATL5D_Public"
    payment_method: str = "x402"
    support_email: str = ""
    support_phone: str = ""
    next_steps: str = field(default="")

    @property
    def durations(self) -> list[str]:
        return list(self.tiers)

    def tier_for(self, duration: str | None) -> PricingTier | None:
        """Return the tier for ``duration``, honoring the fallback policy.

        Strict mode only knows configured durations.  Permissive mode prices
        anything else at the fallback tier.
        """
        tier = self.tiers.get(duration) if duration else None
        if tier is None and not self.strict_duration_validation:
            return self.tiers.get(self.fallback_duration)
        return tier


def build_booking_configuration(settings: Settings) -> BookingConfiguration:
    """Build the frozen booking configuration from environment settings."""
    shared_ids = _split_ids(settings.atl_event_type_ids)
    default_ids = _split_ids(settings.default_event_type_id)

    tiers: dict[str, PricingTier] = {}
    for name, (price, tax_rate) in DEFAULT_TIERS.items():
        ids = (
            _split_ids(settings.tier_event_type_ids.get(name, ""))
            or shared_ids
            or default_ids
        )
        tiers[name] = PricingTier(
            event_type_ids=ids,
            price=Decimal(price),
            tax_rate=Decimal(tax_rate),
        )
        log.debug("Tier %s: %d event type(s), price %s", name, len(ids), price)

    return BookingConfiguration(
        tiers=MappingProxyType(tiers),
        timezone=settings.timezone,
        allowed_districts=_split_ids(settings.allowed_districts),
        allowed_origin=settings.allowed_origin or "*",
        strict_duration_validation=settings.strict_duration_validation,
        fallback_duration=settings.fallback_duration,
        currency=settings.currency,
        brand_prefix=settings.brand_prefix,
        city=settings.city,
        booking_type=settings.booking_type,
        payment_method=settings.payment_method,
        support_email=settings.support_email,
        support_phone=settings.support_phone,
        next_steps=f"You'll receive an {settings.city}-specific confirmation email shortly",
    )


settings = Settings()
