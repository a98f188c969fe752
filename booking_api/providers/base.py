"""Abstract base class for payment-augmented scheduling channels.

A channel posts a booking to the scheduling provider with a payment
handshake attached, and hands back the created booking together with the
decoded payment receipt.  The handler never implements payment logic itself.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

# USDC settles in 6-decimal atomic units
USDC_DECIMALS = 6


@dataclass(frozen=True)
class PaymentTerms:
    """What the caller is paying for one booking."""

    amount: Decimal
    tax_rate: Decimal
    currency: str = "USD"
    description: str = ""

    @property
    def total(self) -> Decimal:
        return self.amount * (1 + self.tax_rate)

    @property
    def max_value(self) -> int:
        """Upper bound the signer will authorize, in atomic units."""
        return int((self.total * 10**USDC_DECIMALS).to_integral_value())


@dataclass
class PaymentAugmentedResult:
    """The provider's created booking plus the decoded payment receipt."""

    booking: dict[str, Any]
    receipt: dict[str, Any] = field(default_factory=dict)

    @property
    def booking_id(self) -> int | str:
        return self.booking["id"]

    @property
    def payment_status(self) -> str:
        status = self.receipt.get("status")
        if status:
            return str(status)
        return "settled" if self.receipt.get("success") else "failed"


class PaymentChannel(ABC):
    """Outbound HTTP channel that pays for the request it sends."""

    @abstractmethod
    async def post(
        self,
        path: str,
        payload: dict[str, Any],
        *,
        signing_key: str,
        terms: PaymentTerms,
    ) -> PaymentAugmentedResult:
        """POST ``payload`` to ``path`` with a payment handshake attached.

        Args:
            path: Provider path, e.g. ``"/bookings"``.
            payload: JSON body.
            signing_key: Hex-encoded private key authorizing the payment.
            terms: Amount, tax rate, currency and description.

        Returns:
            PaymentAugmentedResult with the provider body and receipt.

        Raises:
            ConfigurationError: ``signing_key`` is not a usable private key.
            UpstreamError: the provider or the payment handshake failed.
        """
