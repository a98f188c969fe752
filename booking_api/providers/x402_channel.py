"""Scheduling channel backed by the x402 payment-augmented httpx client.

Bookings are posted to a Cal.com-compatible REST API.  ``x402HttpxClient``
answers the provider's 402 challenge with a signed payment and the
settlement receipt comes back base64-encoded in ``X-PAYMENT-RESPONSE``.

x402 1.x sends the paid retry, the request that actually creates the booking,
through a fresh ``httpx.AsyncClient`` with httpx's default 5 s timeout, so
``REQUEST_TIMEOUT`` only bounds the first, unpaid request.
Redirects are followed, as axios does, so only 4xx/5xx reach the caller.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from eth_account import Account
from x402.clients.base import PaymentError, decode_x_payment_response
from x402.clients.httpx import x402HttpxClient

from booking_api.errors import ConfigurationError, UpstreamError

from .base import PaymentAugmentedResult, PaymentChannel, PaymentTerms

logger = logging.getLogger(__name__)

PAYMENT_RESPONSE_HEADER = "X-PAYMENT-RESPONSE"


class X402SchedulingChannel(PaymentChannel):
    """PaymentChannel that pays with x402 and books on Cal.com."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 30.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _client(self, signing_key: str, terms: PaymentTerms) -> x402HttpxClient:
        try:
            account = Account.from_key(signing_key)
        except (ValueError, TypeError) as exc:
            # Never echo the key itself
            raise ConfigurationError("Invalid signing key configured") from exc

        return x402HttpxClient(
            account=account,
            max_value=terms.max_value,
            base_url=self._base_url,
            timeout=self._timeout,
            follow_redirects=True,
            headers={"X-Payment-Description": terms.description},
        )

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        """Pull the provider's ``message`` out of an error body if there is one."""
        try:
            body = response.json()
        except ValueError:
            return response.text or response.reason_phrase
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return response.reason_phrase

    # ------------------------------------------------------------------
    # PaymentChannel interface
    # ------------------------------------------------------------------

    async def post(
        self,
        path: str,
        payload: dict[str, Any],
        *,
        signing_key: str,
        terms: PaymentTerms,
    ) -> PaymentAugmentedResult:
        """Send the paid request and decode the booking plus receipt."""
        params = {"apiKey": self._api_key} if self._api_key else None

        try:
            async with self._client(signing_key, terms) as client:
                response = await client.post(path, json=payload, params=params)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.warning("Scheduling provider returned %d for %s", status, path)
            raise UpstreamError(self._error_detail(exc.response), status) from exc
        except httpx.RequestError as exc:
            logger.warning("Scheduling provider unreachable: %s", exc)
            raise UpstreamError(f"Scheduling provider unreachable: {exc}") from exc
        except PaymentError as exc:
            raise UpstreamError(f"Payment handshake failed: {exc}") from exc

        try:
            booking = response.json()
        except ValueError as exc:
            raise UpstreamError("Scheduling provider returned a non-JSON body") from exc
        if not isinstance(booking, dict) or booking.get("id") in (None, ""):
            raise UpstreamError("Scheduling provider response has no booking id")

        header = response.headers.get(PAYMENT_RESPONSE_HEADER)
        if not header:
            raise UpstreamError("Missing payment receipt in provider response")
        try:
            receipt = decode_x_payment_response(header)
        except (ValueError, KeyError, TypeError) as exc:
            raise UpstreamError("Malformed payment receipt") from exc
        if not isinstance(receipt, dict):
            raise UpstreamError("Malformed payment receipt")

        logger.info(
            "Created booking %s (payment tx %s)",
            booking["id"],
            receipt.get("transaction", "unknown"),
        )
        return PaymentAugmentedResult(booking=booking, receipt=receipt)
