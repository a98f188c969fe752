"""Shared fixtures: a recording fake channel and ready-made configurations."""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from booking_api.config import Settings, build_booking_configuration
from booking_api.errors import UpstreamError
from booking_api.providers.base import PaymentAugmentedResult, PaymentChannel

TEST_KEY = "0x" + "11" * 32


class FakeChannel(PaymentChannel):
    """Records every post and returns a canned result (or raises)."""

    def __init__(self, booking=None, receipt=None, exc=None):
        self.booking = booking if booking is not None else {"id": 4242}
        self.receipt = receipt if receipt is not None else {
            "success": True,
            "transaction": "0xabc",
            "network": "base-sepolia",
        }
        self.exc = exc
        self.calls = []

    async def post(self, path, payload, *, signing_key, terms):
        self.calls.append(
            {"path": path, "payload": payload, "signing_key": signing_key, "terms": terms}
        )
        if self.exc is not None:
            raise self.exc
        return PaymentAugmentedResult(booking=self.booking, receipt=self.receipt)


def make_settings(**overrides) -> Settings:
    values = {
        "private_key": TEST_KEY,
        "atl_event_type_ids": "101,102,103",
        "tier_event_type_ids": {},
        "default_event_type_id": "",
        "allowed_origin": "*",
        "strict_duration_validation": True,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def fake_channel():
    return FakeChannel()


@pytest.fixture
def failing_channel():
    return FakeChannel(exc=UpstreamError("Time slot no longer available", 409))


@pytest.fixture
def booking_config():
    return build_booking_configuration(make_settings())


@pytest.fixture
def valid_body():
    return {
        "duration": "30min",
        "district": "Midtown",
        "startTime": "2026-11-02T14:00:00-05:00",
        "endTime": "2026-11-02T14:30:00-05:00",
        "attendeeName": "Jordan Reyes",
        "attendeeEmail": "jordan@example.com",
        "attendeePhone": "+14045550123",
        "location": "123 Peachtree St NE",
    }
