"""HTTP-level tests for the FastAPI app using TestClient and a fake channel."""

import pytest
from fastapi.testclient import TestClient

from booking_api.app import create_app

from conftest import FakeChannel, make_settings


@pytest.fixture
def channel():
    return FakeChannel(booking={"id": "bk_31"})


@pytest.fixture
def client(channel):
    return TestClient(create_app(settings=make_settings(), channel=channel))


# ── Health ─────────────────────────────────────────────────────────


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"


# ── POST /api/booking ──────────────────────────────────────────────


class TestBookingEndpoint:
    def test_books_midtown(self, client, channel, valid_body):
        resp = client.post("/api/booking", json=valid_body)

        assert resp.status_code == 200
        data = resp.json()
        assert data["total"] == 48.6
        assert data["confirmationNumber"] == "ATL5D-bk_31"
        assert resp.headers["access-control-allow-origin"] == "*"
        assert resp.headers["content-type"].startswith("application/json")
        assert len(channel.calls) == 1

    def test_decatur_rejected(self, client, channel, valid_body):
        valid_body["district"] = "Decatur"
        resp = client.post("/api/booking", json=valid_body)

        assert resp.status_code == 400
        assert "Midtown" in resp.json()["availableDistricts"]
        assert channel.calls == []

    def test_invalid_json(self, client, channel):
        resp = client.post(
            "/api/booking",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert channel.calls == []

    def test_missing_key_is_500(self, channel, valid_body):
        client = TestClient(
            create_app(settings=make_settings(private_key=""), channel=channel)
        )
        resp = client.post("/api/booking", json=valid_body)

        assert resp.status_code == 500
        assert resp.json()["supportContact"] == "hi@atl5d.com"
        assert channel.calls == []


# ── OPTIONS /api/booking ───────────────────────────────────────────


class TestPreflight:
    def test_preflight(self, client, channel):
        resp = client.options("/api/booking")

        assert resp.status_code == 204
        assert resp.content == b""
        assert resp.headers["access-control-allow-methods"] == "POST, OPTIONS"
        assert resp.headers["access-control-allow-headers"] == "Content-Type"
        assert channel.calls == []

    def test_preflight_single_origin(self, channel):
        settings = make_settings(allowed_origin="https://atl5d.com")
        client = TestClient(create_app(settings=settings, channel=channel))

        resp = client.options("/api/booking")
        assert resp.headers["access-control-allow-origin"] == "https://atl5d.com"
