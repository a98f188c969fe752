"""FastAPI application — HTTP endpoints for paid bookings.

Endpoints:

  POST    /api/booking   Validate a booking, pay for it, create it upstream
  OPTIONS /api/booking   CORS preflight
  GET     /health        Health check

The booking flow:
  1. Browser POSTs the booking form as JSON
  2. BookingHandler validates duration and district
  3. The x402 channel posts to the scheduling provider, paying on the 402
  4. The decoded payment receipt and booking id become the confirmation
"""

from __future__ import annotations

# Load .env into os.environ before settings are read
from dotenv import load_dotenv
load_dotenv()

import json
import logging
import random
import time
from typing import Optional

# Configure root logger early so all app loggers have a handler when run
# via `uvicorn booking_api.app:app`.
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)-20s %(levelname)-7s %(message)s",
)

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from booking_api.config import Settings, build_booking_configuration, settings as default_settings
from booking_api.handler import BookingHandler, HandlerResult
from booking_api.providers.base import PaymentChannel
from booking_api.providers.x402_channel import X402SchedulingChannel

log = logging.getLogger("booking_api.app")

_START_TIME = time.time()

BOOKING_PATH = "/api/booking"


def _to_response(result: HandlerResult) -> Response:
    if result.body is None:
        return Response(status_code=result.status_code, headers=result.headers)
    return JSONResponse(result.body, status_code=result.status_code, headers=result.headers)


def create_app(
    settings: Optional[Settings] = None,
    channel: Optional[PaymentChannel] = None,
    rng: Optional[random.Random] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    ``channel`` and ``rng`` are injectable for tests; by default bookings go
    through the x402 channel against ``CALCOM_BASE_URL``.
    """
    settings = settings or default_settings

    for warning in settings.validate_startup():
        log.warning(warning)

    config = build_booking_configuration(settings)
    if channel is None:
        channel = X402SchedulingChannel(
            base_url=settings.calcom_base_url,
            api_key=settings.calcom_api_key,
            timeout=settings.request_timeout,
        )
    handler = BookingHandler(
        config,
        channel,
        signing_key=settings.private_key,
        rng=rng,
    )

    app = FastAPI(
        title="Paid Booking API",
        description="Books local service appointments paid via x402",
        version="0.1.0",
    )
    app.state.booking_config = config
    app.state.booking_handler = handler

    # ── Health check ───────────────────────────────────────────

    @app.get("/health")
    async def health() -> JSONResponse:
        """Lightweight health check — confirms the event loop is responsive."""
        uptime = round(time.time() - _START_TIME, 1)
        return JSONResponse({"status": "ok", "uptime": uptime})

    # ── Booking ────────────────────────────────────────────────

    @app.post(BOOKING_PATH)
    async def create_booking(request: Request) -> Response:
        """Create a paid booking from the JSON body."""
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            # Let the handler produce its usual 400 shape
            body = None
        return _to_response(await handler.handle(body))

    @app.options(BOOKING_PATH)
    async def booking_preflight() -> Response:
        return _to_response(handler.preflight())

    return app


# ── Module-level app instance for uvicorn ──────────────────────

app = create_app()


if __name__ == "__main__":
    import uvicorn

    log_config = uvicorn.config.LOGGING_CONFIG
    log_config["formatters"]["default"]["fmt"] = (
        "%(asctime)s %(name)-12s %(levelname)-8s %(message)s"
    )

    uvicorn.run(
        "booking_api.app:app",
        host=default_settings.host,
        port=default_settings.port,
        reload=default_settings.debug,
        log_config=log_config,
    )
