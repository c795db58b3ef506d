"""FastAPI application — the Cal.com webhook endpoint.

Endpoints:

  GET  /          Health probe: {"ok": true, "source": "cal-webhook"}
  HEAD /          Same, empty body
  POST /          Cal.com webhook (BOOKING_CREATED) or trusted workflow call
  GET  /health    Health check with uptime

The POST flow:
  1. Authenticate (x-cal-signature-256 HMAC, or ?token= workflow token)
  2. Skip anything but booking.created, and skip our own sibling bookings
  3. Resolve the seat quantity from the booking payload
  4. Create qty - 1 sibling bookings through the Cal.com API
"""

from __future__ import annotations

# Load .env into os.environ early so uvicorn runs pick it up too.
from dotenv import load_dotenv
load_dotenv()

import logging
import time
from typing import Optional

# Configure root logger early so all cal_seats loggers have a handler when
# run via `uvicorn cal_seats.app:app`.
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)-20s %(levelname)-7s %(message)s",
)

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, Response

from cal_seats.auth import require_webhook_auth
from cal_seats.config import Settings, settings as default_settings
from cal_seats.errors import WebhookError
from cal_seats.pipeline import WebhookPipeline
from cal_seats.providers import BookingProvider, CalComProvider

log = logging.getLogger("cal_seats.app")

_START_TIME = time.time()


def create_app(
    settings: Optional[Settings] = None,
    provider: Optional[BookingProvider] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or default_settings
    provider = provider or CalComProvider(settings)

    for warning in settings.validate_startup():
        log.warning(warning)

    app = FastAPI(
        title="Cal.com Seats Webhook",
        description="Creates one linked booking per extra seat of a Cal.com booking",
        version="0.1.0",
    )
    app.state.settings = settings
    app.state.pipeline = WebhookPipeline(settings, provider)

    @app.exception_handler(WebhookError)
    async def webhook_error_handler(request: Request, exc: WebhookError) -> JSONResponse:
        return JSONResponse(exc.to_dict(), status_code=exc.status_code)

    # ── Health checks ──────────────────────────────────────────

    @app.get("/")
    async def probe() -> JSONResponse:
        return JSONResponse({"ok": True, "source": "cal-webhook"})

    @app.head("/")
    async def probe_head() -> Response:
        return Response(status_code=200)

    @app.get("/health")
    async def health() -> JSONResponse:
        """Lightweight health check — confirms the event loop is responsive."""
        uptime = round(time.time() - _START_TIME, 1)
        return JSONResponse({"status": "ok", "uptime": uptime})

    # ── Cal.com webhook ────────────────────────────────────────

    @app.post("/")
    async def cal_webhook(raw: bytes = Depends(require_webhook_auth)) -> JSONResponse:
        """Cal.com webhook receiver.

        Auth failures are raised by the dependency and rendered by the
        WebhookError handler. Anything unexpected becomes a 500.
        """
        pipeline: WebhookPipeline = app.state.pipeline
        try:
            result = await pipeline.process(raw)
        except WebhookError as e:
            log.warning("Webhook failed (%d): %s", e.status_code, e.error)
            return JSONResponse(e.to_dict(), status_code=e.status_code)
        except Exception as e:
            log.error("Webhook error: %s", e, exc_info=True)
            return JSONResponse({"ok": False, "error": str(e) or type(e).__name__}, status_code=500)

        return JSONResponse(result.to_dict())

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
        "cal_seats.app:app",
        host=default_settings.host,
        port=default_settings.port,
        reload=default_settings.debug,
        log_config=log_config,
    )
