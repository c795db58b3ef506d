"""Cal.com v2 booking provider.

Talks to ``https://api.cal.com/v2`` with a bearer API key and the
``cal-api-version`` header pinned by configuration. One short-lived
``httpx.AsyncClient`` is opened per call.
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from cal_seats.config import Settings
from cal_seats.errors import ProviderError
from cal_seats.extraction import unwrap_booking

from .base import BookingProvider

logger = logging.getLogger(__name__)


class CalComProvider(BookingProvider):
    """BookingProvider backed by the Cal.com v2 REST API."""

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._settings.cal_api_key}",
            "cal-api-version": self._settings.cal_api_version,
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._settings.cal_api_base_url.rstrip("/"),
            headers=self.headers,
            timeout=self._settings.cal_timeout_seconds,
            transport=self._transport,
        )

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        try:
            async with self._client() as client:
                resp = await client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("Cal.com %s %s transport error: %s", method, path, exc)
            raise ProviderError(None, str(exc)) from exc

        if resp.is_error:
            logger.error("Cal.com %s %s failed: %s %s", method, path, resp.status_code, resp.text[:500])
            raise ProviderError(resp.status_code, resp.text)

        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError:
            logger.warning("Cal.com %s %s returned non-JSON body", method, path)
            return {}

    # ------------------------------------------------------------------
    # BookingProvider interface
    # ------------------------------------------------------------------

    async def create_booking(self, body: dict) -> dict:
        result = await self._request("POST", "/bookings", json=body)
        created = unwrap_booking(result)
        logger.info("Created booking %s", created.get("uid") or created.get("id") or "?")
        return created

    async def get_booking(self, uid: str) -> dict:
        """Fetch one booking; the record may sit under ``data`` or ``booking``."""
        result = await self._request("GET", f"/bookings/{quote(str(uid), safe='')}")
        return unwrap_booking(result)
