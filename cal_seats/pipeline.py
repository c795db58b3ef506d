"""Per-delivery webhook pipeline.

  Received → Authenticated → Filtered → QuantityResolved
           → single seat (no-op) | Replicating → Completed | PartialFailure

Every state is terminal after one response; nothing is retried here.
"""

from __future__ import annotations

import logging

from cal_seats.config import Settings
from cal_seats.events import booking_payload, event_name, is_booking_created, is_child_booking, parse_body
from cal_seats.extraction import resolve_quantity
from cal_seats.models.booking import WebhookResult
from cal_seats.providers.base import BookingProvider
from cal_seats.replicator import BookingReplicator

log = logging.getLogger("cal_seats.pipeline")


class WebhookPipeline:
    """Runs one webhook delivery through filtering, extraction and replication."""

    def __init__(self, settings: Settings, provider: BookingProvider) -> None:
        self._settings = settings
        self._provider = provider
        self._replicator = BookingReplicator(provider, settings)

    async def process(self, raw: bytes) -> WebhookResult:
        """Process an already-authenticated delivery."""
        body = parse_body(raw)
        evt = event_name(body)
        if not is_booking_created(evt):
            log.info("Skipping event %s", evt or "unknown")
            return WebhookResult(skipped=evt or "unknown")

        booking = booking_payload(body)
        if is_child_booking(booking):
            log.info("Skipping child booking %s", booking.get("uid") or booking.get("id"))
            return WebhookResult(skipped="child booking")

        # The detail fetch needs an API key; without one, stay with the payload.
        provider = self._provider if self._settings.cal_api_key else None
        resolution = await resolve_quantity(booking, provider, self._settings.max_seats)
        log.info(
            "booking.created %s: qty=%d (source=%s) %s",
            booking.get("uid") or booking.get("id") or "?",
            resolution.qty,
            resolution.source,
            _payload_shape(booking),
        )

        result = await self._replicator.replicate(booking, resolution.qty)
        if result.single_seat:
            return WebhookResult(info="single seat", qty=result.qty, extra=0, created=0)
        return WebhookResult(qty=result.qty, extra=result.extra, created=result.created)


def _payload_shape(booking: dict) -> str:
    """Summarize where form answers live in a payload, for diagnostics."""
    fields = booking.get("bookingFieldsResponses")
    field_keys = sorted(map(str, fields)) if isinstance(fields, dict) else []
    counts = {
        name: len(booking[name]) if isinstance(booking.get(name), list) else 0
        for name in ("responses", "formResponses")
    }
    return (
        f"bookingFieldsResponses={field_keys} "
        f"responses={counts['responses']} formResponses={counts['formResponses']}"
    )
