"""Booking replicator: one sibling booking per extra seat.

The provider models one attendee per booking, so a booking for ``qty``
seats is represented by the original plus ``qty - 1`` siblings on the same
slot. Siblings carry ``metadata.multiParentUid`` so their own webhook
deliveries are skipped.

Creates are sequential and stop at the first failure. Siblings already
created stay in place; the error reports how many there are.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from cal_seats.config import Settings
from cal_seats.errors import BookingValidationError, ConfigurationError, ProviderError, UpstreamError
from cal_seats.models.booking import BookingSlot, CreateBookingRequest
from cal_seats.providers.base import BookingProvider

log = logging.getLogger("cal_seats.replicator")


def redact_pii(value: str) -> str:
    """Mask PII for logging — show first 3 and last 2 chars only."""
    if not value or len(value) <= 5:
        return "***"
    return value[:3] + "***" + value[-2:]


@dataclass
class ReplicationResult:
    qty: int
    extra: int
    created: int

    @property
    def single_seat(self) -> bool:
        return self.extra <= 0


class BookingReplicator:
    """Creates the sibling bookings for one multi-seat booking."""

    def __init__(self, provider: BookingProvider, settings: Settings) -> None:
        self._provider = provider
        self._settings = settings

    async def replicate(self, record: Mapping[str, Any], qty: int) -> ReplicationResult:
        extra = qty - 1
        if extra <= 0:
            return ReplicationResult(qty=qty, extra=0, created=0)

        slot = BookingSlot.from_record(record, self._settings)
        missing = slot.missing_fields()
        if missing:
            log.error(
                "Missing booking data: eventTypeId=%s start=%s attendee=%s",
                slot.event_type_id,
                slot.start,
                redact_pii(slot.attendee.email or ""),
            )
            raise BookingValidationError(missing, qty=qty, extra=extra)

        if not self._settings.cal_api_key:
            raise ConfigurationError("missing CAL_API_KEY", qty=qty, extra=extra)

        body = CreateBookingRequest.sibling_of(slot, qty).model_dump()
        log.info(
            "Replicating booking %s: qty=%d extra=%d eventTypeId=%s start=%s attendee=%s",
            slot.parent_uid,
            qty,
            extra,
            slot.event_type_id,
            slot.start,
            redact_pii(slot.attendee.email or ""),
        )

        created = 0
        for _ in range(extra):
            try:
                await self._provider.create_booking(body)
            except ProviderError as e:
                log.error(
                    "Sibling create failed for %s after %d/%d: status=%s",
                    slot.parent_uid,
                    created,
                    extra,
                    e.status,
                )
                raise UpstreamError.from_provider(
                    "create failed", e, created=created, qty=qty, extra=extra
                ) from e
            created += 1

        log.info("Created %d extra bookings for %s", created, slot.parent_uid)
        return ReplicationResult(qty=qty, extra=extra, created=created)
