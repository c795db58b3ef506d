"""Pydantic models for the booking slot we replicate and the API bodies we send."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field

from cal_seats.config import Settings
from cal_seats.events import MARKER_KEY


def _text(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


class Attendee(BaseModel):
    """One attendee as the provider's booking API expects it."""

    name: str
    email: Optional[str] = None
    timeZone: str


class BookingSlot(BaseModel):
    """The parts of an original booking every sibling booking copies."""

    event_type_id: Optional[Any] = None
    start: Optional[str] = None
    attendee: Attendee
    parent_uid: str

    @classmethod
    def from_record(cls, record: Mapping[str, Any], settings: Settings) -> "BookingSlot":
        event_type = record.get("eventType")
        event_type_id = record.get("eventTypeId") or (
            event_type.get("id") if isinstance(event_type, Mapping) else None
        )

        when = record.get("when")
        when = when if isinstance(when, Mapping) else {}
        start = (
            record.get("start")
            or record.get("startTime")
            or when.get("startTime")
            or when.get("start")
        )

        raw_attendee: Any = None
        attendees = record.get("attendees")
        if isinstance(attendees, list) and attendees:
            raw_attendee = attendees[0]
        if not isinstance(raw_attendee, Mapping):
            raw_attendee = record.get("attendee")

        if isinstance(raw_attendee, Mapping):
            attendee = Attendee(
                name=_text(raw_attendee.get("name")) or settings.default_attendee_name,
                email=_text(raw_attendee.get("email")),
                timeZone=_text(raw_attendee.get("timeZone")) or settings.default_timezone,
            )
        else:
            attendee = Attendee(
                name=settings.default_attendee_name,
                email=settings.default_attendee_email,
                timeZone=settings.default_timezone,
            )

        parent_uid = record.get("uid") or record.get("id") or "primary"

        return cls(
            event_type_id=event_type_id,
            start=str(start) if start else None,
            attendee=attendee,
            parent_uid=str(parent_uid),
        )

    def missing_fields(self) -> list[str]:
        missing = []
        if not self.event_type_id:
            missing.append("eventTypeId")
        if not self.start:
            missing.append("start")
        if not self.attendee.email:
            missing.append("attendee.email")
        return missing


class CreateBookingRequest(BaseModel):
    """Body of ``POST /bookings`` for one sibling booking."""

    eventTypeId: Any
    start: str
    timeZone: str
    attendees: list[Attendee]
    metadata: dict[str, str] = Field(default_factory=dict)
    bookingFieldsResponses: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def sibling_of(cls, slot: BookingSlot, qty: int) -> "CreateBookingRequest":
        return cls(
            eventTypeId=slot.event_type_id,
            start=slot.start,
            timeZone=slot.attendee.timeZone,
            attendees=[slot.attendee],
            metadata={MARKER_KEY: slot.parent_uid},
            bookingFieldsResponses={"places": qty},
        )


class WebhookResult(BaseModel):
    """Successful (2xx) answer of the webhook endpoint."""

    ok: bool = True
    skipped: Optional[str] = None
    info: Optional[str] = None
    qty: Optional[int] = None
    extra: Optional[int] = None
    created: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)
