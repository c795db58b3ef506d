"""Event filtering: decide whether a delivery is ours to process."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Mapping

log = logging.getLogger("cal_seats.events")

BOOKING_CREATED = "booking.created"

# Metadata key stamped on every sibling booking we create.
MARKER_KEY = "multiParentUid"

_SEPARATORS = re.compile(r"[_\-\s]+")


def normalize_event(name: Any) -> str:
    """Case-fold an event name and map ``_``, ``-`` and spaces to ``.``."""
    if not name:
        return ""
    return _SEPARATORS.sub(".", str(name).strip().lower())


def is_booking_created(name: Any) -> bool:
    return BOOKING_CREATED in normalize_event(name)


def parse_body(raw: bytes) -> dict:
    """Decode the JSON body; anything unusable becomes an empty payload."""
    if not raw or not raw.strip():
        return {}
    try:
        body = json.loads(raw)
    except (ValueError, UnicodeDecodeError) as e:
        log.warning("Malformed webhook body, treating as empty: %s", e)
        return {}
    if not isinstance(body, dict):
        log.warning("Webhook body is a JSON %s, treating as empty", type(body).__name__)
        return {}
    return body


def event_name(body: Mapping[str, Any]) -> str:
    return normalize_event(body.get("triggerEvent") or body.get("type"))


def booking_payload(body: Mapping[str, Any]) -> dict:
    payload = body.get("payload") or body.get("data") or {}
    return payload if isinstance(payload, dict) else {}


def is_child_booking(booking: Mapping[str, Any]) -> bool:
    """True for bookings we created ourselves (carry the replication marker)."""
    metadata = booking.get("metadata")
    return isinstance(metadata, Mapping) and bool(metadata.get(MARKER_KEY))
