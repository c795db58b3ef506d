"""Seat-quantity extraction from weakly structured booking payloads.

Cal.com renders custom booking-form answers differently depending on the
event type configuration and the API version that produced the webhook, so
the quantity is searched for through increasingly permissive steps:

  a. known field names in ``bookingFieldsResponses``
  b. any ``bookingFieldsResponses`` key containing "place"
  c. ``responses`` / ``formResponses`` answer lists
  d. the same three steps against the full booking fetched from the API
  e. a deep scan of every nested key containing "place" or "participant"

Every step clamps its result to ``[1, max_seats]``. Nothing here raises on
odd shapes; the worst case is the default of one seat.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from cal_seats.errors import ProviderError, UpstreamError

if TYPE_CHECKING:
    from cal_seats.providers.base import BookingProvider

log = logging.getLogger("cal_seats.extraction")

DEFAULT_MAX_SEATS = 15

SEAT_FIELD_NAMES = ("places", "nombre_de_participants", "number_of_participants")
SEAT_KEY_HINT = "place"
DEEP_KEY_HINTS = ("place", "participant")

ANSWER_COLLECTIONS = ("responses", "formResponses")
ANSWER_ID_FIELDS = ("key", "id", "name", "label", "question")
ANSWER_VALUE_FIELDS = ("value", "answer", "response", "number", "text")

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True)
class QuantityResolution:
    qty: int
    source: str  # direct | detail | deep | default


def clamp_seats(value: int, maximum: int = DEFAULT_MAX_SEATS) -> int:
    return max(1, min(maximum, DEFAULT_MAX_SEATS, value))


def to_int(value: Any) -> Optional[int]:
    """Leading integer of a scalar, or None when there is none."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value == value and abs(value) != float("inf") else None
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return int(match.group(1)) if match else None
    return None


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _unwrap_answer(value: Any) -> Any:
    # Some payloads render a field response as {"value": 4, "label": "Places"}
    if isinstance(value, Mapping):
        for field in ANSWER_VALUE_FIELDS:
            if value.get(field) is not None:
                return value[field]
        return None
    return value


def _from_field_responses(responses: Any) -> Optional[int]:
    if not isinstance(responses, Mapping):
        return None

    for name in SEAT_FIELD_NAMES:
        if responses.get(name) is not None:
            qty = to_int(_unwrap_answer(responses[name]))
            if qty is not None:
                return qty

    for key, value in responses.items():
        if SEAT_KEY_HINT in str(key).lower():
            qty = to_int(_unwrap_answer(value))
            if qty is not None:
                return qty

    return None


def _answer_identifier(answer: Mapping) -> str:
    for field in ANSWER_ID_FIELDS:
        if answer.get(field):
            return str(answer[field]).lower()
    return ""


def _from_answer_lists(record: Mapping) -> Optional[int]:
    for collection in ANSWER_COLLECTIONS:
        answers = record.get(collection)
        if not _is_sequence(answers):
            continue
        for answer in answers:
            if not isinstance(answer, Mapping):
                continue
            if SEAT_KEY_HINT not in _answer_identifier(answer):
                continue
            for field in ANSWER_VALUE_FIELDS:
                value = _unwrap_answer(answer.get(field))
                if value is not None:
                    # First non-null field decides, even when it is not a number
                    return to_int(value)
    return None


def extract_direct(record: Mapping[str, Any]) -> Optional[int]:
    """Steps a–c. Returns the raw (unclamped) quantity or None."""
    qty = _from_field_responses(record.get("bookingFieldsResponses"))
    if qty is None:
        qty = _from_answer_lists(record)
    return qty


def deep_find_seats(record: Any) -> Optional[int]:
    """Step e: scan every nested key for a seat-like name with an integer value.

    Uses an explicit worklist, so the visiting order is not guaranteed and
    when several keys match, which one wins is unspecified. Only use it as a
    last resort.
    """
    stack = [record]
    while stack:
        current = stack.pop()
        if isinstance(current, Mapping):
            for key, value in current.items():
                if isinstance(value, Mapping) or _is_sequence(value):
                    stack.append(value)
                    continue
                name = str(key).lower()
                if any(hint in name for hint in DEEP_KEY_HINTS):
                    qty = to_int(value)
                    if qty is not None:
                        return qty
        elif _is_sequence(current):
            stack.extend(current)
    return None


def unwrap_booking(document: Any) -> dict:
    """Pull the booking record out of a ``GET /bookings/{uid}`` response."""
    current = document
    for _ in range(3):
        if _is_sequence(current):
            current = current[0] if current else {}
            continue
        if not isinstance(current, Mapping):
            return {}
        for wrapper in ("data", "booking"):
            inner = current.get(wrapper)
            if isinstance(inner, Mapping) or (_is_sequence(inner) and inner):
                current = inner
                break
        else:
            return dict(current)
    return dict(current) if isinstance(current, Mapping) else {}


def record_uid(record: Mapping[str, Any]) -> Optional[str]:
    uid = record.get("uid") or record.get("id")
    return str(uid) if uid not in (None, "") else None


async def resolve_quantity(
    record: Mapping[str, Any],
    provider: Optional["BookingProvider"] = None,
    maximum: int = DEFAULT_MAX_SEATS,
) -> QuantityResolution:
    """Run the full extraction chain against ``record``.

    The detail fetch (step d) only happens when ``provider`` is given and
    the record has a uid/id. A failed fetch raises ``UpstreamError``.
    """
    qty = extract_direct(record)
    if qty is not None and clamp_seats(qty, maximum) > 1:
        return QuantityResolution(clamp_seats(qty, maximum), "direct")

    detail: Mapping[str, Any] = {}
    uid = record_uid(record)
    if provider is not None and uid:
        try:
            detail = await provider.get_booking(uid)
        except ProviderError as e:
            log.error("Booking detail fetch failed for %s: %s", uid, e)
            raise UpstreamError.from_provider("fetch failed", e) from e

        if detail:
            detail_qty = extract_direct(detail)
            if detail_qty is not None and clamp_seats(detail_qty, maximum) > 1:
                return QuantityResolution(clamp_seats(detail_qty, maximum), "detail")
            qty = detail_qty if qty is None else qty

    # Webhook payload first, then the fetched record.
    deep_qty = deep_find_seats(record)
    if deep_qty is None and detail:
        deep_qty = deep_find_seats(detail)
    if deep_qty is not None:
        return QuantityResolution(clamp_seats(deep_qty, maximum), "deep")

    if qty is not None:
        return QuantityResolution(clamp_seats(qty, maximum), "direct")
    return QuantityResolution(1, "default")
