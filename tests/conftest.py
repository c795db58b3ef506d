"""Shared fakes for the webhook tests."""

import hashlib
import hmac
import json
import os
import sys
from typing import Optional

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from cal_seats.config import Settings
from cal_seats.errors import ProviderError
from cal_seats.providers.base import BookingProvider

SECRET = "whsec_test_secret"
WORKFLOW_TOKEN = "wf-token-123"


class FakeProvider(BookingProvider):
    """Records every call; optionally fails the Nth create or the detail fetch."""

    def __init__(
        self,
        fail_on: Optional[int] = None,
        status: int = 409,
        detail: Optional[dict] = None,
        detail_error: Optional[ProviderError] = None,
    ) -> None:
        self.attempts: list[dict] = []
        self.created: list[dict] = []
        self.fetched: list[str] = []
        self.fail_on = fail_on
        self.status = status
        self.detail = detail or {}
        self.detail_error = detail_error

    async def create_booking(self, body: dict) -> dict:
        self.attempts.append(body)
        if self.fail_on is not None and len(self.attempts) == self.fail_on:
            raise ProviderError(self.status, '{"error":"no available seats"}')
        self.created.append(body)
        return {"uid": f"child-{len(self.created)}", **body}

    async def get_booking(self, uid: str) -> dict:
        self.fetched.append(uid)
        if self.detail_error is not None:
            raise self.detail_error
        return self.detail


def make_settings(**overrides) -> Settings:
    values = {
        "cal_api_key": "cal_live_test",
        "cal_webhook_secret": SECRET,
        "workflow_token": WORKFLOW_TOKEN,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def sign(raw: bytes, secret: str = SECRET) -> str:
    return hmac.new(secret.encode(), raw, hashlib.sha256).hexdigest()


def booking_created(payload: dict, trigger: str = "BOOKING_CREATED") -> bytes:
    return json.dumps({"triggerEvent": trigger, "payload": payload}).encode()


def sample_booking(**overrides) -> dict:
    booking = {
        "uid": "bk_original",
        "eventTypeId": 4242,
        "startTime": "2026-11-02T09:00:00.000Z",
        "attendees": [
            {"name": "Camille Martin", "email": "camille@example.com", "timeZone": "Europe/Paris"}
        ],
        "bookingFieldsResponses": {"places": 4},
        "metadata": {},
    }
    booking.update(overrides)
    return booking

