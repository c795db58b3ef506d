"""Authentication for inbound webhook deliveries.

Two independent trust paths:
  - HMAC signature  — ``x-cal-signature-256`` header, hex HMAC-SHA256 of the
                      raw body keyed with CAL_WEBHOOK_SECRET
  - workflow token  — ``?token=`` query param matching WORKFLOW_TOKEN, for
                      callers that invoke the endpoint directly

Behavior matrix:
  signature valid                    → allow
  token valid                        → allow (signature not checked)
  neither                            → 401 Unauthorized
  secret empty and token empty       → every request rejected
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from typing import Optional

from fastapi import Header, Query, Request

from cal_seats.config import Settings
from cal_seats.errors import AuthenticationError

log = logging.getLogger("cal_seats.auth")

SIGNATURE_HEADER = "x-cal-signature-256"


def compute_signature(raw: bytes, secret: str) -> str:
    """Hex HMAC-SHA256 of ``raw`` keyed with ``secret``."""
    return hmac.new(secret.encode("utf-8"), raw, hashlib.sha256).hexdigest()


def verify_signature(raw: bytes, header: Optional[str], secret: str) -> bool:
    if not secret or not header:
        return False
    expected = compute_signature(raw, secret)
    return hmac.compare_digest(expected.encode("utf-8"), header.encode("utf-8"))


def verify_workflow_token(token: Optional[str], expected: str) -> bool:
    if not expected or not token:
        return False
    return hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8"))


def is_authorized(
    raw: bytes,
    signature: Optional[str],
    token: Optional[str],
    settings: Settings,
) -> bool:
    """True iff the signature is valid or the workflow token matches."""
    if verify_signature(raw, signature, settings.cal_webhook_secret):
        return True
    if verify_workflow_token(token, settings.workflow_token):
        log.info("Webhook accepted via workflow token")
        return True
    return False


async def require_webhook_auth(
    request: Request,
    token: str = Query(default=""),
    x_cal_signature_256: Optional[str] = Header(default=None),
) -> bytes:
    """FastAPI dependency. Authenticates the delivery and returns the raw body."""
    settings: Settings = request.app.state.settings
    raw = await request.body()

    if not is_authorized(raw, x_cal_signature_256, token, settings):
        log.warning(
            "Rejected webhook: signature=%s token=%s",
            "present" if x_cal_signature_256 else "missing",
            "present" if token else "missing",
        )
        raise AuthenticationError()

    return raw
