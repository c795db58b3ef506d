"""Error taxonomy for webhook processing.

Every ``WebhookError`` maps to one HTTP status and renders the JSON body the
receiver answers with, so the app layer needs a single exception handler.
"""

from __future__ import annotations

from typing import Any, Optional


class WebhookError(Exception):
    """Base class for failures reported synchronously to the caller."""

    status_code = 500

    def __init__(self, error: str, **context: Any) -> None:
        super().__init__(error)
        self.error = error
        self.context = {k: v for k, v in context.items() if v is not None}

    def to_dict(self) -> dict[str, Any]:
        return {"ok": False, "error": self.error, **self.context}


class AuthenticationError(WebhookError):
    """Bad or missing signature and no valid workflow token."""

    status_code = 401

    def __init__(self, error: str = "invalid signature") -> None:
        super().__init__(error)


class ConfigurationError(WebhookError):
    """Required outbound configuration is absent."""

    status_code = 500


class BookingValidationError(WebhookError):
    """The booking lacks a field needed to create sibling bookings."""

    status_code = 400

    def __init__(self, missing: list[str], **context: Any) -> None:
        super().__init__("missing eventTypeId/start/attendee", missing=missing, **context)
        self.missing = missing


class ProviderError(Exception):
    """Non-success answer (or transport failure) from the booking provider.

    ``status`` is None when no HTTP response was received.
    """

    def __init__(self, status: Optional[int], details: str) -> None:
        super().__init__(f"provider error {status}: {details[:200]}")
        self.status = status
        self.details = details


class UpstreamError(WebhookError):
    """A provider call failed; replication stopped where it was."""

    status_code = 400

    def __init__(
        self,
        error: str,
        status: Optional[int],
        details: str,
        created: int = 0,
        qty: Optional[int] = None,
        extra: Optional[int] = None,
    ) -> None:
        super().__init__(error, status=status, details=details, created=created, qty=qty, extra=extra)
        self.status = status
        self.details = details
        self.created = created

    @classmethod
    def from_provider(cls, error: str, exc: ProviderError, **context: Any) -> "UpstreamError":
        return cls(error, status=exc.status, details=exc.details, **context)
