"""Application configuration via environment variables."""

from __future__ import annotations

import logging

from pydantic import Field
from pydantic_settings import BaseSettings

log = logging.getLogger("cal_seats.config")


class Settings(BaseSettings):
    # Cal.com outbound API
    cal_api_key: str = ""
    cal_api_version: str = "2024-08-13"
    cal_api_base_url: str = "https://api.cal.com/v2"
    cal_timeout_seconds: float = 15.0

    # Inbound auth
    cal_webhook_secret: str = ""
    workflow_token: str = ""

    # Replication
    # Can lower the 15-seat cap, never raise it.
    max_seats: int = Field(default=15, ge=1, le=15)
    default_attendee_name: str = "Invité"
    default_attendee_email: str = "no-reply@cosette.fr"
    default_timezone: str = "Europe/Paris"

    # Server
    host: str = "127.0.0.1"
    port: int = 8080
    debug: bool = False

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "frozen": True,
    }

    def validate_startup(self) -> list[str]:
        """Validate configuration at startup. Returns warnings, never raises."""
        warnings: list[str] = []

        if not self.cal_api_key:
            warnings.append(
                "CAL_API_KEY not set. Multi-seat bookings will be rejected "
                "with a configuration error."
            )

        if not self.cal_webhook_secret and not self.workflow_token:
            warnings.append(
                "Neither CAL_WEBHOOK_SECRET nor WORKFLOW_TOKEN is set. "
                "Every webhook delivery will be rejected."
            )
        elif not self.cal_webhook_secret:
            warnings.append(
                "CAL_WEBHOOK_SECRET not set. Only WORKFLOW_TOKEN callers are accepted."
            )

        return warnings


settings = Settings()
