"""Data models for the webhook layer."""

from .booking import Attendee, BookingSlot, CreateBookingRequest, WebhookResult

__all__ = ["Attendee", "BookingSlot", "CreateBookingRequest", "WebhookResult"]
