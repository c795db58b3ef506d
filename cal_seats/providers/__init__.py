"""Booking provider abstractions and implementations."""

from .base import BookingProvider
from .cal_com import CalComProvider

__all__ = ["BookingProvider", "CalComProvider"]
