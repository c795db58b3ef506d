"""Cal.com webhook receiver that expands multi-seat bookings into sibling bookings."""

__version__ = "0.1.0"
