"""Abstract base class for booking providers.

Defines the two calls the receiver makes against the scheduling provider:
creating a booking and fetching one booking's full detail.
"""

from abc import ABC, abstractmethod


class BookingProvider(ABC):
    """Abstract booking backend.

    Implementations raise ``cal_seats.errors.ProviderError`` for any
    non-success answer so callers never inspect HTTP responses directly.
    """

    @abstractmethod
    async def create_booking(self, body: dict) -> dict:
        """Create one booking.

        Args:
            body: Request body as accepted by the provider's
                ``POST /bookings`` endpoint.

        Returns:
            The created booking as returned by the provider.
        """

    @abstractmethod
    async def get_booking(self, uid: str) -> dict:
        """Fetch the full detail of one booking.

        Args:
            uid: Provider booking uid (or numeric id).

        Returns:
            The booking record, already unwrapped from any response
            envelope. Empty dict when the response carried no record.
        """
