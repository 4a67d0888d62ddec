from enum import Enum


class ListingStatus(str, Enum):
    """Availability states a housing share moves through by explicit owner action."""

    AVAILABLE = "available"
    FULL = "full"
    CLOSED = "closed"

    @property
    def is_terminal(self) -> bool:
        """Closed listings cannot be moved to another status by an update."""
        return self is ListingStatus.CLOSED
