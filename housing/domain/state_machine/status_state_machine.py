from housing.domain.enums.listing_status import ListingStatus
from housing.domain.errors import ValidationError


# Mapping of valid transitions: from_status -> set of allowed to_statuses
VALID_TRANSITIONS: dict[ListingStatus, frozenset[ListingStatus]] = {
    ListingStatus.AVAILABLE: frozenset({ListingStatus.FULL, ListingStatus.CLOSED}),
    ListingStatus.FULL: frozenset({ListingStatus.AVAILABLE, ListingStatus.CLOSED}),
    # Reopening a closed listing is not an update
    ListingStatus.CLOSED: frozenset(),
}


def describe_invalid_transition(from_status: ListingStatus, to_status: ListingStatus) -> str:
    allowed = sorted(s.value for s in VALID_TRANSITIONS.get(from_status, frozenset()))
    return (
        f"Invalid status transition from {from_status.value} to {to_status.value}. "
        f"Allowed transitions: {allowed}"
    )


class InvalidStateTransitionError(ValidationError):
    """Raised when an invalid status transition is attempted."""

    def __init__(self, from_status: ListingStatus, to_status: ListingStatus) -> None:
        self.from_status = from_status
        self.to_status = to_status
        super().__init__([describe_invalid_transition(from_status, to_status)])


class StatusStateMachine:
    """
    Validates status changes of a housing share.

    Stateless by design. Keeping the current status is always allowed and is
    not a transition; status is never derived from occupancy.
    """

    def can_transition(self, from_status: ListingStatus, to_status: ListingStatus) -> bool:
        """Return True if moving from_status → to_status is permitted."""
        if from_status == to_status:
            return True
        if from_status.is_terminal:
            return False
        return to_status in VALID_TRANSITIONS.get(from_status, frozenset())

    def validate_transition(self, from_status: ListingStatus, to_status: ListingStatus) -> None:
        """Raise InvalidStateTransitionError if the transition is not permitted."""
        if not self.can_transition(from_status, to_status):
            raise InvalidStateTransitionError(from_status, to_status)

