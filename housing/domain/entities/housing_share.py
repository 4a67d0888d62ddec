from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from housing.domain.enums.gender import Gender
from housing.domain.enums.listing_status import ListingStatus
from housing.domain.state_machine.status_state_machine import StatusStateMachine

_state_machine = StatusStateMachine()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class MediaRef:
    """One stored photo: its public URL and the id needed to delete it."""

    url: str
    deletable_id: str


@dataclass(frozen=True)
class MediaFile:
    """A photo uploaded by a client, not yet in the object store."""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


@dataclass(frozen=True)
class Preferences:
    gender: Gender
    study_field: str | None = None
    year_of_study: str | None = None

    def merged_with(self, changes: dict[str, Any]) -> "Preferences":
        """Return new preferences where supplied keys override the stored ones."""
        gender = changes.get("gender", self.gender)
        return Preferences(
            gender=Gender(gender),
            study_field=changes.get("study_field", self.study_field),
            year_of_study=changes.get("year_of_study", self.year_of_study),
        )


# Attributes an owner may change after creation
MUTABLE_FIELDS: frozenset[str] = frozenset(
    {
        "title",
        "description",
        "governorate",
        "city",
        "address",
        "university",
        "amenities",
        "current_occupants",
        "total_capacity",
        "price_per_person",
        "preferences",
        "status",
    }
)


@dataclass
class HousingShare:
    """
    A student's shared-housing listing.

    The record and its photos form one aggregate, but the photos live in the
    object store; ``photos`` only holds references to them. Invariants are
    enforced by the invariant validator before any instance is persisted.
    """

    # Identity
    id: UUID = field(default_factory=uuid4)
    owner_id: str = ""

    # Description
    title: str = ""
    description: str = ""
    governorate: str = ""
    city: str = ""
    address: str = ""
    university: str = ""
    amenities: list[str] = field(default_factory=list)

    # Capacity and price
    current_occupants: int = 1
    total_capacity: int = 2
    price_per_person: Decimal = Decimal("0")

    preferences: Preferences = field(default_factory=lambda: Preferences(gender=Gender.ANY))
    photos: list[MediaRef] = field(default_factory=list)

    status: ListingStatus = ListingStatus.AVAILABLE

    # Timestamps
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    # -------------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------------

    @classmethod
    def create(
        cls,
        *,
        owner_id: str,
        fields: dict[str, Any],
        photos: list[MediaRef],
        now: datetime | None = None,
    ) -> "HousingShare":
        """Build a new listing from already validated, normalized fields."""
        now = now or _utcnow()
        preferences = fields["preferences"]
        return cls(
            owner_id=owner_id,
            title=fields["title"],
            description=fields["description"],
            governorate=fields["governorate"],
            city=fields["city"],
            address=fields["address"],
            university=fields["university"],
            amenities=list(fields.get("amenities", [])),
            current_occupants=fields["current_occupants"],
            total_capacity=fields["total_capacity"],
            price_per_person=fields["price_per_person"],
            preferences=Preferences(
                gender=Gender(preferences["gender"]),
                study_field=preferences.get("study_field"),
                year_of_study=preferences.get("year_of_study"),
            ),
            photos=list(photos),
            status=ListingStatus(fields.get("status", ListingStatus.AVAILABLE)),
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def with_changes(
        self,
        changes: dict[str, Any],
        *,
        now: datetime | None = None,
    ) -> "HousingShare":
        """
        Return the merged listing: stored fields overridden by ``changes``.

        The original instance is left untouched so a failed commit can fall
        back to it.
        """
        updates: dict[str, Any] = {k: v for k, v in changes.items() if k in MUTABLE_FIELDS}

        if "preferences" in updates:
            updates["preferences"] = self.preferences.merged_with(updates["preferences"])
        if "amenities" in updates:
            updates["amenities"] = list(updates["amenities"])
        if "status" in updates:
            new_status = ListingStatus(updates["status"])
            _state_machine.validate_transition(self.status, new_status)
            updates["status"] = new_status

        updates["updated_at"] = now or _utcnow()
        return replace(self, **updates)

    def is_owned_by(self, owner_id: str) -> bool:
        return self.owner_id == owner_id
