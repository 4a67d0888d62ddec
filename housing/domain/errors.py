"""
Error taxonomy for the housing share core.

Every error carries a stable ``code`` so the transport layer can map it to an
externally visible status without inspecting messages.

- ValidationError / AuthorizationError / NotFoundError are raised before any
  store mutation and never leave partial state behind.
- StorageError and MediaError come from the record store and the object store.
  When a compensating rollback ran, its outcome is attached so callers can
  decide whether manual cleanup is needed.
"""
from dataclasses import dataclass, field


@dataclass(frozen=True)
class RollbackOutcome:
    """Result of deleting objects uploaded during a failed write."""

    deleted_ids: list[str] = field(default_factory=list)
    orphaned_ids: list[str] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        """True when nothing uploaded by the failed write survives."""
        return not self.orphaned_ids


class HousingShareError(Exception):
    """Base class for all housing share core errors."""

    code = "HOUSING_SHARE_ERROR"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(HousingShareError):
    """One or more listing invariants were violated. All violations are reported."""

    code = "VALIDATION_ERROR"

    def __init__(self, violations: list[str], message: str = "Validation error") -> None:
        self.violations = list(violations)
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.message}: {'; '.join(self.violations)}"


class NotFoundError(HousingShareError):
    code = "NOT_FOUND"

    def __init__(self, listing_id: object) -> None:
        self.listing_id = listing_id
        super().__init__(f"Housing share {listing_id} not found.")


class AuthorizationError(HousingShareError):
    """The caller does not own the housing share it tried to mutate."""

    code = "FORBIDDEN"

    def __init__(self, listing_id: object, owner_id: str) -> None:
        self.listing_id = listing_id
        self.owner_id = owner_id
        super().__init__(f"Identity {owner_id} does not own housing share {listing_id}.")


class StorageError(HousingShareError):
    """The record store failed or timed out."""

    code = "STORAGE_ERROR"

    def __init__(self, message: str, rollback: RollbackOutcome | None = None) -> None:
        self.rollback = rollback
        super().__init__(message)


class MediaError(HousingShareError):
    """Uploading a batch of photos failed; the batch has been rolled back."""

    code = "MEDIA_ERROR"

    def __init__(
        self,
        message: str,
        failures: list[str],
        rollback: RollbackOutcome,
    ) -> None:
        self.failures = list(failures)
        self.rollback = rollback
        super().__init__(message)

    @property
    def rolled_back(self) -> bool:
        return self.rollback.clean

    @property
    def orphaned_ids(self) -> list[str]:
        return self.rollback.orphaned_ids


class ObjectStoreError(Exception):
    """Raised by object store adapters when an upload or delete fails."""
