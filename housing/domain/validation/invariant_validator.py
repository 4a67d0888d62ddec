"""
Domain invariants of a housing share, checked before every store mutation.

The checks are pure: they never perform I/O and never mutate their inputs.
Every rule runs independently so callers get the complete list of problems.
On update the cross-field rules look at the merged view (stored record
overridden by the supplied fields), never at the partial input alone.
"""
from decimal import Decimal
from typing import Any

from housing.domain.entities.housing_share import HousingShare
from housing.domain.enums.gender import Gender
from housing.domain.enums.governorate import GOVERNORATES, is_valid_governorate
from housing.domain.enums.listing_status import ListingStatus
from housing.domain.errors import ValidationError
from housing.domain.state_machine.status_state_machine import (
    StatusStateMachine,
    describe_invalid_transition,
)

_state_machine = StatusStateMachine()

REQUIRED_TEXT_FIELDS: tuple[str, ...] = (
    "title",
    "description",
    "governorate",
    "city",
    "address",
    "university",
)
REQUIRED_NUMERIC_FIELDS: tuple[str, ...] = (
    "current_occupants",
    "total_capacity",
    "price_per_person",
)

MAX_PRICE = Decimal("100000000")
PRICE_STEP = Decimal("0.01")

_GENDER_VALUES = {g.value for g in Gender}
_STATUS_VALUES = {s.value for s in ListingStatus}


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, (Gender, ListingStatus)) else value


def _merged(candidate: dict[str, Any], existing: HousingShare | None, name: str) -> Any:
    if name in candidate:
        return candidate[name]
    if existing is not None:
        return getattr(existing, name)
    return None


def _merged_gender(candidate: dict[str, Any], existing: HousingShare | None) -> Any:
    preferences = candidate.get("preferences")
    if isinstance(preferences, dict) and "gender" in preferences:
        return _enum_value(preferences["gender"])
    if existing is not None:
        return existing.preferences.gender.value
    return None


def _required_violations(candidate: dict[str, Any]) -> list[str]:
    violations = []
    for name in REQUIRED_TEXT_FIELDS:
        value = candidate.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            violations.append(f"{name} is required")
    for name in REQUIRED_NUMERIC_FIELDS:
        if candidate.get(name) is None:
            violations.append(f"{name} is required")
    preferences = candidate.get("preferences")
    if not isinstance(preferences, dict) or preferences.get("gender") in (None, ""):
        violations.append("preferences.gender is required")
    return violations


def _update_text_violations(candidate: dict[str, Any]) -> list[str]:
    violations = []
    for name in REQUIRED_TEXT_FIELDS:
        if name in candidate:
            value = candidate[name]
            if value is None or (isinstance(value, str) and not value.strip()):
                violations.append(f"{name} must not be empty")
    return violations


def _capacity_violations(candidate: dict[str, Any], existing: HousingShare | None) -> list[str]:
    violations = []
    occupants = _merged(candidate, existing, "current_occupants")
    capacity = _merged(candidate, existing, "total_capacity")

    if occupants is not None and occupants < 1:
        violations.append("current_occupants must be at least 1")
    if capacity is not None and capacity < 2:
        violations.append("total_capacity must be at least 2")
    if occupants is not None and capacity is not None and capacity <= occupants:
        violations.append(
            f"total_capacity ({capacity}) must be greater than current_occupants ({occupants})"
        )
    return violations


def _price_violations(candidate: dict[str, Any]) -> list[str]:
    price = candidate.get("price_per_person")
    if price is None:
        return []
    price = Decimal(str(price))
    if not price.is_finite():
        return ["price_per_person must be a number"]
    if price < 0:
        return ["price_per_person must not be negative"]
    # Stored as NUMERIC(10, 2)
    if price >= MAX_PRICE:
        return [f"price_per_person must be less than {MAX_PRICE}"]
    if price != price.quantize(PRICE_STEP):
        return ["price_per_person must have at most 2 decimal places"]
    return []


def _gender_violations(candidate: dict[str, Any], existing: HousingShare | None) -> list[str]:
    if "preferences" not in candidate:
        return []
    gender = _merged_gender(candidate, existing)
    if gender is None:
        return []
    if not isinstance(gender, str) or gender not in _GENDER_VALUES:
        return [f"preferences.gender must be one of {sorted(_GENDER_VALUES)}, got {gender!r}"]
    return []


def _governorate_violations(candidate: dict[str, Any]) -> list[str]:
    governorate = candidate.get("governorate")
    if governorate is None or (isinstance(governorate, str) and not governorate.strip()):
        return []
    if not isinstance(governorate, str) or not is_valid_governorate(governorate):
        return [f"governorate {governorate!r} is not one of the {len(GOVERNORATES)} governorates"]
    return []


def _status_violations(candidate: dict[str, Any], existing: HousingShare | None) -> list[str]:
    if candidate.get("status") is None:
        return []
    status = _enum_value(candidate["status"])
    if not isinstance(status, str) or status not in _STATUS_VALUES:
        return [f"status must be one of {sorted(_STATUS_VALUES)}, got {status!r}"]
    if existing is not None:
        new_status = ListingStatus(status)
        if not _state_machine.can_transition(existing.status, new_status):
            return [describe_invalid_transition(existing.status, new_status)]
    return []


def collect_violations(
    candidate: dict[str, Any], existing: HousingShare | None = None
) -> list[str]:
    """
    Return every invariant ``candidate`` violates; an empty list means valid.

    ``candidate`` holds normalized fields. Without ``existing`` it is treated
    as a full listing being created; with ``existing`` it is a partial update
    checked against the merged view.
    """
    violations: list[str] = []
    if existing is None:
        violations.extend(_required_violations(candidate))
    else:
        violations.extend(_update_text_violations(candidate))
    violations.extend(_capacity_violations(candidate, existing))
    violations.extend(_price_violations(candidate))
    violations.extend(_gender_violations(candidate, existing))
    violations.extend(_governorate_violations(candidate))
    violations.extend(_status_violations(candidate, existing))
    return violations


def validate(candidate: dict[str, Any], existing: HousingShare | None = None) -> None:
    """Raise ValidationError carrying every violation if ``candidate`` is invalid."""
    violations = collect_violations(candidate, existing)
    if violations:
        raise ValidationError(violations)
