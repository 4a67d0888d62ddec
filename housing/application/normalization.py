"""
Boundary normalization of client-supplied listing fields.

Transport layers hand over loosely shaped input (multipart forms send
``preferences`` as a JSON string, numbers as text, camelCase keys). This stage
turns it into the canonical snake_case mapping the invariant validator and
the entity expect. It runs once, before validation, on every write.
"""
import json
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

import structlog

from housing.domain.entities.housing_share import MUTABLE_FIELDS
from housing.domain.errors import ValidationError

logger = structlog.get_logger(__name__)

FIELD_ALIASES: dict[str, str] = {
    "currentOccupants": "current_occupants",
    "totalCapacity": "total_capacity",
    "pricePerPerson": "price_per_person",
    "region": "governorate",
}

PREFERENCE_ALIASES: dict[str, str] = {
    "studyField": "study_field",
    "yearOfStudy": "year_of_study",
}
PREFERENCE_FIELDS: frozenset[str] = frozenset({"gender", "study_field", "year_of_study"})

_INT_FIELDS = ("current_occupants", "total_capacity")
_TEXT_FIELDS = ("title", "description", "governorate", "city", "address", "university")


def _decode_preferences(value: Any) -> dict[str, Any]:
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as exc:
            raise ValueError(f"preferences is not valid JSON: {exc.msg}") from exc
    if not isinstance(value, Mapping):
        raise ValueError("preferences must be an object")

    preferences: dict[str, Any] = {}
    for key, item in value.items():
        name = PREFERENCE_ALIASES.get(key, key)
        if name not in PREFERENCE_FIELDS or item is None:
            continue
        if isinstance(item, str):
            preferences[name] = item.strip()
        elif isinstance(item, (int, float)) and not isinstance(item, bool) and name != "gender":
            # yearOfStudy often arrives as a JSON number
            preferences[name] = str(item)
        else:
            raise ValueError(f"preferences.{name} must be a string")
    return preferences


def _decode_amenities(value: Any) -> list[str]:
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.startswith("["):
            value = json.loads(stripped)
        else:
            value = stripped.split(",")
    if not isinstance(value, (list, tuple)):
        raise ValueError("amenities must be a list of strings")
    return [str(item).strip() for item in value if str(item).strip()]


def _to_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{name} must be an integer")
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError(f"{name} must be an integer") from exc
    if not number.is_finite() or number != number.to_integral_value():
        raise ValueError(f"{name} must be an integer")
    return int(number)


def _to_decimal(name: str, value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a number")
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError(f"{name} must be a number") from exc
    if not number.is_finite():
        raise ValueError(f"{name} must be a number")
    return number


def normalize_listing_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    """
    Return canonical listing fields; raise ValidationError listing every field
    that cannot be decoded.

    Keys set to ``None`` are treated as not supplied. Unknown and immutable
    keys (id, owner, timestamps, photos) are dropped.
    """
    normalized: dict[str, Any] = {}
    problems: list[str] = []
    dropped: list[str] = []

    for key, value in fields.items():
        name = FIELD_ALIASES.get(key, key)
        if name not in MUTABLE_FIELDS:
            dropped.append(key)
            continue
        if value is None:
            continue
        try:
            if name == "preferences":
                normalized[name] = _decode_preferences(value)
            elif name == "amenities":
                normalized[name] = _decode_amenities(value)
            elif name in _INT_FIELDS:
                normalized[name] = _to_int(name, value)
            elif name == "price_per_person":
                normalized[name] = _to_decimal(name, value)
            elif name in _TEXT_FIELDS:
                normalized[name] = str(value).strip()
            else:
                normalized[name] = value
        except (ValueError, TypeError) as exc:
            problems.append(str(exc))

    if dropped:
        logger.debug("listing_fields_dropped", fields=sorted(dropped))
    if problems:
        raise ValidationError(problems)
    return normalized
