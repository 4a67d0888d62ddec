"""Unit tests for housing share invariants."""
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from housing.domain.entities.housing_share import HousingShare
from housing.domain.errors import ValidationError
from housing.domain.validation.invariant_validator import collect_violations, validate


def _candidate(**overrides) -> dict:
    candidate = {
        "title": "Room in Sfax",
        "description": "Two rooms left.",
        "governorate": "Sfax",
        "city": "Sfax Ville",
        "address": "3 Rue Habib Maazoun",
        "university": "Universite de Sfax",
        "current_occupants": 1,
        "total_capacity": 3,
        "price_per_person": Decimal("150"),
        "preferences": {"gender": "any"},
    }
    candidate.update(overrides)
    return candidate


def _existing(**overrides) -> HousingShare:
    return HousingShare.create(
        owner_id="student-1",
        fields=_candidate(**overrides),
        photos=[],
        now=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


class TestCreate:
    def test_valid_candidate_has_no_violations(self) -> None:
        assert collect_violations(_candidate()) == []

    def test_missing_fields_all_reported(self) -> None:
        violations = collect_violations({})
        assert "title is required" in violations
        assert "university is required" in violations
        assert "price_per_person is required" in violations
        assert "preferences.gender is required" in violations

    def test_blank_text_is_missing(self) -> None:
        assert "city is required" in collect_violations(_candidate(city="   "))

    def test_capacity_must_exceed_occupants(self) -> None:
        violations = collect_violations(_candidate(current_occupants=3, total_capacity=3))
        assert violations == ["total_capacity (3) must be greater than current_occupants (3)"]

    def test_occupants_at_least_one(self) -> None:
        assert "current_occupants must be at least 1" in collect_violations(
            _candidate(current_occupants=0)
        )

    def test_capacity_at_least_two(self) -> None:
        assert "total_capacity must be at least 2" in collect_violations(
            _candidate(current_occupants=1, total_capacity=1)
        )

    def test_negative_price(self) -> None:
        assert collect_violations(_candidate(price_per_person=Decimal("-1"))) == [
            "price_per_person must not be negative"
        ]

    def test_zero_price_allowed(self) -> None:
        assert collect_violations(_candidate(price_per_person=Decimal("0"))) == []

    def test_unknown_gender(self) -> None:
        violations = collect_violations(_candidate(preferences={"gender": "robot"}))
        assert len(violations) == 1
        assert "preferences.gender" in violations[0]

    def test_unknown_governorate(self) -> None:
        violations = collect_violations(_candidate(governorate="Paris"))
        assert len(violations) == 1
        assert "Paris" in violations[0]

    def test_unknown_status(self) -> None:
        violations = collect_violations(_candidate(status="sold"))
        assert len(violations) == 1
        assert "status" in violations[0]

    def test_several_violations_collected_together(self) -> None:
        violations = collect_violations(
            _candidate(governorate="Paris", price_per_person=Decimal("-5"), total_capacity=1)
        )
        assert len(violations) >= 3

    def test_validate_raises_with_all_violations(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate(_candidate(title="", governorate="Paris"))
        assert len(exc_info.value.violations) == 2


class TestPriceBounds:
    def test_more_than_two_decimal_places(self) -> None:
        assert collect_violations(_candidate(price_per_person=Decimal("300.555"))) == [
            "price_per_person must have at most 2 decimal places"
        ]

    def test_too_large_for_column(self) -> None:
        assert collect_violations(_candidate(price_per_person=Decimal("100000000"))) == [
            "price_per_person must be less than 100000000"
        ]

    def test_largest_storable_price(self) -> None:
        assert collect_violations(_candidate(price_per_person=Decimal("99999999.99"))) == []

    def test_trailing_zeros_allowed(self) -> None:
        assert collect_violations(_candidate(price_per_person=Decimal("120.500"))) == []


class TestWrongTypes:
    def test_list_gender_is_a_violation(self) -> None:
        violations = collect_violations(_candidate(preferences={"gender": ["male"]}))
        assert len(violations) == 1
        assert "preferences.gender" in violations[0]

    def test_dict_gender_is_a_violation(self) -> None:
        violations = collect_violations(_candidate(preferences={"gender": {"v": "male"}}))
        assert len(violations) == 1

    def test_list_status_is_a_violation(self) -> None:
        violations = collect_violations(_candidate(status=["closed"]))
        assert len(violations) == 1
        assert "status" in violations[0]

    def test_list_status_on_update(self) -> None:
        violations = collect_violations({"status": ["closed"]}, existing=_existing())
        assert len(violations) == 1

    def test_non_string_governorate(self) -> None:
        violations = collect_violations(_candidate(governorate=7))
        assert len(violations) == 1
        assert "governorate" in violations[0]


class TestUpdate:
    def test_partial_update_checked_against_merged_view(self) -> None:
        existing = _existing(current_occupants=2, total_capacity=4)
        violations = collect_violations({"total_capacity": 2}, existing=existing)
        assert violations == ["total_capacity (2) must be greater than current_occupants (2)"]

    def test_occupants_raised_past_stored_capacity(self) -> None:
        existing = _existing(current_occupants=1, total_capacity=3)
        violations = collect_violations({"current_occupants": 3}, existing=existing)
        assert violations == ["total_capacity (3) must be greater than current_occupants (3)"]

    def test_consistent_partial_update(self) -> None:
        existing = _existing(current_occupants=1, total_capacity=3)
        assert collect_violations({"current_occupants": 2}, existing=existing) == []

    def test_empty_update_is_valid(self) -> None:
        assert collect_violations({}, existing=_existing()) == []

    def test_required_fields_not_demanded_on_update(self) -> None:
        assert collect_violations({"city": "Sakiet Ezzit"}, existing=_existing()) == []

    def test_blanking_text_rejected(self) -> None:
        assert collect_violations({"title": " "}, existing=_existing()) == [
            "title must not be empty"
        ]

    def test_preferences_without_gender_uses_stored_gender(self) -> None:
        violations = collect_violations(
            {"preferences": {"study_field": "Law"}}, existing=_existing()
        )
        assert violations == []

    def test_reopening_closed_listing_rejected(self) -> None:
        existing = _existing(status="closed")
        violations = collect_violations({"status": "available"}, existing=existing)
        assert len(violations) == 1
        assert "closed to available" in violations[0]

    def test_same_status_allowed(self) -> None:
        existing = _existing(status="closed")
        assert collect_violations({"status": "closed"}, existing=existing) == []
