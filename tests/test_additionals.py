"""Tests for add-on eligibility and totals."""
from dataclasses import replace

import pytest

from field_quote.engine import ValidationError
from field_quote.engine.additionals import AdditionalsValidator

from factories import ADDITIONALS, D, hvac_catalog


@pytest.fixture
def validator():
    return AdditionalsValidator(hvac_catalog())


def test_sums_eligible_additionals(validator):
    result = validator.validate(["rappel", "bracket"], ["Installation"])
    assert [c.additional_id for c in result.charges] == ["rappel", "bracket"]
    assert result.total == D("770.00")


def test_no_additionals(validator):
    result = validator.validate([], ["Cleaning"])
    assert result.charges == []
    assert result.total == D("0.00")


def test_empty_category_list_means_every_category(validator):
    assert validator.validate(["filter"], ["Maintenance"]).total == D("40.00")


def test_eligible_through_any_request_category(validator):
    assert validator.validate(["bracket"], ["Maintenance", "Installation"]).total == D("120.00")


def test_restricted_additional_with_other_category_is_rejected(validator):
    with pytest.raises(ValidationError) as exc:
        validator.validate(["bracket"], ["Maintenance"])
    assert exc.value.code == "ineligible_additional"
    assert exc.value.details["eligible_categories"] == ["Installation"]


def test_unknown_additional(validator):
    with pytest.raises(ValidationError) as exc:
        validator.validate(["jetpack"], ["Installation"])
    assert exc.value.code == "unknown_additional"


def test_inactive_additional_is_unknown():
    catalog = hvac_catalog(additionals=(replace(ADDITIONALS[0], active=False),))
    with pytest.raises(ValidationError):
        AdditionalsValidator(catalog).validate(["rappel"], ["Cleaning"])


def test_duplicate_selection(validator):
    with pytest.raises(ValidationError) as exc:
        validator.validate(["rappel", "rappel"], ["Cleaning"])
    assert exc.value.code == "duplicate_additional"
