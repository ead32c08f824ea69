"""Tests for per-line pricing: tiers, base fallback and variable selections."""
from dataclasses import replace
from decimal import Decimal

import pytest

from field_quote.engine import ConfigurationError, PricingTier, RequestLine, TierPolicy, ValidationError
from field_quote.engine.tier_pricer import TierPricer, check_tier_sequence, find_tier, tier_total

from factories import CLEANING, INSTALL_9_12K, VISIT, D


@pytest.fixture
def pricer():
    return TierPricer(TierPolicy())


@pytest.mark.parametrize("quantity,expected", [
    (1, "250.00"),
    (2, "450.00"),
    (3, "595.00"),
    (4, "795.00"),
    (5, "950.00"),
    (12, "2280.00"),
])
def test_cleaning_tiers(pricer, quantity, expected):
    priced = pricer.price(CLEANING, RequestLine("cleaning", quantity))
    assert priced.line_total == D(expected)
    assert priced.breakdown.source == "tier"
    assert priced.breakdown.tier is not None


def test_two_cleanings_use_tier_not_base(pricer):
    """Quantity 2 is priced from the 2-unit bracket, not 2 x base price."""
    priced = pricer.price(CLEANING, RequestLine("cleaning", 2))
    assert priced.line_total == D("450.00")
    assert priced.line_total != D("500.00")


def test_tier_total_in_cents_when_quantum_is_one_cent():
    pricer = TierPricer(TierPolicy(tier_total_quantum=D("0.01")))
    priced = pricer.price(CLEANING, RequestLine("cleaning", 3))
    assert priced.line_total == D("594.99")


@pytest.mark.parametrize("price,quantity,expected", [
    ("249.99", 1, "249.99"),
    ("10.02", 1, "10.02"),
    ("249.99", 2, "499.98"),
    ("12.34", 3, "37.02"),
    ("66.67", 3, "200.00"),
])
def test_exact_tier_prices_are_kept(pricer, price, quantity, expected):
    """Only per-unit rounding residue is snapped; exact figures bill as listed."""
    service = replace(CLEANING, tiers=(PricingTier(1, None, D(price)),), variables=())
    priced = pricer.price(service, RequestLine("cleaning", quantity))
    assert priced.line_total == D(expected)


def test_tier_total_helper():
    assert tier_total(D("198.33"), 3, D("0.05")) == D("595.00")
    assert tier_total(D("198.33"), 1, D("0.05")) == D("198.33")
    assert tier_total(D("190.00"), 7, D("0.05")) == D("1330.00")


def test_tier_ignores_modifiers_by_default(pricer):
    priced = pricer.price(CLEANING, RequestLine("cleaning", 2, ("access-ladder",)))
    assert priced.line_total == D("450.00")
    assert priced.breakdown.modifier_contribution == D("0")


def test_tier_adds_modifiers_when_enabled():
    pricer = TierPricer(TierPolicy(apply_modifiers_to_tiers=True))
    priced = pricer.price(CLEANING, RequestLine("cleaning", 2, ("access-ladder",)))
    assert priced.breakdown.base_contribution == D("450.00")
    assert priced.breakdown.modifier_contribution == D("60.00")
    assert priced.line_total == D("510.00")


def test_base_price_with_modifier(pricer):
    priced = pricer.price(INSTALL_9_12K, RequestLine("install-9-12k", 1, ("infra-drill",)))
    assert priced.breakdown.source == "base"
    assert priced.breakdown.base_contribution == D("795.00")
    assert priced.breakdown.modifier_contribution == D("50.00")
    assert priced.line_total == D("845.00")


def test_base_price_scales_with_quantity(pricer):
    priced = pricer.price(VISIT, RequestLine("visit", 3))
    assert priced.line_total == D("720.00")
    assert priced.breakdown.tier is None


def test_negative_modifier_reduces_price(pricer):
    service = replace(
        INSTALL_9_12K,
        variables=(replace(
            INSTALL_9_12K.variables[0],
            options=INSTALL_9_12K.variables[0].options + (
                replace(INSTALL_9_12K.variables[0].options[0], option_id="infra-own", price_modifier=D("-95.00")),
            ),
        ),),
    )
    priced = pricer.price(service, RequestLine("install-9-12k", 2, ("infra-own",)))
    assert priced.line_total == D("1400.00")


@pytest.mark.parametrize("quantity", [0, -1, 1.5, True])
def test_rejects_non_positive_or_fractional_quantity(pricer, quantity):
    with pytest.raises(ValidationError) as exc:
        pricer.price(VISIT, RequestLine("visit", quantity))
    assert exc.value.code == "invalid_quantity"


def test_missing_required_selection(pricer):
    with pytest.raises(ValidationError) as exc:
        pricer.price(INSTALL_9_12K, RequestLine("install-9-12k", 1))
    assert exc.value.code == "missing_required_option"


def test_optional_variable_may_be_unset(pricer):
    priced = pricer.price(CLEANING, RequestLine("cleaning", 1))
    assert priced.line_total == D("250.00")


def test_unknown_option(pricer):
    with pytest.raises(ValidationError) as exc:
        pricer.price(INSTALL_9_12K, RequestLine("install-9-12k", 1, ("infra-ready", "gold-plated")))
    assert exc.value.code == "unknown_option"


def test_option_of_another_service_is_unknown(pricer):
    with pytest.raises(ValidationError):
        pricer.price(VISIT, RequestLine("visit", 1, ("access-ladder",)))


def test_two_options_for_one_variable(pricer):
    with pytest.raises(ValidationError) as exc:
        pricer.price(INSTALL_9_12K, RequestLine("install-9-12k", 1, ("infra-ready", "infra-drill")))
    assert exc.value.code == "multiple_options"


def test_every_quantity_maps_to_exactly_one_tier():
    check_tier_sequence(CLEANING)
    for quantity in range(1, 60):
        matches = [t for t in CLEANING.tiers if t.contains(quantity)]
        assert len(matches) == 1, f"quantity {quantity} matched {len(matches)} tiers"
        assert find_tier(CLEANING.tiers, quantity) is matches[0]


@pytest.mark.parametrize("tiers", [
    (PricingTier(1, 1, D("10")), PricingTier(3, None, D("8"))),          # gap
    (PricingTier(1, 2, D("10")), PricingTier(2, None, D("8"))),          # overlap
    (PricingTier(2, None, D("10")),),                                    # does not start at 1
    (PricingTier(1, None, D("10")), PricingTier(2, 3, D("8"))),          # unbounded not last
])
def test_malformed_tier_sequences(pricer, tiers):
    service = replace(CLEANING, tiers=tiers, variables=())
    with pytest.raises(ConfigurationError):
        check_tier_sequence(service)
    with pytest.raises(ConfigurationError):
        pricer.price(service, RequestLine("cleaning", 2))


def test_quantity_above_bounded_tiers_is_configuration_error(pricer):
    service = replace(CLEANING, tiers=CLEANING.tiers[:4])
    with pytest.raises(ConfigurationError) as exc:
        pricer.price(service, RequestLine("cleaning", 5))
    assert exc.value.code == "tier_not_covered"


def test_lenient_coverage_falls_back_to_base():
    pricer = TierPricer(TierPolicy(strict_coverage=False))
    service = replace(CLEANING, tiers=CLEANING.tiers[:4])
    priced = pricer.price(service, RequestLine("cleaning", 5, ("access-ladder",)))
    assert priced.breakdown.source == "base"
    assert priced.line_total == D("1400.00")
    assert priced.warnings


def test_lenient_coverage_allows_tiers_starting_above_one():
    pricer = TierPricer(TierPolicy(strict_coverage=False))
    service = replace(VISIT, base_price=D("100.00"), tiers=(PricingTier(2, None, D("80.00")),))
    single = pricer.price(service, RequestLine("visit", 1))
    assert single.breakdown.source == "base"
    assert single.line_total == D("100.00")
    assert single.warnings
    bulk = pricer.price(service, RequestLine("visit", 3))
    assert bulk.breakdown.source == "tier"
    assert bulk.line_total == D("240.00")


def test_pricing_is_deterministic(pricer):
    line = RequestLine("cleaning", 3, ("access-ladder",))
    assert pricer.price(CLEANING, line).breakdown == pricer.price(CLEANING, line).breakdown
    assert isinstance(pricer.price(CLEANING, line).line_total, Decimal)
