"""Tests for catalog integrity reporting."""
from dataclasses import replace

from field_quote.data.integrity import check_catalog, find_neighborhood_conflicts
from field_quote.engine import Combo, ComboItem, ExceptionKind, PricingTier, ZoneException

from factories import CLEANING, COMBOS, EDGES, ISLAND, MAINLAND, D, hvac_catalog


def test_test_catalog_is_valid():
    assert check_catalog(hvac_catalog()).valid


def test_missing_default_zone():
    report = check_catalog(hvac_catalog(zones=(replace(MAINLAND, is_default=False), ISLAND)))
    assert not report.valid
    assert "No active default zone" in report.errors


def test_multiple_default_zones():
    report = check_catalog(hvac_catalog(zones=(MAINLAND, replace(ISLAND, is_default=True))))
    assert any("Multiple default zones" in e for e in report.errors)


def test_tier_gap_is_error():
    gappy = replace(CLEANING, tiers=(PricingTier(1, 1, D("250")), PricingTier(3, None, D("200"))))
    report = check_catalog(hvac_catalog(services=(gappy,)))
    assert any("gap" in e for e in report.errors)


def test_duplicate_service_id():
    report = check_catalog(hvac_catalog(services=(CLEANING, CLEANING)))
    assert "Duplicate service id cleaning" in report.errors


def test_combo_with_unknown_service():
    combo = Combo("ghost", "Ghost", "Installation", D("100"), (ComboItem("teleport", 1),))
    report = check_catalog(hvac_catalog(combos=COMBOS + (combo,)))
    assert any("teleport" in e for e in report.errors)


def test_combo_without_items_is_warning():
    report = check_catalog(hvac_catalog(combos=(Combo("empty", "Empty", "Installation", D("1")),)))
    assert report.valid
    assert any("no items" in w for w in report.warnings)


def test_custom_fee_without_amount():
    exc = ZoneException("island", "Cleaning", 1, ExceptionKind.CUSTOM_FEE)
    report = check_catalog(hvac_catalog(exceptions=(exc,)))
    assert any("no custom_fee" in e for e in report.errors)


def test_exception_for_unknown_zone():
    exc = ZoneException("moon", "Cleaning", 1, ExceptionKind.NO_FEE)
    report = check_catalog(hvac_catalog(exceptions=(exc,)))
    assert "Zone exception references unknown zone moon" in report.errors


def test_neighborhood_conflicts():
    twin = replace(EDGES, zone_id="edges-2", neighborhoods=("ingleses", "Pântano"))
    conflicts = find_neighborhood_conflicts([MAINLAND, ISLAND, EDGES, twin])
    assert conflicts == {"ingleses": ["edges", "edges-2"]}
    report = check_catalog(hvac_catalog(zones=(MAINLAND, ISLAND, EDGES, twin)))
    assert report.valid
    assert any("ingleses" in w for w in report.warnings)


def test_inactive_zone_does_not_conflict():
    twin = replace(ISLAND, zone_id="island-2", active=False)
    assert find_neighborhood_conflicts([MAINLAND, ISLAND, twin]) == {}


def test_report_to_dict():
    data = check_catalog(hvac_catalog(zones=(ISLAND,), exceptions=())).to_dict()
    assert data["valid"] is False
    assert data["errors"] == ["No active default zone"]
