"""In-memory HVAC catalog used across the test suite."""
from decimal import Decimal

from field_quote.engine import (
    Additional,
    CatalogSnapshot,
    Combo,
    ComboItem,
    ExceptionKind,
    PricingTier,
    QuoteRequest,
    RequestLine,
    Service,
    Variable,
    VariableOption,
    Zone,
    ZoneException,
)

D = Decimal

CLEANING_TIERS = (
    PricingTier(1, 1, D("250.00")),
    PricingTier(2, 2, D("225.00")),
    PricingTier(3, 3, D("198.33")),
    PricingTier(4, 4, D("198.75")),
    PricingTier(5, None, D("190.00")),
)

INSTALL_9_12K = Service(
    service_id="install-9-12k",
    name="Install 9-12K",
    category="Installation",
    base_price=D("795.00"),
    variables=(
        Variable(
            variable_id="infra",
            name="Infrastructure",
            is_required=True,
            options=(
                VariableOption("infra-ready", "Ready", D("0.00")),
                VariableOption("infra-drill", "Wall drilling", D("50.00")),
            ),
        ),
    ),
)
INSTALL_18K = Service("install-18k", "Install 18K", "Installation", D("855.00"))
INSTALL_24K = Service("install-24k", "Install 24K", "Installation", D("995.00"))
CLEANING = Service(
    service_id="cleaning",
    name="Cleaning",
    category="Cleaning",
    base_price=D("250.00"),
    tiers=CLEANING_TIERS,
    variables=(
        Variable(
            variable_id="access",
            name="Access",
            is_required=False,
            options=(
                VariableOption("access-ground", "Ground level", D("0.00")),
                VariableOption("access-ladder", "Ladder", D("30.00")),
            ),
        ),
    ),
)
VISIT = Service("visit", "Technical Visit", "Maintenance", D("240.00"))
GAS = Service("gas-9-12k", "Gas Charge 9-12K", "Maintenance", D("395.00"))

COMBOS = (
    Combo("combo-2x-9-12k", "2x 9-12K", "Installation", D("1495.00"), (ComboItem("install-9-12k", 2),)),
    Combo("combo-3x-9-12k", "3x 9-12K", "Installation", D("1898.00"), (ComboItem("install-9-12k", 3),)),
    Combo("combo-2x-18k", "2x 18K", "Installation", D("1590.00"), (ComboItem("install-18k", 2),)),
    Combo(
        "combo-9-12k-18k", "9-12K + 18K", "Installation", D("1550.00"),
        (ComboItem("install-9-12k", 1), ComboItem("install-18k", 1)),
    ),
    Combo(
        "combo-2x-9-12k-18k", "2x 9-12K + 18K", "Installation", D("1970.00"),
        (ComboItem("install-9-12k", 2), ComboItem("install-18k", 1)),
    ),
)

ADDITIONALS = (
    Additional("rappel", "Rappel", D("650.00"), ("Installation", "Uninstallation", "Maintenance", "Cleaning")),
    Additional("bracket", "Wall bracket", D("120.00"), ("Installation",)),
    Additional("filter", "Filter kit", D("40.00"), ()),
)

MAINLAND = Zone("mainland", "Mainland", ("São José", "Kobrasol", "Estreito"), D("0.00"), is_default=True)
ISLAND = Zone("island", "Island", ("Centro", "Trindade", "Lagoa da Conceição"), D("55.00"))
EDGES = Zone("edges", "Island Edges", ("Ingleses", "Jurerê", "Canasvieiras"), D("0.00"), requires_quote=True)

EXCEPTIONS = (
    ZoneException("island", "Cleaning", 3, ExceptionKind.NO_FEE, description="Cleaning 3+ has no island fee"),
    ZoneException("edges", "Cleaning", 3, ExceptionKind.NO_QUOTE_REQUIRED, description="Cleaning 3+ priced normally"),
)


def hvac_catalog(**overrides) -> CatalogSnapshot:
    fields = dict(
        services=(INSTALL_9_12K, INSTALL_18K, INSTALL_24K, CLEANING, VISIT, GAS),
        combos=COMBOS,
        additionals=ADDITIONALS,
        zones=(MAINLAND, ISLAND, EDGES),
        exceptions=EXCEPTIONS,
        tenant="test",
        catalog_hash="testhash",
    )
    fields.update(overrides)
    return CatalogSnapshot(**fields)


def request(neighborhood, *lines, additionals=()) -> QuoteRequest:
    """Build a request from ``(service_id, quantity[, option ids])`` tuples."""
    built = []
    for line in lines:
        if isinstance(line, RequestLine):
            built.append(line)
        else:
            service_id, quantity, *options = line
            built.append(RequestLine(service_id, quantity, tuple(options[0]) if options else ()))
    return QuoteRequest(neighborhood=neighborhood, lines=tuple(built), additional_ids=tuple(additionals))


def install(quantity, option="infra-ready") -> RequestLine:
    return RequestLine("install-9-12k", quantity, (option,))


