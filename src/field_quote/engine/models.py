"""
Data models for the quote resolution engine.

Catalog types are frozen dataclasses so a loaded snapshot can be shared
between concurrent resolutions. Request and result types are created and
consumed within a single resolution call.
"""
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Optional, Union

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Coerce a number or numeric string to a Decimal quantized to cents."""
    if isinstance(value, Decimal):
        amount = value
    else:
        amount = Decimal(str(value))
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(value: Decimal) -> str:
    return f"{value.quantize(CENT, rounding=ROUND_HALF_UP):.2f}"


class ZonePricingType(str, Enum):
    FIXED = "FIXED"
    PERCENTAGE = "PERCENTAGE"


class ExceptionKind(str, Enum):
    NO_FEE = "NO_FEE"
    NO_QUOTE_REQUIRED = "NO_QUOTE_REQUIRED"
    CUSTOM_FEE = "CUSTOM_FEE"


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PricingTier:
    """A quantity bracket. ``max_quantity`` of None means unbounded."""
    min_quantity: int
    max_quantity: Optional[int]
    price_per_unit: Decimal

    def contains(self, quantity: int) -> bool:
        if quantity < self.min_quantity:
            return False
        return self.max_quantity is None or quantity <= self.max_quantity

    @property
    def label(self) -> str:
        if self.max_quantity is None:
            return f"{self.min_quantity}+"
        if self.max_quantity == self.min_quantity:
            return str(self.min_quantity)
        return f"{self.min_quantity}-{self.max_quantity}"


@dataclass(frozen=True)
class VariableOption:
    option_id: str
    name: str
    price_modifier: Decimal = Decimal("0")


@dataclass(frozen=True)
class Variable:
    variable_id: str
    name: str
    is_required: bool = True
    options: tuple[VariableOption, ...] = ()

    def option(self, option_id: str) -> Optional[VariableOption]:
        for opt in self.options:
            if opt.option_id == option_id:
                return opt
        return None


@dataclass(frozen=True)
class Service:
    service_id: str
    name: str
    category: str
    base_price: Decimal
    tiers: tuple[PricingTier, ...] = ()
    variables: tuple[Variable, ...] = ()
    active: bool = True


@dataclass(frozen=True)
class ComboItem:
    service_id: str
    quantity: int


@dataclass(frozen=True)
class Combo:
    combo_id: str
    name: str
    category: str
    fixed_price: Decimal
    items: tuple[ComboItem, ...] = ()
    active: bool = True

    @property
    def service_ids(self) -> frozenset[str]:
        return frozenset(item.service_id for item in self.items)


@dataclass(frozen=True)
class Additional:
    """Flat-price add-on. An empty ``categories`` tuple means every category."""
    additional_id: str
    name: str
    price: Decimal
    categories: tuple[str, ...] = ()
    active: bool = True


@dataclass(frozen=True)
class Zone:
    zone_id: str
    name: str
    neighborhoods: tuple[str, ...] = ()
    surcharge: Decimal = Decimal("0")
    pricing_type: ZonePricingType = ZonePricingType.FIXED
    is_default: bool = False
    requires_quote: bool = False
    active: bool = True


@dataclass(frozen=True)
class ZoneException:
    zone_id: str
    category: str
    min_quantity: int
    kind: ExceptionKind
    service_id: Optional[str] = None
    custom_fee: Optional[Decimal] = None
    description: str = ""
    active: bool = True


@dataclass(frozen=True)
class CatalogSnapshot:
    """Immutable catalog handed to the engine for one or more resolutions."""
    services: tuple[Service, ...] = ()
    combos: tuple[Combo, ...] = ()
    additionals: tuple[Additional, ...] = ()
    zones: tuple[Zone, ...] = ()
    exceptions: tuple[ZoneException, ...] = ()
    tenant: str = "default"
    catalog_hash: Optional[str] = None

    _services_by_id: dict = field(default=None, init=False, repr=False, compare=False)
    _additionals_by_id: dict = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_services_by_id", {s.service_id: s for s in self.services})
        object.__setattr__(self, "_additionals_by_id", {a.additional_id: a for a in self.additionals})

    def service(self, service_id: str) -> Optional[Service]:
        return self._services_by_id.get(service_id)

    def additional(self, additional_id: str) -> Optional[Additional]:
        return self._additionals_by_id.get(additional_id)

    def zone(self, zone_id: str) -> Optional[Zone]:
        for zone in self.zones:
            if zone.zone_id == zone_id:
                return zone
        return None

    def exceptions_for(self, zone_id: str) -> list[ZoneException]:
        return [e for e in self.exceptions if e.zone_id == zone_id and e.active]

    def active_combos(self) -> list[Combo]:
        return [c for c in self.combos if c.active]


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RequestLine:
    service_id: str
    quantity: int
    selected_option_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class QuoteRequest:
    neighborhood: str
    lines: tuple[RequestLine, ...]
    additional_ids: tuple[str, ...] = ()

    @classmethod
    def build(cls, neighborhood: str, lines, additional_ids=()) -> "QuoteRequest":
        """Build a request from loose sequences, e.g. decoded JSON."""
        built = []
        for line in lines:
            if isinstance(line, RequestLine):
                built.append(line)
            else:
                built.append(RequestLine(
                    service_id=str(line["service_id"]),
                    quantity=line["quantity"],
                    selected_option_ids=tuple(line.get("selected_option_ids") or ()),
                ))
        return cls(
            neighborhood=neighborhood,
            lines=tuple(built),
            additional_ids=tuple(additional_ids or ()),
        )


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TraceStep:
    """A single step in the resolution trace."""
    step: str
    description: str
    value: Optional[str] = None

    def to_dict(self) -> dict:
        return {"step": self.step, "description": self.description, "value": self.value}


@dataclass(frozen=True)
class LineBreakdown:
    """Itemized price of one request line."""
    service_id: str
    service_name: str
    category: str
    quantity: int
    source: str  # "tier" or "base"
    base_contribution: Decimal
    modifier_contribution: Decimal
    line_total: Decimal
    tier: Optional[PricingTier] = None
    selected_option_ids: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "service_id": self.service_id,
            "service_name": self.service_name,
            "category": self.category,
            "quantity": self.quantity,
            "source": self.source,
            "tier": self.tier.label if self.tier else None,
            "base_contribution": format_money(self.base_contribution),
            "modifier_contribution": format_money(self.modifier_contribution),
            "line_total": format_money(self.line_total),
            "selected_option_ids": list(self.selected_option_ids),
        }


@dataclass(frozen=True)
class ComboBreakdown:
    combo_id: str
    combo_name: str
    fixed_price: Decimal
    consumed_lines: tuple[RequestLine, ...]

    def to_dict(self) -> dict:
        return {
            "combo_id": self.combo_id,
            "combo_name": self.combo_name,
            "fixed_price": format_money(self.fixed_price),
            "consumed_lines": [
                {"service_id": line.service_id, "quantity": line.quantity}
                for line in self.consumed_lines
            ],
        }


@dataclass(frozen=True)
class AdditionalCharge:
    additional_id: str
    name: str
    price: Decimal

    def to_dict(self) -> dict:
        return {"additional_id": self.additional_id, "name": self.name, "price": format_money(self.price)}


@dataclass(frozen=True)
class Priced:
    """A quote with a final price and its full breakdown."""
    zone_id: str
    zone_name: str
    lines: tuple[LineBreakdown, ...]
    combo: Optional[ComboBreakdown]
    additionals: tuple[AdditionalCharge, ...]
    additionals_total: Decimal
    subtotal: Decimal
    surcharge: Decimal
    total: Decimal
    applied_exceptions: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    trace: tuple[TraceStep, ...] = ()
    catalog_hash: Optional[str] = None

    status = "priced"

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        return _trace_text(self.trace)

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "zone_id": self.zone_id,
            "zone_name": self.zone_name,
            "combo": self.combo.to_dict() if self.combo else None,
            "lines": [line.to_dict() for line in self.lines],
            "additionals": [a.to_dict() for a in self.additionals],
            "additionals_total": format_money(self.additionals_total),
            "subtotal": format_money(self.subtotal),
            "surcharge": format_money(self.surcharge),
            "total": format_money(self.total),
            "applied_exceptions": list(self.applied_exceptions),
            "warnings": list(self.warnings),
            "trace": [t.to_dict() for t in self.trace],
            "catalog_hash": self.catalog_hash,
        }


@dataclass(frozen=True)
class RequiresManualQuote:
    """Terminal outcome: no automatic price is available for this request."""
    reason: str
    zone_id: str
    zone_name: str
    blocking_categories: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    trace: tuple[TraceStep, ...] = ()

    status = "requires_manual_quote"

    def get_trace_text(self) -> str:
        return _trace_text(self.trace)

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "reason": self.reason,
            "zone_id": self.zone_id,
            "zone_name": self.zone_name,
            "blocking_categories": list(self.blocking_categories),
            "warnings": list(self.warnings),
            "trace": [t.to_dict() for t in self.trace],
        }


Quote = Union[Priced, RequiresManualQuote]


def _trace_text(trace) -> str:
    lines = []
    for t in trace:
        if t.value:
            lines.append(f"• {t.step}: {t.description} = {t.value}")
        else:
            lines.append(f"• {t.step}: {t.description}")
    return "\n".join(lines)
