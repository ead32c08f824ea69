"""
Zone Surcharge Resolver - Decides the zone fee and the manual-quote flag.

Zone exceptions are evaluated per category present in the request:
- NO_QUOTE_REQUIRED exempts that category from the zone's quote requirement
- NO_FEE waives the zone surcharge for the whole order
- CUSTOM_FEE replaces the zone surcharge (lowest applicable fee wins)

NO_FEE takes precedence over CUSTOM_FEE.
"""
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from .models import CENT, ExceptionKind, Zone, ZoneException, ZonePricingType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CategoryDemand:
    """Requested quantities of one category, with the per-service split."""
    category: str
    quantity: int
    by_service: tuple[tuple[str, int], ...] = ()

    def quantity_for(self, service_id: Optional[str]) -> int:
        if service_id is None:
            return self.quantity
        return sum(qty for sid, qty in self.by_service if sid == service_id)


def demand_profile(lines) -> list[CategoryDemand]:
    """
    Group ``(service, quantity)`` pairs by category, keeping first-seen order.
    """
    grouped: "OrderedDict[str, OrderedDict[str, int]]" = OrderedDict()
    for service, quantity in lines:
        services = grouped.setdefault(service.category, OrderedDict())
        services[service.service_id] = services.get(service.service_id, 0) + quantity
    return [
        CategoryDemand(
            category=category,
            quantity=sum(services.values()),
            by_service=tuple(services.items()),
        )
        for category, services in grouped.items()
    ]


def describe_exception(exc: ZoneException) -> str:
    scope = exc.category if exc.service_id is None else f"{exc.category}/{exc.service_id}"
    return f"{exc.kind.value} {scope} >= {exc.min_quantity}"


@dataclass
class SurchargeDecision:
    zone: Zone
    quote_required: bool
    surcharge_applies: bool
    custom_fee: Optional[Decimal] = None
    blocking_categories: list[str] = field(default_factory=list)
    exempted_categories: list[str] = field(default_factory=list)
    applied_exceptions: list[ZoneException] = field(default_factory=list)

    def surcharge_amount(self, subtotal: Decimal) -> Decimal:
        """Fee to add to an order whose priced subtotal is ``subtotal``."""
        if not self.surcharge_applies:
            return Decimal("0.00")
        if self.custom_fee is not None:
            return self.custom_fee.quantize(CENT, rounding=ROUND_HALF_UP)
        if self.zone.pricing_type == ZonePricingType.PERCENTAGE:
            return (subtotal * self.zone.surcharge / Decimal("100")).quantize(CENT, rounding=ROUND_HALF_UP)
        return self.zone.surcharge.quantize(CENT, rounding=ROUND_HALF_UP)


class ZoneSurchargeResolver:

    def __init__(self, exceptions):
        self.exceptions = [e for e in exceptions if e.active]

    def applicable(self, zone: Zone, demand: CategoryDemand) -> list[ZoneException]:
        """Exceptions of ``zone`` triggered by the demand in one category."""
        found = []
        for exc in self.exceptions:
            if exc.zone_id != zone.zone_id or exc.category != demand.category:
                continue
            if demand.quantity_for(exc.service_id) >= exc.min_quantity:
                found.append(exc)
        return found

    def resolve(self, zone: Zone, profile) -> SurchargeDecision:
        fee_waived = False
        custom_fees = []
        blocking = []
        exempted = []
        applied = []

        for demand in profile:
            triggered = self.applicable(zone, demand)
            applied.extend(triggered)
            kinds = {exc.kind for exc in triggered}

            if ExceptionKind.NO_FEE in kinds:
                fee_waived = True
            for exc in triggered:
                if exc.kind == ExceptionKind.CUSTOM_FEE and exc.custom_fee is not None:
                    custom_fees.append(exc.custom_fee)

            if zone.requires_quote:
                if ExceptionKind.NO_QUOTE_REQUIRED in kinds:
                    exempted.append(demand.category)
                else:
                    blocking.append(demand.category)

        # A request mixing exempted and non-exempted categories stays blocked.
        quote_required = zone.requires_quote and (bool(blocking) or not exempted)

        decision = SurchargeDecision(
            zone=zone,
            quote_required=quote_required,
            surcharge_applies=not fee_waived,
            custom_fee=None if fee_waived or not custom_fees else min(custom_fees),
            blocking_categories=blocking,
            exempted_categories=exempted,
            applied_exceptions=applied,
        )
        logger.debug(
            "Zone %s: quote_required=%s surcharge_applies=%s exceptions=%s",
            zone.zone_id, decision.quote_required, decision.surcharge_applies,
            [describe_exception(e) for e in applied],
        )
        return decision
