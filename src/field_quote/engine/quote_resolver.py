"""
Quote Resolver - Turns a quote request into a price or a manual-quote outcome.

Resolution order:
1. Resolve the customer's zone from the neighborhood
2. Match at most one combo over the whole request
3. Price remaining lines through quantity tiers or the base price
4. Validate and sum additionals
5. Evaluate zone exceptions on the full category profile
6. Stop with RequiresManualQuote if the zone still requires one
7. Total = combo + lines + additionals + zone surcharge

The resolver only reads its catalog snapshot, so one instance may serve
concurrent calls.
"""
import logging
from decimal import Decimal
from typing import Optional

from .additionals import AdditionalsValidator
from .combo_matcher import ComboMatcher
from .errors import ValidationError
from .models import (
    CatalogSnapshot,
    ComboBreakdown,
    Priced,
    Quote,
    QuoteRequest,
    RequiresManualQuote,
    Service,
    TraceStep,
    format_money,
)
from .tier_pricer import TierPolicy, TierPricer
from .zone_resolver import ZoneResolver
from .zone_surcharge import ZoneSurchargeResolver, demand_profile, describe_exception

logger = logging.getLogger(__name__)


class QuoteResolver:
    """Resolves quotes against one immutable catalog snapshot."""

    def __init__(self, catalog: CatalogSnapshot, policy: Optional[TierPolicy] = None):
        self.catalog = catalog
        self.policy = policy or TierPolicy()
        self.zone_resolver = ZoneResolver(catalog.zones)
        self.combo_matcher = ComboMatcher(catalog.combos)
        self.tier_pricer = TierPricer(self.policy)
        self.additionals = AdditionalsValidator(catalog)
        self.surcharges = ZoneSurchargeResolver(catalog.exceptions)

    def _service_for(self, service_id: str) -> Service:
        service = self.catalog.service(service_id)
        if service is None or not service.active:
            raise ValidationError(
                f"Unknown service: {service_id}",
                code="unknown_service",
                details={"service_id": service_id},
            )
        return service

    def resolve(self, request: QuoteRequest) -> Quote:
        """
        Resolve a request.

        Raises ValidationError for a malformed request and ConfigurationError
        for a broken catalog. A manual-quote outcome is returned, not raised.
        """
        trace: list[TraceStep] = []
        warnings: list[str] = []

        if not request.lines:
            raise ValidationError("Quote request has no lines", code="empty_request")

        services = [self._service_for(line.service_id) for line in request.lines]
        for service, line in zip(services, request.lines):
            self.tier_pricer.validate(service, line)

        # 1. Zone
        zone_match = self.zone_resolver.match(request.neighborhood)
        zone = zone_match.zone
        if zone_match.matched:
            trace.append(TraceStep("Zone Lookup", f"Neighborhood '{request.neighborhood}' belongs to zone", zone.name))
        else:
            trace.append(TraceStep("Zone Lookup", f"Neighborhood '{request.neighborhood}' not listed, using default zone", zone.name))
        if zone_match.is_ambiguous:
            warnings.append(
                f"Neighborhood '{request.neighborhood}' is claimed by zones "
                f"{', '.join([zone.zone_id] + zone_match.conflicting_zone_ids)}; using {zone.zone_id}"
            )

        # 2. Combo
        combo_match = self.combo_matcher.match(request.lines)
        combo_breakdown = None
        if combo_match.selected:
            combo = combo_match.selected.combo
            combo_breakdown = ComboBreakdown(
                combo_id=combo.combo_id,
                combo_name=combo.name,
                fixed_price=combo.fixed_price,
                consumed_lines=tuple(request.lines[i] for i in combo_match.consumed_indexes),
            )
            trace.append(TraceStep(
                "Combo Match",
                f"{combo.name} ({combo_match.selected.match_reason})",
                f"${format_money(combo.fixed_price)}",
            ))
            if len(combo_match.candidates) > 1:
                skipped = ", ".join(c.combo.combo_id for c in combo_match.candidates[1:])
                trace.append(TraceStep("Combo Tie-Break", f"Preferred {combo.combo_id} over {skipped}"))
        else:
            trace.append(TraceStep("Combo Match", "No combo matches the request"))

        # 3. Itemized lines
        lines = []
        for index in combo_match.remaining_indexes:
            priced = self.tier_pricer.price(services[index], request.lines[index])
            lines.append(priced.breakdown)
            warnings.extend(priced.warnings)
            b = priced.breakdown
            how = f"tier {b.tier.label}" if b.tier else "base price"
            trace.append(TraceStep("Line Pricing", f"{b.quantity}x {b.service_name} via {how}", f"${format_money(b.line_total)}"))

        # 4. Additionals
        categories = [s.category for s in services]
        additionals = self.additionals.validate(request.additional_ids, categories)
        if additionals.charges:
            trace.append(TraceStep(
                "Additionals",
                ", ".join(c.name for c in additionals.charges),
                f"${format_money(additionals.total)}",
            ))

        # 5. Zone exceptions, counting combo-consumed lines too
        profile = demand_profile((s, line.quantity) for s, line in zip(services, request.lines))
        decision = self.surcharges.resolve(zone, profile)
        for exc in decision.applied_exceptions:
            trace.append(TraceStep("Zone Exception", describe_exception(exc), exc.description or None))

        # 6. Manual quote
        if decision.quote_required:
            reason = (
                f"Zone '{zone.name}' requires a manual quote for "
                f"{', '.join(decision.blocking_categories)}"
            )
            trace.append(TraceStep("Manual Quote", reason))
            logger.info("Manual quote required in zone %s for %s", zone.zone_id, decision.blocking_categories)
            return RequiresManualQuote(
                reason=reason,
                zone_id=zone.zone_id,
                zone_name=zone.name,
                blocking_categories=tuple(decision.blocking_categories),
                warnings=tuple(warnings),
                trace=tuple(trace),
            )

        # 7. Total
        subtotal = sum((b.line_total for b in lines), Decimal("0.00"))
        if combo_breakdown:
            subtotal += combo_breakdown.fixed_price
        surcharge = decision.surcharge_amount(subtotal)
        if not decision.surcharge_applies:
            trace.append(TraceStep("Surcharge", f"Zone fee waived for {zone.name}", "$0.00"))
        elif surcharge:
            trace.append(TraceStep("Surcharge", f"Zone fee for {zone.name}", f"${format_money(surcharge)}"))
        total = subtotal + additionals.total + surcharge
        trace.append(TraceStep("Total", "Combo + lines + additionals + surcharge", f"${format_money(total)}"))

        logger.debug("Quote in zone %s priced at %s", zone.zone_id, total)
        return Priced(
            zone_id=zone.zone_id,
            zone_name=zone.name,
            lines=tuple(lines),
            combo=combo_breakdown,
            additionals=tuple(additionals.charges),
            additionals_total=additionals.total,
            subtotal=subtotal,
            surcharge=surcharge,
            total=total,
            applied_exceptions=tuple(describe_exception(e) for e in decision.applied_exceptions),
            warnings=tuple(warnings),
            trace=tuple(trace),
            catalog_hash=self.catalog.catalog_hash,
        )


def resolve_quote(catalog: CatalogSnapshot, request: QuoteRequest, policy: Optional[TierPolicy] = None) -> Quote:
    """Resolve a single request against a catalog snapshot."""
    return QuoteResolver(catalog, policy).resolve(request)
