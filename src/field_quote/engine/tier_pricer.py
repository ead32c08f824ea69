"""
Tier Pricer - Computes the itemized price of a single request line.

Resolution order for a line:
1. Validate quantity and variable selections
2. Quantity tier (tier price x quantity)
3. Base price fallback ((base price + option modifiers) x quantity)
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from .errors import ConfigurationError, ValidationError
from .models import CENT, LineBreakdown, PricingTier, RequestLine, Service, VariableOption

logger = logging.getLogger(__name__)

HALF_CENT = Decimal("0.005")


@dataclass(frozen=True)
class TierPolicy:
    """
    Pricing choices that the catalog data alone does not settle.

    apply_modifiers_to_tiers: add option modifiers on top of a matched tier.
    tier_total_quantum: rounding step used to reconcile multi-unit tier
        totals. Catalog tiers are stored as rounded per-unit figures
        (595.00 / 3 -> 198.33), so a re-multiplied total that lies within
        half a cent per unit of a multiple of this step is snapped to it.
        Any other total is kept to the cent.
    strict_coverage: raise ConfigurationError when a tiered service has no
        tier for the requested quantity instead of using the base price.
        When False, tier sequences are not required to start at 1 or be
        gap-free; uncovered quantities use the base price.
    """
    apply_modifiers_to_tiers: bool = False
    tier_total_quantum: Decimal = Decimal("0.05")
    strict_coverage: bool = True


def check_tier_sequence(service: Service) -> None:
    """Raise ConfigurationError unless the tiers form a gap-free sequence from 1."""
    tiers = service.tiers
    if not tiers:
        return

    expected_min = 1
    for index, tier in enumerate(tiers):
        is_last = index == len(tiers) - 1
        if tier.min_quantity != expected_min:
            kind = "gap" if tier.min_quantity > expected_min else "overlap"
            raise ConfigurationError(
                f"Tier {kind} in service {service.service_id}: expected a tier starting at "
                f"{expected_min}, found {tier.label}",
                code="tier_sequence",
                details={"service_id": service.service_id, "tier": tier.label},
            )
        if tier.max_quantity is None:
            if not is_last:
                raise ConfigurationError(
                    f"Unbounded tier {tier.label} in service {service.service_id} is not the last tier",
                    code="tier_sequence",
                    details={"service_id": service.service_id, "tier": tier.label},
                )
            return
        if tier.max_quantity < tier.min_quantity:
            raise ConfigurationError(
                f"Tier {tier.min_quantity}-{tier.max_quantity} in service {service.service_id} is empty",
                code="tier_sequence",
                details={"service_id": service.service_id},
            )
        expected_min = tier.max_quantity + 1


def find_tier(tiers, quantity: int) -> Optional[PricingTier]:
    """Return the single tier containing ``quantity``, or None."""
    matches = [t for t in tiers if t.contains(quantity)]
    if len(matches) > 1:
        raise ConfigurationError(
            f"Quantity {quantity} falls in {len(matches)} tiers",
            code="tier_sequence",
            details={"tiers": [t.label for t in matches]},
        )
    return matches[0] if matches else None


def tier_total(price_per_unit: Decimal, quantity: int, quantum: Decimal) -> Decimal:
    """
    Total for ``quantity`` units of a tier, to the cent.

    A multi-unit total is snapped to ``quantum`` only when the per-unit
    rounding of the catalog figure accounts for the difference.
    """
    exact = price_per_unit * quantity
    if quantity > 1:
        snapped = (exact / quantum).quantize(Decimal("1"), rounding=ROUND_HALF_UP) * quantum
        if abs(snapped - exact) <= HALF_CENT * quantity:
            return snapped.quantize(CENT, rounding=ROUND_HALF_UP)
    return exact.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass
class PricedLine:
    """A line total plus the warnings raised while pricing it."""
    breakdown: LineBreakdown
    warnings: list[str] = field(default_factory=list)

    @property
    def line_total(self) -> Decimal:
        return self.breakdown.line_total


class TierPricer:
    """Prices one service line against its tiers, variables and base price."""

    def __init__(self, policy: Optional[TierPolicy] = None):
        self.policy = policy or TierPolicy()

    def validate(self, service: Service, line: RequestLine) -> list[VariableOption]:
        """
        Check quantity and selections for a line.

        Returns the selected options in variable order.
        """
        if isinstance(line.quantity, bool) or not isinstance(line.quantity, int) or line.quantity < 1:
            raise ValidationError(
                f"Quantity for service {service.service_id} must be a positive integer, got {line.quantity!r}",
                code="invalid_quantity",
                details={"service_id": service.service_id, "quantity": line.quantity},
            )

        remaining = list(line.selected_option_ids)
        if len(set(remaining)) != len(remaining):
            raise ValidationError(
                f"Duplicate option selected for service {service.service_id}",
                code="duplicate_option",
                details={"service_id": service.service_id},
            )

        selected = []
        for variable in service.variables:
            picks = [opt for opt in variable.options if opt.option_id in remaining]
            if len(picks) > 1:
                raise ValidationError(
                    f"Variable '{variable.name}' of service {service.service_id} accepts one option, "
                    f"got {len(picks)}",
                    code="multiple_options",
                    details={"service_id": service.service_id, "variable_id": variable.variable_id},
                )
            if not picks:
                if variable.is_required:
                    raise ValidationError(
                        f"Missing required selection '{variable.name}' for service {service.service_id}",
                        code="missing_required_option",
                        details={"service_id": service.service_id, "variable_id": variable.variable_id},
                    )
                continue
            selected.append(picks[0])
            remaining.remove(picks[0].option_id)

        if remaining:
            raise ValidationError(
                f"Unknown option(s) for service {service.service_id}: {', '.join(remaining)}",
                code="unknown_option",
                details={"service_id": service.service_id, "option_ids": remaining},
            )
        return selected

    def price(self, service: Service, line: RequestLine) -> PricedLine:
        """Compute the itemized total for one line."""
        options = self.validate(service, line)
        quantity = line.quantity
        modifier_sum = sum((opt.price_modifier for opt in options), Decimal("0"))
        warnings = []

        tier = None
        if service.tiers:
            if self.policy.strict_coverage:
                check_tier_sequence(service)
            tier = find_tier(service.tiers, quantity)
            if tier is None:
                message = (
                    f"Quantity {quantity} of service {service.service_id} is not covered by any tier"
                )
                if self.policy.strict_coverage:
                    raise ConfigurationError(
                        message,
                        code="tier_not_covered",
                        details={"service_id": service.service_id, "quantity": quantity},
                    )
                logger.warning("%s; using base price", message)
                warnings.append(f"{message}; base price used")

        if tier is not None:
            base_part = tier_total(tier.price_per_unit, quantity, self.policy.tier_total_quantum)
            if self.policy.apply_modifiers_to_tiers:
                modifier_part = (modifier_sum * quantity).quantize(CENT, rounding=ROUND_HALF_UP)
            else:
                modifier_part = Decimal("0.00")
            source = "tier"
        else:
            base_part = (service.base_price * quantity).quantize(CENT, rounding=ROUND_HALF_UP)
            modifier_part = (modifier_sum * quantity).quantize(CENT, rounding=ROUND_HALF_UP)
            source = "base"

        breakdown = LineBreakdown(
            service_id=service.service_id,
            service_name=service.name,
            category=service.category,
            quantity=quantity,
            source=source,
            base_contribution=base_part,
            modifier_contribution=modifier_part,
            line_total=base_part + modifier_part,
            tier=tier,
            selected_option_ids=tuple(opt.option_id for opt in options),
        )
        logger.debug(
            "Priced %s x%d via %s: %s", service.service_id, quantity, source, breakdown.line_total
        )
        return PricedLine(breakdown=breakdown, warnings=warnings)
