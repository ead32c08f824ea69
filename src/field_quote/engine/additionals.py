"""Additionals Validator - checks add-on eligibility and sums their prices."""
import logging
from dataclasses import dataclass
from decimal import Decimal

from .errors import ValidationError
from .models import AdditionalCharge, CatalogSnapshot

logger = logging.getLogger(__name__)


@dataclass
class AdditionalsResult:
    charges: list[AdditionalCharge]
    total: Decimal


class AdditionalsValidator:

    def __init__(self, catalog: CatalogSnapshot):
        self.catalog = catalog

    def validate(self, additional_ids, categories) -> AdditionalsResult:
        """
        Validate selected add-ons against the categories present in a request.

        An add-on with no categories is eligible everywhere; otherwise it must
        share at least one category with the request.
        """
        categories = set(categories)
        seen = set()
        charges = []

        for additional_id in additional_ids:
            if additional_id in seen:
                raise ValidationError(
                    f"Additional {additional_id} selected more than once",
                    code="duplicate_additional",
                    details={"additional_id": additional_id},
                )
            seen.add(additional_id)

            additional = self.catalog.additional(additional_id)
            if additional is None or not additional.active:
                raise ValidationError(
                    f"Unknown additional: {additional_id}",
                    code="unknown_additional",
                    details={"additional_id": additional_id},
                )

            if additional.categories and not categories.intersection(additional.categories):
                raise ValidationError(
                    f"Additional '{additional.name}' only applies to "
                    f"{', '.join(additional.categories)}; request has {', '.join(sorted(categories)) or 'no lines'}",
                    code="ineligible_additional",
                    details={
                        "additional_id": additional_id,
                        "eligible_categories": list(additional.categories),
                        "request_categories": sorted(categories),
                    },
                )

            charges.append(AdditionalCharge(
                additional_id=additional.additional_id,
                name=additional.name,
                price=additional.price,
            ))

        total = sum((c.price for c in charges), Decimal("0.00"))
        logger.debug("Additionals %s total %s", [c.additional_id for c in charges], total)
        return AdditionalsResult(charges=charges, total=total)
