"""
Combo Matcher - Finds the fixed-price bundle that applies to a request.

A combo is a candidate only when the request lines of the combo's services
are, as a multiset of (service, quantity), exactly the combo's items. Lines
are consumed whole; a request for one extra unit of a bundled service does
not match.
"""
import logging
from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from .models import Combo

logger = logging.getLogger(__name__)


@dataclass
class MatchedCombo:
    """A combo that matched with context."""
    combo: Combo
    catalog_order: int
    line_indexes: tuple[int, ...]
    match_reason: str

    @property
    def lines_covered(self) -> int:
        return len(self.line_indexes)

    @property
    def fixed_price(self) -> Decimal:
        return self.combo.fixed_price

    def sort_key(self) -> tuple:
        # More lines first, then cheaper, then catalog order.
        return (-self.lines_covered, self.fixed_price, self.catalog_order)


@dataclass
class ComboMatch:
    selected: Optional[MatchedCombo]
    candidates: list[MatchedCombo] = field(default_factory=list)
    remaining_indexes: tuple[int, ...] = ()

    @property
    def consumed_indexes(self) -> tuple[int, ...]:
        return self.selected.line_indexes if self.selected else ()


class ComboMatcher:
    """
    Matches request lines against the catalog's active combos.

    At most one combo is applied per request.
    """

    def __init__(self, combos):
        # Catalog order is the position in the full combo list.
        self.combos = [(index, c) for index, c in enumerate(combos) if c.active and c.items]

    def find_candidates(self, lines) -> list[MatchedCombo]:
        """Return all candidate combos, best first."""
        matched = []

        for order, combo in self.combos:
            service_ids = combo.service_ids
            considered = [
                (index, line) for index, line in enumerate(lines)
                if line.service_id in service_ids
            ]
            wanted = Counter((item.service_id, item.quantity) for item in combo.items)
            present = Counter((line.service_id, line.quantity) for _, line in considered)
            if wanted != present:
                continue

            reasons = [f"{qty}x {sid}" for (sid, qty), count in sorted(wanted.items()) for _ in range(count)]
            matched.append(MatchedCombo(
                combo=combo,
                catalog_order=order,
                line_indexes=tuple(index for index, _ in considered),
                match_reason=", ".join(reasons),
            ))

        matched.sort(key=MatchedCombo.sort_key)
        return matched

    def match(self, lines) -> ComboMatch:
        candidates = self.find_candidates(lines)
        selected = candidates[0] if candidates else None
        consumed = set(selected.line_indexes) if selected else set()
        remaining = tuple(i for i in range(len(lines)) if i not in consumed)

        if selected:
            logger.debug(
                "Combo %s selected from %d candidate(s): %s",
                selected.combo.combo_id, len(candidates), selected.match_reason,
            )
        return ComboMatch(selected=selected, candidates=candidates, remaining_indexes=remaining)
