"""
Zone Resolver - Maps a free-text neighborhood to a service zone.
"""
import logging
import unicodedata
from dataclasses import dataclass, field
from typing import Optional

from .errors import ConfigurationError
from .models import Zone

logger = logging.getLogger(__name__)


def normalize_neighborhood(value: Optional[str]) -> str:
    """Case-fold and collapse whitespace. Accents are kept."""
    if not value:
        return ""
    text = unicodedata.normalize("NFC", str(value))
    return " ".join(text.split()).casefold()


@dataclass
class ZoneMatch:
    """Outcome of a zone lookup."""
    zone: Zone
    matched: bool  # False when the default zone was used as fallback
    conflicting_zone_ids: list[str] = field(default_factory=list)

    @property
    def is_ambiguous(self) -> bool:
        return bool(self.conflicting_zone_ids)


class ZoneResolver:
    """
    Resolves the zone that owns a neighborhood.

    Resolution order:
    1. First active zone (catalog order) listing the neighborhood
    2. The active default zone
    """

    def __init__(self, zones):
        self.zones = [z for z in zones if z.active]
        self._index: dict[str, list[Zone]] = {}
        for zone in self.zones:
            for name in zone.neighborhoods:
                key = normalize_neighborhood(name)
                owners = self._index.setdefault(key, [])
                if zone not in owners:
                    owners.append(zone)

        self._defaults = [z for z in self.zones if z.is_default]
        if len(self._defaults) > 1:
            logger.warning(
                "Catalog has %d active default zones; using %s (also: %s)",
                len(self._defaults), self._defaults[0].zone_id,
                ", ".join(z.zone_id for z in self._defaults[1:]),
            )

    def default_zone(self) -> Zone:
        if not self._defaults:
            raise ConfigurationError(
                "Catalog has no active default zone",
                code="no_default_zone",
            )
        return self._defaults[0]

    def match(self, neighborhood: Optional[str]) -> ZoneMatch:
        # A catalog without a default zone is rejected even when this
        # particular neighborhood would have matched.
        default = self.default_zone()
        key = normalize_neighborhood(neighborhood)
        owners = self._index.get(key, []) if key else []

        if not owners:
            return ZoneMatch(zone=default, matched=False)

        chosen = owners[0]
        conflicts = [z.zone_id for z in owners[1:]]
        if conflicts:
            logger.warning(
                "Neighborhood %r is claimed by several zones; using %s (also: %s)",
                neighborhood, chosen.zone_id, ", ".join(conflicts),
            )
        return ZoneMatch(zone=chosen, matched=True, conflicting_zone_ids=conflicts)

    def resolve(self, neighborhood: Optional[str]) -> Zone:
        """Return the owning zone, falling back to the default zone."""
        return self.match(neighborhood).zone
