"""
Catalog integrity checks.

Errors are catalog states the engine refuses to price against; warnings are
states it tolerates but an operator should fix.
"""
from dataclasses import dataclass, field

from ..engine.errors import ConfigurationError
from ..engine.models import CatalogSnapshot, ExceptionKind
from ..engine.tier_pricer import check_tier_sequence
from ..engine.zone_resolver import normalize_neighborhood


@dataclass
class IntegrityReport:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return {"valid": self.valid, "errors": list(self.errors), "warnings": list(self.warnings)}


def find_neighborhood_conflicts(zones) -> dict[str, list[str]]:
    """Map each neighborhood claimed by more than one active zone to those zone ids."""
    owners: dict[str, list[str]] = {}
    for zone in zones:
        if not zone.active:
            continue
        for name in zone.neighborhoods:
            ids = owners.setdefault(normalize_neighborhood(name), [])
            if zone.zone_id not in ids:
                ids.append(zone.zone_id)
    return {name: ids for name, ids in owners.items() if len(ids) > 1}


def check_catalog(catalog: CatalogSnapshot) -> IntegrityReport:
    report = IntegrityReport()

    defaults = [z.zone_id for z in catalog.zones if z.active and z.is_default]
    if not defaults:
        report.errors.append("No active default zone")
    elif len(defaults) > 1:
        report.errors.append(f"Multiple default zones: {', '.join(defaults)}")

    seen_services = set()
    for service in catalog.services:
        if service.service_id in seen_services:
            report.errors.append(f"Duplicate service id {service.service_id}")
        seen_services.add(service.service_id)
        try:
            check_tier_sequence(service)
        except ConfigurationError as e:
            report.errors.append(e.message)

    for name, zone_ids in sorted(find_neighborhood_conflicts(catalog.zones).items()):
        report.warnings.append(f"Neighborhood '{name}' is claimed by zones {', '.join(zone_ids)}")

    for combo in catalog.combos:
        if not combo.items:
            report.warnings.append(f"Combo {combo.combo_id} has no items and never matches")
        for item in combo.items:
            if catalog.service(item.service_id) is None:
                report.errors.append(f"Combo {combo.combo_id} references unknown service {item.service_id}")
            if item.quantity < 1:
                report.errors.append(f"Combo {combo.combo_id} has non-positive quantity for {item.service_id}")

    zone_ids = {z.zone_id for z in catalog.zones}
    categories = {s.category for s in catalog.services}
    for exc in catalog.exceptions:
        if exc.zone_id not in zone_ids:
            report.errors.append(f"Zone exception references unknown zone {exc.zone_id}")
        if exc.service_id and catalog.service(exc.service_id) is None:
            report.errors.append(f"Zone exception references unknown service {exc.service_id}")
        if exc.category not in categories:
            report.warnings.append(f"Zone exception for {exc.zone_id} uses unused category '{exc.category}'")
        if exc.kind == ExceptionKind.CUSTOM_FEE and exc.custom_fee is None:
            report.errors.append(f"CUSTOM_FEE exception for {exc.zone_id}/{exc.category} has no custom_fee")

    for additional in catalog.additionals:
        unknown = [c for c in additional.categories if c not in categories]
        if unknown:
            report.warnings.append(
                f"Additional {additional.additional_id} lists unused categories: {', '.join(unknown)}"
            )

    return report
