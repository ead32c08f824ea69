"""
Catalog Loader - Builds an immutable CatalogSnapshot from tabular files.

A tenant catalog is either a directory of CSV files or an .xlsx workbook
with one sheet per table. Table names:

    services, pricing_tiers, variables, variable_options, combos,
    combo_items, additionals, zones, zone_exceptions

Only ``services`` and ``zones`` are mandatory. Multi-valued cells
(neighborhoods, categories) are separated by ``|``. Row order is catalog
order.
"""
import hashlib
import logging
import threading
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

import pandas as pd

from ..engine.errors import ConfigurationError
from ..engine.models import (
    Additional,
    CatalogSnapshot,
    Combo,
    ComboItem,
    ExceptionKind,
    PricingTier,
    Service,
    Variable,
    VariableOption,
    Zone,
    ZoneException,
    ZonePricingType,
    to_money,
)

logger = logging.getLogger(__name__)

TABLES = (
    'services', 'pricing_tiers', 'variables', 'variable_options', 'combos',
    'combo_items', 'additionals', 'zones', 'zone_exceptions',
)
REQUIRED_TABLES = ('services', 'zones')

REQUIRED_COLUMNS = {
    'services': ('service_id', 'name', 'category', 'base_price'),
    'pricing_tiers': ('service_id', 'min_quantity', 'max_quantity', 'price_per_unit'),
    'variables': ('variable_id', 'service_id', 'name'),
    'variable_options': ('option_id', 'variable_id', 'name', 'price_modifier'),
    'combos': ('combo_id', 'name', 'fixed_price'),
    'combo_items': ('combo_id', 'service_id', 'quantity'),
    'additionals': ('additional_id', 'name', 'price'),
    'zones': ('zone_id', 'name', 'neighborhoods', 'surcharge'),
    'zone_exceptions': ('zone_id', 'category', 'min_quantity', 'kind'),
}

LIST_SEPARATOR = '|'


def get_file_hash(path: Path) -> str:
    """Get SHA256 hash of a file."""
    if not path.exists():
        return ""
    with open(path, 'rb') as f:
        return hashlib.sha256(f.read()).hexdigest()[:12]


def _clean(df: pd.DataFrame) -> pd.DataFrame:
    df = df.fillna('')
    df.columns = [str(c).strip() for c in df.columns]
    for col in df.columns:
        df[col] = df[col].astype(str).str.strip()
    return df


def _read_tables(source: Path) -> tuple[dict[str, pd.DataFrame], str]:
    """Read raw tables and compute a digest of the input files."""
    digest = hashlib.sha256()
    tables = {}

    if source.is_dir():
        for name in TABLES:
            path = source / f'{name}.csv'
            if path.exists():
                tables[name] = _clean(pd.read_csv(path, dtype=str))
                digest.update(name.encode())
                digest.update(get_file_hash(path).encode())
    elif source.suffix.lower() in ('.xlsx', '.xlsm'):
        sheets = pd.read_excel(source, sheet_name=None, dtype=str)
        for name in TABLES:
            if name in sheets:
                tables[name] = _clean(sheets[name])
        digest.update(get_file_hash(source).encode())
    else:
        raise ConfigurationError(
            f"Catalog source {source} is neither a directory nor an .xlsx workbook",
            code="catalog_source",
            details={"path": str(source)},
        )

    for name in REQUIRED_TABLES:
        if name not in tables:
            raise ConfigurationError(
                f"Catalog {source} is missing the '{name}' table",
                code="catalog_table_missing",
                details={"table": name},
            )
    for name, df in tables.items():
        missing = [c for c in REQUIRED_COLUMNS[name] if c not in df.columns]
        if missing:
            raise ConfigurationError(
                f"Table '{name}' is missing column(s): {', '.join(missing)}",
                code="catalog_column_missing",
                details={"table": name, "columns": missing},
            )
    return tables, digest.hexdigest()[:12]


def _rows(tables: dict, name: str):
    df = tables.get(name)
    if df is None:
        return []
    return [row for row in df.to_dict(orient='records') if any(v for v in row.values())]


def _bool(row: dict, key: str, default: bool) -> bool:
    raw = str(row.get(key, '') or '').strip().lower()
    if raw == '':
        return default
    return raw in ('true', '1', 'yes', 'y')


def _int(row: dict, key: str, table: str, optional: bool = False) -> Optional[int]:
    raw = str(row.get(key, '') or '').strip()
    if raw == '' and optional:
        return None
    try:
        value = Decimal(raw)
        if not value.is_finite() or value != value.to_integral_value():
            raise ValueError(raw)
        return int(value)
    except (InvalidOperation, ValueError):
        raise ConfigurationError(
            f"Table '{table}': column '{key}' must be an integer, got {raw!r}",
            code="catalog_value",
            details={"table": table, "column": key, "value": raw},
        )


def _decimal(row: dict, key: str, table: str, optional: bool = False) -> Optional[Decimal]:
    raw = str(row.get(key, '') or '').strip()
    if raw == '' and optional:
        return None
    try:
        return to_money(raw)
    except InvalidOperation:
        raise ConfigurationError(
            f"Table '{table}': column '{key}' must be a number, got {raw!r}",
            code="catalog_value",
            details={"table": table, "column": key, "value": raw},
        )


def _enum(enum_cls, row: dict, key: str, table: str, default=None):
    raw = str(row.get(key, '') or '').strip().upper()
    if raw == '' and default is not None:
        return default
    try:
        return enum_cls(raw)
    except ValueError:
        raise ConfigurationError(
            f"Table '{table}': column '{key}' must be one of "
            f"{', '.join(e.value for e in enum_cls)}, got {raw!r}",
            code="catalog_value",
            details={"table": table, "column": key, "value": raw},
        )


def _split(value) -> tuple[str, ...]:
    return tuple(part.strip() for part in str(value or '').split(LIST_SEPARATOR) if part.strip())


def _require_parent(parents, key: str, table: str, parent_table: str):
    if key not in parents:
        raise ConfigurationError(
            f"Table '{table}' references unknown {parent_table} id {key!r}",
            code="catalog_reference",
            details={"table": table, "id": key},
        )


def build_snapshot(tables: dict, tenant: str = "default", catalog_hash: Optional[str] = None) -> CatalogSnapshot:
    """Assemble a snapshot from already-cleaned tables."""
    service_rows = _rows(tables, 'services')
    service_ids = [r['service_id'] for r in service_rows]

    tiers: dict[str, list[PricingTier]] = {sid: [] for sid in service_ids}
    for row in _rows(tables, 'pricing_tiers'):
        _require_parent(tiers, row['service_id'], 'pricing_tiers', 'service')
        tiers[row['service_id']].append(PricingTier(
            min_quantity=_int(row, 'min_quantity', 'pricing_tiers'),
            max_quantity=_int(row, 'max_quantity', 'pricing_tiers', optional=True),
            price_per_unit=_decimal(row, 'price_per_unit', 'pricing_tiers'),
        ))

    options: dict[str, list[VariableOption]] = {}
    variable_rows = _rows(tables, 'variables')
    for row in variable_rows:
        options[row['variable_id']] = []
    for row in _rows(tables, 'variable_options'):
        _require_parent(options, row['variable_id'], 'variable_options', 'variable')
        options[row['variable_id']].append(VariableOption(
            option_id=row['option_id'],
            name=row['name'],
            price_modifier=_decimal(row, 'price_modifier', 'variable_options'),
        ))

    variables: dict[str, list[Variable]] = {sid: [] for sid in service_ids}
    for row in variable_rows:
        _require_parent(variables, row['service_id'], 'variables', 'service')
        variables[row['service_id']].append(Variable(
            variable_id=row['variable_id'],
            name=row['name'],
            is_required=_bool(row, 'is_required', True),
            options=tuple(options[row['variable_id']]),
        ))

    services = tuple(
        Service(
            service_id=row['service_id'],
            name=row['name'],
            category=row['category'],
            base_price=_decimal(row, 'base_price', 'services'),
            tiers=tuple(sorted(tiers[row['service_id']], key=lambda t: t.min_quantity)),
            variables=tuple(variables[row['service_id']]),
            active=_bool(row, 'active', True),
        )
        for row in service_rows
    )

    combo_rows = _rows(tables, 'combos')
    items: dict[str, list[ComboItem]] = {r['combo_id']: [] for r in combo_rows}
    for row in _rows(tables, 'combo_items'):
        _require_parent(items, row['combo_id'], 'combo_items', 'combo')
        items[row['combo_id']].append(ComboItem(
            service_id=row['service_id'],
            quantity=_int(row, 'quantity', 'combo_items'),
        ))
    combos = tuple(
        Combo(
            combo_id=row['combo_id'],
            name=row['name'],
            category=row.get('category', ''),
            fixed_price=_decimal(row, 'fixed_price', 'combos'),
            items=tuple(items[row['combo_id']]),
            active=_bool(row, 'active', True),
        )
        for row in combo_rows
    )

    additionals = tuple(
        Additional(
            additional_id=row['additional_id'],
            name=row['name'],
            price=_decimal(row, 'price', 'additionals'),
            categories=_split(row.get('categories')),
            active=_bool(row, 'active', True),
        )
        for row in _rows(tables, 'additionals')
    )

    zones = tuple(
        Zone(
            zone_id=row['zone_id'],
            name=row['name'],
            neighborhoods=_split(row.get('neighborhoods')),
            surcharge=_decimal(row, 'surcharge', 'zones', optional=True) or Decimal("0.00"),
            pricing_type=_enum(ZonePricingType, row, 'pricing_type', 'zones', ZonePricingType.FIXED),
            is_default=_bool(row, 'is_default', False),
            requires_quote=_bool(row, 'requires_quote', False),
            active=_bool(row, 'active', True),
        )
        for row in _rows(tables, 'zones')
    )

    exceptions = tuple(
        ZoneException(
            zone_id=row['zone_id'],
            category=row['category'],
            min_quantity=_int(row, 'min_quantity', 'zone_exceptions', optional=True) or 1,
            kind=_enum(ExceptionKind, row, 'kind', 'zone_exceptions'),
            service_id=row.get('service_id') or None,
            custom_fee=_decimal(row, 'custom_fee', 'zone_exceptions', optional=True),
            description=row.get('description', ''),
            active=_bool(row, 'active', True),
        )
        for row in _rows(tables, 'zone_exceptions')
    )

    return CatalogSnapshot(
        services=services,
        combos=combos,
        additionals=additionals,
        zones=zones,
        exceptions=exceptions,
        tenant=tenant,
        catalog_hash=catalog_hash,
    )


def load_catalog(source: Path, tenant: Optional[str] = None) -> CatalogSnapshot:
    """Load a tenant catalog from a CSV directory or an .xlsx workbook."""
    source = Path(source)
    if not source.exists():
        raise ConfigurationError(
            f"Catalog not found at {source}",
            code="catalog_missing",
            details={"path": str(source)},
        )
    tables, catalog_hash = _read_tables(source)
    snapshot = build_snapshot(tables, tenant=tenant or source.stem, catalog_hash=catalog_hash)
    logger.info(
        "Loaded catalog %s (%d services, %d combos, %d zones, hash %s)",
        snapshot.tenant, len(snapshot.services), len(snapshot.combos), len(snapshot.zones), catalog_hash,
    )
    return snapshot


class CatalogProvider:
    """
    Loads and caches one snapshot per tenant under ``root``.

    A tenant is ``root/<tenant>/`` (CSV directory) or ``root/<tenant>.xlsx``.
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        self._snapshots: dict[str, CatalogSnapshot] = {}
        self._lock = threading.Lock()

    def tenants(self) -> list[str]:
        if not self.root.exists():
            return []
        found = set()
        for path in self.root.iterdir():
            if path.is_dir() and (path / 'services.csv').exists():
                found.add(path.name)
            elif path.suffix.lower() == '.xlsx':
                found.add(path.stem)
        return sorted(found)

    def _source_for(self, tenant: str) -> Path:
        if not tenant or '/' in tenant or '\\' in tenant or tenant.startswith('.'):
            raise KeyError(tenant)
        directory = self.root / tenant
        if directory.is_dir():
            return directory
        workbook = self.root / f'{tenant}.xlsx'
        if workbook.exists():
            return workbook
        raise KeyError(tenant)

    def get(self, tenant: str) -> CatalogSnapshot:
        """Return the cached snapshot for ``tenant``; KeyError if unknown."""
        with self._lock:
            snapshot = self._snapshots.get(tenant)
            if snapshot is None:
                snapshot = load_catalog(self._source_for(tenant), tenant=tenant)
                self._snapshots[tenant] = snapshot
            return snapshot

    def reload(self, tenant: Optional[str] = None) -> None:
        """Drop cached snapshots so the next ``get`` re-reads the files."""
        with self._lock:
            if tenant is None:
                self._snapshots.clear()
            else:
                self._snapshots.pop(tenant, None)
