"""
Centralized settings and path configuration for the quote engine.
"""
import os
from decimal import Decimal, InvalidOperation
from pathlib import Path
from dataclasses import dataclass
from typing import Optional

from ..engine.errors import ConfigurationError
from ..engine.tier_pricer import TierPolicy


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_decimal(name: str, default: Decimal) -> Decimal:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = Decimal(raw.strip())
    except InvalidOperation:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}", code="invalid_setting")
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}", code="invalid_setting")
    return value


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Project paths
    project_root: Path

    # One sub-directory (or .xlsx workbook) per tenant
    catalog_root: Path
    default_tenant: str = "default"

    # Tier pricing policy
    apply_modifiers_to_tiers: bool = False
    tier_total_quantum: Decimal = Decimal("0.05")
    strict_tier_coverage: bool = True

    log_level: str = "INFO"

    @property
    def tier_policy(self) -> TierPolicy:
        return TierPolicy(
            apply_modifiers_to_tiers=self.apply_modifiers_to_tiers,
            tier_total_quantum=self.tier_total_quantum,
            strict_coverage=self.strict_tier_coverage,
        )

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings from the project structure and the environment."""
        root = project_root or get_project_root()
        bundled = Path(__file__).resolve().parent.parent / 'data' / 'catalogs'
        catalog_root = os.environ.get('FIELD_QUOTE_CATALOG_ROOT')

        return cls(
            project_root=root,
            catalog_root=Path(catalog_root) if catalog_root else bundled,
            default_tenant=os.environ.get('FIELD_QUOTE_DEFAULT_TENANT', 'default'),
            apply_modifiers_to_tiers=_env_bool('FIELD_QUOTE_TIER_MODIFIERS', False),
            tier_total_quantum=_env_decimal('FIELD_QUOTE_TIER_QUANTUM', Decimal("0.05")),
            strict_tier_coverage=_env_bool('FIELD_QUOTE_STRICT_TIERS', True),
            log_level=os.environ.get('FIELD_QUOTE_LOG_LEVEL', 'INFO').upper(),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
