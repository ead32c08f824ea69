"""Engine subpackage - quote resolution over an immutable catalog snapshot."""
from .errors import ConfigurationError, QuoteEngineError, ValidationError
from .models import (
    Additional,
    CatalogSnapshot,
    Combo,
    ComboItem,
    ExceptionKind,
    Priced,
    PricingTier,
    QuoteRequest,
    RequestLine,
    RequiresManualQuote,
    Service,
    Variable,
    VariableOption,
    Zone,
    ZoneException,
    ZonePricingType,
)
from .quote_resolver import QuoteResolver, resolve_quote
from .tier_pricer import TierPolicy

__all__ = [
    'QuoteResolver', 'resolve_quote', 'TierPolicy',
    'QuoteEngineError', 'ValidationError', 'ConfigurationError',
    'CatalogSnapshot', 'Service', 'Variable', 'VariableOption', 'PricingTier',
    'Combo', 'ComboItem', 'Additional', 'Zone', 'ZoneException',
    'ExceptionKind', 'ZonePricingType',
    'QuoteRequest', 'RequestLine', 'Priced', 'RequiresManualQuote',
]
