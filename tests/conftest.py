"""Shared fixtures for the quote engine tests."""
import pytest

from field_quote.engine import QuoteResolver, TierPolicy
from factories import hvac_catalog


@pytest.fixture
def catalog():
    return hvac_catalog()


@pytest.fixture
def resolver(catalog):
    return QuoteResolver(catalog, TierPolicy())
