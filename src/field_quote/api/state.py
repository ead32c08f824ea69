"""Shared catalog provider for the API process."""
from ..config.settings import get_settings
from ..data.catalog_loader import CatalogProvider

provider = CatalogProvider(get_settings().catalog_root)
