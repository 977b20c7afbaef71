"""
Data module - Country catalog loading from the map document.
"""

from .catalog import (
    CountryCatalog,
    CatalogLoadError,
    load_catalog,
    load_catalog_from_file,
    fetch_catalog
)

__all__ = [
    'CountryCatalog',
    'CatalogLoadError',
    'load_catalog',
    'load_catalog_from_file',
    'fetch_catalog'
]
