"""
Utils module - Country reference resolution helpers.
"""

from .country_resolver import (
    CountryResolver,
    get_resolver,
    normalize_name,
    resolve_to_iso2_or_iso3
)

__all__ = [
    'CountryResolver',
    'get_resolver',
    'normalize_name',
    'resolve_to_iso2_or_iso3'
]
