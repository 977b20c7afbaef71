"""
Core module - Import, state and export logic.
"""

from .models import CountrySet, ImportResult, DEFAULT_SET_ID, DEFAULT_SET_NAME
from .importer import MapImporter, MapImportError, ImportLimits, canonicalize_country_id
from .state_store import MapStateStore, normalize_color
from .exporter import export_document, export_yaml

__all__ = [
    'CountrySet',
    'ImportResult',
    'DEFAULT_SET_ID',
    'DEFAULT_SET_NAME',
    'MapImporter',
    'MapImportError',
    'ImportLimits',
    'canonicalize_country_id',
    'MapStateStore',
    'normalize_color',
    'export_document',
    'export_yaml'
]
