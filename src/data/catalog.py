"""
Country Catalog Module - Valid Country Universe From the Map Document

Builds the closed set of country IDs drawn on the SVG world map, plus an
index from each country's own <title> label to its ID. The catalog is built
once at startup and is read-only afterwards.
"""

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Optional, List, Dict, Iterable, Mapping, Tuple
from xml.etree import ElementTree as ET

import requests

from src.utils.country_resolver import normalize_name

logger = logging.getLogger(__name__)

# Generous enough for a full BlankMap-style world.svg, but bounded
MAX_DOCUMENT_CHARS = 5_000_000


class CatalogLoadError(ValueError):
    """Raised when the map document cannot be turned into a catalog."""


def _local_name(tag) -> str:
    """Strip the XML namespace from an element tag."""
    if not isinstance(tag, str):
        return ''
    return tag.rsplit('}', 1)[-1]


def _normalize_id(raw: Optional[str]) -> Optional[str]:
    """Accept only 2-letter ids; longer ones are internal sub-groups."""
    if not raw:
        return None
    trimmed = raw.strip()
    if len(trimmed) != 2 or not trimmed.isalpha():
        return None
    return trimmed.upper()


def _text_of(element: ET.Element) -> str:
    return ''.join(element.itertext()).strip()


class CountryCatalog:
    """
    Immutable catalog of the country IDs present on the map.

    IDs are uppercase ISO-like 2-letter codes. The name index maps
    normalized labels (see normalize_name) to IDs.
    """

    def __init__(self, country_ids: Iterable[str] = (),
                 normalized_name_to_id: Optional[Mapping[str, str]] = None):
        self._country_ids = frozenset(
            cid.strip().upper() for cid in country_ids if cid and cid.strip()
        )
        names: Dict[str, str] = {}
        for key, value in (normalized_name_to_id or {}).items():
            if key and value:
                names.setdefault(key.lower(), value.strip().upper())
        self._name_to_id = MappingProxyType(names)

    @property
    def country_ids(self) -> Tuple[str, ...]:
        """All country IDs, sorted."""
        return tuple(sorted(self._country_ids))

    @property
    def normalized_name_to_id(self) -> Mapping[str, str]:
        """Normalized label to country ID (read-only)."""
        return self._name_to_id

    def __len__(self) -> int:
        return len(self._country_ids)

    def __contains__(self, code) -> bool:
        return self.contains_id(code)

    def contains_id(self, code: Optional[str]) -> bool:
        """Check whether a code is a country on this map (case-insensitive)."""
        if not code or not code.strip():
            return False
        return code.strip().upper() in self._country_ids

    def try_resolve_id_from_name(self, name: Optional[str]) -> Optional[str]:
        """
        Look up a country ID by the map's own label for it.

        Args:
            name: Label in any casing/punctuation, e.g. "Côte d'Ivoire"

        Returns:
            Country ID, or None if no label matches
        """
        if not name or not name.strip():
            return None
        key = normalize_name(name.strip())
        if not key:
            return None
        return self._name_to_id.get(key) or None

    @classmethod
    def load_from_document(cls, svg_content: Optional[str]) -> 'CountryCatalog':
        """
        Build a catalog from SVG markup.

        An element is a country when its id is exactly two letters and it,
        or one of its descendants, has a non-blank <title>. Titles on
        descendants are indexed under the parent's id (countries drawn as
        several sub-paths).

        Raises:
            CatalogLoadError: if the document is oversized, declares a DTD,
                or is not well-formed XML
        """
        if not svg_content or not svg_content.strip():
            return cls()

        if len(svg_content) > MAX_DOCUMENT_CHARS:
            raise CatalogLoadError(
                f"Map document is too large. Limit is {MAX_DOCUMENT_CHARS:,} characters."
            )

        upper = svg_content.upper()
        if '<!DOCTYPE' in upper or '<!ENTITY' in upper:
            raise CatalogLoadError("Map document must not declare a DTD.")

        try:
            root = ET.fromstring(svg_content)
        except ET.ParseError as e:
            raise CatalogLoadError(f"Invalid map document: {e}") from e

        ids: List[str] = []
        seen = set()
        name_to_id: Dict[str, str] = {}

        def register(label: str, country_id: str):
            key = normalize_name(label)
            if key and key not in name_to_id:
                name_to_id[key] = country_id

        for element in root.iter():
            country_id = _normalize_id(element.get('id'))
            if country_id is None:
                continue

            direct_title = ''
            for child in element:
                if _local_name(child.tag) == 'title':
                    direct_title = _text_of(child)
                    break

            descendant_titles = [
                _text_of(node) for node in element.iter()
                if node is not element and _local_name(node.tag) == 'title'
            ]
            descendant_titles = [t for t in descendant_titles if t]

            if not direct_title and not descendant_titles:
                continue

            if country_id not in seen:
                seen.add(country_id)
                ids.append(country_id)

            if direct_title:
                register(direct_title, country_id)
            else:
                for title in descendant_titles:
                    register(title, country_id)

        logger.debug(f"Catalog scan found {len(ids)} countries and {len(name_to_id)} labels")
        return cls(ids, name_to_id)


def load_catalog_from_file(path: Path) -> CountryCatalog:
    """Read an SVG file and build its catalog."""
    with open(path, 'r', encoding='utf-8') as f:
        content = f.read()
    catalog = CountryCatalog.load_from_document(content)
    logger.info(f"Loaded {len(catalog)} countries from {path}")
    return catalog


def fetch_catalog(url: str, timeout: int = 15) -> CountryCatalog:
    """Download an SVG document and build its catalog."""
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise CatalogLoadError(f"Failed to fetch map document {url}: {e}") from e

    catalog = CountryCatalog.load_from_document(response.text)
    logger.info(f"Loaded {len(catalog)} countries from {url}")
    return catalog


def load_catalog(settings) -> CountryCatalog:
    """
    Build the catalog from the configured source.

    The URL wins when configured; otherwise the local path is read. A
    missing local file yields an empty catalog.
    """
    if settings.uses_remote_map:
        return fetch_catalog(settings.map_svg_url, timeout=settings.fetch_timeout)

    path = Path(settings.map_svg_path)
    if not path.exists():
        logger.warning(f"Map document not found: {path} - starting with zero countries")
        return CountryCatalog()

    return load_catalog_from_file(path)
