"""
Map Importer Module - Untrusted YAML to Validated Sets and Assignments

Parses a user-supplied YAML document into country sets and country
assignments. Oversized, anchor-bearing, malformed or wrongly shaped input is
rejected as a whole; individual bad entries are skipped with a warning.
"""

import re
import uuid
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, List, Dict, Any, Iterator

import yaml
from yaml.composer import ComposerError

from src.core.models import CountrySet, ImportResult, FALLBACK_COLOR
from src.data.catalog import CountryCatalog
from src.utils.country_resolver import resolve_to_iso2_or_iso3

logger = logging.getLogger(__name__)

MAP_NAME_KEYS = ('mapName', 'map', 'title', 'name')
SETS_KEYS = ('sets', 'groups')
SET_NAME_KEYS = ('name', 'group')
SET_COLOR_KEYS = ('color', 'colour')
SET_COUNTRIES_KEYS = ('countries', 'country')

_ANCHOR_PATTERN = re.compile(r'(^|[\s\[{,])&[A-Za-z0-9_-]+', re.MULTILINE)
_ALIAS_PATTERN = re.compile(r'(^|[\s\[{,])\*[A-Za-z0-9_-]+', re.MULTILINE)


class MapImportError(ValueError):
    """Raised when an import document is rejected as a whole."""


@dataclass
class ImportLimits:
    """Size ceilings applied to import documents."""
    max_yaml_chars: int = 200_000
    max_sets: int = 200
    max_countries_total: int = 6_000
    max_name_chars: int = 120
    max_color_chars: int = 40


class _StringLoader(yaml.SafeLoader):
    """SafeLoader that keeps every plain scalar a string and refuses aliases."""

    def compose_node(self, parent, index):
        if self.check_event(yaml.AliasEvent):
            event = self.peek_event()
            raise ComposerError(
                None, None, "aliases are not supported", event.start_mark
            )
        return super().compose_node(parent, index)


# No implicit typing: "NO" stays Norway, "yes" stays a string
_StringLoader.yaml_implicit_resolvers = {}


class _SetsShape(Enum):
    SEQUENCE = 'sequence'
    MAPPING = 'mapping'


@dataclass
class _GroupDefinition:
    name: str
    color: Optional[str]
    countries: List[str]


def mask_quoted_strings(text: str) -> str:
    """
    Replace the contents of quoted strings (and the quotes) with spaces.

    Double-quoted strings honor backslash escapes; single-quoted strings end
    at the next quote (a doubled '' simply reopens a new quoted run).
    """
    chars = list(text)
    in_single = False
    in_double = False
    escaped = False

    for i, ch in enumerate(chars):
        if in_double:
            if not escaped and ch == '"':
                in_double = False
            elif not escaped and ch == '\\':
                escaped = True
            else:
                escaped = False
            chars[i] = ' '
            continue

        if in_single:
            if ch == "'":
                in_single = False
            chars[i] = ' '
            continue

        if ch == '"':
            in_double = True
            escaped = False
            chars[i] = ' '
        elif ch == "'":
            in_single = True
            chars[i] = ' '

    return ''.join(chars)


def contains_reference_syntax(text: str) -> bool:
    """Check for anchors, aliases or merge keys outside quoted strings."""
    scan = mask_quoted_strings(text)
    return (
        '<<:' in scan
        or bool(_ANCHOR_PATTERN.search(scan))
        or bool(_ALIAS_PATTERN.search(scan))
    )


def canonicalize_country_id(reference: Optional[str],
                            catalog: Optional[CountryCatalog] = None) -> Optional[str]:
    """
    Turn a raw country reference into a canonical country ID.

    Without a catalog the resolver's candidate (2 or 3 letters) is returned
    as-is. With a catalog, catalog membership is the final authority: a
    3-letter candidate collapses to its first two letters when those are a
    known ID, and the catalog's own label index is consulted before giving up.

    Args:
        reference: Code or name, e.g. "gb", "FRA", "Ivory Coast"
        catalog: Country universe of the current map, if any

    Returns:
        Canonical ID, or None if the reference cannot be accepted
    """
    if not reference or not reference.strip():
        return None

    trimmed = reference.strip()
    candidate = resolve_to_iso2_or_iso3(trimmed)

    if catalog is None:
        return candidate

    if candidate:
        if len(candidate) == 2 and catalog.contains_id(candidate):
            return candidate
        if len(candidate) == 3 and catalog.contains_id(candidate[:2]):
            return candidate[:2]

    by_name = catalog.try_resolve_id_from_name(trimmed)
    if by_name and catalog.contains_id(by_name):
        return by_name

    return None


def _get_value(mapping: Dict[Any, Any], key: str) -> Any:
    """Case-insensitive key lookup; first matching key wins."""
    lowered = key.lower()
    for k, v in mapping.items():
        if isinstance(k, str) and k.lower() == lowered:
            return v
    return None


def _get_first_value(mapping: Dict[Any, Any], keys) -> Any:
    for key in keys:
        value = _get_value(mapping, key)
        if value is not None:
            return value
    return None


def _get_first_scalar(mapping: Dict[Any, Any], keys) -> Optional[str]:
    for key in keys:
        value = _get_value(mapping, key)
        if isinstance(value, str):
            return value
    return None


def _read_country_list(node: Any) -> List[str]:
    """Read a sequence of scalars or a comma-separated scalar."""
    if isinstance(node, list):
        return [item for item in node if isinstance(item, str) and item.strip()]
    if isinstance(node, str):
        return [part.strip() for part in node.split(',') if part.strip()]
    return []


def _classify_sets_node(node: Any) -> _SetsShape:
    if isinstance(node, list):
        return _SetsShape.SEQUENCE
    if isinstance(node, dict):
        return _SetsShape.MAPPING
    raise MapImportError("Expected 'sets' to be either a list or a mapping.")


class MapImporter:
    """
    Parses import documents against an optional country catalog.

    Usage:
        importer = MapImporter(catalog)
        result = importer.parse(yaml_text)
    """

    def __init__(self, catalog: Optional[CountryCatalog] = None,
                 limits: Optional[ImportLimits] = None):
        self.catalog = catalog
        self.limits = limits or ImportLimits()

    def parse(self, text: Optional[str]) -> ImportResult:
        """
        Parse and validate an import document.

        Raises:
            MapImportError: if the document is rejected as a whole
        """
        root = self._load_root(text)
        warnings: List[str] = []
        limits = self.limits

        map_name = _get_first_scalar(root, MAP_NAME_KEYS)
        if map_name is not None and not map_name.strip():
            map_name = None
        if map_name and len(map_name) > limits.max_name_chars:
            map_name = map_name[:limits.max_name_chars]
            warnings.append(f"Map name was truncated to {limits.max_name_chars} characters.")

        sets_node = _get_first_value(root, SETS_KEYS)
        if sets_node is None:
            raise MapImportError("Expected a root key 'sets' (or 'groups').")

        shape = _classify_sets_node(sets_node)
        if shape is _SetsShape.SEQUENCE:
            definitions = self._definitions_from_sequence(sets_node, warnings)
        else:
            definitions = self._definitions_from_mapping(sets_node)

        sets: List[CountrySet] = []
        assignments: Dict[str, uuid.UUID] = {}
        total_countries = 0

        for definition in definitions:
            if not definition.name or not definition.name.strip():
                warnings.append("Skipped a set with missing name.")
                continue

            if len(sets) >= limits.max_sets:
                raise MapImportError(f"Too many sets. Limit is {limits.max_sets}.")

            country_set = self._build_set(definition, warnings)
            sets.append(country_set)

            for reference in definition.countries:
                # Counted before resolution, so unresolvable references use up the ceiling too
                if total_countries >= limits.max_countries_total:
                    raise MapImportError(
                        f"Too many countries. Limit is {limits.max_countries_total:,}."
                    )
                total_countries += 1

                country_id = canonicalize_country_id(reference, self.catalog)
                if country_id is None:
                    warnings.append(f"Skipped invalid country id '{reference}'.")
                    continue

                # Last assignment wins
                assignments[country_id] = country_set.id

        logger.info(f"Parsed import: {len(sets)} sets, {len(assignments)} assignments, "
                    f"{len(warnings)} warnings")
        for warning in warnings:
            logger.debug(f"Import warning: {warning}")

        return ImportResult(
            map_name=map_name,
            sets=sets,
            assignments=assignments,
            warnings=warnings
        )

    def _load_root(self, text: Optional[str]) -> Dict[Any, Any]:
        """Run the pre-decode guards and decode exactly one mapping document."""
        if text is None or not text.strip():
            raise MapImportError("YAML is empty.")

        if len(text) > self.limits.max_yaml_chars:
            raise MapImportError(
                f"YAML is too large. Limit is {self.limits.max_yaml_chars:,} characters."
            )

        # Reference expansion can blow up memory, so refuse it before decoding
        if contains_reference_syntax(text):
            raise MapImportError("YAML anchors/aliases/merge keys are not supported.")

        try:
            documents = list(yaml.load_all(text, Loader=_StringLoader))
        except yaml.YAMLError as e:
            raise MapImportError(f"Invalid YAML: {e}") from e
        except RecursionError as e:
            raise MapImportError("Invalid YAML: document is nested too deeply.") from e

        if not documents:
            raise MapImportError("YAML contains no document.")
        if len(documents) != 1:
            raise MapImportError("YAML must contain exactly one document.")

        root = documents[0]
        if not isinstance(root, dict):
            raise MapImportError("Expected YAML root to be a mapping (object).")
        return root

    def _definitions_from_sequence(self, items: List[Any],
                                   warnings: List[str]) -> Iterator[_GroupDefinition]:
        for item in items:
            if not isinstance(item, dict):
                warnings.append("Skipped a non-object item in sets.")
                continue
            yield _GroupDefinition(
                name=_get_first_scalar(item, SET_NAME_KEYS) or '',
                color=_get_first_scalar(item, SET_COLOR_KEYS),
                countries=_read_country_list(_get_first_value(item, SET_COUNTRIES_KEYS))
            )

    def _definitions_from_mapping(self, entries: Dict[Any, Any]) -> Iterator[_GroupDefinition]:
        for key, body in entries.items():
            name = key if isinstance(key, str) else ''
            if isinstance(body, dict):
                yield _GroupDefinition(
                    name=name,
                    color=_get_first_scalar(body, SET_COLOR_KEYS),
                    countries=_read_country_list(_get_first_value(body, SET_COUNTRIES_KEYS))
                )
            else:
                # Shorthand: SetName: [US, CA]
                yield _GroupDefinition(name=name, color=None, countries=_read_country_list(body))

    def _build_set(self, definition: _GroupDefinition, warnings: List[str]) -> CountrySet:
        limits = self.limits

        name = definition.name.strip()
        if len(name) > limits.max_name_chars:
            name = name[:limits.max_name_chars]
            warnings.append(f"Truncated a set name to {limits.max_name_chars} characters.")

        color = definition.color.strip() if definition.color and definition.color.strip() else FALLBACK_COLOR
        if len(color) > limits.max_color_chars:
            color = color[:limits.max_color_chars]
            warnings.append(f"Truncated a set color to {limits.max_color_chars} characters.")

        # Keep the value safe for inline styles; rgb()/hsl() and names still pass
        color = color.replace(';', '').replace('\r', '').replace('\n', '').strip()

        return CountrySet(id=uuid.uuid4(), name=name, color=color)
