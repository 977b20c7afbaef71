"""
Map Exporter Module - Store State Back to the Import Document Shape
"""

import logging
from typing import Optional, List, Dict, Any

import yaml

from src.core.models import DEFAULT_SET_ID
from src.core.state_store import MapStateStore

logger = logging.getLogger(__name__)

# Values containing these would trip the importer's anchor/alias scan if
# emitted as plain scalars; a bare quote shifts the scan's quoted regions
_QUOTE_TRIGGERS = ('&', '*', '<<', '"', "'")


class _ExportDumper(yaml.SafeDumper):
    """SafeDumper that double-quotes strings the importer would refuse unquoted."""


def _represent_str(dumper: yaml.SafeDumper, value: str):
    if any(trigger in value for trigger in _QUOTE_TRIGGERS):
        return dumper.represent_scalar('tag:yaml.org,2002:str', value, style='"')
    return dumper.represent_scalar('tag:yaml.org,2002:str', value)


_ExportDumper.add_representer(str, _represent_str)


def export_document(store: MapStateStore, map_name: Optional[str] = None,
                    include_default: bool = False) -> Dict[str, Any]:
    """
    Build the export document for the current store state.

    Args:
        store: State to export
        map_name: Optional map title, written as 'mapName'
        include_default: Also emit the "No data" set (carries its color)

    Returns:
        Dict in the sequence form accepted by MapImporter
    """
    members: Dict[Any, List[str]] = {}
    for country_id, set_id in store.explicit_assignments().items():
        members.setdefault(set_id, []).append(country_id)

    sets = []
    for country_set in store.get_sets():
        if country_set.id == DEFAULT_SET_ID and not include_default:
            continue
        sets.append({
            'name': country_set.name,
            'color': country_set.color,
            'countries': sorted(members.get(country_set.id, []))
        })

    document: Dict[str, Any] = {}
    if map_name:
        document['mapName'] = map_name
    document['sets'] = sets
    return document


def export_yaml(store: MapStateStore, map_name: Optional[str] = None,
                include_default: bool = False) -> str:
    """Serialize the current store state as YAML."""
    document = export_document(store, map_name=map_name, include_default=include_default)
    text = yaml.dump(
        document,
        Dumper=_ExportDumper,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False
    )
    logger.info(f"Exported {len(document['sets'])} sets")
    return text
