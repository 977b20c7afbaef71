#!/usr/bin/env python3
"""
Legends & Maps
Main Entry Point - Import / Summary / Export

Coordinates the command-line flow:
1. Loading the country catalog from the SVG world map
2. Importing a YAML document of country sets
3. Printing a per-set summary of the resulting map state
4. Exporting the state back to YAML
"""

import logging
import sys
from pathlib import Path
from typing import Optional

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from config.settings import get_settings
from src.core.exporter import export_yaml
from src.core.importer import MapImporter, MapImportError
from src.core.state_store import MapStateStore
from src.data.catalog import CatalogLoadError, fetch_catalog, load_catalog, load_catalog_from_file
from src.utils.country_resolver import get_resolver

logger = logging.getLogger("LegendsAndMaps")


def configure_logging(level: str, log_file: str):
    """Configure root logging with file and console handlers."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )


def print_banner():
    """Print startup banner."""
    print("\n" + "=" * 70)
    print("🗺️  LEGENDS & MAPS")
    print("    Country sets: import, summarize, export")
    print("=" * 70 + "\n")


def print_summary(store: MapStateStore, map_name: Optional[str]):
    """Print the sets and their member countries."""
    resolver = get_resolver()
    assignments = store.get_country_assignments()

    print("\n" + "=" * 70)
    print(f"📊 MAP SUMMARY{': ' + map_name if map_name else ''}")
    print("=" * 70)

    for country_set in store.get_sets():
        members = sorted(cid for cid, sid in assignments.items() if sid == country_set.id)
        marker = " (default)" if country_set.is_default else ""
        print(f"\n🎨 {country_set.name}{marker}  [{country_set.color}]  - {len(members)} countries")
        if not country_set.is_default:
            for country_id in members:
                print(f"   {country_id}  {resolver.get_iso3(country_id) or '---'}  "
                      f"{resolver.get_name(country_id) or ''}")

    stats = store.get_statistics()
    print(f"\n🌍 Countries on map:  {stats['total_countries']}")
    print(f"   Assigned:          {stats['assigned_countries']}")
    print("\n" + "=" * 70)


def main(
    svg: Optional[str] = None,
    svg_url: Optional[str] = None,
    import_file: Optional[str] = None,
    export_file: Optional[str] = None,
    include_default: bool = False
) -> int:
    """Run the import/summary/export flow. Returns the process exit code."""
    print_banner()
    settings = get_settings()

    try:
        if svg_url:
            catalog = fetch_catalog(svg_url, timeout=settings.fetch_timeout)
        elif svg:
            catalog = load_catalog_from_file(Path(svg))
        else:
            catalog = load_catalog(settings)
    except (CatalogLoadError, OSError) as e:
        logger.error(f"❌ Could not load map document: {e}")
        return 1

    store = MapStateStore(catalog, default_color=settings.default_set_color)
    map_name = None

    if import_file:
        logger.info(f"📥 Importing {import_file}...")
        try:
            with open(import_file, 'r', encoding='utf-8') as f:
                text = f.read()
            result = MapImporter(catalog, limits=settings.import_limits()).parse(text)
        except MapImportError as e:
            logger.error(f"❌ Import rejected: {e}")
            return 1
        except OSError as e:
            logger.error(f"❌ Could not read {import_file}: {e}")
            return 1

        for warning in result.warnings:
            logger.warning(f"  ⚠️  {warning}")

        store.replace_all(result.sets, result.assignments)
        map_name = result.map_name

    print_summary(store, map_name)

    if export_file:
        text = export_yaml(store, map_name=map_name, include_default=include_default)
        with open(export_file, 'w', encoding='utf-8') as f:
            f.write(text)
        logger.info(f"💾 Exported map state to {export_file}")

    return 0


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(
        description="Import, summarize and export country sets for a world map"
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--svg", type=str, help="Path to the SVG world map")
    source.add_argument("--svg-url", type=str, help="URL of the SVG world map")
    parser.add_argument("--import", dest="import_file", type=str, help="YAML document to import")
    parser.add_argument("--export", dest="export_file", type=str, help="Write the state as YAML")
    parser.add_argument("--include-default", action="store_true",
                        help="Include the 'No data' set in the export")
    parser.add_argument("--log-level", type=str, default=None,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])

    args = parser.parse_args()

    settings = get_settings()
    configure_logging(args.log_level or settings.log_level, settings.log_file)

    sys.exit(main(
        svg=args.svg,
        svg_url=args.svg_url,
        import_file=args.import_file,
        export_file=args.export_file,
        include_default=args.include_default
    ))
