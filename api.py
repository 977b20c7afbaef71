"""
Simple Flask API for the map state store.
Exposes sets, assignments, colors, YAML import and YAML export as JSON routes.
"""

import logging
import uuid
from functools import wraps
from typing import Optional

from flask import Flask, Response, jsonify, request, current_app

from config.settings import get_settings, Settings
from src.core.exporter import export_yaml
from src.core.importer import MapImporter, MapImportError
from src.core.models import CountrySet
from src.core.state_store import MapStateStore
from src.data.catalog import CountryCatalog, load_catalog

logger = logging.getLogger(__name__)


def handle_store_errors(f):
    """Decorator to turn rejected input into 400s and failures into 500s."""
    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except (MapImportError, ValueError) as e:
            return jsonify({"error": str(e)}), 400
        except Exception as e:
            logger.exception(f"Unhandled API error: {e}")
            return jsonify({"error": str(e)}), 500
    return wrapper


def _store() -> MapStateStore:
    return current_app.extensions["map_store"]


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValueError("Expected a JSON object in request body")
    return data


def _text_field(data: dict, key: str) -> Optional[str]:
    """Read an optional string field from a JSON body."""
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"Field '{key}' must be a string")
    return value


def _existing_set(set_id: str) -> Optional[CountrySet]:
    """Look up a set by its path id; ValueError when the id is malformed."""
    try:
        parsed = uuid.UUID(set_id)
    except ValueError:
        raise ValueError(f"Malformed set id: {set_id}")
    return _store().get_set(parsed)


def _serialize_assignments(assignments) -> dict:
    return {country_id: str(set_id) for country_id, set_id in sorted(assignments.items())}


def create_app(store: Optional[MapStateStore] = None,
               catalog: Optional[CountryCatalog] = None,
               settings: Optional[Settings] = None) -> Flask:
    """
    Build the Flask app around one store.

    When no store is given, the catalog is loaded from the configured map
    document and a fresh store is created for it.
    """
    settings = settings or get_settings()
    if store is None:
        catalog = catalog if catalog is not None else load_catalog(settings)
        store = MapStateStore(catalog, default_color=settings.default_set_color)

    app = Flask(__name__)
    app.extensions["map_store"] = store
    app.config["IMPORT_LIMITS"] = settings.import_limits()
    app.config["MAP_NAME"] = None

    @app.route("/")
    def index():
        """API info."""
        return jsonify({
            "name": "Legends & Maps API",
            "endpoints": {
                "/countries": "Country ids on the map",
                "/sets": "List sets (GET) or add a set (POST {name, color})",
                "/sets/<id>": "Update (PUT {name, color}) or remove (DELETE) a set",
                "/assignments": "Country -> set id for every country",
                "/assignments/<country>": "Assign a country (PUT {set_id})",
                "/colors": "Country -> color for every country",
                "/import": "Replace all sets from a YAML document (POST body)",
                "/export": "Current sets as YAML (query params: include_default)",
                "/reset": "Reset the session (POST)"
            }
        })

    @app.route("/countries")
    def countries():
        """Country ids known to the map."""
        ids = list(_store().catalog.country_ids)
        return jsonify({"countries": ids, "count": len(ids)})

    @app.route("/sets", methods=["GET"])
    def list_sets():
        """List sets."""
        return jsonify({"sets": [s.to_dict() for s in _store().get_sets()]})

    @app.route("/sets", methods=["POST"])
    @handle_store_errors
    def add_set():
        """Add a set."""
        data = _json_body()
        created = _store().add_set(_text_field(data, "name") or "", _text_field(data, "color"))
        return jsonify(created.to_dict()), 201

    @app.route("/sets/<set_id>", methods=["PUT"])
    @handle_store_errors
    def update_set(set_id):
        """Update a set's name and color."""
        data = _json_body()
        store = _store()
        existing = _existing_set(set_id)
        if existing is None:
            return jsonify({"error": "Set not found"}), 404
        store.update_set(existing.id, _text_field(data, "name"), _text_field(data, "color"))
        return jsonify(store.get_set(existing.id).to_dict())

    @app.route("/sets/<set_id>", methods=["DELETE"])
    @handle_store_errors
    def remove_set(set_id):
        """Remove a set; its countries revert to the default set."""
        store = _store()
        existing = _existing_set(set_id)
        if existing is None:
            return jsonify({"error": "Set not found"}), 404
        if existing.is_default:
            return jsonify({"error": "The default set cannot be removed"}), 400
        store.remove_set(existing.id)
        return jsonify({"removed": set_id})

    @app.route("/assignments", methods=["GET"])
    def assignments():
        """Every country with its set id."""
        return jsonify({"assignments": _serialize_assignments(_store().get_country_assignments())})

    @app.route("/assignments/<country_id>", methods=["PUT"])
    @handle_store_errors
    def assign_country(country_id):
        """Assign a country to a set (null clears the assignment)."""
        data = _json_body()
        store = _store()
        store.assign_country_to_set(country_id, data.get("set_id"))
        return jsonify({
            "country": country_id.strip().upper(),
            "set_id": str(store.get_assigned_set_id(country_id))
        })

    @app.route("/colors")
    def colors():
        """Every country with its color."""
        return jsonify({"colors": dict(sorted(_store().get_country_colors_by_id().items()))})

    @app.route("/import", methods=["POST"])
    @handle_store_errors
    def import_yaml():
        """Parse a YAML document and replace the whole state with it."""
        text = request.get_data(as_text=True)
        store = _store()
        importer = MapImporter(store.catalog, limits=current_app.config["IMPORT_LIMITS"])
        result = importer.parse(text)

        store.replace_all(result.sets, result.assignments)
        current_app.config["MAP_NAME"] = result.map_name

        return jsonify({
            "map_name": result.map_name,
            "sets": result.set_count,
            "assignments": result.assignment_count,
            "warnings": result.warnings
        })

    @app.route("/export")
    @handle_store_errors
    def export():
        """Current state as a YAML document."""
        include_default = request.args.get("include_default", "false").lower() in ("1", "true", "yes")
        text = export_yaml(
            _store(),
            map_name=current_app.config["MAP_NAME"],
            include_default=include_default
        )
        return Response(text, mimetype="application/x-yaml")

    @app.route("/reset", methods=["POST"])
    def reset():
        """Reset the session to the default set only."""
        _store().reset()
        current_app.config["MAP_NAME"] = None
        return jsonify({"reset": True})

    return app


if __name__ == "__main__":
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(settings.log_file),
            logging.StreamHandler()
        ]
    )
    app = create_app(settings=settings)
    app.run(host=settings.api_host, port=settings.api_port, debug=False)
