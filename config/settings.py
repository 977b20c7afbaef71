"""
Centralized configuration settings for the application.
"""

import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional
from dotenv import load_dotenv

from src.core.importer import ImportLimits
from src.core.models import DEFAULT_SET_COLOR

# Load environment variables
load_dotenv()

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = PROJECT_ROOT / "data"


def _env_int(name: str, default: int) -> int:
    """Read an integer environment variable, falling back on bad values."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass
class Settings:
    """Application settings container."""

    # Map document
    map_svg_path: Path = field(
        default_factory=lambda: Path(os.getenv("MAP_SVG_PATH", str(DATA_DIR / "world.svg")))
    )
    map_svg_url: Optional[str] = field(default_factory=lambda: os.getenv("MAP_SVG_URL") or None)
    fetch_timeout: int = field(default_factory=lambda: _env_int("MAP_FETCH_TIMEOUT", 15))

    # Import limits
    max_yaml_chars: int = field(default_factory=lambda: _env_int("IMPORT_MAX_YAML_CHARS", 200_000))
    max_sets: int = field(default_factory=lambda: _env_int("IMPORT_MAX_SETS", 200))
    max_countries_total: int = field(default_factory=lambda: _env_int("IMPORT_MAX_COUNTRIES", 6_000))
    max_name_chars: int = field(default_factory=lambda: _env_int("IMPORT_MAX_NAME_CHARS", 120))
    max_color_chars: int = field(default_factory=lambda: _env_int("IMPORT_MAX_COLOR_CHARS", 40))

    # Store
    default_set_color: str = field(
        default_factory=lambda: os.getenv("DEFAULT_SET_COLOR", DEFAULT_SET_COLOR)
    )

    # Logging Configuration
    log_file: str = field(default_factory=lambda: os.getenv("LOG_FILE", "legends_maps.log"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    # API Configuration
    api_host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    api_port: int = field(default_factory=lambda: _env_int("PORT", 5000))

    def import_limits(self) -> ImportLimits:
        """Build the importer's size ceilings."""
        return ImportLimits(
            max_yaml_chars=self.max_yaml_chars,
            max_sets=self.max_sets,
            max_countries_total=self.max_countries_total,
            max_name_chars=self.max_name_chars,
            max_color_chars=self.max_color_chars
        )

    @property
    def uses_remote_map(self) -> bool:
        """Check if the map document is fetched over HTTP."""
        return bool(self.map_svg_url)


# Singleton settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
