"""
Domain models shared by the importer, the state store and the exporter.
"""

import uuid
from dataclasses import dataclass, field
from typing import List, Dict, Optional

# Reserved identity of the "No data" set. A country that has no explicit
# assignment belongs to this set; the store never stores it as a value.
DEFAULT_SET_ID = uuid.UUID('11111111-1111-1111-1111-111111111111')
DEFAULT_SET_NAME = 'No data'
DEFAULT_SET_COLOR = '#e9ecef'
FALLBACK_COLOR = '#808080'


@dataclass(frozen=True)
class CountrySet:
    """A named, colored group of countries."""
    id: uuid.UUID
    name: str
    color: str

    @property
    def is_default(self) -> bool:
        return self.id == DEFAULT_SET_ID

    def to_dict(self) -> Dict[str, str]:
        return {
            'id': str(self.id),
            'name': self.name,
            'color': self.color,
            'is_default': self.is_default
        }


@dataclass
class ImportResult:
    """Validated content of an import document."""
    map_name: Optional[str]
    sets: List[CountrySet] = field(default_factory=list)
    assignments: Dict[str, uuid.UUID] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    @property
    def set_count(self) -> int:
        return len(self.sets)

    @property
    def assignment_count(self) -> int:
        return len(self.assignments)
