"""
Map State Store Module - In-Memory Sets and Country Assignments

Single source of truth for the current session: the list of country sets
and the country -> set assignments. Bad input is treated as a no-op so that
stale UI actions can never corrupt state or crash the session.

Invariants:
  - the default "No data" set (DEFAULT_SET_ID) always exists, cannot be
    removed and keeps its name;
  - a country missing from the assignment map belongs to the default set;
    DEFAULT_SET_ID is never stored as an assignment value;
  - every stored assignment references a set that exists.
"""

import uuid
import logging
import threading
from dataclasses import replace
from typing import Optional, List, Dict, Callable, Mapping, Sequence, Union

from src.core.models import (
    CountrySet, DEFAULT_SET_ID, DEFAULT_SET_NAME, DEFAULT_SET_COLOR, FALLBACK_COLOR
)
from src.data.catalog import CountryCatalog

logger = logging.getLogger(__name__)

_HEX_DIGITS = set('0123456789abcdefABCDEF')
_NIL_ID = uuid.UUID(int=0)

SetIdLike = Union[uuid.UUID, str, None]


def normalize_color(color: Optional[str]) -> str:
    """
    Normalize a user-entered color.

    Bare 3/6-digit hex gets a '#', '#RGB'/'#RRGGBB' is validated, and any
    other value (named colors, rgb()/hsl()) passes through for the renderer
    to judge.
    """
    if not color or not color.strip():
        return FALLBACK_COLOR

    c = color.strip()

    if not c.startswith('#'):
        if len(c) in (3, 6) and all(ch in _HEX_DIGITS for ch in c):
            return '#' + c
        return c

    if len(c) in (4, 7):
        if all(ch in _HEX_DIGITS for ch in c[1:]):
            return c
        return FALLBACK_COLOR

    return c


def _parse_set_id(set_id: SetIdLike) -> Optional[uuid.UUID]:
    """Coerce a set id; None for missing or malformed ids."""
    if set_id is None:
        return None
    if isinstance(set_id, uuid.UUID):
        return set_id
    try:
        return uuid.UUID(str(set_id).strip())
    except ValueError:
        return None


def _normalize_country_id(country_id: Optional[str]) -> Optional[str]:
    if not country_id or not country_id.strip():
        return None
    return country_id.strip().upper()


class MapStateStore:
    """
    Holds sets and assignments for one session.

    All mutations of the set list run under one lock. The assignment dict is
    written without the global lock and read through snapshots, so it is only
    eventually consistent with the set list; remove_set repairs it under the
    lock. Subscribers are called synchronously after each successful change
    and must not call back into the store.
    """

    def __init__(self, catalog: Optional[CountryCatalog] = None,
                 default_color: str = DEFAULT_SET_COLOR):
        self._catalog = catalog or CountryCatalog()
        self._all_country_ids = self._catalog.country_ids
        self._initial_default_color = normalize_color(default_color)

        self._lock = threading.Lock()
        self._sets: List[CountrySet] = [self._make_default_set(self._initial_default_color)]

        # Country id (e.g. "GB") -> set id; absence means DEFAULT_SET_ID
        self._country_to_set: Dict[str, uuid.UUID] = {}

        self._subscribers: List[Callable[[], None]] = []

    @staticmethod
    def _make_default_set(color: str) -> CountrySet:
        return CountrySet(id=DEFAULT_SET_ID, name=DEFAULT_SET_NAME, color=color)

    @property
    def default_set_id(self) -> uuid.UUID:
        return DEFAULT_SET_ID

    @property
    def total_country_count(self) -> int:
        return len(self._all_country_ids)

    @property
    def catalog(self) -> CountryCatalog:
        return self._catalog

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------

    def subscribe(self, callback: Callable[[], None]) -> None:
        """Register a callback invoked after every state change."""
        if callback not in self._subscribers:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[], None]) -> None:
        """Remove a previously registered callback (unknown callbacks are ignored)."""
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            try:
                callback()
            except Exception as e:
                logger.exception(f"State change subscriber {callback!r} failed: {e}")

    # ------------------------------------------------------------------
    # Sets
    # ------------------------------------------------------------------

    def get_sets(self) -> List[CountrySet]:
        """Snapshot of all sets, default set first."""
        with self._lock:
            return list(self._sets)

    def get_set(self, set_id: SetIdLike) -> Optional[CountrySet]:
        parsed = _parse_set_id(set_id)
        if parsed is None:
            return None
        with self._lock:
            return next((s for s in self._sets if s.id == parsed), None)

    def add_set(self, name: str, color: Optional[str] = None) -> CountrySet:
        """
        Create a new set.

        Raises:
            ValueError: if the name is blank
        """
        if not name or not name.strip():
            raise ValueError("Set name is required.")

        created = CountrySet(id=uuid.uuid4(), name=name.strip(), color=normalize_color(color))

        with self._lock:
            self._sets.append(created)

        logger.debug(f"Added set {created.id} '{created.name}'")
        self._notify()
        return created

    def update_set(self, set_id: SetIdLike, name: Optional[str], color: Optional[str]) -> None:
        """Rename/recolor a set. The default set only accepts a new color."""
        parsed = _parse_set_id(set_id)
        if parsed is None:
            return

        normalized_color = normalize_color(color)

        with self._lock:
            index = next((i for i, s in enumerate(self._sets) if s.id == parsed), None)
            if index is None:
                return

            if parsed == DEFAULT_SET_ID:
                # Keep the default group's name stable
                self._sets[index] = replace(self._sets[index], color=normalized_color)
            else:
                if not name or not name.strip():
                    return
                self._sets[index] = replace(
                    self._sets[index], name=name.strip(), color=normalized_color
                )

        logger.debug(f"Updated set {parsed}")
        self._notify()

    def remove_set(self, set_id: SetIdLike) -> None:
        """Remove a set; its countries fall back to the default set."""
        parsed = _parse_set_id(set_id)
        if parsed is None or parsed == DEFAULT_SET_ID:
            return

        with self._lock:
            remaining = [s for s in self._sets if s.id != parsed]
            if len(remaining) == len(self._sets):
                return
            self._sets = remaining

            for country_id, assigned in list(self._country_to_set.items()):
                if assigned == parsed:
                    self._country_to_set.pop(country_id, None)

        logger.debug(f"Removed set {parsed}")
        self._notify()

    # ------------------------------------------------------------------
    # Assignments
    # ------------------------------------------------------------------

    def get_assigned_set_id(self, country_id: Optional[str]) -> Optional[uuid.UUID]:
        """Set id of a country; DEFAULT_SET_ID when not explicitly assigned."""
        normalized = _normalize_country_id(country_id)
        if normalized is None:
            return None
        return self._country_to_set.get(normalized, DEFAULT_SET_ID)

    def assign_country_to_set(self, country_id: Optional[str], set_id: SetIdLike) -> None:
        """
        Assign a country to a set.

        None, a malformed id, the nil UUID or the default id all clear the
        explicit assignment. A well-formed id of an unknown set is ignored
        without notification.
        """
        normalized = _normalize_country_id(country_id)
        if normalized is None:
            return

        parsed = _parse_set_id(set_id)
        if parsed is None or parsed == _NIL_ID or parsed == DEFAULT_SET_ID:
            self._country_to_set.pop(normalized, None)
            self._notify()
            return

        with self._lock:
            if all(s.id != parsed for s in self._sets):
                return

        self._country_to_set[normalized] = parsed
        self._notify()

    def get_country_assignments(self) -> Dict[str, uuid.UUID]:
        """Every catalog country mapped to its set id, defaults included."""
        result = {country_id: DEFAULT_SET_ID for country_id in self._all_country_ids}
        result.update(list(self._country_to_set.items()))
        return result

    def explicit_assignments(self) -> Dict[str, uuid.UUID]:
        """Only the stored (non-default) assignments."""
        return dict(list(self._country_to_set.items()))

    def get_country_colors_by_id(self) -> Dict[str, str]:
        """Every catalog country mapped to the color of its set."""
        with self._lock:
            set_colors = {s.id: s.color for s in self._sets}

        default_color = set_colors.get(DEFAULT_SET_ID, FALLBACK_COLOR)
        result = {country_id: default_color for country_id in self._all_country_ids}

        for country_id, set_id in list(self._country_to_set.items()):
            color = set_colors.get(set_id)
            if color is not None:
                result[country_id] = color

        return result

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------

    def replace_all(self, sets: Optional[Sequence[CountrySet]],
                    assignments: Optional[Mapping[str, uuid.UUID]]) -> None:
        """
        Atomically replace every set and assignment (import).

        Incoming sets named "No data" (any case) or carrying the default id
        are folded into the permanent default set; the last one provides its
        color. Assignments to folded or unknown sets are dropped.
        """
        sets = sets or []
        assignments = assignments or {}

        imported_default_color = None
        folded_ids = set()
        kept: List[CountrySet] = []

        for s in sets:
            if s.name and s.name.strip().lower() == DEFAULT_SET_NAME.lower():
                imported_default_color = s.color
                folded_ids.add(s.id)
                continue
            if s.id == DEFAULT_SET_ID:
                imported_default_color = s.color
                continue
            kept.append(replace(s, color=normalize_color(s.color)))

        valid_ids = {s.id for s in kept}
        valid_ids.add(DEFAULT_SET_ID)

        new_assignments: Dict[str, uuid.UUID] = {}
        for country_id, set_id in assignments.items():
            normalized = _normalize_country_id(country_id)
            if normalized is None:
                continue

            target = DEFAULT_SET_ID if set_id in folded_ids else set_id
            if target not in valid_ids or target == DEFAULT_SET_ID:
                continue

            new_assignments[normalized] = target

        default_color = normalize_color(imported_default_color or self._initial_default_color)

        with self._lock:
            self._sets = [self._make_default_set(default_color)] + kept
            self._country_to_set.clear()
            self._country_to_set.update(new_assignments)

        logger.info(f"Replaced state: {len(kept)} sets, {len(new_assignments)} assignments")
        self._notify()

    def reset(self) -> None:
        """Drop every set and assignment except the default set."""
        with self._lock:
            self._sets = [self._make_default_set(self._initial_default_color)]
            self._country_to_set.clear()

        logger.info("Map state reset")
        self._notify()

    def get_statistics(self) -> Dict[str, int]:
        """Counts of sets and assigned countries."""
        with self._lock:
            set_count = len(self._sets)
        assigned = len(self._country_to_set)
        return {
            'total_sets': set_count,
            'total_countries': self.total_country_count,
            'assigned_countries': assigned,
            'unassigned_countries': max(self.total_country_count - assigned, 0)
        }
