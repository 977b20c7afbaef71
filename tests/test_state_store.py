import threading
import uuid

import pytest

from src.core.models import (
    CountrySet,
    DEFAULT_SET_COLOR,
    DEFAULT_SET_ID,
    DEFAULT_SET_NAME,
    FALLBACK_COLOR,
)
from src.core.state_store import MapStateStore, normalize_color
from src.data.catalog import CountryCatalog
from tests.conftest import SAMPLE_IDS


def assert_invariants(store):
    """Check the store's documented invariants."""
    sets = store.get_sets()
    live_ids = {s.id for s in sets}
    assert sum(1 for s in sets if s.id == DEFAULT_SET_ID) == 1
    assert sets[0].id == DEFAULT_SET_ID
    assert sets[0].name == DEFAULT_SET_NAME
    explicit = store.explicit_assignments()
    assert DEFAULT_SET_ID not in explicit.values()
    assert set(explicit.values()) <= live_ids


# ---------------------------------------------------------------------------
# Color normalization
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("raw, expected", [
    (None, FALLBACK_COLOR),
    ("", FALLBACK_COLOR),
    ("   ", FALLBACK_COLOR),
    ("abc", "#abc"),
    ("A1B2C3", "#A1B2C3"),
    (" #fff ", "#fff"),
    ("#12ab9F", "#12ab9F"),
    ("#zzz", FALLBACK_COLOR),
    ("#12345g", FALLBACK_COLOR),
    ("#12345", "#12345"),
    ("red", "red"),
    ("rebeccapurple", "rebeccapurple"),
    ("rgb(1, 2, 3)", "rgb(1, 2, 3)"),
    ("abcd", "abcd"),
])
def test_normalize_color(raw, expected):
    assert normalize_color(raw) == expected


# ---------------------------------------------------------------------------
# Initial state
# ---------------------------------------------------------------------------

def test_new_store_has_only_the_default_set(store):
    sets = store.get_sets()
    assert sets == [CountrySet(DEFAULT_SET_ID, DEFAULT_SET_NAME, DEFAULT_SET_COLOR)]
    assert store.default_set_id == DEFAULT_SET_ID
    assert store.total_country_count == len(SAMPLE_IDS)
    assert_invariants(store)


def test_unassigned_countries_report_default_set_and_color(store):
    for country_id in SAMPLE_IDS:
        assert store.get_assigned_set_id(country_id) == DEFAULT_SET_ID
    assert store.get_country_colors_by_id() == {cid: DEFAULT_SET_COLOR for cid in SAMPLE_IDS}
    assert store.get_country_assignments() == {cid: DEFAULT_SET_ID for cid in SAMPLE_IDS}
    assert store.explicit_assignments() == {}


def test_get_assigned_set_id_for_blank_country(store):
    assert store.get_assigned_set_id("") is None
    assert store.get_assigned_set_id(None) is None


def test_store_without_catalog_has_zero_countries():
    store = MapStateStore()
    assert store.total_country_count == 0
    assert store.get_country_colors_by_id() == {}


# ---------------------------------------------------------------------------
# Sets
# ---------------------------------------------------------------------------

def test_add_set(store, events):
    created = store.add_set("  Visited  ", "abc")
    assert created.name == "Visited"
    assert created.color == "#abc"
    assert store.get_sets()[-1] == created
    assert store.get_set(created.id) == created
    assert store.get_set(str(created.id)) == created
    assert len(events) == 1


@pytest.mark.parametrize("name", ["", "   ", None])
def test_add_set_requires_a_name(store, events, name):
    with pytest.raises(ValueError, match="name is required"):
        store.add_set(name, "red")
    assert len(store.get_sets()) == 1
    assert events == []


def test_update_set(store, events):
    created = store.add_set("A", "red")
    store.update_set(created.id, " B ", "00ff00")
    assert store.get_set(created.id) == CountrySet(created.id, "B", "#00ff00")
    assert len(events) == 2


def test_update_default_set_only_changes_color(store, events):
    store.update_set(DEFAULT_SET_ID, "Renamed", "#123456")
    default = store.get_set(DEFAULT_SET_ID)
    assert default.name == DEFAULT_SET_NAME
    assert default.color == "#123456"
    assert len(events) == 1


@pytest.mark.parametrize("name", ["Renamed", "", None, "x" * 500])
def test_default_set_name_never_changes(store, name):
    store.update_set(str(DEFAULT_SET_ID), name, "blue")
    assert store.get_set(DEFAULT_SET_ID).name == DEFAULT_SET_NAME


def test_update_unknown_set_is_a_noop(store, events):
    store.update_set(uuid.uuid4(), "Ghost", "red")
    store.update_set("not-a-uuid", "Ghost", "red")
    assert len(store.get_sets()) == 1
    assert events == []


def test_update_with_blank_name_is_a_noop(store, events):
    created = store.add_set("A", "red")
    store.update_set(created.id, "  ", "blue")
    assert store.get_set(created.id) == created
    assert len(events) == 1


def test_remove_set_reverts_its_countries_to_default(store, events):
    europe = store.add_set("Europe", "blue")
    asia = store.add_set("Asia", "red")
    store.assign_country_to_set("FR", europe.id)
    store.assign_country_to_set("DE", europe.id)
    store.assign_country_to_set("JP", asia.id)
    events.clear()

    store.remove_set(europe.id)

    assert europe not in store.get_sets()
    assert store.get_assigned_set_id("FR") == DEFAULT_SET_ID
    assert store.get_assigned_set_id("DE") == DEFAULT_SET_ID
    assert store.get_assigned_set_id("JP") == asia.id
    assert store.get_country_colors_by_id()["FR"] == DEFAULT_SET_COLOR
    assert store.explicit_assignments() == {"JP": asia.id}
    assert len(events) == 1
    assert_invariants(store)


def test_default_set_cannot_be_removed(store, events):
    store.remove_set(DEFAULT_SET_ID)
    store.remove_set(str(DEFAULT_SET_ID))
    assert [s.id for s in store.get_sets()] == [DEFAULT_SET_ID]
    assert events == []


def test_remove_unknown_set_is_a_noop(store, events):
    store.remove_set(uuid.uuid4())
    store.remove_set(None)
    store.remove_set("garbage")
    assert events == []


# ---------------------------------------------------------------------------
# Assignments
# ---------------------------------------------------------------------------

def test_assign_country_to_set(store, events):
    created = store.add_set("A", "#ff0000")
    store.assign_country_to_set(" fr ", created.id)

    assert store.get_assigned_set_id("FR") == created.id
    assert store.get_assigned_set_id("fr") == created.id
    assert store.explicit_assignments() == {"FR": created.id}
    assert store.get_country_colors_by_id()["FR"] == "#ff0000"
    assert len(events) == 2


def test_assign_accepts_string_set_ids(store):
    created = store.add_set("A", "red")
    store.assign_country_to_set("US", str(created.id))
    assert store.get_assigned_set_id("US") == created.id


@pytest.mark.parametrize("target", [None, DEFAULT_SET_ID, str(DEFAULT_SET_ID),
                                    uuid.UUID(int=0), "not-a-uuid"])
def test_assign_to_none_default_or_invalid_clears_and_notifies(store, events, target):
    created = store.add_set("A", "red")
    store.assign_country_to_set("US", created.id)
    events.clear()

    store.assign_country_to_set("US", target)

    assert store.get_assigned_set_id("US") == DEFAULT_SET_ID
    assert "US" not in store.explicit_assignments()
    assert len(events) == 1
    assert_invariants(store)


def test_assign_to_unknown_set_is_silent_noop(store, events):
    created = store.add_set("A", "red")
    store.assign_country_to_set("US", created.id)
    events.clear()

    store.assign_country_to_set("US", uuid.uuid4())

    assert store.get_assigned_set_id("US") == created.id
    assert events == []


def test_assign_blank_country_is_a_noop(store, events):
    created = store.add_set("A", "red")
    events.clear()
    store.assign_country_to_set("  ", created.id)
    assert store.explicit_assignments() == {}
    assert events == []


def test_colors_follow_set_recoloring(store):
    created = store.add_set("A", "red")
    store.assign_country_to_set("CN", created.id)
    store.update_set(created.id, "A", "green")
    store.update_set(DEFAULT_SET_ID, "ignored", "#000")

    colors = store.get_country_colors_by_id()
    assert colors["CN"] == "green"
    assert colors["US"] == "#000"
    assert set(colors) == set(SAMPLE_IDS)


# ---------------------------------------------------------------------------
# Replace all
# ---------------------------------------------------------------------------

def test_replace_all_installs_sets_and_assignments(store, events):
    store.add_set("Old", "red")
    a = CountrySet(uuid.uuid4(), "A", "abc")
    b = CountrySet(uuid.uuid4(), "B", "blue")
    events.clear()

    store.replace_all([a, b], {"us": a.id, "FR": b.id})

    sets = store.get_sets()
    assert [s.name for s in sets] == [DEFAULT_SET_NAME, "A", "B"]
    assert sets[1] == CountrySet(a.id, "A", "#abc")
    assert store.explicit_assignments() == {"US": a.id, "FR": b.id}
    assert len(events) == 1
    assert_invariants(store)


@pytest.mark.parametrize("name", ["No data", "no DATA", "  No Data  "])
def test_replace_all_folds_no_data_sets_into_default(store, name):
    folded = CountrySet(uuid.uuid4(), name, "#f1f1f1")
    kept = CountrySet(uuid.uuid4(), "Kept", "red")

    store.replace_all([folded, kept], {"US": folded.id, "CA": kept.id})

    sets = store.get_sets()
    assert [s.id for s in sets] == [DEFAULT_SET_ID, kept.id]
    assert sets[0].color == "#f1f1f1"
    assert sets[0].name == DEFAULT_SET_NAME
    assert store.explicit_assignments() == {"CA": kept.id}
    assert store.get_assigned_set_id("US") == DEFAULT_SET_ID


def test_replace_all_last_no_data_color_wins(store):
    first = CountrySet(uuid.uuid4(), "No data", "#111")
    second = CountrySet(DEFAULT_SET_ID, "Whatever", "#222")
    store.replace_all([first, second], {})
    assert store.get_set(DEFAULT_SET_ID).color == "#222"
    assert [s.id for s in store.get_sets()] == [DEFAULT_SET_ID]


def test_replace_all_drops_assignments_to_unknown_sets(store):
    kept = CountrySet(uuid.uuid4(), "Kept", "red")
    store.replace_all([kept], {"US": uuid.uuid4(), "CA": kept.id, "": kept.id,
                               "MX": DEFAULT_SET_ID})
    assert store.explicit_assignments() == {"CA": kept.id}


def test_replace_all_without_no_data_restores_initial_default_color(store):
    store.update_set(DEFAULT_SET_ID, None, "#000000")
    store.replace_all([], {})
    assert store.get_set(DEFAULT_SET_ID).color == DEFAULT_SET_COLOR


def test_replace_all_with_nothing(store):
    store.add_set("A", "red")
    store.replace_all(None, None)
    assert [s.id for s in store.get_sets()] == [DEFAULT_SET_ID]


def test_reset(store, events):
    created = store.add_set("A", "red")
    store.assign_country_to_set("US", created.id)
    store.update_set(DEFAULT_SET_ID, None, "#000")
    events.clear()

    store.reset()

    assert store.get_sets() == [CountrySet(DEFAULT_SET_ID, DEFAULT_SET_NAME, DEFAULT_SET_COLOR)]
    assert store.explicit_assignments() == {}
    assert len(events) == 1


def test_custom_default_color(catalog):
    store = MapStateStore(catalog, default_color="ccc")
    assert store.get_set(DEFAULT_SET_ID).color == "#ccc"


# ---------------------------------------------------------------------------
# Notifications and concurrency
# ---------------------------------------------------------------------------

def test_unsubscribe_stops_notifications(store):
    received = []
    callback = lambda: received.append(1)
    store.subscribe(callback)
    store.add_set("A", "red")
    store.unsubscribe(callback)
    store.unsubscribe(callback)
    store.add_set("B", "red")
    assert received == [1]


def test_failing_subscriber_does_not_block_others(store):
    received = []

    def broken():
        raise RuntimeError("boom")

    store.subscribe(broken)
    store.subscribe(lambda: received.append(1))

    store.add_set("A", "red")

    assert received == [1]


def test_statistics(store):
    created = store.add_set("A", "red")
    store.assign_country_to_set("US", created.id)
    stats = store.get_statistics()
    assert stats == {
        'total_sets': 2,
        'total_countries': len(SAMPLE_IDS),
        'assigned_countries': 1,
        'unassigned_countries': len(SAMPLE_IDS) - 1,
    }


def test_concurrent_mutations_keep_invariants():
    ids = [f"{a}{b}" for a in "ABCDEFGH" for b in "ABCDEFGH"]
    store = MapStateStore(CountryCatalog(ids))

    def worker(index):
        for round_ in range(20):
            created = store.add_set(f"W{index}-{round_}", "red")
            for country_id in ids[index::8]:
                store.assign_country_to_set(country_id, created.id)
            if round_ % 2:
                store.remove_set(created.id)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(store.get_sets()) == 1 + 8 * 10
    assert_invariants(store)
    assert set(store.get_country_assignments()) == set(ids)
