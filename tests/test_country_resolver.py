import pytest

from src.utils.country_resolver import (
    CountryResolver,
    get_resolver,
    normalize_name,
    resolve_to_iso2_or_iso3,
)


@pytest.mark.parametrize("raw, expected", [
    ("Côte d'Ivoire", "cote d ivoire"),
    ("  São--Tomé & Príncipe ", "sao tome principe"),
    ("UNITED   kingdom", "united kingdom"),
    ("Åland", "aland"),
    ("...", ""),
    ("", ""),
])
def test_normalize_name(raw, expected):
    assert normalize_name(raw) == expected


def test_two_letter_alias_wins_over_literal_code():
    assert resolve_to_iso2_or_iso3("UK") == "GB"
    assert resolve_to_iso2_or_iso3("uk") == "GB"


def test_two_letter_input_is_accepted_literally():
    assert resolve_to_iso2_or_iso3("gb") == "GB"
    assert resolve_to_iso2_or_iso3(" fr ") == "FR"
    # Not a real code, but the resolver does not judge validity
    assert resolve_to_iso2_or_iso3("zz") == "ZZ"


@pytest.mark.parametrize("reference, expected", [
    ("Germany", "DE"),
    ("deutschland", "DE"),
    ("FRA", "FR"),
    ("usa", "US"),
    ("United States of America", "US"),
    ("Czech Republic", "CZ"),
    ("Türkiye", "TR"),
    ("burma", "MM"),
    ("Holy See", "VA"),
    ("kosovo", "XK"),
    ("SOUTH-KOREA", "KR"),
])
def test_names_and_iso3_codes_resolve_to_iso2(reference, expected):
    assert resolve_to_iso2_or_iso3(reference) == expected


def test_ivory_coast_resolves_to_a_name_based_candidate():
    result = resolve_to_iso2_or_iso3("Ivory Coast")
    assert result == "CI"
    assert result != "IV"


def test_unknown_three_letter_input_is_kept_as_iso3_candidate():
    assert resolve_to_iso2_or_iso3("xyz") == "XYZ"


@pytest.mark.parametrize("reference", [None, "", "   ", "Atlantis", "!!", "a1"])
def test_unresolvable_references(reference):
    assert resolve_to_iso2_or_iso3(reference) is None


def test_first_registration_wins_for_colliding_names():
    resolver = CountryResolver()
    # "Congo" is registered for Congo-Brazzaville before any alias
    assert resolver.resolve("Congo") == "CG"
    assert resolver.resolve("DR Congo") == "CD"


def test_name_and_iso3_helpers():
    resolver = get_resolver()
    assert resolver.get_name("de") == "Germany"
    assert resolver.get_iso3("DE") == "DEU"
    assert resolver.get_name("ZZ") is None
    assert resolver.get_iso3("ZZ") is None


def test_global_resolver_is_shared():
    assert get_resolver() is get_resolver()
