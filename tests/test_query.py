# tests/test_query.py
from types import SimpleNamespace

import pytest
from starlette.datastructures import QueryParams

from app.enums import Availability, Skills, Tools
from app.query import (
    NOT_DELETED, And, Contains, Eq, IContains, InvalidParameterError, Or,
    SortDirection, SortDirective, build_filter, build_sort, build_timezone_range,
)


def record(**overrides):
    base = dict(
        id=1, description="", deleted_at=None, skills_possessed=[], skills_sought=[],
        preferred_tools=[], languages=[], availability="FLEXIBLE", timezone_offsets=[],
    )
    base.update(overrides)
    return SimpleNamespace(**base)


def extra_terms(params):
    predicate = build_filter(params)
    assert isinstance(predicate, And)
    assert predicate.terms[0] == NOT_DELETED
    return predicate.terms[1:]


def test_timezone_range_examples():
    assert build_timezone_range(-2, 2) == [-2, -1, 0, 1, 2]
    assert build_timezone_range(9, -9) == [9, 10, 11, 12, -12, -11, -10, -9]


def test_timezone_range_without_wrap_is_contiguous():
    for start in range(-12, 13):
        for end in range(start + 1, 13):
            assert build_timezone_range(start, end) == list(range(start, end + 1))


def test_timezone_range_wraps_over_date_line():
    for start in range(-12, 13):
        for end in range(-12, start + 1):
            offsets = build_timezone_range(start, end)
            assert offsets == list(range(start, 13)) + list(range(-12, end + 1))
            assert len(offsets) == (12 - start + 1) + (end + 12 + 1)
            assert all(-12 <= tz <= 12 for tz in offsets)


def test_timezone_range_equal_bounds_wraps_fully():
    # start == end takes the wraparound branch: every offset, start listed twice
    offsets = build_timezone_range(3, 3)
    assert len(offsets) == 26
    assert offsets.count(3) == 2
    assert set(offsets) == set(range(-12, 13))


def test_timezone_range_rejects_out_of_range():
    with pytest.raises(ValueError):
        build_timezone_range(-13, 2)
    with pytest.raises(ValueError):
        build_timezone_range(0, 13)


def test_empty_params_only_excludes_deleted():
    predicate = build_filter({})
    assert predicate == And((NOT_DELETED,))
    assert predicate.matches(record())
    assert predicate.matches(record(skills_possessed=["CODE"], languages=["Rust"]))
    assert not predicate.matches(record(deleted_at="2024-01-01T00:00:00Z"))


def test_base_predicate_present_with_other_filters():
    predicate = build_filter({"languages": "Rust", "tools": "godot", "timezones": "0/1"})
    assert predicate.terms[0] == NOT_DELETED
    assert not predicate.matches(record(
        deleted_at="2024-01-01", languages=["Rust"], preferred_tools=["GODOT"], timezone_offsets=[0],
    ))


def test_description_terms_are_trimmed_and_anded():
    terms = extra_terms({"description": " pixel art , ,jam "})
    assert terms == (IContains("description", "pixel art"), IContains("description", "jam"))
    predicate = build_filter({"description": "PIXEL,jam"})
    assert predicate.matches(record(description="Pixel art for the Jam"))
    assert not predicate.matches(record(description="pixel art only"))


def test_description_matches_special_characters_literally():
    predicate = build_filter({"description": "c++ (50%)"})
    assert predicate.matches(record(description="Looking for C++ (50%) help"))
    assert not predicate.matches(record(description="c (50) help"))


def test_skills_default_mode_ands_terms():
    terms = extra_terms({"skillsPossessed": "code,music"})
    assert terms == (And((Contains("skills_possessed", Skills.CODE), Contains("skills_possessed", Skills.MUSIC))),)


def test_skills_or_mode_ors_terms():
    terms = extra_terms({"skillsPossessed": "code,music", "skillsPossessedSearchMode": "or"})
    assert terms == (Or((Contains("skills_possessed", Skills.CODE), Contains("skills_possessed", Skills.MUSIC))),)
    predicate = build_filter({"skillsPossessed": "code,music", "skillsPossessedSearchMode": "or"})
    assert predicate.matches(record(skills_possessed=["MUSIC"]))


def test_skills_sought_uses_its_own_mode():
    terms = extra_terms({
        "skillsSought": "art_2d,sfx",
        "skillsSoughtSearchMode": "OR",
        "skillsPossessed": "code",
    })
    assert And((Contains("skills_possessed", Skills.CODE),)) in terms
    assert Or((Contains("skills_sought", Skills.ART_2D), Contains("skills_sought", Skills.SFX))) in terms


@pytest.mark.parametrize("mode", ["AND", "any", "", "xor"])
def test_search_mode_other_than_and_ors_terms(mode):
    terms = extra_terms({"skillsPossessed": "code,music", "skillsPossessedSearchMode": mode})
    assert terms == (Or((Contains("skills_possessed", Skills.CODE), Contains("skills_possessed", Skills.MUSIC))),)


def test_search_mode_and_or_missing_ands_terms():
    assert isinstance(extra_terms({"skillsSought": "code,sfx", "skillsSoughtSearchMode": "and"})[0], And)
    assert isinstance(extra_terms({"skillsSought": "code,sfx"})[0], And)


def test_unknown_enum_tokens_are_dropped():
    assert extra_terms({"skillsPossessed": "juggling,,"}) == ()
    assert extra_terms({"tools": "notepad"}) == ()
    assert extra_terms({"availability": "weekends"}) == ()
    assert build_filter({"skillsSought": "juggling", "tools": "x"}) == build_filter({})
    assert extra_terms({"skillsPossessed": "juggling,Code"}) == (
        And((Contains("skills_possessed", Skills.CODE),)),
    )


def test_tools_are_appended_individually():
    terms = extra_terms({"tools": "unity,pico-8"})
    assert terms == (Contains("preferred_tools", Tools.UNITY), Contains("preferred_tools", Tools.PICO_8))
    predicate = build_filter({"tools": "unity,pico-8"})
    assert predicate.matches(record(preferred_tools=["UNITY", "PICO_8"]))
    assert not predicate.matches(record(preferred_tools=["UNITY"]))


def test_languages_are_always_ored():
    terms = extra_terms({"languages": "Kotlin,Rust", "languagesSearchMode": "and"})
    assert terms == (Or((Contains("languages", "Kotlin"), Contains("languages", "Rust"))),)
    predicate = build_filter({"languages": "Kotlin,Rust"})
    assert predicate.matches(record(languages=["Rust"]))
    assert not predicate.matches(record(languages=["Go"]))


def test_availability_is_inclusion_search():
    terms = extra_terms({"availability": "part_time,FULL_TIME"})
    assert terms == (Or((Eq("availability", Availability.PART_TIME), Eq("availability", Availability.FULL_TIME))),)
    predicate = build_filter({"availability": "part_time,FULL_TIME"})
    assert predicate.matches(record(availability="FULL_TIME"))
    assert not predicate.matches(record(availability="MINIMAL"))


def test_timezones_filter_ors_membership_checks():
    terms = extra_terms({"timezones": "9/-9"})
    assert terms == (Or(tuple(Contains("timezone_offsets", tz) for tz in [9, 10, 11, 12, -12, -11, -10, -9])),)
    predicate = build_filter({"timezones": "9/-9"})
    assert predicate.matches(record(timezone_offsets=[-10, 1]))
    assert not predicate.matches(record(timezone_offsets=[0, 1, 8]))


@pytest.mark.parametrize("raw", ["1", "a/b", "1/2/3", "-13/2", "0/13", "", "/"])
def test_malformed_timezones_are_ignored(raw):
    assert extra_terms({"timezones": raw, "languages": "Rust"}) == (Or((Contains("languages", "Rust"),)),)


def test_repeated_query_keys_are_combined():
    params = QueryParams("languages=Kotlin&languages=Rust&tools=godot")
    terms = build_filter(params).terms[1:]
    assert Or((Contains("languages", "Kotlin"), Contains("languages", "Rust"))) in terms
    assert Contains("preferred_tools", Tools.GODOT) in terms


def test_list_values_are_accepted():
    terms = extra_terms({"description": ["pixel", "jam"]})
    assert terms == (IContains("description", "pixel"), IContains("description", "jam"))


def test_sort_defaults_to_newest_first():
    assert build_sort({}) == SortDirective("created_at", SortDirection.DESC)


def test_sort_by_known_field():
    assert build_sort({"sortBy": "size", "sortDir": "asc"}) == SortDirective("size", SortDirection.ASC)
    assert build_sort({"sortBy": "reportCount", "sortDir": "DESC"}) == SortDirective("report_count", SortDirection.DESC)


def test_invalid_sort_dir_falls_back_to_desc():
    assert build_sort({"sortDir": "up"}) == SortDirective("created_at", SortDirection.DESC)


def test_unknown_sort_field_is_rejected():
    with pytest.raises(InvalidParameterError) as exc:
        build_sort({"sortBy": "deletedAt"})
    assert exc.value.param == "sortBy"
    with pytest.raises(InvalidParameterError):
        build_sort({"sortBy": "__class__"})
