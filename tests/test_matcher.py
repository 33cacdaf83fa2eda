from datetime import datetime, timedelta, timezone

from catalog import Catalog
from keywords import expand_keywords
from matcher import match_programs, verification_status
from schemas import ProgramFilters, SearchProfile


def ids(results) -> list[str]:
    return [program.id for program in results]


def test_abbreviation_does_not_hit_unrelated_names(catalog: Catalog) -> None:
    keywords = expand_keywords(["cs"]).expanded
    results = match_programs(catalog, SearchProfile(), keywords=keywords)

    assert ids(results) == ["prog-cs-en"]


def test_arabic_keyword_matches_arabic_name(catalog: Catalog) -> None:
    results = match_programs(catalog, SearchProfile(), keywords=["العمارة"])

    assert ids(results) == ["prog-arch-tr"]


def test_inactive_programs_are_never_returned(catalog: Catalog) -> None:
    results = match_programs(catalog, SearchProfile(), keywords=["software engineering"])

    assert ids(results) == ["prog-se-en"]


def test_language_preference_includes_mixed(catalog: Catalog) -> None:
    results = match_programs(catalog, SearchProfile(preferred_language="tr"))

    assert ids(results) == ["prog-arch-tr", "prog-ce-mixed"]


def test_mixed_language_preference_applies_no_predicate(catalog: Catalog) -> None:
    all_active = match_programs(catalog, SearchProfile())
    mixed = match_programs(catalog, SearchProfile(preferred_language="mixed"))

    assert ids(mixed) == ids(all_active)
    assert len(all_active) == 6


def test_city_match_is_case_insensitive_and_ordered_by_tuition(catalog: Catalog) -> None:
    results = match_programs(catalog, SearchProfile(city_preference="istanbul"))

    assert ids(results) == ["prog-cs-en", "prog-ce-mixed", "prog-mba-en"]


def test_budget_overlap(catalog: Catalog) -> None:
    results = match_programs(catalog, SearchProfile(budget_max=3000))
    assert ids(results) == ["prog-arch-tr", "prog-physics"]

    results = match_programs(catalog, SearchProfile(budget_min=8000))
    assert ids(results) == ["prog-ce-mixed", "prog-mba-en"]


def test_filters_only_narrow(catalog: Catalog) -> None:
    profile = SearchProfile(desired_degree_level="bachelor")
    broad = match_programs(catalog, profile)
    narrowed = match_programs(catalog, profile, ProgramFilters(university_id="uni-ankara", language="en"))

    assert set(ids(narrowed)) <= set(ids(broad))
    assert ids(narrowed) == ["prog-physics", "prog-se-en"]


def test_filter_language_is_exact(catalog: Catalog) -> None:
    results = match_programs(catalog, SearchProfile(), ProgramFilters(language="mixed"))

    assert ids(results) == ["prog-ce-mixed"]


def test_results_carry_sources_and_verification(catalog: Catalog) -> None:
    results = {program.id: program for program in match_programs(catalog, SearchProfile())}

    cs = results["prog-cs-en"]
    assert cs.university_name_en == "Bosphorus Sample University"
    assert cs.intakes == ["September", "February"]
    assert cs.verification_status == "verified"
    assert [source.title for source in cs.source_references] == ["Official program page"]
    assert results["prog-arch-tr"].verification_status == "outdated"
    assert results["prog-physics"].verification_status == "needs_verification"


def test_verification_status_window() -> None:
    now = datetime(2026, 8, 31, 12, 0, tzinfo=timezone.utc)

    assert verification_status(None, now) == "needs_verification"
    assert verification_status(datetime(2026, 2, 28, 12, 0, tzinfo=timezone.utc), now) == "verified"
    assert verification_status(datetime(2026, 2, 28, 11, 59, tzinfo=timezone.utc), now) == "outdated"
    assert verification_status(now - timedelta(days=400), now) == "outdated"


def test_verification_status_treats_naive_timestamps_as_utc() -> None:
    now = datetime(2026, 6, 15, tzinfo=timezone.utc)

    assert verification_status(datetime(2026, 6, 1), now) == "verified"
    assert verification_status(datetime(2025, 6, 1), now) == "outdated"
