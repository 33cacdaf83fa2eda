import pytest

from catalog import Catalog, DocumentRule, DocumentTemplate, Override
from documents import (
    EMBASSY_NOTE,
    GENERIC_ATTESTATION_NOTE,
    NO_DOCUMENT_DATA,
    WHY_NEEDED_FALLBACK,
    attestation_note,
    plan_documents,
    resolve_documents,
)
from errors import ProgramNotFoundError
from schemas import StudentProfile


def base_profile(**overrides) -> StudentProfile:
    values = {
        "nationality": "Syrian",
        "current_education_level": "high_school",
        "desired_degree_level": "bachelor",
    }
    values.update(overrides)
    return StudentProfile.model_validate(values)


def template(doc_key: str, translation: bool = True, notarization: bool = True, days: int | None = 5) -> DocumentTemplate:
    return DocumentTemplate(
        doc_key=doc_key,
        label_ar=f"وثيقة {doc_key}",
        label_en=doc_key.replace("_", " ").title(),
        translation_default=translation,
        notarization_default=notarization,
        notes_ar=None,
        notes_en=None,
        estimated_days=days,
    )


def doc_rule(doc_key: str, required: bool | None = None, translation: bool | None = None, notarization: bool | None = None, **kwargs) -> DocumentRule:
    return DocumentRule(
        doc_key=doc_key,
        required=required,
        translation=Override.from_flag(translation),
        notarization=Override.from_flag(notarization),
        notes_ar=None,
        notes_en=None,
        template=kwargs.get("template", template(doc_key)),
    )


def test_override_three_states() -> None:
    assert Override.from_flag(None) is Override.INHERIT
    assert Override.from_flag(True).resolve(False) is True
    assert Override.from_flag(False).resolve(True) is False
    assert Override.INHERIT.resolve(True) is True
    assert Override.INHERIT.resolve(False) is False


def test_overrides_take_precedence_over_template_defaults() -> None:
    rules = [
        doc_rule("high_school_diploma", translation=False),
        doc_rule("passport_copy", notarization=True, template=template("passport_copy", False, False, 1)),
    ]

    checklist = plan_documents(base_profile(), "prog", rules)
    items = {item.doc_key: item for item in checklist.items}

    assert items["high_school_diploma"].translation_required is False
    assert items["high_school_diploma"].notarization_required is True
    assert items["passport_copy"].translation_required is False
    assert items["passport_copy"].notarization_required is True


def test_required_defaults_to_true() -> None:
    checklist = plan_documents(base_profile(), "prog", [doc_rule("cv_resume"), doc_rule("portfolio", required=False)])
    items = {item.doc_key: item for item in checklist.items}

    assert items["cv_resume"].required is True
    assert items["cv_resume"].priority == "required"
    assert items["portfolio"].priority == "recommended"


def test_degree_documents_are_suppressed_below_that_level() -> None:
    rules = [doc_rule("bachelor_transcript"), doc_rule("master_diploma"), doc_rule("passport_copy")]

    high_school = plan_documents(base_profile(), "prog", rules)
    bachelor = plan_documents(base_profile(current_education_level="bachelor"), "prog", rules)
    master = plan_documents(base_profile(current_education_level="master"), "prog", rules)

    assert [item.doc_key for item in high_school.items] == ["passport_copy"]
    assert len([note for note in high_school.assumptions if "omitted" in note.en]) == 2
    assert {item.doc_key for item in bachelor.items} == {"bachelor_transcript", "passport_copy"}
    assert {item.doc_key for item in master.items} == {"bachelor_transcript", "master_diploma", "passport_copy"}


def test_orphan_rules_are_reported_not_dropped() -> None:
    checklist = plan_documents(base_profile(), "prog", [doc_rule("military_status", template=None)])

    assert checklist.items == []
    assert len(checklist.unknowns) == 1
    assert "military_status" in checklist.unknowns[0].en


def test_program_without_rules_reports_unknown() -> None:
    checklist = plan_documents(base_profile(), "prog", [])

    assert checklist.items == []
    assert checklist.unknowns == [NO_DOCUMENT_DATA]


def test_sorting_required_first_then_days() -> None:
    rules = [
        doc_rule("research_proposal", template=template("research_proposal", days=21)),
        doc_rule("cv_resume", required=False, template=template("cv_resume", days=1)),
        doc_rule("english_proficiency", template=template("english_proficiency", days=None)),
        doc_rule("passport_copy", template=template("passport_copy", days=2)),
    ]

    checklist = plan_documents(base_profile(), "prog", rules)

    assert [item.doc_key for item in checklist.items] == [
        "english_proficiency",
        "passport_copy",
        "research_proposal",
        "cv_resume",
    ]
    assert any("English Proficiency" in note.en for note in checklist.unknowns)


def test_why_needed_is_never_blank() -> None:
    checklist = plan_documents(base_profile(), "prog", [doc_rule("passport_copy"), doc_rule("military_letter")])
    items = {item.doc_key: item for item in checklist.items}

    assert items["passport_copy"].why_needed_en == "Required for identity verification and visa application"
    assert items["military_letter"].why_needed_en == WHY_NEEDED_FALLBACK.en
    assert items["military_letter"].why_needed_ar == WHY_NEEDED_FALLBACK.ar


@pytest.mark.parametrize(
    "nationality, expected",
    [
        ("Syrian", EMBASSY_NOTE),
        ("Saudi Arabia", EMBASSY_NOTE),
        ("Emirati", EMBASSY_NOTE),
        ("lebanese", EMBASSY_NOTE),
        ("Romanian", GENERIC_ATTESTATION_NOTE),
        ("German", GENERIC_ATTESTATION_NOTE),
    ],
)
def test_attestation_note(nationality: str, expected) -> None:
    assert attestation_note(nationality) == expected


def test_inherited_flags_are_recorded_as_assumptions() -> None:
    checklist = plan_documents(base_profile(), "prog", [doc_rule("passport_copy"), doc_rule("cv_resume", translation=True)])

    inherited = [note for note in checklist.assumptions if "default rules" in note.en]
    assert len(inherited) == 1
    assert "Passport Copy" in inherited[0].en


def test_resolve_documents_against_catalog(catalog: Catalog) -> None:
    checklist = resolve_documents(catalog, base_profile(), "prog-cs-en")

    assert checklist.program_id == "prog-cs-en"
    assert [item.doc_key for item in checklist.items] == [
        "passport_copy",
        "motivation_letter",
        "high_school_transcript",
        "high_school_diploma",
        "english_proficiency",
    ]
    items = {item.doc_key: item for item in checklist.items}
    assert items["high_school_diploma"].translation_required is False
    assert items["high_school_diploma"].notarization_required is True
    assert items["motivation_letter"].notarization_required is True
    assert items["motivation_letter"].notes_en == "Maximum one page"
    assert items["english_proficiency"].priority == "recommended"
    assert items["passport_copy"].apostille_notes == EMBASSY_NOTE
    assert len(checklist.unknowns) == 2
    assert any("Bachelor Transcript" in note.en for note in checklist.assumptions)


def test_resolve_documents_unknown_program(catalog: Catalog) -> None:
    with pytest.raises(ProgramNotFoundError):
        resolve_documents(catalog, base_profile(), "missing-program")
