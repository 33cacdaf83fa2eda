from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from catalog import Catalog
from models import (
    Base,
    DocumentTemplate,
    Program,
    ProgramDocumentRule,
    Requirement,
    SourceReference,
    University,
    Verification,
)

ENGLISH_RULE = '{"type": "english", "ielts": 6.0, "toefl": 79}'


def _program(program_id: str, university_id: str, name_en: str, name_ar: str, **overrides) -> Program:
    values = {
        "degree_level": "bachelor",
        "language": "en",
        "city": "Istanbul",
        "tuition_min": 5000,
        "tuition_max": 7000,
        "currency": "USD",
        "intakes": ["September"],
        "active_flag": True,
    }
    values.update(overrides)
    return Program(
        id=program_id,
        university_id=university_id,
        program_name_en=name_en,
        program_name_ar=name_ar,
        **values,
    )


def _requirement(rule_id: str, university_id: str, program_id: str | None, rule_type: str, value: str, **overrides) -> Requirement:
    values = {
        "applicant_category": "all",
        "human_text_ar": f"متطلب {rule_type}",
        "human_text_en": f"Requirement {rule_type}: {value}",
        "required_flag": True,
    }
    values.update(overrides)
    return Requirement(
        id=rule_id,
        university_id=university_id,
        program_id=program_id,
        rule_type=rule_type,
        rule_value=value,
        **values,
    )


def _template(doc_key: str, label_en: str, label_ar: str, translation: bool, notarization: bool, days: int | None) -> DocumentTemplate:
    return DocumentTemplate(
        doc_key=doc_key,
        label_en=label_en,
        label_ar=label_ar,
        translation_required_default=translation,
        notarization_required_default=notarization,
        estimated_days_to_obtain=days,
    )


def seed_catalog(session: Session) -> None:
    now = datetime.now(timezone.utc)
    session.add_all(
        [
            University(id="uni-istanbul", name_en="Bosphorus Sample University", name_ar="جامعة البوسفور", city="Istanbul"),
            University(id="uni-ankara", name_en="Anatolia Sample University", name_ar="جامعة الأناضول", city="Ankara"),
        ]
    )
    session.flush()

    session.add_all(
        [
            _program(
                "prog-cs-en",
                "uni-istanbul",
                "Computer Science",
                "علوم الحاسوب",
                intakes=["September", "February"],
            ),
            _program(
                "prog-ce-mixed",
                "uni-istanbul",
                "Computer Engineering",
                "هندسة الحاسوب",
                language="mixed",
                tuition_min=6000,
                tuition_max=9000,
            ),
            _program(
                "prog-mba-en",
                "uni-istanbul",
                "Business Administration (MBA)",
                "إدارة الأعمال",
                degree_level="master",
                tuition_min=9000,
                tuition_max=12000,
                intakes=["February"],
            ),
            _program(
                "prog-se-old",
                "uni-istanbul",
                "Software Engineering",
                "هندسة البرمجيات",
                tuition_min=4500,
                tuition_max=5500,
                active_flag=False,
            ),
            _program(
                "prog-arch-tr",
                "uni-ankara",
                "Architecture",
                "العمارة",
                language="tr",
                city="Ankara",
                tuition_min=2500,
                tuition_max=3500,
                intakes=[],
            ),
            _program(
                "prog-physics",
                "uni-ankara",
                "Physics",
                "الفيزياء",
                city="Ankara",
                tuition_min=3000,
                tuition_max=4000,
            ),
            _program(
                "prog-se-en",
                "uni-ankara",
                "Software Engineering",
                "هندسة البرمجيات",
                city="Ankara",
                tuition_min=4000,
                tuition_max=6000,
            ),
        ]
    )
    session.flush()

    session.add_all(
        [
            _requirement("req-cs-gpa", "uni-istanbul", "prog-cs-en", "gpa_minimum", "60"),
            _requirement(
                "req-cs-english",
                "uni-istanbul",
                "prog-cs-en",
                "language_proficiency",
                ENGLISH_RULE,
                applicant_category="international",
            ),
            _requirement("req-ist-gpa", "uni-istanbul", None, "gpa_minimum", "50"),
            _requirement(
                "req-ist-turkish",
                "uni-istanbul",
                None,
                "language_proficiency",
                '{"type": "turkish"}',
                applicant_category="turkish",
            ),
            _requirement("req-ce-english", "uni-istanbul", "prog-ce-mixed", "language_proficiency", "IELTS 6.0"),
            _requirement("req-mba-gpa", "uni-istanbul", "prog-mba-en", "gpa_minimum", "65"),
            _requirement("req-mba-work", "uni-istanbul", "prog-mba-en", "work_experience", "2"),
            _requirement("req-mba-ales", "uni-istanbul", "prog-mba-en", "exam_score", "ALES 55"),
            _requirement("req-arch-portfolio", "uni-ankara", "prog-arch-tr", "portfolio_required", "true"),
            _requirement(
                "req-arch-turkish", "uni-ankara", "prog-arch-tr", "language_proficiency", '{"type": "turkish", "tomer": "B2"}'
            ),
            _requirement("req-arch-interview", "uni-ankara", "prog-arch-tr", "interview_required", "true"),
        ]
    )

    session.add_all(
        [
            _template("passport_copy", "Passport Copy", "صورة جواز السفر", False, False, 1),
            _template("high_school_diploma", "High School Diploma", "شهادة الثانوية العامة", True, True, 10),
            _template("high_school_transcript", "High School Transcript", "كشف درجات الثانوية", True, True, 7),
            _template("english_proficiency", "English Proficiency Certificate", "شهادة إتقان اللغة الإنجليزية", False, False, None),
            _template("motivation_letter", "Motivation Letter", "خطاب الدافع", False, False, 3),
            _template("bachelor_diploma", "Bachelor Diploma", "شهادة البكالوريوس", True, True, 10),
            _template("bachelor_transcript", "Bachelor Transcript", "كشف درجات البكالوريوس", True, True, 7),
            _template("recommendation_letters", "Recommendation Letters", "خطابات التوصية", False, False, 14),
            _template("portfolio", "Portfolio", "ملف الأعمال", False, False, 21),
        ]
    )

    session.add_all(
        [
            ProgramDocumentRule(program_id="prog-cs-en", doc_key="passport_copy"),
            ProgramDocumentRule(program_id="prog-cs-en", doc_key="high_school_diploma", translation_required=False),
            ProgramDocumentRule(program_id="prog-cs-en", doc_key="high_school_transcript", required_flag=True),
            ProgramDocumentRule(program_id="prog-cs-en", doc_key="english_proficiency", required_flag=False),
            ProgramDocumentRule(
                program_id="prog-cs-en",
                doc_key="motivation_letter",
                notarization_required=True,
                notes_en="Maximum one page",
                notes_ar="صفحة واحدة كحد أقصى",
            ),
            ProgramDocumentRule(program_id="prog-cs-en", doc_key="bachelor_transcript"),
            ProgramDocumentRule(program_id="prog-cs-en", doc_key="military_status"),
            ProgramDocumentRule(program_id="prog-arch-tr", doc_key="portfolio"),
            ProgramDocumentRule(program_id="prog-arch-tr", doc_key="passport_copy"),
            ProgramDocumentRule(program_id="prog-arch-tr", doc_key="high_school_diploma"),
            ProgramDocumentRule(program_id="prog-mba-en", doc_key="bachelor_diploma"),
            ProgramDocumentRule(program_id="prog-mba-en", doc_key="bachelor_transcript"),
            ProgramDocumentRule(program_id="prog-mba-en", doc_key="recommendation_letters"),
            ProgramDocumentRule(program_id="prog-mba-en", doc_key="passport_copy"),
        ]
    )

    session.add_all(
        [
            SourceReference(
                entity_type="program",
                entity_id="prog-cs-en",
                title="Official program page",
                url="https://example.edu/cs",
                captured_at=now - timedelta(days=30),
            ),
            Verification(
                entity_type="program",
                entity_id="prog-cs-en",
                last_verified_at=now - timedelta(days=30),
                verified_by="data-team",
            ),
            Verification(
                entity_type="program",
                entity_id="prog-arch-tr",
                last_verified_at=now - timedelta(days=730),
                verified_by="data-team",
            ),
        ]
    )
    session.commit()


@pytest.fixture()
def session() -> Iterator[Session]:
    engine = create_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    db = factory()
    seed_catalog(db)
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture()
def catalog(session: Session) -> Catalog:
    return Catalog(session)
