from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

from sqlalchemy import Select, and_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import models
from errors import CatalogError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Override(Enum):
    REQUIRED = "required"
    NOT_REQUIRED = "not_required"
    INHERIT = "inherit"

    @classmethod
    def from_flag(cls, flag: bool | None) -> "Override":
        if flag is None:
            return cls.INHERIT
        return cls.REQUIRED if flag else cls.NOT_REQUIRED

    def resolve(self, default: bool) -> bool:
        if self is Override.INHERIT:
            return default
        return self is Override.REQUIRED


@dataclass(frozen=True)
class ProgramRecord:
    id: str
    university_id: str
    university_name_ar: str
    university_name_en: str
    program_name_ar: str
    program_name_en: str
    degree_level: str
    language: str
    city: str
    tuition_min: int
    tuition_max: int
    currency: str
    intakes: tuple[str, ...]
    active: bool
    last_verified_at: Optional[datetime]


@dataclass(frozen=True)
class RequirementRule:
    id: str
    program_id: Optional[str]
    university_id: str
    applicant_category: str
    rule_type: str
    rule_value: str
    text_ar: str
    text_en: str
    required: bool

    @property
    def scope(self) -> str:
        return "university" if self.program_id is None else "program"


@dataclass(frozen=True)
class DocumentTemplate:
    doc_key: str
    label_ar: str
    label_en: str
    translation_default: bool
    notarization_default: bool
    notes_ar: Optional[str]
    notes_en: Optional[str]
    estimated_days: Optional[int]


@dataclass(frozen=True)
class DocumentRule:
    doc_key: str
    required: Optional[bool]
    translation: Override
    notarization: Override
    notes_ar: Optional[str]
    notes_en: Optional[str]
    template: Optional[DocumentTemplate]

    @property
    def effective_required(self) -> bool:
        return True if self.required is None else self.required


@dataclass(frozen=True)
class SourceReference:
    title: str
    url: Optional[str]
    captured_at: datetime


def program_select() -> Select:
    return (
        select(
            models.Program,
            models.University.name_ar,
            models.University.name_en,
            models.Verification.last_verified_at,
        )
        .join(models.University, models.Program.university_id == models.University.id)
        .outerjoin(
            models.Verification,
            and_(models.Verification.entity_type == "program", models.Verification.entity_id == models.Program.id),
        )
    )


def _to_program_record(program: models.Program, name_ar: str, name_en: str, verified_at: Any) -> ProgramRecord:
    return ProgramRecord(
        id=program.id,
        university_id=program.university_id,
        university_name_ar=name_ar,
        university_name_en=name_en,
        program_name_ar=program.program_name_ar,
        program_name_en=program.program_name_en,
        degree_level=program.degree_level,
        language=program.language,
        city=program.city,
        tuition_min=int(program.tuition_min),
        tuition_max=int(program.tuition_max),
        currency=program.currency,
        intakes=tuple(str(item) for item in (program.intakes or [])),
        active=bool(program.active_flag),
        last_verified_at=verified_at,
    )


def _to_requirement_rule(row: models.Requirement) -> RequirementRule:
    return RequirementRule(
        id=row.id,
        program_id=row.program_id,
        university_id=row.university_id,
        applicant_category=row.applicant_category,
        rule_type=row.rule_type,
        rule_value=row.rule_value,
        text_ar=row.human_text_ar,
        text_en=row.human_text_en,
        required=bool(row.required_flag),
    )


def _to_document_template(row: models.DocumentTemplate | None) -> DocumentTemplate | None:
    if row is None:
        return None
    return DocumentTemplate(
        doc_key=row.doc_key,
        label_ar=row.label_ar,
        label_en=row.label_en,
        translation_default=bool(row.translation_required_default),
        notarization_default=bool(row.notarization_required_default),
        notes_ar=row.notes_ar,
        notes_en=row.notes_en,
        estimated_days=row.estimated_days_to_obtain,
    )


def _catalog_read(method: Callable[..., T]) -> Callable[..., T]:
    @wraps(method)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return method(*args, **kwargs)
        except SQLAlchemyError as exc:
            logger.exception("Catalog query %s failed", method.__name__)
            raise CatalogError(f"catalog query {method.__name__} failed") from exc

    return wrapper


class Catalog:
    """Read-only view of the program catalog for a single session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    @_catalog_read
    def get_program(self, program_id: str) -> ProgramRecord | None:
        row = self.session.execute(program_select().where(models.Program.id == program_id)).first()
        if row is None:
            return None
        return _to_program_record(*row)

    @_catalog_read
    def search(self, statement: Select) -> list[ProgramRecord]:
        return [_to_program_record(*row) for row in self.session.execute(statement).all()]

    @_catalog_read
    def requirement_tiers(self, program: ProgramRecord) -> tuple[list[RequirementRule], list[RequirementRule]]:
        order = (models.Requirement.rule_type, models.Requirement.id)
        program_rows = self.session.scalars(
            select(models.Requirement).where(models.Requirement.program_id == program.id).order_by(*order)
        ).all()
        institution_rows = self.session.scalars(
            select(models.Requirement)
            .where(
                models.Requirement.program_id.is_(None),
                models.Requirement.university_id == program.university_id,
            )
            .order_by(*order)
        ).all()
        return (
            [_to_requirement_rule(row) for row in program_rows],
            [_to_requirement_rule(row) for row in institution_rows],
        )

    @_catalog_read
    def document_rules_for(self, program_id: str) -> list[DocumentRule]:
        statement = (
            select(models.ProgramDocumentRule, models.DocumentTemplate)
            .outerjoin(models.DocumentTemplate, models.ProgramDocumentRule.doc_key == models.DocumentTemplate.doc_key)
            .where(models.ProgramDocumentRule.program_id == program_id)
            .order_by(models.ProgramDocumentRule.doc_key)
        )
        rules: list[DocumentRule] = []
        for rule, template in self.session.execute(statement).all():
            rules.append(
                DocumentRule(
                    doc_key=rule.doc_key,
                    required=rule.required_flag,
                    translation=Override.from_flag(rule.translation_required),
                    notarization=Override.from_flag(rule.notarization_required),
                    notes_ar=rule.notes_ar,
                    notes_en=rule.notes_en,
                    template=_to_document_template(template),
                )
            )
        return rules

    @_catalog_read
    def sources_for(self, entity_type: str, entity_id: str) -> list[SourceReference]:
        rows = self.session.scalars(
            select(models.SourceReference)
            .where(
                models.SourceReference.entity_type == entity_type,
                models.SourceReference.entity_id == entity_id,
            )
            .order_by(models.SourceReference.captured_at.desc())
        ).all()
        return [SourceReference(title=row.title, url=row.url, captured_at=row.captured_at) for row in rows]
