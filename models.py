from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

JSONType = JSON().with_variant(JSONB(), "postgresql")


def _new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    pass


class University(Base):
    __tablename__ = "universities"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    name_ar: Mapped[str] = mapped_column(String(255), nullable=False)
    name_en: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    website: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    programs = relationship("Program", back_populates="university")


class Program(Base):
    __tablename__ = "programs"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    university_id: Mapped[str] = mapped_column(String(64), ForeignKey("universities.id", ondelete="CASCADE"), nullable=False)
    program_name_ar: Mapped[str] = mapped_column(String(255), nullable=False)
    program_name_en: Mapped[str] = mapped_column(String(255), nullable=False)
    degree_level: Mapped[str] = mapped_column(String(20), nullable=False)  # associate | bachelor | master | phd
    language: Mapped[str] = mapped_column(String(10), nullable=False)  # en | tr | ar | mixed
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    tuition_min: Mapped[int] = mapped_column(Integer, nullable=False)
    tuition_max: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(10), nullable=False, default="USD")
    intakes: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    active_flag: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    university = relationship("University", back_populates="programs")

    __table_args__ = (
        CheckConstraint("degree_level in ('associate', 'bachelor', 'master', 'phd')", name="ck_programs_degree_level"),
        CheckConstraint("language in ('en', 'tr', 'ar', 'mixed')", name="ck_programs_language"),
        CheckConstraint("tuition_min <= tuition_max", name="ck_programs_tuition_range"),
        Index("ix_programs_university_id", "university_id"),
        Index("ix_programs_degree_level", "degree_level"),
        Index("ix_programs_city", "city"),
        Index("ix_programs_tuition", "tuition_min", "tuition_max"),
        Index("ix_programs_active", "active_flag"),
    )


class Requirement(Base):
    __tablename__ = "requirements"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    # NULL program_id means the rule belongs to the whole university.
    program_id: Mapped[Optional[str]] = mapped_column(String(64), ForeignKey("programs.id", ondelete="CASCADE"), nullable=True)
    university_id: Mapped[str] = mapped_column(String(64), ForeignKey("universities.id", ondelete="CASCADE"), nullable=False)
    applicant_category: Mapped[str] = mapped_column(String(20), nullable=False, default="all")  # international | turkish | all
    rule_type: Mapped[str] = mapped_column(String(40), nullable=False)
    rule_value: Mapped[str] = mapped_column(Text, nullable=False)
    human_text_ar: Mapped[str] = mapped_column(Text, nullable=False)
    human_text_en: Mapped[str] = mapped_column(Text, nullable=False)
    required_flag: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("applicant_category in ('international', 'turkish', 'all')", name="ck_requirements_applicant_category"),
        CheckConstraint(
            "rule_type in ('gpa_minimum', 'exam_score', 'language_proficiency', 'portfolio_required', "
            "'interview_required', 'work_experience', 'other')",
            name="ck_requirements_rule_type",
        ),
        Index("ix_requirements_program_id", "program_id"),
        Index("ix_requirements_university_id", "university_id"),
    )


class DocumentTemplate(Base):
    __tablename__ = "document_templates"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    doc_key: Mapped[str] = mapped_column(String(80), nullable=False, unique=True)
    label_ar: Mapped[str] = mapped_column(String(255), nullable=False)
    label_en: Mapped[str] = mapped_column(String(255), nullable=False)
    translation_required_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    notarization_required_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    notes_ar: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes_en: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    estimated_days_to_obtain: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class ProgramDocumentRule(Base):
    __tablename__ = "program_document_rules"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    program_id: Mapped[str] = mapped_column(String(64), ForeignKey("programs.id", ondelete="CASCADE"), nullable=False)
    doc_key: Mapped[str] = mapped_column(String(80), nullable=False)
    required_flag: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    # NULL means "use the template default".
    translation_required: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    notarization_required: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    notes_ar: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes_en: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("program_id", "doc_key", name="uq_program_document_rules_program_doc"),
        Index("ix_program_document_rules_program_id", "program_id"),
        Index("ix_program_document_rules_doc_key", "doc_key"),
    )


class SourceReference(Base):
    __tablename__ = "source_references"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    entity_type: Mapped[str] = mapped_column(String(40), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    captured_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (Index("ix_source_references_entity", "entity_type", "entity_id"),)


class Verification(Base):
    __tablename__ = "verifications"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    entity_type: Mapped[str] = mapped_column(String(40), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(64), nullable=False)
    last_verified_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    verified_by: Mapped[str] = mapped_column(String(120), nullable=False)
    verification_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("entity_type", "entity_id", name="uq_verifications_entity"),
        Index("ix_verifications_entity", "entity_type", "entity_id"),
    )
