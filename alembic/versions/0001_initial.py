"""initial catalog schema

Revision ID: 0001_initial
Revises: 
Create Date: 2026-10-19 00:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "universities",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("name_ar", sa.String(length=255), nullable=False),
        sa.Column("name_en", sa.String(length=255), nullable=False),
        sa.Column("city", sa.String(length=100), nullable=False),
        sa.Column("website", sa.String(length=500), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "programs",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("university_id", sa.String(length=64), nullable=False),
        sa.Column("program_name_ar", sa.String(length=255), nullable=False),
        sa.Column("program_name_en", sa.String(length=255), nullable=False),
        sa.Column("degree_level", sa.String(length=20), nullable=False),
        sa.Column("language", sa.String(length=10), nullable=False),
        sa.Column("city", sa.String(length=100), nullable=False),
        sa.Column("tuition_min", sa.Integer(), nullable=False),
        sa.Column("tuition_max", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(length=10), nullable=False, server_default="USD"),
        sa.Column("intakes", postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("active_flag", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.CheckConstraint("degree_level in ('associate', 'bachelor', 'master', 'phd')", name="ck_programs_degree_level"),
        sa.CheckConstraint("language in ('en', 'tr', 'ar', 'mixed')", name="ck_programs_language"),
        sa.CheckConstraint("tuition_min <= tuition_max", name="ck_programs_tuition_range"),
        sa.ForeignKeyConstraint(["university_id"], ["universities.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_programs_university_id", "programs", ["university_id"])
    op.create_index("ix_programs_degree_level", "programs", ["degree_level"])
    op.create_index("ix_programs_city", "programs", ["city"])
    op.create_index("ix_programs_tuition", "programs", ["tuition_min", "tuition_max"])
    op.create_index("ix_programs_active", "programs", ["active_flag"])

    op.create_table(
        "requirements",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("program_id", sa.String(length=64), nullable=True),
        sa.Column("university_id", sa.String(length=64), nullable=False),
        sa.Column("applicant_category", sa.String(length=20), nullable=False, server_default="all"),
        sa.Column("rule_type", sa.String(length=40), nullable=False),
        sa.Column("rule_value", sa.Text(), nullable=False),
        sa.Column("human_text_ar", sa.Text(), nullable=False),
        sa.Column("human_text_en", sa.Text(), nullable=False),
        sa.Column("required_flag", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.CheckConstraint(
            "applicant_category in ('international', 'turkish', 'all')", name="ck_requirements_applicant_category"
        ),
        sa.CheckConstraint(
            "rule_type in ('gpa_minimum', 'exam_score', 'language_proficiency', 'portfolio_required', "
            "'interview_required', 'work_experience', 'other')",
            name="ck_requirements_rule_type",
        ),
        sa.ForeignKeyConstraint(["program_id"], ["programs.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["university_id"], ["universities.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_requirements_program_id", "requirements", ["program_id"])
    op.create_index("ix_requirements_university_id", "requirements", ["university_id"])

    op.create_table(
        "document_templates",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("doc_key", sa.String(length=80), nullable=False),
        sa.Column("label_ar", sa.String(length=255), nullable=False),
        sa.Column("label_en", sa.String(length=255), nullable=False),
        sa.Column("translation_required_default", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("notarization_required_default", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("notes_ar", sa.Text(), nullable=True),
        sa.Column("notes_en", sa.Text(), nullable=True),
        sa.Column("estimated_days_to_obtain", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("doc_key"),
    )

    op.create_table(
        "program_document_rules",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("program_id", sa.String(length=64), nullable=False),
        sa.Column("doc_key", sa.String(length=80), nullable=False),
        sa.Column("required_flag", sa.Boolean(), nullable=True),
        sa.Column("translation_required", sa.Boolean(), nullable=True),
        sa.Column("notarization_required", sa.Boolean(), nullable=True),
        sa.Column("notes_ar", sa.Text(), nullable=True),
        sa.Column("notes_en", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["program_id"], ["programs.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("program_id", "doc_key", name="uq_program_document_rules_program_doc"),
    )
    op.create_index("ix_program_document_rules_program_id", "program_document_rules", ["program_id"])
    op.create_index("ix_program_document_rules_doc_key", "program_document_rules", ["doc_key"])

    op.create_table(
        "source_references",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("entity_type", sa.String(length=40), nullable=False),
        sa.Column("entity_id", sa.String(length=64), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("url", sa.String(length=500), nullable=True),
        sa.Column("captured_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_source_references_entity", "source_references", ["entity_type", "entity_id"])

    op.create_table(
        "verifications",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("entity_type", sa.String(length=40), nullable=False),
        sa.Column("entity_id", sa.String(length=64), nullable=False),
        sa.Column("last_verified_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("verified_by", sa.String(length=120), nullable=False),
        sa.Column("verification_notes", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("entity_type", "entity_id", name="uq_verifications_entity"),
    )
    op.create_index("ix_verifications_entity", "verifications", ["entity_type", "entity_id"])


def downgrade() -> None:
    op.drop_index("ix_verifications_entity", table_name="verifications")
    op.drop_table("verifications")
    op.drop_index("ix_source_references_entity", table_name="source_references")
    op.drop_table("source_references")
    op.drop_index("ix_program_document_rules_doc_key", table_name="program_document_rules")
    op.drop_index("ix_program_document_rules_program_id", table_name="program_document_rules")
    op.drop_table("program_document_rules")
    op.drop_table("document_templates")
    op.drop_index("ix_requirements_university_id", table_name="requirements")
    op.drop_index("ix_requirements_program_id", table_name="requirements")
    op.drop_table("requirements")
    op.drop_index("ix_programs_active", table_name="programs")
    op.drop_index("ix_programs_tuition", table_name="programs")
    op.drop_index("ix_programs_city", table_name="programs")
    op.drop_index("ix_programs_degree_level", table_name="programs")
    op.drop_index("ix_programs_university_id", table_name="programs")
    op.drop_table("programs")
    op.drop_table("universities")
