"""
Caller-facing operations.

Each operation takes a Catalog and a raw payload, validates the payload, runs
the rule engine and returns a ToolResponse. Engine and storage failures come
back as structured errors with bilingual messages; no exception escapes an
operation.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError

from catalog import Catalog, ProgramRecord
from documents import resolve_documents
from eligibility import evaluate_eligibility
from errors import CatalogError, EngineError, InputValidationError, ProgramNotFoundError
from keywords import expand_keywords, suggest_near_equivalents
from matcher import match_programs, to_search_result
from schemas import (
    ChecklistInput,
    DocumentOut,
    EligibilityInput,
    Message,
    ProgramDetail,
    ProgramDetailInput,
    ProgramFilters,
    RequirementOut,
    SearchProfile,
    SearchProgramsInput,
    SearchProgramsOutput,
    TimelineInput,
    ToolError,
    ToolMetadata,
    ToolResponse,
)
from timeline import build_timeline

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

LOW_BUDGET_THRESHOLD = 10000

SUGGEST_OTHER_CITIES = Message(ar="جرب البحث في مدن أخرى", en="Try searching in other cities")
SUGGEST_MORE_BUDGET = Message(
    ar="جرب زيادة الميزانية للحصول على المزيد من الخيارات", en="Try increasing your budget for more options"
)
SUGGEST_OTHER_KEYWORDS = Message(ar="جرب استخدام كلمات بحث مختلفة", en="Try using different search keywords")
SUGGEST_ADVISOR = Message(ar="تواصل مع مستشار تعليمي للمساعدة", en="Contact an education advisor for help")
NEAR_EQUIVALENT_NOTE = Message(
    ar="لم نجد نتائج مطابقة تماماً، لذلك عرضنا برامج في تخصصات قريبة",
    en="No exact matches were found, so programs in closely related fields are shown",
)
ORPHAN_DOCUMENTS_NOTE = Message(
    ar="بعض الوثائق المرتبطة بالبرنامج لا تتوفر لها بيانات", en="Some documents linked to this program have no details"
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _parse(model: type[M], payload: Any) -> M:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise InputValidationError(exc.errors()) from exc


def _failure(exc: EngineError) -> ToolResponse:
    if isinstance(exc, InputValidationError):
        details = exc.fields
    else:
        details = [exc.detail] if exc.detail else []
    return ToolResponse(
        success=False,
        error=ToolError(code=exc.code, message_ar=exc.message_ar, message_en=exc.message_en, details=details),
        metadata=ToolMetadata(timestamp=_now()),
    )


def _run(operation: str, handler: Callable[[], tuple[BaseModel, list[Message]]]) -> ToolResponse:
    try:
        data, assumptions = handler()
    except SQLAlchemyError as exc:
        logger.exception("%s: storage failure (%s)", operation, type(exc).__name__)
        return _failure(CatalogError())
    except ProgramNotFoundError as exc:
        logger.info("%s: %s", operation, exc)
        return _failure(exc)
    except InputValidationError as exc:
        logger.info("%s: rejected input (%s)", operation, ", ".join(exc.fields))
        return _failure(exc)
    except EngineError as exc:
        logger.error("%s: %s (%s)", operation, exc.code, exc)
        return _failure(exc)
    except Exception:
        logger.exception("%s: unexpected failure", operation)
        return _failure(EngineError())
    return ToolResponse(success=True, data=data, metadata=ToolMetadata(timestamp=_now(), assumptions=assumptions))


# -----------------------------------------------------------------------------
# search_programs
# -----------------------------------------------------------------------------


def describe_filters(profile: SearchProfile, filters: Optional[ProgramFilters]) -> list[str]:
    applied: list[str] = []
    if profile.desired_degree_level:
        applied.append(f"degree_level: {profile.desired_degree_level}")
    if profile.preferred_language:
        applied.append(f"language: {profile.preferred_language}")
    if profile.city_preference:
        applied.append(f"city: {profile.city_preference}")
    if profile.budget_min is not None:
        applied.append(f"min_budget: {profile.budget_min:g}")
    if profile.budget_max is not None:
        applied.append(f"max_budget: {profile.budget_max:g}")
    if profile.major_keywords:
        applied.append(f"keywords: {', '.join(profile.major_keywords)}")
    if filters is not None:
        for name, value in filters.model_dump(exclude_none=True).items():
            if isinstance(value, float):
                value = f"{value:g}"
            applied.append(f"filters.{name}: {value}")
    return applied


def zero_result_suggestions(profile: SearchProfile) -> list[Message]:
    suggestions: list[Message] = []
    if profile.city_preference:
        suggestions.append(SUGGEST_OTHER_CITIES)
    if profile.budget_max is not None and profile.budget_max < LOW_BUDGET_THRESHOLD:
        suggestions.append(SUGGEST_MORE_BUDGET)
    if profile.major_keywords:
        suggestions.append(SUGGEST_OTHER_KEYWORDS)
    suggestions.append(SUGGEST_ADVISOR)
    return suggestions


def _search(catalog: Catalog, request: SearchProgramsInput) -> tuple[SearchProgramsOutput, list[Message]]:
    profile, filters = request.profile, request.filters
    expansion = expand_keywords(profile.major_keywords)
    programs = match_programs(catalog, profile, filters, expansion.expanded)
    assumptions: list[Message] = []

    near_used: list[str] = []
    if not programs and expansion.expanded:
        near = suggest_near_equivalents(profile.major_keywords)
        if near:
            retry = expand_keywords(near)
            programs = match_programs(catalog, profile, filters, retry.expanded)
            if programs:
                near_used = near
                assumptions.append(NEAR_EQUIVALENT_NOTE)
                logger.info("search_programs: %d programs via near equivalents %s", len(programs), near)

    output = SearchProgramsOutput(
        programs=programs,
        total_count=len(programs),
        filters_applied=describe_filters(profile, filters),
        expanded_keywords=expansion.expanded,
        synonym_notes=expansion.synonym_notes,
        near_equivalents_used=near_used,
        suggestions=[] if programs else zero_result_suggestions(profile),
    )
    return output, assumptions


def search_programs(catalog: Catalog, payload: Any) -> ToolResponse:
    return _run("search_programs", lambda: _search(catalog, _parse(SearchProgramsInput, payload)))


# -----------------------------------------------------------------------------
# get_program_detail
# -----------------------------------------------------------------------------


def _program_detail(catalog: Catalog, program: ProgramRecord) -> tuple[ProgramDetail, list[Message]]:
    assumptions: list[Message] = []
    program_rules, institution_rules = catalog.requirement_tiers(program)
    requirements = [
        RequirementOut(
            id=rule.id,
            rule_type=rule.rule_type,
            rule_value=rule.rule_value,
            text_ar=rule.text_ar,
            text_en=rule.text_en,
            required=rule.required,
            applicant_category=rule.applicant_category,
            scope=rule.scope,
        )
        for rule in program_rules + institution_rules
    ]
    requirements.sort(key=lambda requirement: (not requirement.required, requirement.rule_type))

    documents: list[DocumentOut] = []
    for rule in catalog.document_rules_for(program.id):
        template = rule.template
        if template is None:
            if ORPHAN_DOCUMENTS_NOTE not in assumptions:
                assumptions.append(ORPHAN_DOCUMENTS_NOTE)
            continue
        documents.append(
            DocumentOut(
                doc_key=rule.doc_key,
                label_ar=template.label_ar,
                label_en=template.label_en,
                required=rule.effective_required,
                translation_required=rule.translation.resolve(template.translation_default),
                notarization_required=rule.notarization.resolve(template.notarization_default),
                notes_ar=rule.notes_ar or template.notes_ar,
                notes_en=rule.notes_en or template.notes_en,
                estimated_days=template.estimated_days,
            )
        )
    documents.sort(key=lambda document: (not document.required, document.label_en))

    summary = to_search_result(program, catalog.sources_for("program", program.id))
    detail = ProgramDetail(**summary.model_dump(), requirements=requirements, documents=documents)
    return detail, assumptions


def _detail(catalog: Catalog, request: ProgramDetailInput) -> tuple[ProgramDetail, list[Message]]:
    program = catalog.get_program(request.program_id)
    if program is None:
        raise ProgramNotFoundError(request.program_id)
    return _program_detail(catalog, program)


def get_program_detail(catalog: Catalog, payload: Any) -> ToolResponse:
    return _run("get_program_detail", lambda: _detail(catalog, _parse(ProgramDetailInput, payload)))


# -----------------------------------------------------------------------------
# Eligibility, checklist, timeline
# -----------------------------------------------------------------------------


def _eligibility(catalog: Catalog, request: EligibilityInput):
    snapshot = evaluate_eligibility(catalog, request.profile, request.program_id)
    return snapshot, snapshot.assumptions


def _checklist(catalog: Catalog, request: ChecklistInput):
    checklist = resolve_documents(catalog, request.profile, request.program_id)
    return checklist, checklist.assumptions


def _timeline(catalog: Catalog, request: TimelineInput):
    plan = build_timeline(catalog, request.profile, request.program_id, request.intake_target, request.start_date)
    return plan, plan.assumptions


def build_eligibility_snapshot(catalog: Catalog, payload: Any) -> ToolResponse:
    return _run("build_eligibility_snapshot", lambda: _eligibility(catalog, _parse(EligibilityInput, payload)))


def build_document_checklist(catalog: Catalog, payload: Any) -> ToolResponse:
    return _run("build_document_checklist", lambda: _checklist(catalog, _parse(ChecklistInput, payload)))


def build_timeline_plan(catalog: Catalog, payload: Any) -> ToolResponse:
    return _run("build_timeline", lambda: _timeline(catalog, _parse(TimelineInput, payload)))
