from __future__ import annotations

import calendar
import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import Select, func, or_

import models
from catalog import Catalog, ProgramRecord, SourceReference, program_select
from schemas import ProgramFilters, ProgramSearchResult, SearchProfile, SourceReferenceOut

logger = logging.getLogger(__name__)

VERIFICATION_WINDOW_MONTHS = 6
# Abbreviations this short ("cs", "ee", "law") only match whole words.
WHOLE_WORD_MAX_LENGTH = 3


def _months_before(moment: datetime, months: int) -> datetime:
    month_index = moment.month - 1 - months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def verification_status(last_verified_at: Optional[datetime], now: Optional[datetime] = None) -> str:
    if last_verified_at is None:
        return "needs_verification"
    current = _as_utc(now or datetime.now(timezone.utc))
    threshold = _months_before(current, VERIFICATION_WINDOW_MONTHS)
    if _as_utc(last_verified_at) >= threshold:
        return "verified"
    return "outdated"


def _name_matches(term: str):
    columns = (models.Program.program_name_en, models.Program.program_name_ar)
    if len(term) > WHOLE_WORD_MAX_LENGTH:
        return or_(*(column.ilike(f"%{term}%") for column in columns))
    patterns = (term, f"{term} %", f"% {term}", f"% {term} %")
    return or_(*(column.ilike(pattern) for column in columns for pattern in patterns))


def build_search_statement(
    profile: SearchProfile,
    filters: Optional[ProgramFilters] = None,
    keywords: Optional[Iterable[str]] = None,
) -> Select:
    program = models.Program
    statement = program_select().where(program.active_flag.is_(True))

    if profile.desired_degree_level:
        statement = statement.where(program.degree_level == profile.desired_degree_level)
    if profile.preferred_language and profile.preferred_language != "mixed":
        statement = statement.where(
            or_(program.language == profile.preferred_language, program.language == "mixed")
        )
    if profile.city_preference:
        statement = statement.where(func.lower(program.city) == profile.city_preference.lower())
    if profile.budget_max is not None:
        statement = statement.where(program.tuition_min <= profile.budget_max)
    if profile.budget_min is not None:
        statement = statement.where(program.tuition_max >= profile.budget_min)

    if filters is not None:
        if filters.degree_level:
            statement = statement.where(program.degree_level == filters.degree_level)
        if filters.language:
            statement = statement.where(program.language == filters.language)
        if filters.city:
            statement = statement.where(func.lower(program.city) == filters.city.lower())
        if filters.budget_max is not None:
            statement = statement.where(program.tuition_min <= filters.budget_max)
        if filters.budget_min is not None:
            statement = statement.where(program.tuition_max >= filters.budget_min)
        if filters.university_id:
            statement = statement.where(program.university_id == filters.university_id)

    terms = [term for term in (keywords or []) if term]
    if terms:
        statement = statement.where(or_(*(_name_matches(term) for term in terms)))

    return statement.order_by(program.tuition_min.asc(), program.id.asc())


def to_search_result(
    record: ProgramRecord,
    sources: list[SourceReference],
    now: Optional[datetime] = None,
) -> ProgramSearchResult:
    return ProgramSearchResult(
        id=record.id,
        university_id=record.university_id,
        university_name_ar=record.university_name_ar,
        university_name_en=record.university_name_en,
        program_name_ar=record.program_name_ar,
        program_name_en=record.program_name_en,
        degree_level=record.degree_level,
        language=record.language,
        city=record.city,
        tuition_min=record.tuition_min,
        tuition_max=record.tuition_max,
        currency=record.currency,
        intakes=list(record.intakes),
        last_verified_at=record.last_verified_at,
        source_references=[
            SourceReferenceOut(title=source.title, url=source.url, captured_at=source.captured_at) for source in sources
        ],
        verification_status=verification_status(record.last_verified_at, now),
    )


def match_programs(
    catalog: Catalog,
    profile: SearchProfile,
    filters: Optional[ProgramFilters] = None,
    keywords: Optional[Iterable[str]] = None,
) -> list[ProgramSearchResult]:
    terms = list(keywords or [])
    records = catalog.search(build_search_statement(profile, filters, terms))
    logger.info("Matched %d programs for %d keyword(s)", len(records), len(terms))
    now = datetime.now(timezone.utc)
    return [to_search_result(record, catalog.sources_for("program", record.id), now) for record in records]
