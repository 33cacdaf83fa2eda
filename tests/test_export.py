import json
from datetime import date

from catalog import Catalog
from documents import resolve_documents
from eligibility import evaluate_eligibility
from export import build_plan_json, build_plan_pdf
from matcher import to_search_result
from schemas import StudentProfile
from timeline import build_timeline


def build_plan(catalog: Catalog):
    profile = StudentProfile(nationality="Syrian", current_education_level="high_school", desired_degree_level="bachelor")
    record = catalog.get_program("prog-cs-en")
    program = to_search_result(record, catalog.sources_for("program", record.id))
    checklist = resolve_documents(catalog, profile, record.id)
    timeline = build_timeline(catalog, profile, record.id, start=date(2026, 1, 5))
    eligibility = evaluate_eligibility(catalog, profile, record.id)
    return program, checklist, timeline, eligibility


def test_build_plan_pdf_returns_pdf_bytes(catalog: Catalog) -> None:
    program, checklist, timeline, eligibility = build_plan(catalog)

    pdf = build_plan_pdf(program, checklist, timeline, eligibility)

    assert pdf.startswith(b"%PDF")
    assert len(pdf) > 1000


def test_build_plan_pdf_without_eligibility(catalog: Catalog) -> None:
    program, checklist, timeline, _ = build_plan(catalog)

    assert build_plan_pdf(program, checklist, timeline).startswith(b"%PDF")


def test_build_plan_json_keeps_both_languages(catalog: Catalog) -> None:
    program, checklist, timeline, eligibility = build_plan(catalog)

    payload = json.loads(build_plan_json(program, checklist, timeline, eligibility).decode("utf-8"))

    assert payload["program"]["id"] == "prog-cs-en"
    assert payload["program"]["program_name_ar"] == "علوم الحاسوب"
    assert payload["eligibility"]["status"] == "needs_review"
    assert payload["checklist"]["items"][0]["doc_key"] == "passport_copy"
    assert payload["timeline"]["weeks"][0]["start_date"] == "2026-01-05"
    assert payload["timeline"]["target_intake"] == "September"
