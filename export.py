from __future__ import annotations

import html
import io
import json
from datetime import datetime, timezone
from typing import Any, Optional

from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer

from schemas import DocumentChecklist, EligibilitySnapshot, ProgramSearchResult, Timeline

# reportlab's base fonts carry no Arabic glyphs, so the PDF renders the English halves.


def _safe_text(value: Any) -> str:
    if value is None or value == "":
        return "-"
    return html.escape(str(value))


def _yes_no(flag: bool) -> str:
    return "yes" if flag else "no"


def build_plan_pdf(
    program: ProgramSearchResult,
    checklist: DocumentChecklist,
    timeline: Timeline,
    eligibility: Optional[EligibilitySnapshot] = None,
) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, title="Application Preparation Plan")
    styles = getSampleStyleSheet()
    normal = styles["BodyText"]
    heading = styles["Heading2"]

    story = []
    story.append(Paragraph("Application Preparation Plan", styles["Title"]))
    story.append(Paragraph(f"Generated: {datetime.now(timezone.utc).isoformat()}", normal))
    story.append(Spacer(1, 12))

    story.append(Paragraph("Program", heading))
    story.append(Paragraph(f"{_safe_text(program.program_name_en)} @ {_safe_text(program.university_name_en)}", normal))
    story.append(Paragraph(f"Degree: {_safe_text(program.degree_level)} | Language: {_safe_text(program.language)}", normal))
    story.append(Paragraph(f"City: {_safe_text(program.city)}", normal))
    story.append(
        Paragraph(
            f"Tuition: {program.tuition_min:,} - {program.tuition_max:,} {_safe_text(program.currency)}",
            normal,
        )
    )
    story.append(Paragraph(f"Intakes: {_safe_text(', '.join(program.intakes))}", normal))
    story.append(Paragraph(f"Data status: {_safe_text(program.verification_status)}", normal))
    story.append(Spacer(1, 8))

    if eligibility is not None:
        story.append(Paragraph("Eligibility Snapshot", heading))
        story.append(Paragraph(f"Status: {_safe_text(eligibility.status)}", normal))
        for reason in eligibility.reasons:
            mark = "met" if reason.passed else "not met"
            story.append(Paragraph(f"- [{mark}] {_safe_text(reason.reason_en)}", normal))
        if eligibility.missing_info:
            missing = ", ".join(item.en for item in eligibility.missing_info)
            story.append(Paragraph(f"Missing information: {_safe_text(missing)}", normal))
        story.append(Paragraph(_safe_text(eligibility.disclaimer.en), normal))
        story.append(Spacer(1, 8))

    story.append(Paragraph("Document Checklist", heading))
    if not checklist.items:
        story.append(Paragraph("No documents listed for this program.", normal))
    for idx, item in enumerate(checklist.items, start=1):
        story.append(Paragraph(f"{idx}. {_safe_text(item.label_en)} ({item.priority})", styles["Heading3"]))
        story.append(
            Paragraph(
                f"Translation: {_yes_no(item.translation_required)} | "
                f"Notarization: {_yes_no(item.notarization_required)} | "
                f"Estimated days: {_safe_text(item.estimated_days)}",
                normal,
            )
        )
        story.append(Paragraph(f"Why: {_safe_text(item.why_needed_en)}", normal))
        story.append(Paragraph(f"Attestation: {_safe_text(item.apostille_notes.en)}", normal))
        if item.notes_en:
            story.append(Paragraph(f"Notes: {_safe_text(item.notes_en)}", normal))
    for note in checklist.unknowns:
        story.append(Paragraph(f"Unknown: {_safe_text(note.en)}", normal))
    story.append(Spacer(1, 8))

    story.append(Paragraph(f"Timeline toward {_safe_text(timeline.target_intake)} intake", heading))
    critical = ", ".join(timeline.critical_path_items)
    story.append(Paragraph(f"Critical path: {_safe_text(critical)}", normal))
    for week in timeline.weeks:
        story.append(
            Paragraph(
                f"Week {week.week_number} ({week.start_date.isoformat()} to {week.end_date.isoformat()})",
                styles["Heading3"],
            )
        )
        for task in week.tasks:
            flag = " [critical]" if task.is_critical_path else ""
            story.append(Paragraph(f"- {_safe_text(task.task_en)} ({task.estimated_days} days){flag}", normal))

    assumptions = [*checklist.assumptions, *timeline.assumptions]
    if eligibility is not None:
        assumptions.extend(eligibility.assumptions)
    if assumptions:
        story.append(Spacer(1, 12))
        story.append(Paragraph("Assumptions", heading))
        for note in assumptions:
            story.append(Paragraph(f"- {_safe_text(note.en)}", normal))

    doc.build(story)
    buffer.seek(0)
    return buffer.read()


def build_plan_json(
    program: ProgramSearchResult,
    checklist: DocumentChecklist,
    timeline: Timeline,
    eligibility: Optional[EligibilitySnapshot] = None,
) -> bytes:
    payload = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "program": program.model_dump(mode="json"),
        "eligibility": eligibility.model_dump(mode="json") if eligibility is not None else None,
        "checklist": checklist.model_dump(mode="json"),
        "timeline": timeline.model_dump(mode="json"),
    }
    return json.dumps(payload, indent=2, ensure_ascii=False).encode("utf-8")
