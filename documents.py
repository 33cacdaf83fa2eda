from __future__ import annotations

import logging
import re
from types import MappingProxyType
from typing import Iterable

from catalog import Catalog, DocumentRule, Override
from errors import ProgramNotFoundError
from schemas import ChecklistItem, DocumentChecklist, Message, StudentProfile

logger = logging.getLogger(__name__)

WHY_NEEDED = MappingProxyType(
    {
        "high_school_diploma": Message(
            ar="مطلوبة لإثبات إكمال التعليم الثانوي", en="Required to prove completion of secondary education"
        ),
        "high_school_transcript": Message(
            ar="مطلوبة لتقييم أدائك الأكاديمي", en="Required to evaluate your academic performance"
        ),
        "passport_copy": Message(
            ar="مطلوبة للتحقق من الهوية وتقديم طلب التأشيرة", en="Required for identity verification and visa application"
        ),
        "personal_photo": Message(
            ar="مطلوبة لملف الطالب وبطاقة الجامعة", en="Required for student file and university ID card"
        ),
        "english_proficiency": Message(
            ar="مطلوبة لإثبات القدرة على الدراسة باللغة الإنجليزية", en="Required to demonstrate ability to study in English"
        ),
        "turkish_proficiency": Message(
            ar="مطلوبة لإثبات القدرة على الدراسة باللغة التركية", en="Required to demonstrate ability to study in Turkish"
        ),
        "bachelor_diploma": Message(
            ar="مطلوبة لإثبات الحصول على درجة البكالوريوس", en="Required to prove completion of bachelor degree"
        ),
        "bachelor_transcript": Message(
            ar="مطلوبة لتقييم أدائك الأكاديمي في البكالوريوس",
            en="Required to evaluate your undergraduate academic performance",
        ),
        "cv_resume": Message(ar="مطلوبة لعرض خبراتك ومهاراتك", en="Required to showcase your experience and skills"),
        "motivation_letter": Message(
            ar="مطلوبة لشرح أسباب اختيارك للبرنامج", en="Required to explain your reasons for choosing the program"
        ),
        "recommendation_letters": Message(
            ar="مطلوبة لتقديم تقييم أكاديمي من أساتذتك", en="Required to provide academic evaluation from your professors"
        ),
        "master_diploma": Message(
            ar="مطلوبة لإثبات الحصول على درجة الماجستير", en="Required to prove completion of master degree"
        ),
        "master_transcript": Message(
            ar="مطلوبة لتقييم أدائك الأكاديمي في الماجستير", en="Required to evaluate your graduate academic performance"
        ),
        "research_proposal": Message(
            ar="مطلوبة لتوضيح مجال البحث الذي ترغب في دراسته", en="Required to outline your intended research area"
        ),
        "portfolio": Message(
            ar="مطلوبة لعرض أعمالك الفنية أو التصميمية", en="Required to showcase your artistic or design work"
        ),
        "health_certificate": Message(
            ar="مطلوبة للتأكد من اللياقة الصحية للبرنامج", en="Required to verify health fitness for the program"
        ),
    }
)
WHY_NEEDED_FALLBACK = Message(ar="مطلوبة وفقاً لمتطلبات البرنامج", en="Required according to program requirements")

# Degree documents only apply to applicants who already hold that degree.
LEVEL_GATES: tuple[tuple[str, frozenset[str]], ...] = (
    ("bachelor_", frozenset({"bachelor", "master", "phd"})),
    ("master_", frozenset({"master", "phd"})),
)

# Nationalities whose documents usually go through the embassy legalization chain.
EMBASSY_ATTESTATION = re.compile(
    r"\b(saudi|emirat|uae|egypt|jordan|morocc|tunisia|kuwait|qatar|bahrain|oman|algeria|iraq|liby|syria|"
    r"leban|palestin|yemen|sudan)",
    re.IGNORECASE,
)
EMBASSY_NOTE = Message(ar="قد تتطلب التصديق من السفارة التركية", en="May require attestation from Turkish Embassy")
GENERIC_ATTESTATION_NOTE = Message(
    ar="يرجى التحقق من متطلبات التصديق الخاصة ببلدك", en="Please verify attestation requirements for your country"
)
ALL_APPLICANTS = Message(ar="جميع المتقدمين", en="All applicants")
NO_DOCUMENT_DATA = Message(
    ar="متطلبات الوثائق غير متوفرة لهذا البرنامج", en="Document requirements not available for this program"
)


def attestation_note(nationality: str | None) -> Message:
    if nationality and EMBASSY_ATTESTATION.search(nationality):
        return EMBASSY_NOTE
    return GENERIC_ATTESTATION_NOTE


def applies_to_level(doc_key: str, current_level: str) -> bool:
    for prefix, levels in LEVEL_GATES:
        if doc_key.startswith(prefix):
            return current_level in levels
    return True


def plan_documents(profile: StudentProfile, program_id: str, rules: Iterable[DocumentRule]) -> DocumentChecklist:
    rules = list(rules)
    items: list[ChecklistItem] = []
    unknowns: list[Message] = []
    assumptions: list[Message] = []
    apostille = attestation_note(profile.nationality)

    if not rules:
        unknowns.append(NO_DOCUMENT_DATA)

    for rule in rules:
        template = rule.template
        if template is None:
            logger.warning("Program %s references unknown document %s", program_id, rule.doc_key)
            unknowns.append(
                Message(
                    ar=f"لا تتوفر بيانات عن الوثيقة المطلوبة ({rule.doc_key})",
                    en=f"No details available for required document '{rule.doc_key}'",
                )
            )
            continue

        if not applies_to_level(rule.doc_key, profile.current_education_level):
            assumptions.append(
                Message(
                    ar=f"تم استبعاد {template.label_ar} لأنها لا تنطبق على مستواك التعليمي الحالي",
                    en=f"{template.label_en} omitted: it does not apply to your current education level",
                )
            )
            continue

        translation = rule.translation.resolve(template.translation_default)
        notarization = rule.notarization.resolve(template.notarization_default)
        if rule.translation is Override.INHERIT and rule.notarization is Override.INHERIT:
            assumptions.append(
                Message(
                    ar=f"متطلبات الترجمة والتوثيق لـ {template.label_ar} مبنية على القواعد الافتراضية",
                    en=f"Translation and notarization for {template.label_en} are based on default rules",
                )
            )
        if template.estimated_days is None:
            unknowns.append(
                Message(
                    ar=f"مدة الحصول على {template.label_ar} غير معروفة",
                    en=f"Processing time for {template.label_en} is unknown",
                )
            )

        required = rule.effective_required
        why = WHY_NEEDED.get(rule.doc_key, WHY_NEEDED_FALLBACK)
        items.append(
            ChecklistItem(
                doc_key=rule.doc_key,
                label_ar=template.label_ar,
                label_en=template.label_en,
                applies_to=ALL_APPLICANTS,
                required=required,
                translation_required=translation,
                notarization_required=notarization,
                apostille_notes=apostille,
                why_needed_ar=why.ar,
                why_needed_en=why.en,
                priority="required" if required else "recommended",
                estimated_days=template.estimated_days,
                notes_ar=rule.notes_ar or template.notes_ar,
                notes_en=rule.notes_en or template.notes_en,
            )
        )

    items.sort(key=lambda item: (item.priority != "required", item.estimated_days or 0))
    return DocumentChecklist(program_id=program_id, items=items, unknowns=unknowns, assumptions=assumptions)


def resolve_documents(catalog: Catalog, profile: StudentProfile, program_id: str) -> DocumentChecklist:
    if catalog.get_program(program_id) is None:
        raise ProgramNotFoundError(program_id)
    checklist = plan_documents(profile, program_id, catalog.document_rules_for(program_id))
    logger.info("Resolved %d documents for program %s", len(checklist.items), program_id)
    return checklist
