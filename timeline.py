from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from types import MappingProxyType
from typing import Iterable, Optional

from catalog import Catalog
from documents import plan_documents
from errors import ProgramNotFoundError
from schemas import ChecklistItem, DocumentChecklist, Message, StudentProfile, Timeline, TimelineTask, TimelineWeek

logger = logging.getLogger(__name__)

DEFAULT_TASK_DURATIONS = MappingProxyType(
    {
        "high_school_diploma": 7,
        "high_school_transcript": 5,
        "passport_copy": 1,
        "personal_photo": 1,
        "english_proficiency": 14,
        "turkish_proficiency": 14,
        "bachelor_diploma": 7,
        "bachelor_transcript": 5,
        "cv_resume": 3,
        "motivation_letter": 5,
        "recommendation_letters": 14,
        "master_diploma": 7,
        "master_transcript": 5,
        "research_proposal": 21,
        "portfolio": 21,
        "health_certificate": 7,
    }
)
FALLBACK_DURATION = 7
TRANSLATION_DAYS = 5
NOTARIZATION_DAYS = 3
TRANSLATION_TASK_DAYS = TRANSLATION_DAYS + NOTARIZATION_DAYS
FINAL_REVIEW_DAYS = 2
SUBMISSION_DAYS = 1

DEFAULT_PLAN_WEEKS = 8
CRITICAL_PATH_RATIO = 0.7
DEFAULT_INTAKE = "September"


@dataclass(frozen=True)
class PlannedTask:
    doc_key: str
    label_ar: str
    label_en: str
    duration: int
    required: bool
    estimated: bool


def task_duration(item: ChecklistItem) -> tuple[int, bool]:
    estimated = item.estimated_days is None
    if estimated:
        days = DEFAULT_TASK_DURATIONS.get(item.doc_key, FALLBACK_DURATION)
    else:
        days = item.estimated_days
    if item.translation_required:
        days += TRANSLATION_DAYS
    if item.notarization_required:
        days += NOTARIZATION_DAYS
    return days, estimated


def resolve_intake(intakes: Iterable[str], intake_target: Optional[str]) -> tuple[str, list[Message]]:
    offered = [intake for intake in intakes if intake and intake.strip()]
    target = (intake_target or "").strip()
    if target:
        wanted = target.lower()
        for intake in offered:
            label = intake.lower()
            if wanted in label or label in wanted:
                return intake, []
    if offered:
        if not target:
            return offered[0], []
        return offered[0], [
            Message(
                ar=f"موعد القبول المطلوب ({target}) غير متاح؛ تم استخدام أول موعد متاح ({offered[0]})",
                en=f"Requested intake '{target}' is not offered; using the first available intake ({offered[0]})",
            )
        ]
    return DEFAULT_INTAKE, [
        Message(
            ar=f"مواعيد القبول غير متوفرة - تم افتراض {DEFAULT_INTAKE} مع خطة عامة من {DEFAULT_PLAN_WEEKS} أسابيع",
            en=f"Intake dates not available - assuming {DEFAULT_INTAKE} with a generic {DEFAULT_PLAN_WEEKS}-week timeline",
        )
    ]


def _start_task(task: PlannedTask, critical: bool) -> TimelineTask:
    return TimelineTask(
        doc_key=task.doc_key,
        task_ar=f"ابدأ بالحصول على {task.label_ar}",
        task_en=f"Start obtaining {task.label_en}",
        is_critical_path=critical,
        estimated_days=task.duration,
    )


def _complete_task(task: PlannedTask, critical: bool) -> TimelineTask:
    return TimelineTask(
        doc_key=task.doc_key,
        task_ar=f"إكمال {task.label_ar}",
        task_en=f"Complete {task.label_en}",
        is_critical_path=critical,
        estimated_days=task.duration,
    )


def _optional_task(task: PlannedTask, critical: bool) -> TimelineTask:
    return TimelineTask(
        doc_key=task.doc_key,
        task_ar=f"اختياري: الحصول على {task.label_ar}",
        task_en=f"Optional: obtain {task.label_en}",
        is_critical_path=critical,
        estimated_days=task.duration,
    )


TRANSLATION_TASK = TimelineTask(
    doc_key="translation_notarization",
    task_ar="إرسال الوثائق للترجمة والتوثيق",
    task_en="Submit documents for translation and notarization",
    is_critical_path=True,
    estimated_days=TRANSLATION_TASK_DAYS,
)
FINAL_REVIEW_TASK = TimelineTask(
    doc_key="final_review",
    task_ar="مراجعة نهائية لجميع الوثائق",
    task_en="Final review of all documents",
    is_critical_path=False,
    estimated_days=FINAL_REVIEW_DAYS,
)
SUBMISSION_TASK = TimelineTask(
    doc_key="submission",
    task_ar="تقديم طلب الالتحاق",
    task_en="Submit application",
    is_critical_path=True,
    estimated_days=SUBMISSION_DAYS,
)


def allocate_weeks(tasks: list[PlannedTask], critical_keys: set[str]) -> list[list[TimelineTask]]:
    """Place every task exactly once into the fixed eight-week plan."""
    critical = [task for task in tasks if task.required and task.doc_key in critical_keys]
    required = [task for task in tasks if task.required and task.doc_key not in critical_keys]
    optional = [task for task in tasks if not task.required]
    weeks: list[list[TimelineTask]] = [[] for _ in range(DEFAULT_PLAN_WEEKS)]

    # Weeks 1-2: top of the critical queue, two per week.
    for index in range(2):
        weeks[index].extend(_start_task(task, True) for task in critical[:2])
        critical = critical[2:]

    # Weeks 3-4: one more critical item and two required non-critical items per week.
    for index in range(2, 4):
        weeks[index].extend(_start_task(task, True) for task in critical[:1])
        weeks[index].extend(_start_task(task, False) for task in required[:2])
        critical, required = critical[1:], required[2:]

    # Weeks 5-6: everything still pending, split across both weeks.
    remaining = [(task, True) for task in critical] + [(task, False) for task in required]
    split = (len(remaining) + 1) // 2
    weeks[4].extend(_complete_task(task, flag) for task, flag in remaining[:split])
    weeks[4].append(TRANSLATION_TASK)
    weeks[5].extend(_complete_task(task, flag) for task, flag in remaining[split:])
    weeks[5].extend(_optional_task(task, task.doc_key in critical_keys) for task in optional)

    # Weeks 7-8: final review in both, submission closes the plan.
    for index in range(6, DEFAULT_PLAN_WEEKS):
        weeks[index].append(FINAL_REVIEW_TASK)
    weeks[-1].append(SUBMISSION_TASK)
    return weeks


def schedule_timeline(
    checklist: DocumentChecklist,
    intakes: Iterable[str],
    intake_target: Optional[str],
    start: date,
) -> Timeline:
    assumptions: list[Message] = []
    tasks: list[PlannedTask] = []
    for item in checklist.items:
        duration, estimated = task_duration(item)
        tasks.append(
            PlannedTask(
                doc_key=item.doc_key,
                label_ar=item.label_ar,
                label_en=item.label_en,
                duration=duration,
                required=item.priority == "required",
                estimated=estimated,
            )
        )
    tasks.sort(key=lambda task: task.duration, reverse=True)

    longest = tasks[0].duration if tasks else 0
    critical_path = [task.doc_key for task in tasks if task.duration >= longest * CRITICAL_PATH_RATIO]

    target_intake, intake_notes = resolve_intake(intakes, intake_target)
    assumptions.extend(intake_notes)
    if any(task.estimated for task in tasks):
        assumptions.append(
            Message(
                ar="بعض مدد المهام مقدرة بناءً على أوقات المعالجة المعتادة",
                en="Some task durations are estimated based on typical processing times",
            )
        )

    weeks = []
    for index, week_tasks in enumerate(allocate_weeks(tasks, set(critical_path))):
        week_start = start + timedelta(days=index * 7)
        weeks.append(
            TimelineWeek(
                week_number=index + 1,
                start_date=week_start,
                end_date=week_start + timedelta(days=6),
                tasks=week_tasks,
            )
        )

    return Timeline(
        weeks=weeks,
        critical_path_items=critical_path,
        target_intake=target_intake,
        assumptions=assumptions,
    )


def build_timeline(
    catalog: Catalog,
    profile: StudentProfile,
    program_id: str,
    intake_target: Optional[str] = None,
    start: Optional[date] = None,
) -> Timeline:
    program = catalog.get_program(program_id)
    if program is None:
        raise ProgramNotFoundError(program_id)
    checklist = plan_documents(profile, program_id, catalog.document_rules_for(program_id))
    timeline = schedule_timeline(checklist, program.intakes, intake_target, start or date.today())
    logger.info(
        "Scheduled %d documents for program %s toward %s", len(checklist.items), program_id, timeline.target_intake
    )
    return timeline
