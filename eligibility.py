from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, Optional

from catalog import Catalog, ProgramRecord, RequirementRule
from errors import ProgramNotFoundError, UnparsableRuleError
from schemas import EligibilityReason, EligibilitySnapshot, Message, StudentProfile

logger = logging.getLogger(__name__)

DISCLAIMER = Message(
    ar="هذا التقييم مبني على البيانات المتوفرة وليس قراراً نهائياً بالقبول. يرجى التحقق مع الجامعة مباشرة.",
    en="This assessment is based on available data and is not a final admission decision. "
    "Please verify with the university directly.",
)

TURKISH_LEVELS = ("A1", "A2", "B1", "B2", "C1", "C2")
DEFAULT_TURKISH_LEVEL = "B2"
TURKISH_NATIONALITY_TERMS = frozenset({"turkish", "turkey", "türkiye", "turkiye", "türk", "turk", "tr", "تركي", "تركيا"})

# Current education levels accepted by each desired degree level.
LEVEL_PREREQUISITES = MappingProxyType(
    {
        "associate": frozenset({"high_school", "bachelor", "master", "phd"}),
        "bachelor": frozenset({"high_school", "bachelor", "master", "phd"}),
        "master": frozenset({"bachelor", "master", "phd"}),
        "phd": frozenset({"master", "phd"}),
    }
)

MISSING_LABELS = MappingProxyType(
    {
        "gpa": Message(ar="المعدل التراكمي", en="GPA"),
        "english_score": Message(ar="درجة اللغة الإنجليزية", en="English proficiency score"),
        "turkish_score": Message(ar="درجة اللغة التركية", en="Turkish proficiency score"),
        "has_portfolio": Message(ar="حالة ملف الأعمال", en="Portfolio status"),
        "work_experience_years": Message(ar="الخبرة العملية", en="Work experience"),
    }
)


class Outcome(Enum):
    PASS = "pass"
    FAIL = "fail"
    INSUFFICIENT_DATA = "insufficient_data"
    UNSCORED = "unscored"


@dataclass(frozen=True)
class RuleOutcome:
    outcome: Outcome
    reason: Optional[EligibilityReason] = None
    missing_field: Optional[str] = None
    missing_label: Optional[Message] = None
    assumption: Optional[Message] = None


def _fmt(value: float) -> str:
    return f"{value:g}"


def _reason(kind: str, passed: bool, reason_ar: str, reason_en: str) -> RuleOutcome:
    return RuleOutcome(
        outcome=Outcome.PASS if passed else Outcome.FAIL,
        reason=EligibilityReason(rule_type=kind, passed=passed, reason_ar=reason_ar, reason_en=reason_en),
    )


def _missing(field: str, label: Optional[Message] = None) -> RuleOutcome:
    return RuleOutcome(
        outcome=Outcome.INSUFFICIENT_DATA,
        missing_field=field,
        missing_label=label or MISSING_LABELS[field],
    )


def _manual_review(rule: RequirementRule) -> RuleOutcome:
    return RuleOutcome(
        outcome=Outcome.UNSCORED,
        assumption=Message(
            ar=f"يتطلب مراجعة يدوية: {rule.text_ar}",
            en=f"Needs manual review: {rule.text_en}",
        ),
    )


def is_turkish_national(nationality: Optional[str]) -> bool:
    return (nationality or "").strip().lower() in TURKISH_NATIONALITY_TERMS


def applies_to_applicant(rule: RequirementRule, nationality: Optional[str]) -> bool:
    if rule.applicant_category == "turkish":
        return is_turkish_national(nationality)
    if rule.applicant_category == "international":
        return not is_turkish_national(nationality)
    return True


def select_rules(
    program_rules: Iterable[RequirementRule],
    institution_rules: Iterable[RequirementRule],
    nationality: Optional[str],
) -> list[RequirementRule]:
    specific = [rule for rule in program_rules if applies_to_applicant(rule, nationality)]
    covered = {rule.rule_type for rule in specific}
    fallback = [
        rule
        for rule in institution_rules
        if rule.rule_type not in covered and applies_to_applicant(rule, nationality)
    ]
    return specific + fallback


def check_education_level(current: str, desired: str) -> EligibilityReason:
    accepted = LEVEL_PREREQUISITES.get(desired)
    if accepted is None or current in accepted:
        if desired == "master":
            texts = ("لديك شهادة البكالوريوس المطلوبة", "You have the required bachelor degree")
        elif desired == "phd":
            texts = ("لديك شهادة الماجستير المطلوبة", "You have the required master degree")
        else:
            texts = ("المستوى التعليمي مناسب للبرنامج", "Education level is appropriate for the program")
        return EligibilityReason(rule_type="education_level", passed=True, reason_ar=texts[0], reason_en=texts[1])
    if desired == "phd":
        texts = ("برامج الدكتوراه تتطلب شهادة الماجستير", "PhD programs require a master degree")
    else:
        texts = ("برامج الماجستير تتطلب شهادة البكالوريوس", "Master programs require a bachelor degree")
    return EligibilityReason(rule_type="education_level", passed=False, reason_ar=texts[0], reason_en=texts[1])


# -----------------------------------------------------------------------------
# Payload parsing
# -----------------------------------------------------------------------------


def _finite_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    number = float(value)
    return number if math.isfinite(number) else None


def parse_gpa_minimum(raw: str) -> float:
    text = (raw or "").strip()
    try:
        number = float(text)
    except ValueError:
        try:
            payload = json.loads(text)
        except ValueError as exc:
            raise UnparsableRuleError("gpa_minimum", raw, "not a number") from exc
        number = _finite_number(payload.get("min") if isinstance(payload, dict) else payload)
        if number is None:
            raise UnparsableRuleError("gpa_minimum", raw, "no numeric minimum")
    if not math.isfinite(number):
        raise UnparsableRuleError("gpa_minimum", raw, "not a finite number")
    return number


def parse_language_requirement(raw: str) -> dict[str, Any]:
    try:
        payload = json.loads(raw or "")
    except ValueError as exc:
        raise UnparsableRuleError("language_proficiency", raw, "invalid JSON") from exc
    if not isinstance(payload, dict):
        raise UnparsableRuleError("language_proficiency", raw, "expected a JSON object")

    kind = str(payload.get("type") or "").lower()
    if kind == "english":
        thresholds = {}
        for test in ("ielts", "toefl"):
            if payload.get(test) is None:
                continue
            number = _finite_number(payload[test])
            if number is None:
                raise UnparsableRuleError("language_proficiency", raw, f"{test} threshold is not a number")
            thresholds[test] = number
        if not thresholds:
            raise UnparsableRuleError("language_proficiency", raw, "no English test threshold")
        return {"type": "english", "thresholds": thresholds}
    if kind == "turkish":
        level = str(payload.get("tomer") or DEFAULT_TURKISH_LEVEL).strip().upper()
        if level not in TURKISH_LEVELS:
            raise UnparsableRuleError("language_proficiency", raw, f"unknown TÖMER level {level}")
        return {"type": "turkish", "level": level}
    raise UnparsableRuleError("language_proficiency", raw, f"unknown language type {kind or '<empty>'}")


# -----------------------------------------------------------------------------
# Per-kind evaluation
# -----------------------------------------------------------------------------


def _evaluate_gpa(rule: RequirementRule, profile: StudentProfile) -> RuleOutcome:
    required = parse_gpa_minimum(rule.rule_value)
    if profile.gpa is None:
        return _missing("gpa")
    gpa, minimum = _fmt(profile.gpa), _fmt(required)
    if profile.gpa >= required:
        return _reason(
            "gpa_minimum",
            True,
            f"معدلك {gpa} يستوفي الحد الأدنى {minimum}",
            f"Your GPA {gpa} meets the minimum {minimum}",
        )
    return _reason(
        "gpa_minimum",
        False,
        f"معدلك {gpa} أقل من الحد الأدنى المطلوب {minimum}",
        f"Your GPA {gpa} is below the required minimum {minimum}",
    )


def _evaluate_language(rule: RequirementRule, profile: StudentProfile) -> RuleOutcome:
    requirement = parse_language_requirement(rule.rule_value)

    if requirement["type"] == "english":
        thresholds: dict[str, float] = requirement["thresholds"]
        score = profile.english_score
        if score is None:
            return _missing("english_score")
        threshold = thresholds.get(score.type)
        if threshold is None:
            accepted = ", ".join(test.upper() for test in thresholds)
            return _missing(
                "english_score",
                Message(
                    ar=f"درجة اللغة الإنجليزية من اختبار مقبول ({accepted})",
                    en=f"English proficiency score from an accepted test ({accepted})",
                ),
            )
        test = score.type.upper()
        if score.score >= threshold:
            return _reason(
                "language_proficiency",
                True,
                f"درجة {test} ({_fmt(score.score)}) تستوفي المتطلبات",
                f"{test} score {_fmt(score.score)} meets the requirement of {_fmt(threshold)}",
            )
        return _reason(
            "language_proficiency",
            False,
            f"درجة {test} ({_fmt(score.score)}) لا تستوفي الحد الأدنى المطلوب ({_fmt(threshold)})",
            f"{test} score {_fmt(score.score)} does not meet the minimum requirement of {_fmt(threshold)}",
        )

    level = requirement["level"]
    if profile.turkish_score is None:
        return _missing("turkish_score")
    if TURKISH_LEVELS.index(profile.turkish_score.level) >= TURKISH_LEVELS.index(level):
        return _reason(
            "language_proficiency",
            True,
            "مستوى اللغة التركية يستوفي المتطلبات",
            "Turkish level meets the requirements",
        )
    return _reason(
        "language_proficiency",
        False,
        f"مستوى اللغة التركية لا يستوفي الحد الأدنى المطلوب ({level})",
        f"Turkish level does not meet the minimum requirement ({level})",
    )


def _evaluate_portfolio(rule: RequirementRule, profile: StudentProfile) -> RuleOutcome:
    if profile.has_portfolio is None:
        return _missing("has_portfolio")
    if profile.has_portfolio:
        return _reason("portfolio_required", True, "لديك ملف أعمال", "You have a portfolio")
    return _reason("portfolio_required", False, "يتطلب البرنامج تقديم ملف أعمال", "Program requires a portfolio submission")


def _evaluate_work_experience(rule: RequirementRule, profile: StudentProfile) -> RuleOutcome:
    if profile.work_experience_years is None:
        return _missing("work_experience_years")
    years = _fmt(profile.work_experience_years)
    return RuleOutcome(
        outcome=Outcome.UNSCORED,
        assumption=Message(
            ar=f"متطلب الخبرة العملية ({rule.text_ar}) يحتاج مراجعة يدوية؛ الخبرة المصرح بها: {years} سنة",
            en=f"Work experience requirement ({rule.text_en}) needs manual review; declared experience: {years} years",
        ),
    )


RuleEvaluator = Callable[[RequirementRule, StudentProfile], RuleOutcome]

RULE_EVALUATORS: Mapping[str, RuleEvaluator] = MappingProxyType(
    {
        "gpa_minimum": _evaluate_gpa,
        "language_proficiency": _evaluate_language,
        "portfolio_required": _evaluate_portfolio,
        "work_experience": _evaluate_work_experience,
    }
)


def evaluate_rule(rule: RequirementRule, profile: StudentProfile) -> RuleOutcome:
    evaluator = RULE_EVALUATORS.get(rule.rule_type)
    if evaluator is None:
        return _manual_review(rule)
    try:
        return evaluator(rule, profile)
    except UnparsableRuleError as exc:
        logger.warning("Skipping requirement %s: %s", rule.id, exc)
        return RuleOutcome(
            outcome=Outcome.UNSCORED,
            assumption=Message(
                ar=f"تعذر قراءة أحد المتطلبات ({rule.text_ar}) ويحتاج مراجعة يدوية",
                en=f"Could not read a stored requirement ({rule.text_en}); it needs manual review",
            ),
        )


def evaluate_profile(
    profile: StudentProfile,
    program: ProgramRecord,
    rules: Iterable[RequirementRule],
) -> EligibilitySnapshot:
    prerequisite = check_education_level(profile.current_education_level, program.degree_level)
    reasons = [prerequisite]
    hard_failure = not prerequisite.passed
    missing_info: list[Message] = []
    missing_fields: list[str] = []
    assumptions: list[Message] = []

    for rule in rules:
        result = evaluate_rule(rule, profile)
        if result.reason is not None:
            reasons.append(result.reason)
            if result.outcome is Outcome.FAIL and rule.rule_type == "gpa_minimum":
                hard_failure = True
        if result.missing_field and result.missing_field not in missing_fields:
            missing_fields.append(result.missing_field)
            missing_info.append(result.missing_label or MISSING_LABELS[result.missing_field])
        if result.assumption is not None:
            assumptions.append(result.assumption)

    if hard_failure:
        status = "unlikely"
    elif missing_fields:
        status = "needs_review"
    elif all(reason.passed for reason in reasons):
        status = "likely_eligible"
    else:
        status = "needs_review"

    logger.info("Eligibility for program %s: %s", program.id, status)
    return EligibilitySnapshot(
        status=status,
        reasons=reasons,
        missing_info=missing_info,
        missing_fields=missing_fields,
        assumptions=assumptions,
        disclaimer=DISCLAIMER,
    )


def evaluate_eligibility(catalog: Catalog, profile: StudentProfile, program_id: str) -> EligibilitySnapshot:
    program = catalog.get_program(program_id)
    if program is None:
        raise ProgramNotFoundError(program_id)
    program_rules, institution_rules = catalog.requirement_tiers(program)
    rules = select_rules(program_rules, institution_rules, profile.nationality)
    return evaluate_profile(profile, program, rules)
