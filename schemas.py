"""
Caller-facing contracts.

Inputs are validated here before any evaluation runs; outputs carry every
human-readable message as an Arabic/English pair.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DegreeLevel = Literal["associate", "bachelor", "master", "phd"]
EducationLevel = Literal["high_school", "bachelor", "master", "phd"]
ProgramLanguage = Literal["en", "tr", "ar", "mixed"]
IntakePreference = Literal["fall", "spring", "any"]
ApplicantCategory = Literal["international", "turkish", "all"]
RuleType = Literal[
    "gpa_minimum",
    "exam_score",
    "language_proficiency",
    "portfolio_required",
    "interview_required",
    "work_experience",
    "other",
]
ReasonKind = Literal[
    "education_level",
    "gpa_minimum",
    "exam_score",
    "language_proficiency",
    "portfolio_required",
    "interview_required",
    "work_experience",
    "other",
]
EligibilityStatus = Literal["likely_eligible", "needs_review", "unlikely"]
VerificationStatus = Literal["verified", "needs_verification", "outdated"]
TurkishLevel = Literal["A1", "A2", "B1", "B2", "C1", "C2"]

ENGLISH_SCORE_CEILING = {"ielts": 9.0, "toefl": 120.0}


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    ar: str = Field(min_length=1)
    en: str = Field(min_length=1)

    def __str__(self) -> str:
        return f"{self.ar} / {self.en}"


# =============================================================================
# INPUTS
# =============================================================================


class _Input(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)


class EnglishScore(_Input):
    type: Literal["ielts", "toefl"]
    score: float = Field(ge=0)

    @model_validator(mode="after")
    def _score_within_scale(self) -> "EnglishScore":
        ceiling = ENGLISH_SCORE_CEILING[self.type]
        if self.score > ceiling:
            raise ValueError(f"{self.type} score must be between 0 and {ceiling:g}")
        return self


class TurkishScore(_Input):
    type: Literal["tomer"] = "tomer"
    level: TurkishLevel

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, value: Any) -> Any:
        return value.strip().upper() if isinstance(value, str) else value


class _BudgetMixin(_Input):
    budget_min: Optional[float] = Field(default=None, ge=0)
    budget_max: Optional[float] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _budget_order(self):
        if self.budget_min is not None and self.budget_max is not None and self.budget_min > self.budget_max:
            raise ValueError("budget_min must not exceed budget_max")
        return self


class SearchProfile(_BudgetMixin):
    nationality: Optional[str] = None
    current_education_level: Optional[EducationLevel] = None
    desired_degree_level: Optional[DegreeLevel] = None
    major_keywords: list[str] = Field(default_factory=list)
    preferred_language: Optional[ProgramLanguage] = None
    city_preference: Optional[str] = None
    intake_preference: Optional[IntakePreference] = None


class StudentProfile(SearchProfile):
    nationality: str = Field(min_length=1)
    current_education_level: EducationLevel
    desired_degree_level: DegreeLevel
    gpa: Optional[float] = Field(default=None, ge=0, le=100)
    english_score: Optional[EnglishScore] = None
    turkish_score: Optional[TurkishScore] = None
    has_portfolio: Optional[bool] = None
    work_experience_years: Optional[float] = Field(default=None, ge=0, le=60)


class ProgramFilters(_BudgetMixin):
    degree_level: Optional[DegreeLevel] = None
    language: Optional[ProgramLanguage] = None
    city: Optional[str] = None
    university_id: Optional[str] = None


class SearchProgramsInput(_Input):
    profile: SearchProfile
    filters: Optional[ProgramFilters] = None


class ProgramDetailInput(_Input):
    program_id: str = Field(min_length=1)


class EligibilityInput(_Input):
    profile: StudentProfile
    program_id: str = Field(min_length=1)


class ChecklistInput(_Input):
    profile: StudentProfile
    program_id: str = Field(min_length=1)


class TimelineInput(_Input):
    profile: StudentProfile
    program_id: str = Field(min_length=1)
    intake_target: Optional[str] = None  # e.g. "September 2026" or "Fall"
    start_date: Optional[date] = None


# =============================================================================
# OUTPUTS
# =============================================================================


class SourceReferenceOut(BaseModel):
    title: str
    url: Optional[str] = None
    captured_at: datetime


class ProgramSearchResult(BaseModel):
    id: str
    university_id: str
    university_name_ar: str
    university_name_en: str
    program_name_ar: str
    program_name_en: str
    degree_level: DegreeLevel
    language: ProgramLanguage
    city: str
    tuition_min: int
    tuition_max: int
    currency: str
    intakes: list[str] = Field(default_factory=list)
    last_verified_at: Optional[datetime] = None
    source_references: list[SourceReferenceOut] = Field(default_factory=list)
    verification_status: VerificationStatus


class SearchProgramsOutput(BaseModel):
    programs: list[ProgramSearchResult] = Field(default_factory=list)
    total_count: int = 0
    filters_applied: list[str] = Field(default_factory=list)
    expanded_keywords: list[str] = Field(default_factory=list)
    synonym_notes: list[Message] = Field(default_factory=list)
    near_equivalents_used: list[str] = Field(default_factory=list)
    suggestions: list[Message] = Field(default_factory=list)


class RequirementOut(BaseModel):
    id: str
    rule_type: RuleType
    rule_value: str
    text_ar: str
    text_en: str
    required: bool
    applicant_category: ApplicantCategory
    scope: Literal["program", "university"]


class DocumentOut(BaseModel):
    doc_key: str
    label_ar: str
    label_en: str
    required: bool
    translation_required: bool
    notarization_required: bool
    notes_ar: Optional[str] = None
    notes_en: Optional[str] = None
    estimated_days: Optional[int] = None


class ProgramDetail(ProgramSearchResult):
    requirements: list[RequirementOut] = Field(default_factory=list)
    documents: list[DocumentOut] = Field(default_factory=list)


class EligibilityReason(BaseModel):
    rule_type: ReasonKind
    passed: bool
    reason_ar: str = Field(min_length=1)
    reason_en: str = Field(min_length=1)
    data_driven: Literal[True] = True


class EligibilitySnapshot(BaseModel):
    status: EligibilityStatus
    reasons: list[EligibilityReason] = Field(default_factory=list)
    missing_info: list[Message] = Field(default_factory=list)
    missing_fields: list[str] = Field(default_factory=list)
    assumptions: list[Message] = Field(default_factory=list)
    disclaimer: Message


class ChecklistItem(BaseModel):
    doc_key: str
    label_ar: str
    label_en: str
    applies_to: Message
    required: bool
    translation_required: bool
    notarization_required: bool
    apostille_notes: Message
    why_needed_ar: str = Field(min_length=1)
    why_needed_en: str = Field(min_length=1)
    priority: Literal["required", "recommended"]
    estimated_days: Optional[int] = None
    notes_ar: Optional[str] = None
    notes_en: Optional[str] = None


class DocumentChecklist(BaseModel):
    program_id: str
    items: list[ChecklistItem] = Field(default_factory=list)
    unknowns: list[Message] = Field(default_factory=list)
    assumptions: list[Message] = Field(default_factory=list)


class TimelineTask(BaseModel):
    doc_key: str
    task_ar: str
    task_en: str
    is_critical_path: bool
    estimated_days: int


class TimelineWeek(BaseModel):
    week_number: int
    start_date: date
    end_date: date
    tasks: list[TimelineTask] = Field(default_factory=list)


class Timeline(BaseModel):
    weeks: list[TimelineWeek] = Field(default_factory=list)
    critical_path_items: list[str] = Field(default_factory=list)
    target_intake: str
    assumptions: list[Message] = Field(default_factory=list)


class ToolError(BaseModel):
    code: str
    message_ar: str
    message_en: str
    details: list[str] = Field(default_factory=list)


class ToolMetadata(BaseModel):
    timestamp: datetime
    assumptions: list[Message] = Field(default_factory=list)


class ToolResponse(BaseModel):
    success: bool
    data: Optional[Any] = None
    error: Optional[ToolError] = None
    metadata: ToolMetadata
