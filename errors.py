"""Error taxonomy shared by the engine modules.

Only PROGRAM_NOT_FOUND, VALIDATION_ERROR and CATALOG_ERROR end a call.
Missing profile data is never an exception, and unparsable stored rules are
caught by the evaluator and folded into its assumptions.
"""

from __future__ import annotations

from typing import Any


class EngineError(Exception):
    code = "ENGINE_ERROR"
    message_ar = "حدث خطأ غير متوقع"
    message_en = "An unexpected error occurred"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.message_en)
        self.detail = detail


class ProgramNotFoundError(EngineError):
    code = "PROGRAM_NOT_FOUND"
    message_ar = "البرنامج غير موجود"
    message_en = "Program not found"

    def __init__(self, program_id: str) -> None:
        super().__init__(f"Program {program_id!r} not found")
        self.program_id = program_id


class InputValidationError(EngineError):
    code = "VALIDATION_ERROR"
    message_ar = "البيانات المدخلة غير صالحة"
    message_en = "The request input is invalid"

    def __init__(self, errors: list[dict[str, Any]]) -> None:
        fields = sorted({".".join(str(part) for part in err.get("loc", ())) for err in errors})
        super().__init__(f"Invalid fields: {', '.join(fields) or 'input'}")
        self.errors = errors
        self.fields = fields


class CatalogError(EngineError):
    code = "CATALOG_ERROR"
    message_ar = "تعذر قراءة بيانات البرامج"
    message_en = "The program catalog could not be read"


class UnparsableRuleError(EngineError):
    code = "UNPARSABLE_RULE"
    message_ar = "تعذر قراءة أحد المتطلبات المخزنة"
    message_en = "A stored requirement could not be read"

    def __init__(self, rule_type: str, raw_value: Any, reason: str) -> None:
        super().__init__(f"{rule_type} payload {raw_value!r}: {reason}")
        self.rule_type = rule_type
        self.raw_value = raw_value
        self.reason = reason
