from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from vagas_ai.core.quota import QuotaCheckResult


class AIPipelineError(RuntimeError):
    code = "ai_pipeline_error"

    def __init__(self, message: str, *, code: str | None = None):
        super().__init__(message)
        if code is not None:
            self.code = code


class ExtractionErrorKind(str, Enum):
    NO_JSON_FOUND = "NoJsonFound"
    INVALID_FENCED_JSON = "InvalidFencedJson"
    INVALID_DIRECT_JSON = "InvalidDirectJson"


class ExtractionError(AIPipelineError):
    code = "extraction_failed"

    def __init__(self, kind: ExtractionErrorKind, message: str, *, truncated: bool = False):
        super().__init__(message)
        self.kind = kind
        self.truncated = truncated


@dataclass(frozen=True)
class FieldViolation:
    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class SchemaValidationError(AIPipelineError):
    code = "schema_invalid"

    def __init__(self, field_violations: Sequence[FieldViolation]):
        self.field_violations = list(field_violations)
        joined = "; ".join(str(v) for v in self.field_violations)
        super().__init__(f"Model output failed schema validation: {joined}")

    @property
    def fields(self) -> list[str]:
        return [v.field for v in self.field_violations]


class FabricationError(AIPipelineError):
    code = "fabrication"

    def __init__(self, section: str, offending_items: Sequence[str], detail: str = ""):
        self.section = section
        self.offending_items = list(offending_items)
        message = f"Model fabricated {section} content: {', '.join(self.offending_items)}"
        if detail:
            message = f"{message}. {detail}"
        super().__init__(message)


class QuotaError(AIPipelineError):
    code = "quota"

    def __init__(self, model: str, original: BaseException):
        super().__init__(f"Model '{model}' quota exceeded: {original}")
        self.model = model
        self.original = original


class FatalModelError(AIPipelineError):
    code = "model_failed"

    def __init__(self, model: str, original: BaseException):
        super().__init__(f"Model '{model}' failed: {original}")
        self.model = model
        self.original = original


class ModelsExhaustedError(AIPipelineError):
    code = "models_exhausted"

    def __init__(self, models: Sequence[str], last_error: QuotaError | None):
        self.models = list(models)
        self.last_error = last_error
        last = str(last_error.original) if last_error is not None else "Unknown"
        super().__init__(
            f"All models exhausted due to quota limits ({', '.join(self.models)}). "
            f"Last error: {last}"
        )


class AITimeoutError(AIPipelineError):
    code = "timeout"

    def __init__(self, timeout_ms: int, message: str | None = None):
        super().__init__(message or f"Operation timed out after {timeout_ms}ms")
        self.timeout_ms = timeout_ms


class RateLimitExceededError(AIPipelineError):
    code = "rate_limited"

    def __init__(self, retry_after: int, check: "QuotaCheckResult | None" = None, message: str = "Rate limit exceeded"):
        super().__init__(message)
        self.retry_after = retry_after
        self.check = check
