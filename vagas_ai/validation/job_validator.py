from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from vagas_ai.core.errors import FieldViolation, SchemaValidationError
from vagas_ai.schemas.job import StructuredJobData

logger = logging.getLogger(__name__)


def violations_from(exc: ValidationError) -> list[FieldViolation]:
    violations: list[FieldViolation] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "<root>"
        violations.append(FieldViolation(field=location, message=str(error.get("msg", "invalid"))))
    return violations


def validate(candidate: Any) -> StructuredJobData:
    """Schema-check extracted job data.

    Every violated field is reported at once. Enum values must match exactly,
    unknown keys are ignored. An already-valid instance is returned as is.
    """
    if isinstance(candidate, StructuredJobData):
        return candidate
    if not isinstance(candidate, dict):
        raise SchemaValidationError(
            [FieldViolation(field="<root>", message=f"expected a JSON object, got {type(candidate).__name__}")]
        )

    try:
        return StructuredJobData.model_validate(candidate)
    except ValidationError as exc:
        violations = violations_from(exc)
        logger.warning(
            "job_schema_invalid fields=%s",
            ",".join(v.field for v in violations),
        )
        raise SchemaValidationError(violations) from exc
