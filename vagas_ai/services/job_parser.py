from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Sequence

from pydantic import ValidationError

from vagas_ai.ai.config import AIConfig, load_ai_config
from vagas_ai.ai.factory import get_transport
from vagas_ai.ai.invocation import invoke
from vagas_ai.ai.timeouts import with_timeout
from vagas_ai.ai.types import ChatMessage, ModelInvocationResult, TextGenerationTransport
from vagas_ai.core.errors import SchemaValidationError
from vagas_ai.extraction import extract_json
from vagas_ai.schemas.job import JobAnalysisPayload, StructuredJobData, TokenUsage
from vagas_ai.schemas.profile import UserProfile
from vagas_ai.validation import validate, violations_from

from .job_analysis import build_fallback_analysis, validate_analysis_markdown
from .prompts import build_job_analysis_messages, build_job_extraction_messages

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParsedJob:
    data: StructuredJobData
    model: str
    duration_ms: int
    token_usage: TokenUsage
    analysis: str | None = None


async def _invoke(
    messages: list[ChatMessage],
    models: Sequence[str],
    config: AIConfig,
    transport: TextGenerationTransport,
) -> ModelInvocationResult:
    return await invoke(messages, models, transport=transport, generation=config.generation)


def _finish(
    started: float,
    result: ModelInvocationResult,
    data: StructuredJobData,
    analysis: str | None = None,
) -> ParsedJob:
    duration_ms = int((time.perf_counter() - started) * 1000)
    logger.info(
        "job_parsed model=%s duration_ms=%s empresa=%s cargo=%s analysis=%s",
        result.model,
        duration_ms,
        data.empresa,
        data.cargo,
        analysis is not None,
    )
    return ParsedJob(
        data=data,
        model=result.model,
        duration_ms=duration_ms,
        token_usage=result.token_usage,
        analysis=analysis,
    )


async def _parse(
    description: str,
    models: Sequence[str],
    config: AIConfig,
    transport: TextGenerationTransport,
) -> ParsedJob:
    started = time.perf_counter()
    result = await _invoke(build_job_extraction_messages(description), models, config, transport)
    return _finish(started, result, validate(extract_json(result.text)))


async def _parse_with_analysis(
    description: str,
    profile: UserProfile | None,
    models: Sequence[str],
    config: AIConfig,
    transport: TextGenerationTransport,
) -> ParsedJob:
    started = time.perf_counter()
    result = await _invoke(build_job_analysis_messages(description, profile), models, config, transport)
    try:
        envelope = JobAnalysisPayload.model_validate(extract_json(result.text))
    except ValidationError as exc:
        raise SchemaValidationError(violations_from(exc)) from exc

    data = validate(envelope.structured_data)
    analysis = envelope.analise_markdown
    if not validate_analysis_markdown(analysis):
        logger.warning("job_analysis_rejected model=%s chars=%s", result.model, len(analysis))
        analysis = build_fallback_analysis(data)
    return _finish(started, result, data, analysis)


async def parse_job(
    description: str,
    models: Sequence[str] | None = None,
    config: AIConfig | None = None,
    *,
    transport: TextGenerationTransport | None = None,
) -> ParsedJob:
    """Turn free-form job posting text into validated ``StructuredJobData``.

    Sanitizes the posting, walks the model fallback chain, extracts the JSON
    payload and validates it. Extraction and schema failures are raised as-is;
    nothing is retried here. The whole call is bounded by ``config.timeout_ms``.
    """
    cfg = config or load_ai_config()
    return await with_timeout(
        _parse(description, tuple(models or cfg.models), cfg, transport or get_transport()),
        cfg.timeout_ms,
        f"Job parsing timed out after {cfg.timeout_ms}ms",
    )


async def parse_job_with_analysis(
    description: str,
    profile: UserProfile | None = None,
    models: Sequence[str] | None = None,
    config: AIConfig | None = None,
    *,
    transport: TextGenerationTransport | None = None,
) -> ParsedJob:
    """Like ``parse_job``, plus a Markdown career analysis of the job for ``profile``.

    The model returns ``{"structured_data": ..., "analise_markdown": ...}`` in
    one call. An analysis that is too short, too long or missing a required
    section is replaced by bullet lists built from the structured data.
    """
    cfg = config or load_ai_config()
    return await with_timeout(
        _parse_with_analysis(description, profile, tuple(models or cfg.models), cfg, transport or get_transport()),
        cfg.timeout_ms,
        f"Job analysis timed out after {cfg.timeout_ms}ms",
    )
