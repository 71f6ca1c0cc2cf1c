from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Sequence, Union

from vagas_ai.ai.config import GenerationConfig, load_ai_config
from vagas_ai.ai.types import (
    ChatMessage,
    GenerationRequest,
    ModelInvocationResult,
    TextGenerationTransport,
    TransportResponse,
)
from vagas_ai.core.errors import FatalModelError, ModelsExhaustedError, QuotaError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Success:
    model: str
    output: TransportResponse
    duration_ms: int


@dataclass(frozen=True)
class QuotaExhausted:
    models: tuple[str, ...]
    last_error: QuotaError | None


FallbackOutcome = Union[Success, QuotaExhausted]


def is_quota_error(error: BaseException) -> bool:
    """HTTP 429 on the error object, or '429'/'quota' in its message."""
    for attr in ("status_code", "status"):
        status = getattr(error, attr, None)
        try:
            if status is not None and int(status) == 429:
                return True
        except (TypeError, ValueError):
            continue
    message = str(error).lower()
    return "429" in message or "quota" in message


def build_messages(prompt: str | Sequence[ChatMessage], system_prompt: str | None = None) -> list[ChatMessage]:
    if isinstance(prompt, str):
        messages = [ChatMessage(role="user", content=prompt)]
    else:
        messages = list(prompt)
    if system_prompt:
        messages.insert(0, ChatMessage(role="system", content=system_prompt))
    return messages


async def walk_fallback_chain(
    transport: TextGenerationTransport,
    messages: Sequence[ChatMessage],
    ranked_models: Sequence[str],
    generation: GenerationConfig,
) -> FallbackOutcome:
    """Try each model in order; only quota errors move on to the next one."""
    last_error: QuotaError | None = None
    for model in ranked_models:
        request = GenerationRequest(
            model=model,
            messages=messages,
            temperature=generation.temperature,
            max_tokens=generation.max_tokens,
            top_p=generation.top_p,
        )
        started = time.perf_counter()
        logger.info("model_attempt model=%s", model)
        try:
            output = await transport.complete(request)
        except Exception as exc:
            if not is_quota_error(exc):
                logger.error("model_failed model=%s error=%s", model, exc)
                raise FatalModelError(model, exc) from exc
            logger.warning("model_quota_exceeded model=%s error=%s", model, exc)
            last_error = QuotaError(model, exc)
            continue
        return Success(
            model=model,
            output=output,
            duration_ms=int((time.perf_counter() - started) * 1000),
        )
    return QuotaExhausted(models=tuple(ranked_models), last_error=last_error)


async def invoke(
    prompt: str | Sequence[ChatMessage],
    ranked_models: Sequence[str] | None = None,
    *,
    transport: TextGenerationTransport,
    system_prompt: str | None = None,
    generation: GenerationConfig | None = None,
) -> ModelInvocationResult:
    cfg = load_ai_config()
    models = tuple(ranked_models or cfg.models)
    if not models:
        raise ValueError("At least one model is required")

    started = time.perf_counter()
    outcome = await walk_fallback_chain(
        transport,
        build_messages(prompt, system_prompt),
        models,
        generation or cfg.generation,
    )

    if isinstance(outcome, QuotaExhausted):
        logger.error("models_exhausted models=%s", ",".join(outcome.models))
        raise ModelsExhaustedError(outcome.models, outcome.last_error)

    duration_ms = int((time.perf_counter() - started) * 1000)
    logger.info(
        "model_success model=%s duration_ms=%s total_tokens=%s",
        outcome.model,
        duration_ms,
        outcome.output.usage.total_tokens,
    )
    return ModelInvocationResult(
        text=outcome.output.text,
        token_usage=outcome.output.usage,
        duration_ms=duration_ms,
        model=outcome.model,
    )
