from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Iterable, Sequence, TypeVar

from pydantic import BaseModel, ValidationError

from vagas_ai.ai.config import AIConfig, load_ai_config
from vagas_ai.ai.factory import get_transport
from vagas_ai.ai.invocation import invoke
from vagas_ai.ai.timeouts import with_timeout
from vagas_ai.ai.types import ChatMessage, ModelInvocationResult, TextGenerationTransport
from vagas_ai.core.config import settings
from vagas_ai.core.errors import SchemaValidationError
from vagas_ai.extraction import extract_json
from vagas_ai.features.ats_keywords import extract_keywords
from vagas_ai.features.ats_scorer import score_breakdown
from vagas_ai.schemas.job import StructuredJobData
from vagas_ai.schemas.resume import (
    PersonalizedSections,
    ProjectsSection,
    SkillBankEntry,
    SkillsSection,
    SummarySection,
    TailoredResume,
    UserProfile,
)
from vagas_ai.validation import violations_from

from .cv_templates import get_cv_template
from .personalization_guard import build_skill_allow_list, guard_sections
from .prompts import build_projects_messages, build_skills_messages, build_summary_messages

logger = logging.getLogger(__name__)

SectionT = TypeVar("SectionT", bound=BaseModel)


def _parse_section(text: str, model: type[SectionT]) -> SectionT:
    payload: Any = extract_json(text)
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise SchemaValidationError(violations_from(exc)) from exc


async def _personalize(
    messages: list[ChatMessage],
    section_model: type[SectionT],
    models: Sequence[str],
    config: AIConfig,
    transport: TextGenerationTransport,
) -> tuple[SectionT, ModelInvocationResult]:
    result = await invoke(
        messages,
        models,
        transport=transport,
        generation=config.generation.with_temperature(config.resume_temperature),
    )
    return _parse_section(result.text, section_model), result


async def _settle_all(*calls: Awaitable[Any]) -> list[Any]:
    """Run ``calls`` concurrently and return their results in order.

    On the first failure the remaining calls are cancelled and awaited before
    the error is raised, so no section call outlives this coroutine. The same
    holds when this coroutine is itself cancelled by the timeout.
    """
    tasks = [asyncio.ensure_future(call) for call in calls]
    try:
        await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    for task in tasks:
        if not task.cancelled() and task.exception() is not None:
            raise task.exception()
    return [task.result() for task in tasks]


async def generate_tailored_resume(
    job: StructuredJobData,
    language: str = "pt",
    transport: TextGenerationTransport | None = None,
    *,
    models: Sequence[str] | None = None,
    config: AIConfig | None = None,
    skill_bank: Iterable[SkillBankEntry] = (),
    profile: UserProfile | None = None,
    check_summary: bool | None = None,
) -> TailoredResume:
    """Personalize summary, skills and projects of the base CV for ``job``.

    The three sections are generated concurrently. Any extraction, schema or
    fabrication failure fails the whole call; there is no partial result.
    """
    cfg = config or load_ai_config()
    transport = transport or get_transport()
    ranked = tuple(models or cfg.models)
    bank = list(skill_bank)
    cv = get_cv_template(language)
    allow_list = build_skill_allow_list(cv.skills, bank)
    user_skills = [item for group in cv.skills for item in group.items]

    started = time.perf_counter()
    logger.info("resume_generation_started language=%s cargo=%s", language, job.cargo)
    (summary, summary_run), (skills, skills_run), (projects, projects_run) = await with_timeout(
        _settle_all(
            _personalize(
                build_summary_messages(job, cv.summary, user_skills, profile),
                SummarySection,
                ranked,
                cfg,
                transport,
            ),
            _personalize(build_skills_messages(job, cv.skills, allow_list), SkillsSection, ranked, cfg, transport),
            _personalize(build_projects_messages(job, cv.projects), ProjectsSection, ranked, cfg, transport),
        ),
        cfg.timeout_ms,
        f"Resume generation timed out after {cfg.timeout_ms}ms",
    )

    sections = guard_sections(
        PersonalizedSections(summary=summary.summary, skills=skills.skills, projects=projects.projects),
        template_skills=cv.skills,
        template_projects=cv.projects,
        original_summary=cv.summary,
        skill_bank=bank,
        check_summary=settings.summary_guard_enabled if check_summary is None else check_summary,
    )

    tailored = cv.model_copy(
        update={"summary": sections.summary, "skills": sections.skills, "projects": sections.projects}
    )
    token_usage = summary_run.token_usage + skills_run.token_usage + projects_run.token_usage
    ats = score_breakdown(tailored, extract_keywords(job), language)
    duration_ms = int((time.perf_counter() - started) * 1000)

    logger.info(
        "resume_generated model=%s duration_ms=%s total_tokens=%s ats_score=%s",
        summary_run.model,
        duration_ms,
        token_usage.total_tokens,
        ats.score,
    )
    return TailoredResume(
        cv=tailored,
        model=summary_run.model,
        duration_ms=duration_ms,
        token_usage=token_usage,
        ats=ats,
    )
