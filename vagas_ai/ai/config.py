from __future__ import annotations

from dataclasses import dataclass, replace

from vagas_ai.core.config import settings


@dataclass(frozen=True)
class GenerationConfig:
    temperature: float
    max_tokens: int
    top_p: float

    def with_temperature(self, temperature: float) -> "GenerationConfig":
        return replace(self, temperature=temperature)


@dataclass(frozen=True)
class AIConfig:
    provider: str
    models: tuple[str, ...]
    generation: GenerationConfig
    resume_temperature: float
    timeout_ms: int

    @property
    def primary_model(self) -> str:
        return self.models[0]


def load_ai_config() -> AIConfig:
    return AIConfig(
        provider=settings.ai_provider,
        models=settings.ai_models,
        generation=GenerationConfig(
            temperature=settings.ai_temperature,
            max_tokens=settings.ai_max_output_tokens,
            top_p=settings.ai_top_p,
        ),
        resume_temperature=settings.ai_resume_temperature,
        timeout_ms=settings.ai_parsing_timeout_ms,
    )
