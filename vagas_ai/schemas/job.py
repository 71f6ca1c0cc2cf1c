from __future__ import annotations

import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .profile import UserProfile

Modalidade = Literal["Presencial", "Híbrido", "Remoto"]
TipoVaga = Literal["Estágio", "Júnior", "Pleno", "Sênior"]
IdiomaVaga = Literal["pt", "en"]
StatusVaga = Literal["Pendente", "Avançado", "Melou", "Contratado"]

# Any single-line text up to 100 chars with at least one digit ("R$ 2.000 - 3.000/mês", "~R$ 3k").
_SALARY_RE = re.compile(r"^(?=[^\n]*\d)[^\n]{1,100}$")

_OPTIONAL_BUSINESS_FIELDS = ("requisitos_score", "fit", "etapa", "status", "observacoes")


class StructuredJobData(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    empresa: str
    cargo: str
    local: str
    modalidade: Modalidade
    tipo_vaga: TipoVaga
    requisitos_obrigatorios: list[str] = Field(min_length=1)
    requisitos_desejaveis: list[str] = Field(default_factory=list)
    responsabilidades: list[str] = Field(min_length=1)
    beneficios: list[str] = Field(default_factory=list)
    salario: str | None = None
    idioma_vaga: IdiomaVaga

    requisitos_score: float | None = Field(default=None, ge=0, le=5)
    fit: float | None = Field(default=None, ge=0, le=5)
    etapa: str | None = None
    status: StatusVaga | None = None
    observacoes: str | None = None

    @field_validator("empresa", "cargo", "local")
    @classmethod
    def _validate_non_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must be a non-empty string")
        return value

    @field_validator(
        "requisitos_obrigatorios",
        "requisitos_desejaveis",
        "responsabilidades",
        "beneficios",
    )
    @classmethod
    def _validate_items(cls, value: list[str]) -> list[str]:
        blank = [index for index, item in enumerate(value) if not item.strip()]
        if blank:
            raise ValueError(f"items must be non-empty strings (blank at {blank})")
        return value

    @field_validator("salario")
    @classmethod
    def _validate_salary(cls, value: str | None) -> str | None:
        if value is None:
            return None
        if not _SALARY_RE.match(value.strip()):
            raise ValueError("must be null or a currency/number expression")
        return value

    def as_dict(self) -> dict[str, Any]:
        """Dump with optional business fields only when they were supplied."""
        payload = self.model_dump()
        for name in _OPTIONAL_BUSINESS_FIELDS:
            if name not in self.model_fields_set:
                payload.pop(name, None)
        return payload


class JobAnalysisPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    structured_data: dict[str, Any]
    analise_markdown: str = Field(min_length=1)


class ParseJobRequest(BaseModel):
    job_description: str = Field(
        min_length=50,
        max_length=50000,
        alias="jobDescription",
    )
    include_analysis: bool = Field(default=False, alias="includeAnalysis")
    profile: UserProfile | None = None

    model_config = ConfigDict(populate_by_name=True)


class TokenUsage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0

    def __add__(self, other: "TokenUsage") -> "TokenUsage":
        return TokenUsage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
        )


class ParseJobMetadata(BaseModel):
    duration_ms: int
    model: str
    token_usage: TokenUsage
    timestamp: str


class ParseJobResponse(BaseModel):
    success: Literal[True] = True
    data: dict[str, Any]
    analise: str | None = None
    metadata: ParseJobMetadata
