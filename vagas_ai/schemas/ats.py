from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ScoreLevel = Literal["excellent", "good", "fair", "poor"]


class ATSKeywords(BaseModel):
    model_config = ConfigDict(frozen=True)

    technical_terms: list[str] = Field(default_factory=list)
    required_skills: list[str] = Field(default_factory=list)
    action_verbs: list[str] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)
    exact_phrases: list[str] = Field(default_factory=list)
    acronyms: list[str] = Field(default_factory=list)


class CategoryScore(BaseModel):
    matched: int = Field(ge=0)
    total: int = Field(ge=0)
    cap: int = Field(ge=0)
    score: float = Field(ge=0)


class ScoreInterpretation(BaseModel):
    level: ScoreLevel
    message: str


class ATSScore(BaseModel):
    score: int = Field(ge=0, le=100)
    breakdown: dict[str, CategoryScore] = Field(default_factory=dict)
    interpretation: ScoreInterpretation | None = None
