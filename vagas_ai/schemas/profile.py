from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class UserProfile(BaseModel):
    """Candidate context threaded into prompts per call."""

    model_config = ConfigDict(frozen=True)

    skills: list[str] = Field(default_factory=list)
    experience: list[str] = Field(default_factory=list)
    education: str = ""
    goals: str = ""
