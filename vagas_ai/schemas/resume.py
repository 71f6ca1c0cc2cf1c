from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .ats import ATSScore
from .job import StructuredJobData, TokenUsage
from .profile import UserProfile

ResumeLanguage = Literal["pt", "en"]


class SkillGroup(BaseModel):
    category: str = Field(min_length=1)
    items: list[str] = Field(min_length=1)

    @field_validator("items")
    @classmethod
    def _validate_items(cls, value: list[str]) -> list[str]:
        if any(not item.strip() for item in value):
            raise ValueError("skill items must be non-empty strings")
        return value


class ProjectEntry(BaseModel):
    title: str = Field(min_length=1)
    description: list[str] = Field(min_length=1)


class HeaderLink(BaseModel):
    label: str
    url: str


class ResumeHeader(BaseModel):
    name: str
    title: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
    links: list[HeaderLink] = Field(default_factory=list)


class ExperienceEntry(BaseModel):
    title: str
    company: str
    period: str
    location: str = ""
    description: list[str] = Field(default_factory=list)


class EducationEntry(BaseModel):
    degree: str
    institution: str
    period: str
    location: str = ""


class LanguageEntry(BaseModel):
    language: str
    proficiency: str


class CVTemplate(BaseModel):
    language: ResumeLanguage
    header: ResumeHeader
    summary: str
    experience: list[ExperienceEntry] = Field(default_factory=list)
    education: list[EducationEntry] = Field(default_factory=list)
    skills: list[SkillGroup]
    projects: list[ProjectEntry]
    languages: list[LanguageEntry] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)


class SummarySection(BaseModel):
    summary: str = Field(min_length=1)


class SkillsSection(BaseModel):
    skills: list[SkillGroup] = Field(min_length=1)


class ProjectsSection(BaseModel):
    projects: list[ProjectEntry] = Field(min_length=1)


class PersonalizedSections(BaseModel):
    model_config = ConfigDict(frozen=True)

    summary: str
    skills: list[SkillGroup]
    projects: list[ProjectEntry]


class SkillBankEntry(BaseModel):
    skill: str = Field(min_length=1)
    proficiency: str = ""
    category: str = ""


class TailoredResume(BaseModel):
    cv: CVTemplate
    model: str
    duration_ms: int
    token_usage: TokenUsage
    personalized_sections: list[str] = Field(default_factory=lambda: ["summary", "skills", "projects"])
    ats: ATSScore


class GenerateResumeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    job: StructuredJobData
    language: ResumeLanguage = "pt"
    skill_bank: list[SkillBankEntry] = Field(default_factory=list, alias="skillBank")
    profile: UserProfile | None = None
