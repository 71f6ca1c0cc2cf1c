from __future__ import annotations

import logging
import re
from collections import Counter
from typing import Iterable, Sequence

from vagas_ai.core.config.ats import get_ats_list
from vagas_ai.core.errors import FabricationError
from vagas_ai.schemas.resume import (
    PersonalizedSections,
    ProjectEntry,
    SkillBankEntry,
    SkillGroup,
)

logger = logging.getLogger(__name__)

EXPERT = "Expert"
_TRAILING_PAREN_RE = re.compile(r"\s*\([^()]*\)\s*$")


def strip_parenthetical(item: str) -> str:
    return _TRAILING_PAREN_RE.sub("", item).strip()


def build_skill_allow_list(
    template_skills: Sequence[SkillGroup],
    skill_bank: Iterable[SkillBankEntry] = (),
) -> list[str]:
    """Template items plus skill-bank entries.

    A bank entry below "Expert" is listed both bare and as "Name (Proficiency)".
    """
    allowed: dict[str, None] = {}
    for group in template_skills:
        for item in group.items:
            allowed.setdefault(item, None)
    for entry in skill_bank:
        allowed.setdefault(entry.skill, None)
        if entry.proficiency and entry.proficiency != EXPERT:
            allowed.setdefault(f"{entry.skill} ({entry.proficiency})", None)
    return list(allowed)


def _is_allowed(item: str, allowed: set[str]) -> bool:
    if item in allowed:
        return True
    return strip_parenthetical(item) in allowed


def check_skills(returned: Sequence[SkillGroup], allow_list: Sequence[str]) -> None:
    # "Python" is accepted for "Python (Pandas, NumPy)" and vice versa.
    allowed = set(allow_list) | {strip_parenthetical(entry) for entry in allow_list}
    fabricated = [
        item for group in returned for item in group.items if not _is_allowed(item, allowed)
    ]
    if fabricated:
        logger.error("fabricated_skills items=%s", fabricated)
        raise FabricationError(
            "skills",
            fabricated,
            detail=f"Only these skills are allowed: {', '.join(allow_list)}",
        )


def check_projects(returned: Sequence[ProjectEntry], original: Sequence[ProjectEntry]) -> None:
    original_titles = [project.title for project in original]
    returned_titles = [project.title for project in returned]

    changed = [title for title in returned_titles if title not in original_titles]
    if changed:
        logger.error("project_titles_changed titles=%s", changed)
        raise FabricationError(
            "projects",
            changed,
            detail=f"Required titles: {', '.join(original_titles)}",
        )

    if Counter(returned_titles) != Counter(original_titles):
        missing = list((Counter(original_titles) - Counter(returned_titles)).elements())
        extra = list((Counter(returned_titles) - Counter(original_titles)).elements())
        logger.error(
            "project_count_mismatch expected=%s got=%s",
            len(original_titles),
            len(returned_titles),
        )
        raise FabricationError(
            "projects",
            missing or extra,
            detail=f"Must include all {len(original_titles)} projects exactly once",
        )


def _mentions(text: str, term: str) -> bool:
    pattern = rf"(?<!\w){re.escape(term)}(?!\w)"
    return re.search(pattern, text, re.IGNORECASE) is not None


def check_summary_mentions(summary: str, original_summary: str, allow_list: Sequence[str]) -> None:
    """Reject technical tools named in the summary that the candidate never listed."""
    allowed_text = " ".join([original_summary, *allow_list])
    terms = get_ats_list("known_tools") + get_ats_list("technical_substrings")
    unknown = [
        term
        for term in dict.fromkeys(terms)
        if _mentions(summary, term) and not _mentions(allowed_text, term)
    ]
    if unknown:
        logger.error("fabricated_summary_mentions terms=%s", unknown)
        raise FabricationError("summary", unknown)


def guard_sections(
    sections: PersonalizedSections,
    *,
    template_skills: Sequence[SkillGroup],
    template_projects: Sequence[ProjectEntry],
    original_summary: str,
    skill_bank: Iterable[SkillBankEntry] = (),
    check_summary: bool = False,
) -> PersonalizedSections:
    allow_list = build_skill_allow_list(template_skills, skill_bank)
    check_skills(sections.skills, allow_list)
    check_projects(sections.projects, template_projects)
    if check_summary:
        check_summary_mentions(sections.summary, original_summary, allow_list)
    return sections
