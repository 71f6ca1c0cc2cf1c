from __future__ import annotations

import json
import logging
import math
from typing import Any, Iterable

from pydantic import BaseModel

from vagas_ai.schemas.ats import ATSKeywords, ATSScore, CategoryScore, ScoreInterpretation

logger = logging.getLogger(__name__)

# category -> (cap points, matches needed to reach the cap)
CATEGORY_WEIGHTS: dict[str, tuple[int, int]] = {
    "required_skills": (40, 5),
    "technical_terms": (25, 8),
    "action_verbs": (15, 5),
    "exact_phrases": (10, 2),
    "acronyms": (10, 5),
}
CASE_SENSITIVE_CATEGORIES = frozenset({"acronyms"})

_INTERPRETATIONS = {
    "pt": {
        "excellent": "Excelente! CV altamente otimizado para ATS.",
        "good": "Bom! CV bem otimizado para ATS.",
        "fair": "Razoável. CV pode ser melhorado para ATS.",
        "poor": "Baixo. CV precisa de otimização significativa.",
    },
    "en": {
        "excellent": "Excellent! Resume is highly optimized for ATS.",
        "good": "Good! Resume is well optimized for ATS.",
        "fair": "Fair. Resume could be improved for ATS.",
        "poor": "Low. Resume needs significant ATS optimization.",
    },
}


def content_to_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, BaseModel):
        content = content.model_dump(mode="json")
    return json.dumps(content, ensure_ascii=False)


def _count_matches(keywords: Iterable[str], blob: str, *, case_sensitive: bool) -> int:
    matched = 0
    for keyword in keywords:
        if not keyword.strip():
            continue
        needle = keyword if case_sensitive else keyword.casefold()
        if needle in blob:
            matched += 1
    return matched


def _category_points(category: str, matched: int) -> float:
    cap, max_matches = CATEGORY_WEIGHTS[category]
    return cap * min(matched, max_matches) / max_matches


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def score_breakdown(content: Any, keywords: ATSKeywords, language: str = "pt") -> ATSScore:
    """Bag-of-substrings keyword coverage of ``content`` against ``keywords``."""
    original = content_to_text(content)
    folded = original.casefold()

    breakdown: dict[str, CategoryScore] = {}
    total = 0.0
    for category, (cap, _) in CATEGORY_WEIGHTS.items():
        entries = getattr(keywords, category)
        case_sensitive = category in CASE_SENSITIVE_CATEGORIES
        matched = _count_matches(entries, original if case_sensitive else folded, case_sensitive=case_sensitive)
        points = _category_points(category, matched)
        total += points
        breakdown[category] = CategoryScore(matched=matched, total=len(entries), cap=cap, score=points)

    score = max(0, min(100, _round_half_up(total)))
    logger.info(
        "ats_score score=%s breakdown=%s",
        score,
        {name: f"{item.matched}/{item.total}" for name, item in breakdown.items()},
    )
    return ATSScore(score=score, breakdown=breakdown, interpretation=interpret_score(score, language))


def calculate_ats_score(content: Any, keywords: ATSKeywords) -> int:
    return score_breakdown(content, keywords).score


def interpret_score(score: int, language: str = "pt") -> ScoreInterpretation:
    messages = _INTERPRETATIONS.get(language, _INTERPRETATIONS["pt"])
    if score >= 80:
        level = "excellent"
    elif score >= 70:
        level = "good"
    elif score >= 50:
        level = "fair"
    else:
        level = "poor"
    return ScoreInterpretation(level=level, message=messages[level])
