from .ats_keywords import extract_keywords
from .ats_scorer import calculate_ats_score, interpret_score, score_breakdown

__all__ = [
    "extract_keywords",
    "calculate_ats_score",
    "interpret_score",
    "score_breakdown",
]
