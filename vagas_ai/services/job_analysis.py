from __future__ import annotations

from vagas_ai.schemas.job import StructuredJobData

ANALYSIS_SECTIONS = (
    "## 🏢 Sobre a Empresa",
    "## 💡 Oportunidades para se Destacar",
    "## 🎯 Fit Técnico e Cultural",
    "## 🗣️ Preparação para Entrevista",
)
MIN_ANALYSIS_CHARS = 200
MAX_ANALYSIS_CHARS = 10_000


def validate_analysis_markdown(markdown: str) -> bool:
    """True when the analysis has a sane length and every required section heading."""
    if not MIN_ANALYSIS_CHARS <= len(markdown) <= MAX_ANALYSIS_CHARS:
        return False
    return all(heading in markdown for heading in ANALYSIS_SECTIONS)


def build_fallback_analysis(job: StructuredJobData) -> str:
    """Markdown bullet lists of the job's own requirements, used when the model analysis is rejected."""
    blocks = [
        ("Requisitos Obrigatórios", job.requisitos_obrigatorios),
        ("Requisitos Desejáveis", job.requisitos_desejaveis),
        ("Responsabilidades", job.responsabilidades),
        ("Benefícios", job.beneficios),
    ]
    sections = [
        f"**{title}:**\n" + "\n".join(f"- {item}" for item in items)
        for title, items in blocks
        if items
    ]
    return "\n\n".join(sections)
