from __future__ import annotations

import json
import re
from typing import Sequence

from vagas_ai.ai.types import ChatMessage
from vagas_ai.schemas.job import StructuredJobData
from vagas_ai.schemas.profile import UserProfile
from vagas_ai.schemas.resume import ProjectEntry, SkillGroup

from .job_analysis import ANALYSIS_SECTIONS
from .sanitize import sanitize_job_posting

NOT_SPECIFIED = "Not specified"

JOB_SYSTEM_PROMPT = (
    "Você é um Senior Job Posting Analyst especializado em extrair dados estruturados "
    "de descrições de vagas. Você identifica informações da empresa e cargo, requisitos "
    "obrigatórios vs desejáveis, responsabilidades, benefícios, modalidade de trabalho e "
    "nível de senioridade. Você sempre retorna JSON válido dentro de um code fence markdown."
)

RESUME_SYSTEM_PROMPT = (
    "You are a professional resume writer specializing in ATS (Applicant Tracking System) "
    "optimization. Personalize resume sections to match job requirements while staying "
    "completely truthful.\n"
    "Rules:\n"
    "1. Never fabricate skills, tools, certifications, experience or metrics.\n"
    "2. Never add skills outside the allowed list; only reorder existing ones.\n"
    "3. Never change project titles or the dates inside them; only rewrite descriptions.\n"
    "4. Use job keywords naturally, without keyword stuffing.\n"
    "5. Return only valid JSON.\n"
    "Your output is validated against strict schemas and fabricated content is rejected."
)


def build_job_extraction_messages(job_description: str) -> list[ChatMessage]:
    description = sanitize_job_posting(job_description)
    user = f"""
Sua tarefa é extrair dados estruturados da descrição de vaga abaixo.

DESCRIÇÃO DA VAGA:
{description}

CAMPOS A EXTRAIR:
1. empresa: nome completo da empresa
2. cargo: título exato da vaga
3. local: cidade, estado, país OU "Remoto"
4. modalidade: EXATAMENTE um de "Presencial" | "Híbrido" | "Remoto"
5. tipo_vaga: EXATAMENTE um de "Estágio" | "Júnior" | "Pleno" | "Sênior"
6. requisitos_obrigatorios: array de habilidades, experiências ou formação obrigatórias
7. requisitos_desejaveis: array de qualificações desejáveis
8. responsabilidades: array das principais atividades do cargo
9. beneficios: array de benefícios oferecidos
10. salario: faixa salarial como string OU null se não mencionado
11. idioma_vaga: "pt" se a vaga está em português, "en" se em inglês

REGRAS:
- Extraia exatamente como escrito na descrição original
- Se uma informação não estiver presente, use [] ou null
- Preserve palavras-chave originais (importante para ATS)
- Não invente informações

Retorne APENAS um objeto JSON dentro de um code fence ```json.
""".strip()
    return [
        ChatMessage(role="system", content=JOB_SYSTEM_PROMPT),
        ChatMessage(role="user", content=user),
    ]


def _joined(values: Sequence[str], sep: str = ", ", limit: int | None = None) -> str:
    items = list(values)[:limit] if limit else list(values)
    return sep.join(items) if items else NOT_SPECIFIED


def _cargo(job: StructuredJobData) -> str:
    if job.cargo and job.cargo != "Indefinido":
        return job.cargo
    return "Position not specified"


def top_keywords(job: StructuredJobData, limit: int) -> list[str]:
    keywords: dict[str, None] = {}
    cargo = job.cargo if job.cargo != "Indefinido" else ""
    sources = [cargo, *job.requisitos_obrigatorios, *job.responsabilidades[:3]]
    for source in sources:
        for word in re.split(r"[\s,]+", source):
            if len(word) > 3:
                keywords.setdefault(word, None)
    return list(keywords)[:limit]


def _profile_block(profile: UserProfile | None) -> str:
    if profile is None:
        return ""
    lines = ["CANDIDATE PROFILE:"]
    if profile.skills:
        lines.append(f"Skills: {', '.join(profile.skills)}")
    if profile.experience:
        lines.append(f"Experience: {'; '.join(profile.experience)}")
    if profile.education:
        lines.append(f"Education: {profile.education}")
    if profile.goals:
        lines.append(f"Goals: {profile.goals}")
    return "\n".join(lines) + "\n\n"


def build_summary_messages(
    job: StructuredJobData,
    original_summary: str,
    user_skills: Sequence[str],
    profile: UserProfile | None = None,
) -> list[ChatMessage]:
    keywords = top_keywords(job, 7)
    user = f"""Rewrite the professional summary to target this job opportunity.

JOB DETAILS:
Company: {job.empresa}
Position: {_cargo(job)}
Required Skills: {_joined(job.requisitos_obrigatorios)}
Desired Skills: {_joined(job.requisitos_desejaveis)}
Responsibilities: {_joined(job.responsabilidades, "; ", 5)}

ORIGINAL SUMMARY:
{original_summary}

USER'S SKILLS:
{", ".join(user_skills)}

{_profile_block(profile)}TOP KEYWORDS TO INCLUDE:
{", ".join(keywords) if keywords else "Use general professional keywords"}

INSTRUCTIONS:
- Write 3-4 sentences (80-120 words)
- Include available keywords naturally
- Only mention what is in the original summary or the user's skills

Return JSON format:
{{"summary": "Your rewritten summary here..."}}"""
    return [
        ChatMessage(role="system", content=RESUME_SYSTEM_PROMPT),
        ChatMessage(role="user", content=user),
    ]


def build_skills_messages(
    job: StructuredJobData,
    current_skills: Sequence[SkillGroup],
    allowed_skills: Sequence[str],
) -> list[ChatMessage]:
    skills_json = json.dumps([group.model_dump() for group in current_skills], ensure_ascii=False, indent=2)
    user = f"""REORDER ONLY - DO NOT ADD NEW SKILLS

JOB REQUIRED SKILLS:
{_joined(job.requisitos_obrigatorios)}

JOB DESIRED SKILLS:
{_joined(job.requisitos_desejaveis)}

USER'S CURRENT SKILLS:
{skills_json}

ALLOWED SKILLS (use ONLY these exact items, a proficiency in parentheses may follow):
{", ".join(allowed_skills)}

INSTRUCTIONS:
1. Reorder skills within each category by relevance to the job
2. Never add or rename skills
3. Keep the category structure

Return JSON format:
{{"skills": [{{"category": "Exact category name", "items": ["Skill1", "Skill2"]}}]}}"""
    return [
        ChatMessage(role="system", content=RESUME_SYSTEM_PROMPT),
        ChatMessage(role="user", content=user),
    ]


def build_projects_messages(
    job: StructuredJobData,
    current_projects: Sequence[ProjectEntry],
) -> list[ChatMessage]:
    keywords = top_keywords(job, 10)
    projects_json = json.dumps([project.model_dump() for project in current_projects], ensure_ascii=False, indent=2)
    titles = "\n".join(f'{index}. "{project.title}"' for index, project in enumerate(current_projects, start=1))
    user = f"""KEEP TITLES AND DATES UNCHANGED - REWRITE DESCRIPTIONS ONLY

JOB DETAILS:
Position: {_cargo(job)}
Responsibilities: {_joined(job.responsabilidades, "; ", 5)}
Required Skills: {_joined(job.requisitos_obrigatorios)}

CURRENT PROJECTS:
{projects_json}

REQUIRED PROJECT TITLES (copy these EXACTLY):
{titles}

JOB KEYWORDS TO EMPHASIZE:
{", ".join(keywords) if keywords else "Use general professional keywords"}

INSTRUCTIONS:
1. Keep ALL projects, same count
2. Copy every title character by character, including dates
3. Rewrite descriptions as 2-3 bullet points highlighting job-relevant aspects
4. Do not invent achievements or metrics

Return JSON format:
{{"projects": [{{"title": "EXACT title", "description": ["point 1", "point 2"]}}]}}"""
    return [
        ChatMessage(role="system", content=RESUME_SYSTEM_PROMPT),
        ChatMessage(role="user", content=user),
    ]


ANALYSIS_SYSTEM_PROMPT = (
    "Você é um Senior Career Coach e Job Posting Analyst. Você extrai dados estruturados "
    "de vagas, avalia o fit técnico e cultural do candidato com justificativas e sugere "
    "estratégias práticas de preparação para entrevista. Você sempre retorna JSON válido "
    "dentro de um code fence markdown."
)


def build_job_analysis_messages(
    job_description: str,
    profile: UserProfile | None = None,
) -> list[ChatMessage]:
    description = sanitize_job_posting(job_description)
    candidate = _profile_block(profile) or "CANDIDATE PROFILE:\nNot provided\n\n"
    headings = "\n".join(f"{heading}\n[...]" for heading in ANALYSIS_SECTIONS)
    user = f"""
Analise a vaga abaixo para o candidato descrito.

-----BEGIN JOB DESCRIPTION-----
{description}
-----END JOB DESCRIPTION-----

{candidate}TAREFA:
1. Extraia os dados estruturados da vaga (mesmos campos e regras da extração padrão)
2. Calcule requisitos_score (0-5, match com requisitos obrigatórios) e fit (0-5, alinhamento de perfil)
3. Escreva uma análise em Markdown com EXATAMENTE estas seções:

# Análise da Vaga - [Cargo] @ [Empresa]

{headings}

REGRAS:
- Strings ausentes (empresa, cargo, local): use "Indefinido"
- Arrays ausentes: use []; salário ausente: null
- Não invente informações sobre a empresa que não estejam na descrição
- Toda a análise vai no campo "analise_markdown" como uma única string, com quebras de linha escapadas (\\n)

Retorne APENAS um objeto JSON dentro de um code fence ```json no formato:
{{"structured_data": {{"empresa": "...", "cargo": "...", "local": "...", "modalidade": "Presencial", "tipo_vaga": "Estágio", "requisitos_obrigatorios": [], "requisitos_desejaveis": [], "responsabilidades": [], "beneficios": [], "salario": null, "idioma_vaga": "pt", "requisitos_score": 4.0, "fit": 3.5}}, "analise_markdown": "# Análise da Vaga..."}}
""".strip()
    return [
        ChatMessage(role="system", content=ANALYSIS_SYSTEM_PROMPT),
        ChatMessage(role="user", content=user),
    ]
