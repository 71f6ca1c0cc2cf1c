import asyncio
import json
import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from vagas_ai.ai.config import AIConfig, GenerationConfig
from vagas_ai.ai.types import TransportResponse
from vagas_ai.core.errors import AITimeoutError, ExtractionError, FabricationError, SchemaValidationError
from vagas_ai.schemas.job import StructuredJobData, TokenUsage
from vagas_ai.schemas.profile import UserProfile
from vagas_ai.schemas.resume import SkillBankEntry
from vagas_ai.services.cv_templates import get_cv_template
from vagas_ai.services.resume_generator import generate_tailored_resume

JOB = StructuredJobData.model_validate(
    {
        "empresa": "Acme Química",
        "cargo": "Estagiário de Dados",
        "local": "Santos, SP",
        "modalidade": "Híbrido",
        "tipo_vaga": "Estágio",
        "requisitos_obrigatorios": ["Python", "SQL", "Power BI"],
        "responsabilidades": ["Desenvolver dashboards em Power BI", "Analisar indicadores com SQL"],
        "idioma_vaga": "pt",
    }
)
CONFIG = AIConfig(
    provider="openai",
    models=("primary",),
    generation=GenerationConfig(temperature=0.1, max_tokens=2048, top_p=0.95),
    resume_temperature=0.3,
    timeout_ms=5000,
)


def _default_replies(language="pt"):
    cv = get_cv_template(language)
    return {
        "summary": {"summary": "Estudante de Engenharia Química com Python, SQL e Power BI."},
        "skills": {"skills": [group.model_dump() for group in reversed(cv.skills)]},
        "projects": {
            "projects": [
                {"title": project.title, "description": ["Descrição reescrita com foco em dados."]}
                for project in cv.projects
            ]
        },
    }


class SectionTransport:
    """Answers each personalization prompt with a canned section payload."""

    def __init__(self, replies, raw=None):
        self.replies = replies
        self.raw = raw or {}
        self.requests = []

    async def complete(self, request):
        self.requests.append(request)
        prompt = request.messages[-1].content
        if prompt.startswith("REORDER ONLY"):
            section = "skills"
        elif prompt.startswith("KEEP TITLES"):
            section = "projects"
        else:
            section = "summary"
        text = self.raw.get(section)
        if text is None:
            text = "```json\n" + json.dumps(self.replies[section], ensure_ascii=False) + "\n```"
        return TransportResponse(
            text=text,
            usage=TokenUsage(input_tokens=100, output_tokens=50, total_tokens=150),
        )


class SlowSiblingTransport(SectionTransport):
    """Fails the skills call at once while the other sections take a while."""

    def __init__(self, replies, delay=0.2):
        super().__init__(replies, raw={"skills": "no json"})
        self.delay = delay
        self.started = []
        self.finished = []
        self.cancelled = []

    async def complete(self, request):
        prompt = request.messages[-1].content
        if not prompt.startswith("REORDER ONLY"):
            self.started.append(prompt[:12])
            try:
                await asyncio.sleep(self.delay)
            except asyncio.CancelledError:
                self.cancelled.append(prompt[:12])
                raise
            self.finished.append(prompt[:12])
        return await super().complete(request)


class GenerateTailoredResumeTests(unittest.IsolatedAsyncioTestCase):
    async def test_merges_sections_and_scores(self):
        transport = SectionTransport(_default_replies())
        result = await generate_tailored_resume(JOB, "pt", transport, config=CONFIG)

        template = get_cv_template("pt")
        self.assertEqual(result.cv.summary, "Estudante de Engenharia Química com Python, SQL e Power BI.")
        self.assertEqual(result.cv.skills[0].category, template.skills[-1].category)
        self.assertEqual(result.cv.header, template.header)
        self.assertEqual(result.cv.education, template.education)
        self.assertEqual(result.token_usage.total_tokens, 450)
        self.assertEqual(result.model, "primary")
        self.assertEqual(result.personalized_sections, ["summary", "skills", "projects"])
        self.assertGreater(result.ats.score, 0)
        self.assertEqual(len(transport.requests), 3)
        self.assertTrue(all(request.temperature == 0.3 for request in transport.requests))

    async def test_template_is_not_mutated(self):
        transport = SectionTransport(_default_replies())
        await generate_tailored_resume(JOB, "pt", transport, config=CONFIG)
        self.assertNotEqual(get_cv_template("pt").summary, _default_replies()["summary"]["summary"])

    async def test_english_template(self):
        transport = SectionTransport(_default_replies("en"))
        result = await generate_tailored_resume(JOB, "en", transport, config=CONFIG)
        self.assertEqual(result.cv.language, "en")
        self.assertIsNotNone(result.ats.interpretation)

    async def test_fabricated_skill_fails_whole_attempt(self):
        replies = _default_replies()
        replies["skills"]["skills"][0]["items"].append("Kubernetes")
        with self.assertRaises(FabricationError) as ctx:
            await generate_tailored_resume(JOB, "pt", SectionTransport(replies), config=CONFIG)
        self.assertEqual(ctx.exception.offending_items, ["Kubernetes"])

    async def test_skill_bank_entries_are_allowed(self):
        replies = _default_replies()
        replies["skills"]["skills"][0]["items"].append("Docker (Intermediário)")
        bank = [SkillBankEntry(skill="Docker", proficiency="Intermediário", category="DevOps")]
        result = await generate_tailored_resume(
            JOB, "pt", SectionTransport(replies), config=CONFIG, skill_bank=bank
        )
        self.assertIn("Docker (Intermediário)", result.cv.skills[0].items)

    async def test_changed_project_title_fails(self):
        replies = _default_replies()
        replies["projects"]["projects"][0]["title"] += " - atualizado"
        with self.assertRaises(FabricationError):
            await generate_tailored_resume(JOB, "pt", SectionTransport(replies), config=CONFIG)

    async def test_section_schema_failure(self):
        replies = _default_replies()
        replies["summary"] = {"resumo": "campo errado"}
        with self.assertRaises(SchemaValidationError) as ctx:
            await generate_tailored_resume(JOB, "pt", SectionTransport(replies), config=CONFIG)
        self.assertEqual(ctx.exception.fields, ["summary"])

    async def test_section_extraction_failure(self):
        transport = SectionTransport(_default_replies(), raw={"projects": "sem json"})
        with self.assertRaises(ExtractionError):
            await generate_tailored_resume(JOB, "pt", transport, config=CONFIG)

    async def test_failed_section_cancels_running_siblings(self):
        transport = SlowSiblingTransport(_default_replies())
        with self.assertRaises(ExtractionError):
            await generate_tailored_resume(JOB, "pt", transport, config=CONFIG)

        self.assertEqual(len(transport.started), 2)
        self.assertEqual(sorted(transport.cancelled), sorted(transport.started))
        self.assertEqual(transport.finished, [])
        await asyncio.sleep(transport.delay + 0.05)
        self.assertEqual(transport.finished, [])

    async def test_timeout_cancels_every_section(self):
        transport = SlowSiblingTransport(_default_replies(), delay=1.0)
        transport.raw = {}
        config = AIConfig(
            provider=CONFIG.provider,
            models=CONFIG.models,
            generation=CONFIG.generation,
            resume_temperature=CONFIG.resume_temperature,
            timeout_ms=50,
        )
        with self.assertRaises(AITimeoutError):
            await generate_tailored_resume(JOB, "pt", transport, config=config)
        self.assertEqual(sorted(transport.cancelled), sorted(transport.started))
        self.assertEqual(transport.finished, [])

    async def test_profile_reaches_summary_prompt(self):
        transport = SectionTransport(_default_replies())
        profile = UserProfile(goals="Atuar com engenharia de dados")
        await generate_tailored_resume(JOB, "pt", transport, config=CONFIG, profile=profile)
        summary_prompts = [
            request.messages[-1].content
            for request in transport.requests
            if "ORIGINAL SUMMARY" in request.messages[-1].content
        ]
        self.assertEqual(len(summary_prompts), 1)
        self.assertIn("Atuar com engenharia de dados", summary_prompts[0])

    async def test_summary_mentions_check_opt_in(self):
        replies = _default_replies()
        replies["summary"] = {"summary": "Especialista em Kubernetes e Tableau."}
        result = await generate_tailored_resume(JOB, "pt", SectionTransport(replies), config=CONFIG)
        self.assertEqual(result.cv.summary, "Especialista em Kubernetes e Tableau.")
        with self.assertRaises(FabricationError):
            await generate_tailored_resume(
                JOB, "pt", SectionTransport(replies), config=CONFIG, check_summary=True
            )

    async def test_unknown_language(self):
        with self.assertRaises(ValueError):
            await generate_tailored_resume(JOB, "de", SectionTransport({}), config=CONFIG)


if __name__ == "__main__":
    unittest.main()
