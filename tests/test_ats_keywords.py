import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from vagas_ai.features.ats_keywords import (
    MAX_REQUIRED_SKILLS,
    extract_acronyms,
    extract_action_verbs,
    extract_certifications,
    extract_exact_phrases,
    extract_keywords,
    extract_required_skills,
    extract_technical_terms,
    looks_technical,
)
from vagas_ai.schemas.job import StructuredJobData


def _job(**overrides) -> StructuredJobData:
    payload = {
        "empresa": "Acme",
        "cargo": "Analista de Dados Python",
        "local": "Santos, SP",
        "modalidade": "Remoto",
        "tipo_vaga": "Júnior",
        "requisitos_obrigatorios": ["Python e SQL", "Power BI", "Certificação PMP", "Excel avançado"],
        "requisitos_desejaveis": ["Conhecimento em ISO 9001"],
        "responsabilidades": [
            "Desenvolver dashboards em Power BI",
            "Analisar dados com Python e SQL",
            "Garantir a qualidade dos dados",
        ],
        "idioma_vaga": "pt",
    }
    payload.update(overrides)
    return StructuredJobData.model_validate(payload)


class KeywordExtractorTests(unittest.TestCase):
    def test_technical_terms_ranked_by_frequency(self):
        self.assertEqual(extract_technical_terms(_job()), ["Dados", "Python", "SQL", "Power", "BI"])

    def test_technical_terms_need_two_occurrences(self):
        job = _job(
            cargo="Analista",
            requisitos_obrigatorios=["Docker"],
            requisitos_desejaveis=[],
            responsabilidades=["Cuidar da rotina"],
        )
        self.assertEqual(extract_technical_terms(job), [])

    def test_looks_technical(self):
        self.assertTrue(looks_technical("ISO9001"))
        self.assertTrue(looks_technical("node.js"))
        self.assertTrue(looks_technical("awscli"))
        self.assertFalse(looks_technical("rotina"))

    def test_required_skills_skip_placeholders_and_cap(self):
        job = _job(requisitos_obrigatorios=["Não especificado", *[f"Skill {i}" for i in range(10)]])
        skills = extract_required_skills(job)
        self.assertEqual(len(skills), MAX_REQUIRED_SKILLS)
        self.assertNotIn("Não especificado", skills)
        self.assertEqual(skills[0], "Skill 0")

    def test_action_verbs_in_first_seen_order(self):
        self.assertEqual(extract_action_verbs(_job()), ["desenvolver", "analisar", "garantir"])

    def test_action_verbs_english(self):
        job = _job(responsabilidades=["Build data pipelines", "Monitor KPIs and build reports", "Lead reviews"])
        self.assertEqual(extract_action_verbs(job), ["build", "monitor", "lead"])

    def test_certifications_deduplicated_by_position(self):
        self.assertEqual(extract_certifications(_job()), ["PMP", "ISO 9001"])

    def test_certifications_nr_and_codes(self):
        job = _job(requisitos_obrigatorios=["NR-10 e NR 35", "Certificado AWS-123"], requisitos_desejaveis=[])
        self.assertEqual(extract_certifications(job), ["NR-10", "NR 35", "AWS-123"])

    def test_exact_phrases(self):
        self.assertEqual(extract_exact_phrases(_job()), ["Dados Python", "Power BI", "Excel avançado"])

    def test_quoted_phrases_come_first(self):
        job = _job(responsabilidades=['Atuar com "gestão de estoque" diariamente'])
        self.assertEqual(extract_exact_phrases(job)[0], "gestão de estoque")

    def test_acronyms_are_case_sensitive_and_filtered(self):
        self.assertEqual(extract_acronyms(_job()), ["SQL", "BI", "PMP", "ISO"])
        job = _job(requisitos_obrigatorios=["Atuar em SP via CLT com AWS"], requisitos_desejaveis=[])
        self.assertEqual(extract_acronyms(job), ["AWS", "BI", "SQL"])

    def test_extract_keywords_is_deterministic(self):
        first = extract_keywords(_job())
        second = extract_keywords(_job())
        self.assertEqual(first, second)
        self.assertEqual(first.required_skills, ["Python e SQL", "Power BI", "Certificação PMP", "Excel avançado"])


if __name__ == "__main__":
    unittest.main()
