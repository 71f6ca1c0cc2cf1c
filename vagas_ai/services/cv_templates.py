from __future__ import annotations

from vagas_ai.schemas.resume import CVTemplate

# Header, experience and education are never sent for rewriting.
# Summary, skills (reorder only) and project descriptions are personalized.

_HEADER = {
    "name": "ANA CAROLINA SILVA",
    "email": "ana.silva@example.com",
    "phone": "+55 (11) 90000-0000",
    "location": "São Paulo/SP",
    "links": [{"label": "LinkedIn", "url": "linkedin.com/in/ana-carolina-silva"}],
}

CV_TEMPLATE_PT = CVTemplate.model_validate(
    {
        "language": "pt",
        "header": _HEADER,
        "summary": (
            "Estudante de Engenharia Química em fase de conclusão, com perfil analítico e interesse "
            "nas áreas de Qualidade, Processos e Análise de Dados. Experiência acadêmica em pesquisa, "
            "modelagem de processos e tratamento de dados, com domínio de Excel Avançado, Python e SQL "
            "para monitoramento de indicadores e elaboração de relatórios técnicos."
        ),
        "education": [
            {
                "degree": "Bacharelado em Engenharia Química",
                "institution": "Universidade Estadual",
                "period": "Previsão de conclusão: Dezembro/2026",
            }
        ],
        "skills": [
            {
                "category": "Química Analítica & Laboratório",
                "items": [
                    "Preparação de soluções e reagentes",
                    "Titulações volumétricas",
                    "Controle de amostras",
                    "Boas Práticas de Laboratório (BPL)",
                ],
            },
            {
                "category": "Linguagens & Análise de Dados",
                "items": ["Python (Pandas, NumPy, Scikit-learn)", "SQL", "R", "VBA"],
            },
            {"category": "Ferramentas de Engenharia", "items": ["Aspen Plus", "Avogadro"]},
            {
                "category": "Visualização & BI",
                "items": [
                    "Power BI (dashboards, KPI tracking)",
                    "Excel Avançado (Tabelas Dinâmicas, Macros, Power Query)",
                ],
            },
            {
                "category": "Soft Skills",
                "items": ["Relatórios técnicos", "Comunicação técnica", "Controle de não-conformidades"],
            },
        ],
        "projects": [
            {
                "title": "Pipeline Automatizado de Dados Termodinâmicos para Machine Learning (2023-2025)",
                "description": [
                    "Desenvolvimento de pipeline em Python para automação da geração e controle de dados, "
                    "com treinamento de modelos e elaboração de relatórios analíticos."
                ],
            },
            {
                "title": "Modelagem do Equilíbrio Líquido-Vapor para Produção de Biodiesel (2022-2023)",
                "description": [
                    "Simulação de processos no Aspen Plus e análise da eficiência de separação "
                    "com documentação técnica dos resultados."
                ],
            },
        ],
        "languages": [
            {"language": "Português", "proficiency": "Nativo"},
            {"language": "Inglês", "proficiency": "Avançado"},
        ],
    }
)

CV_TEMPLATE_EN = CVTemplate.model_validate(
    {
        "language": "en",
        "header": _HEADER,
        "summary": (
            "Chemical Engineering student in the final year, with an analytical profile and interest "
            "in Quality, Process and Data Analysis roles. Academic experience in research, process "
            "modeling and data handling, proficient in Advanced Excel, Python and SQL for KPI "
            "monitoring and technical reporting."
        ),
        "education": [
            {
                "degree": "Bachelor's Degree in Chemical Engineering",
                "institution": "State University",
                "period": "Expected graduation: December 2026",
            }
        ],
        "skills": [
            {
                "category": "Analytical Chemistry & Laboratory",
                "items": [
                    "Solution and reagent preparation",
                    "Volumetric titrations",
                    "Sample control",
                    "Good Laboratory Practices (GLP)",
                ],
            },
            {
                "category": "Programming & Data Analysis",
                "items": ["Python (Pandas, NumPy, Scikit-learn)", "SQL", "R", "VBA"],
            },
            {"category": "Engineering Tools", "items": ["Aspen Plus", "Avogadro"]},
            {
                "category": "Visualization & BI",
                "items": [
                    "Power BI (dashboards, KPI tracking)",
                    "Advanced Excel (Pivot Tables, Macros, Power Query)",
                ],
            },
            {
                "category": "Soft Skills",
                "items": ["Technical reporting", "Technical communication", "Non-conformity control"],
            },
        ],
        "projects": [
            {
                "title": "Automated Thermodynamic Data Pipeline for Machine Learning (2023-2025)",
                "description": [
                    "Built a Python pipeline automating data generation and quality control, "
                    "feeding model training and analytical reports."
                ],
            },
            {
                "title": "Vapor-Liquid Equilibrium Modeling for Biodiesel Production (2022-2023)",
                "description": [
                    "Simulated separation processes in Aspen Plus and documented efficiency analyses."
                ],
            },
        ],
        "languages": [
            {"language": "Portuguese", "proficiency": "Native"},
            {"language": "English", "proficiency": "Advanced"},
        ],
    }
)

_TEMPLATES = {"pt": CV_TEMPLATE_PT, "en": CV_TEMPLATE_EN}


def get_cv_template(language: str) -> CVTemplate:
    try:
        return _TEMPLATES[language].model_copy(deep=True)
    except KeyError:
        raise ValueError(f"Unsupported resume language '{language}'") from None
