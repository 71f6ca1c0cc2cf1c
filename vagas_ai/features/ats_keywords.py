from __future__ import annotations

import re
from collections import Counter
from functools import lru_cache

from vagas_ai.core.config.ats import get_ats_list
from vagas_ai.schemas.ats import ATSKeywords
from vagas_ai.schemas.job import StructuredJobData

MAX_TECHNICAL_TERMS = 10
MAX_REQUIRED_SKILLS = 7
MAX_ACTION_VERBS = 5
MAX_CERTIFICATIONS = 5
MAX_EXACT_PHRASES = 5
MAX_ACRONYMS = 8
MIN_TECHNICAL_FREQUENCY = 2

_TOKEN_STRIP = "\"'“”‘’,;:!?()[]{}<>"
_ISO_RE = re.compile(r"\bISO[\s/-]?\d{3,5}(?::\d{4})?\b")
_NR_RE = re.compile(r"\bNR[-\s]?\d{1,2}\b")
_CODE_RE = re.compile(r"\b[A-Z]{2,5}-?\d{2,4}\b")
_CERT_PHRASE_RE = re.compile(
    r"(?i:certifica[çc][ãa]o|certificado|certification|certified)[ \t]+"
    r"(?:(?i:em|in|de|of)[ \t]+)?"
    r"([A-Z0-9][\w+#.-]*(?:[ \t]+[A-Z0-9][\w+#.-]*){0,3})"
)
_QUOTED_RE = re.compile(r"[\"“]([^\"”\n]{2,80})[\"”]")
_TITLE_CASE_RE = re.compile(
    r"\b[A-ZÀ-ÖØ-Þ][a-zß-öø-ÿ]+(?:[ \t]+[A-ZÀ-ÖØ-Þ][a-zß-öø-ÿ]+)+"
)
_ACRONYM_RE = re.compile(r"\b[A-Z]{2,5}\b")


def _clean_token(token: str) -> str:
    return token.strip(_TOKEN_STRIP).rstrip(".")


def _dedupe(values: list[str], key=lambda value: value.lower()) -> list[str]:
    seen: set[str] = set()
    output: list[str] = []
    for value in values:
        marker = key(value)
        if not marker or marker in seen:
            continue
        seen.add(marker)
        output.append(value)
    return output


@lru_cache(maxsize=1)
def _technical_substrings() -> tuple[str, ...]:
    return tuple(item.lower() for item in get_ats_list("technical_substrings"))


@lru_cache(maxsize=1)
def _action_verbs() -> frozenset[str]:
    verbs = get_ats_list("action_verbs.pt") + get_ats_list("action_verbs.en")
    return frozenset(verb.lower() for verb in verbs)


@lru_cache(maxsize=1)
def _known_tools() -> tuple[str, ...]:
    return tuple(tool.lower() for tool in get_ats_list("known_tools"))


@lru_cache(maxsize=1)
def _standards_re() -> re.Pattern[str] | None:
    names = [name for name in get_ats_list("safety_standards") if name.upper() != "ISO"]
    if not names:
        return None
    return re.compile(r"\b(?:" + "|".join(re.escape(name) for name in names) + r")\b")


@lru_cache(maxsize=1)
def _acronym_false_positives() -> frozenset[str]:
    return frozenset(item.upper() for item in get_ats_list("acronym_false_positives"))


@lru_cache(maxsize=1)
def _unspecified_placeholders() -> frozenset[str]:
    return frozenset(item.lower() for item in get_ats_list("unspecified_placeholders"))


def looks_technical(token: str) -> bool:
    if any(char.isdigit() or char.isupper() for char in token):
        return True
    if "-" in token or "." in token:
        return True
    lowered = token.lower()
    return any(marker in lowered for marker in _technical_substrings())


def _requirement_lines(job: StructuredJobData) -> list[str]:
    return [*job.requisitos_obrigatorios, *job.requisitos_desejaveis, *job.responsabilidades]


def _source_text(job: StructuredJobData) -> str:
    return "\n".join([job.cargo, *_requirement_lines(job)])


def extract_technical_terms(job: StructuredJobData) -> list[str]:
    counts: Counter[str] = Counter()
    display: dict[str, str] = {}
    for raw in " ".join([job.cargo, *_requirement_lines(job)]).split():
        token = _clean_token(raw)
        if len(token) < 2:
            continue
        key = token.lower()
        counts[key] += 1
        display.setdefault(key, token)

    # Counter preserves first-seen order, sorted() is stable on ties.
    candidates = [
        key
        for key, count in counts.items()
        if count >= MIN_TECHNICAL_FREQUENCY and looks_technical(display[key])
    ]
    candidates = sorted(candidates, key=lambda key: -counts[key])
    return [display[key] for key in candidates[:MAX_TECHNICAL_TERMS]]


def extract_required_skills(job: StructuredJobData) -> list[str]:
    placeholders = _unspecified_placeholders()
    skills = [
        item for item in job.requisitos_obrigatorios if item.strip().lower() not in placeholders
    ]
    return skills[:MAX_REQUIRED_SKILLS]


def extract_action_verbs(job: StructuredJobData) -> list[str]:
    verbs = _action_verbs()
    found: list[str] = []
    seen: set[str] = set()
    for line in job.responsabilidades:
        for raw in line.split():
            word = _clean_token(raw).lower()
            if word in verbs and word not in seen:
                seen.add(word)
                found.append(word)
                if len(found) >= MAX_ACTION_VERBS:
                    return found
    return found


def extract_certifications(job: StructuredJobData) -> list[str]:
    text = _source_text(job)
    hits: list[tuple[int, str]] = []
    patterns = [_ISO_RE, _NR_RE, _CODE_RE]
    standards = _standards_re()
    if standards is not None:
        patterns.append(standards)
    for pattern in patterns:
        hits.extend((match.start(), match.group(0)) for match in pattern.finditer(text))
    hits.extend((match.start(1), match.group(1).strip()) for match in _CERT_PHRASE_RE.finditer(text))

    ordered = [value for _, value in sorted(hits, key=lambda hit: hit[0])]
    unique = _dedupe(ordered, key=lambda value: re.sub(r"[\s/-]", "", value).upper())
    return unique[:MAX_CERTIFICATIONS]


def extract_exact_phrases(job: StructuredJobData) -> list[str]:
    text = _source_text(job)
    lowered = text.lower()
    phrases: list[str] = []

    phrases.extend(match.group(1).strip() for match in _QUOTED_RE.finditer(text))
    phrases.extend(match.group(0).strip() for match in _TITLE_CASE_RE.finditer(text))

    for tool in _known_tools():
        index = lowered.find(tool)
        if index == -1:
            continue
        original = text[index : index + len(tool)]
        phrases.append(original if original.lower() == tool else tool)

    return _dedupe(phrases)[:MAX_EXACT_PHRASES]


def extract_acronyms(job: StructuredJobData) -> list[str]:
    excluded = _acronym_false_positives()
    found = [
        match.group(0)
        for match in _ACRONYM_RE.finditer(_source_text(job))
        if match.group(0) not in excluded
    ]
    return _dedupe(found, key=lambda value: value)[:MAX_ACRONYMS]


def extract_keywords(job: StructuredJobData) -> ATSKeywords:
    """Derive the six ATS keyword categories from one job. Pure and deterministic."""
    return ATSKeywords(
        technical_terms=extract_technical_terms(job),
        required_skills=extract_required_skills(job),
        action_verbs=extract_action_verbs(job),
        certifications=extract_certifications(job),
        exact_phrases=extract_exact_phrases(job),
        acronyms=extract_acronyms(job),
    )
