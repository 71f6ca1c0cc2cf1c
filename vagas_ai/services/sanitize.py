from __future__ import annotations

import re

from vagas_ai.core.config import settings

REDACTION_TOKEN = "[REDACTED_INSTRUCTION]"

_MARKER_PATTERNS = (
    re.compile(r"```+"),
    re.compile(r"~~~+"),
    re.compile(r"###+"),
    re.compile(r"\[/?INST\]", re.IGNORECASE),
    re.compile(r"<\|im_(?:start|end)\|>", re.IGNORECASE),
)
_INSTRUCTION_PREFIX_RE = re.compile(
    r"(^|[^A-Za-z0-9_])(ignore|forget|skip|do not|don't|system|assistant|user):",
    re.IGNORECASE | re.MULTILINE,
)


def sanitize_job_posting(text: str, max_chars: int | None = None) -> str:
    """Cap length and neutralize markup a posting could use to steer the model."""
    limit = settings.job_description_max_chars if max_chars is None else max_chars
    sanitized = (text or "")[:limit]

    for pattern in _MARKER_PATTERNS:
        sanitized = pattern.sub(REDACTION_TOKEN, sanitized)

    sanitized = _INSTRUCTION_PREFIX_RE.sub(lambda m: m.group(1) + REDACTION_TOKEN, sanitized)
    return sanitized.strip()
