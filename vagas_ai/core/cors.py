from __future__ import annotations

from vagas_ai.core.config import settings


def cors_allowed_origins() -> list[str]:
    origins = [origin for origin in settings.cors_allowed_origins if origin]
    return origins or ["*"]


def cors_allow_credentials() -> bool:
    # Browsers reject credentialed requests against a wildcard origin.
    return "*" not in cors_allowed_origins()
