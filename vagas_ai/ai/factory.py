from functools import lru_cache

from vagas_ai.ai.config import load_ai_config
from vagas_ai.ai.types import TextGenerationTransport
from vagas_ai.core.config import settings

from vagas_ai.ai.providers.openai_provider import OpenAIProvider


@lru_cache(maxsize=1)
def get_transport() -> TextGenerationTransport:
    cfg = load_ai_config()

    if cfg.provider == "openai":
        return OpenAIProvider(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
        )

    raise ValueError(f"Unsupported AI_PROVIDER='{cfg.provider}'")
