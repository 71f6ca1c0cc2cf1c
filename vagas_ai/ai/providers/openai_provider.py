from __future__ import annotations

import os
from typing import Optional

from openai import AsyncOpenAI

from vagas_ai.ai.types import GenerationRequest, TransportResponse
from vagas_ai.schemas.job import TokenUsage


def _usage_from(response) -> TokenUsage:
    usage = getattr(response, "usage", None)
    if usage is None:
        return TokenUsage()
    prompt_tokens = int(getattr(usage, "prompt_tokens", 0) or 0)
    completion_tokens = int(getattr(usage, "completion_tokens", 0) or 0)
    total_tokens = int(getattr(usage, "total_tokens", 0) or 0) or prompt_tokens + completion_tokens
    return TokenUsage(
        input_tokens=prompt_tokens,
        output_tokens=completion_tokens,
        total_tokens=total_tokens,
    )


class OpenAIProvider:
    """Chat-completions transport for OpenAI or any compatible endpoint."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: float = 60.0,
        max_retries: int = 0,
    ):
        key = (api_key or os.getenv("OPENAI_API_KEY") or "").strip()
        if not key:
            raise RuntimeError("OPENAI_API_KEY is missing")

        # Retries stay off: quota errors must reach the fallback chain.
        self._client = AsyncOpenAI(
            api_key=key,
            base_url=(base_url or os.getenv("OPENAI_BASE_URL") or None),
            timeout=float(os.getenv("OPENAI_TIMEOUT_S", str(timeout_s))),
            max_retries=int(os.getenv("OPENAI_MAX_RETRIES", str(max_retries))),
        )

    async def complete(self, request: GenerationRequest) -> TransportResponse:
        response = await self._client.chat.completions.create(**request.to_payload())
        text = ""
        if response.choices:
            text = response.choices[0].message.content or ""
        return TransportResponse(text=text, usage=_usage_from(response))
