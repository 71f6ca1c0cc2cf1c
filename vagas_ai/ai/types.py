from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Protocol, Sequence

from vagas_ai.schemas.job import TokenUsage

Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    role: Role
    content: str


@dataclass(frozen=True)
class GenerationRequest:
    model: str
    messages: Sequence[ChatMessage]
    temperature: float
    max_tokens: int
    top_p: float

    def to_payload(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [{"role": m.role, "content": m.content} for m in self.messages],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "top_p": self.top_p,
        }


@dataclass(frozen=True)
class TransportResponse:
    text: str
    usage: TokenUsage


@dataclass(frozen=True)
class ModelInvocationResult:
    text: str
    token_usage: TokenUsage
    duration_ms: int
    model: str


class TextGenerationTransport(Protocol):
    async def complete(self, request: GenerationRequest) -> TransportResponse: ...
