from dataclasses import dataclass
from typing import Literal, Protocol


Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    role: Role
    content: str


@dataclass(frozen=True)
class JSONCompletion:
    content: str
    total_tokens: int = 0


class EmbeddingClient(Protocol):
    async def embed(self, text: str) -> list[float]: ...


class CompletionClient(Protocol):
    async def complete_json(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_output_tokens: int | None = None,
    ) -> JSONCompletion: ...
