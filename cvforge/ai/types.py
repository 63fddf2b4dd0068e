from dataclasses import dataclass
from typing import Literal, Protocol, Sequence


Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    role: Role
    content: str


@dataclass(frozen=True)
class ModelInfo:
    id: str
    created: int
    owned_by: str

    def to_payload(self) -> dict:
        return {"id": self.id, "created": self.created, "owned_by": self.owned_by}


class LLMProvider(Protocol):
    async def list_models(self) -> list[ModelInfo]: ...

    async def send_chat_prompt(
        self, prompt: str | Sequence[ChatMessage], *, max_tokens: int | None = None
    ) -> str: ...

    async def aclose(self) -> None: ...
