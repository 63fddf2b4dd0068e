from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

DEFAULT_BASE_URL = "https://api.openai.com/v1"
ANTHROPIC_VERSION = "2023-06-01"


class ProviderKind(str, Enum):
    OPENAI = "openai"
    OPENROUTER = "openrouter"
    ANTHROPIC = "anthropic"


_HOST_MARKERS: tuple[tuple[str, ProviderKind], ...] = (
    ("anthropic.com", ProviderKind.ANTHROPIC),
    ("openrouter.ai", ProviderKind.OPENROUTER),
)


def normalize_base_url(base_url: str | None) -> str:
    value = (base_url or "").strip().rstrip("/")
    return value or DEFAULT_BASE_URL


def detect_provider_kind(base_url: str) -> ProviderKind:
    lowered = base_url.lower()
    for marker, kind in _HOST_MARKERS:
        if marker in lowered:
            return kind
    return ProviderKind.OPENAI


@dataclass(frozen=True)
class ProviderConnection:
    base_url: str
    model: str
    api_key: str
    kind: ProviderKind

    @classmethod
    def build(cls, base_url: str | None, model: str, api_key: str) -> "ProviderConnection":
        url = normalize_base_url(base_url)
        return cls(
            base_url=url,
            model=(model or "").strip(),
            api_key=(api_key or "").strip(),
            kind=detect_provider_kind(url),
        )

    def __repr__(self) -> str:
        return (
            f"ProviderConnection(base_url={self.base_url!r}, model={self.model!r}, "
            f"kind={self.kind.value!r}, api_key=***)"
        )
