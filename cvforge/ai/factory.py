from cvforge.ai.config import ProviderConnection, ProviderKind
from cvforge.ai.types import LLMProvider

from cvforge.ai.providers.openai_provider import OpenAIProvider
from cvforge.ai.providers.claude_provider import ClaudeProvider


def get_ai_client(connection: ProviderConnection) -> LLMProvider:
    if connection.kind in (ProviderKind.OPENAI, ProviderKind.OPENROUTER):
        return OpenAIProvider(connection)

    if connection.kind == ProviderKind.ANTHROPIC:
        return ClaudeProvider(connection)

    raise ValueError(f"Unsupported provider kind '{connection.kind}'")
