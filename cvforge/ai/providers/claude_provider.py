from __future__ import annotations

import logging
from typing import Any, Sequence

import httpx

from cvforge.ai.config import ANTHROPIC_VERSION, ProviderConnection
from cvforge.ai.types import ChatMessage, ModelInfo
from cvforge.core.config import settings
from cvforge.core.errors import ProviderTransportFailure

logger = logging.getLogger(__name__)

# The messages API has no listing endpoint.
KNOWN_MODELS: tuple[ModelInfo, ...] = (
    ModelInfo(id="claude-3-5-sonnet-20241022", created=1729728000, owned_by="anthropic"),
    ModelInfo(id="claude-3-5-sonnet-20240620", created=1718841600, owned_by="anthropic"),
    ModelInfo(id="claude-3-opus-20240229", created=1709251200, owned_by="anthropic"),
    ModelInfo(id="claude-3-sonnet-20240229", created=1709251200, owned_by="anthropic"),
    ModelInfo(id="claude-3-haiku-20240307", created=1709856000, owned_by="anthropic"),
)
PROBE_MODEL = "claude-3-haiku-20240307"


class ClaudeProvider:
    def __init__(
        self,
        connection: ProviderConnection,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout_s: float | None = None,
        max_tokens: int | None = None,
    ):
        self._connection = connection
        self._http_client = http_client
        self._timeout_s = timeout_s if timeout_s is not None else settings.provider_timeout_s
        self._max_tokens = max_tokens or settings.provider_max_tokens

    @property
    def timeout(self) -> httpx.Timeout:
        # Timeout(None) disables every phase; httpx would otherwise cut reads at 5 s.
        return httpx.Timeout(self._timeout_s)

    def _headers(self) -> dict[str, str]:
        return {
            "x-api-key": self._connection.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }

    async def _post_messages(self, body: dict[str, Any]) -> dict[str, Any]:
        url = f"{self._connection.base_url}/messages"
        try:
            if self._http_client is not None:
                resp = await self._http_client.post(url, headers=self._headers(), json=body)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await client.post(url, headers=self._headers(), json=body)
        except httpx.TimeoutException as exc:
            logger.warning("provider_chat_timeout kind=anthropic timeout_s=%s", self._timeout_s)
            raise ProviderTransportFailure("Provider timed out.", code="provider_timeout") from exc
        except httpx.HTTPError as exc:
            logger.warning("provider_chat_unreachable kind=anthropic")
            raise ProviderTransportFailure("Provider is unreachable.") from exc

        if resp.status_code >= 400:
            logger.warning("provider_chat_http_error kind=anthropic status=%s", resp.status_code)
            raise ProviderTransportFailure(
                f"Provider returned HTTP {resp.status_code}.", status_code=resp.status_code
            )
        try:
            data = resp.json()
        except ValueError as exc:
            raise ProviderTransportFailure("Provider returned a non-JSON response.") from exc
        if not isinstance(data, dict):
            raise ProviderTransportFailure("Provider returned an unexpected response shape.")
        return data

    async def send_chat_prompt(
        self, prompt: str | Sequence[ChatMessage], *, max_tokens: int | None = None
    ) -> str:
        system_parts: list[str] = []
        messages: list[dict[str, str]] = []
        if isinstance(prompt, str):
            messages.append({"role": "user", "content": prompt})
        else:
            for message in prompt:
                if message.role == "system":
                    system_parts.append(message.content)
                else:
                    messages.append({"role": message.role, "content": message.content})

        body: dict[str, Any] = {
            "model": self._connection.model,
            "max_tokens": max_tokens or self._max_tokens,
            "messages": messages,
        }
        if system_parts:
            body["system"] = "\n\n".join(system_parts)

        data = await self._post_messages(body)
        blocks = data.get("content") or []
        text = "".join(
            block.get("text", "")
            for block in blocks
            if isinstance(block, dict) and block.get("type") == "text"
        )
        logger.info("provider_chat_ok kind=anthropic response_chars=%s", len(text))
        return text

    async def list_models(self) -> list[ModelInfo]:
        # A one-token call validates the key before returning the catalogue.
        await self._post_messages(
            {
                "model": PROBE_MODEL,
                "max_tokens": 1,
                "messages": [{"role": "user", "content": "Hi"}],
            }
        )
        return list(KNOWN_MODELS)

    async def aclose(self) -> None:
        return None
