from __future__ import annotations

import logging
from typing import Any, Sequence

import httpx
from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI, OpenAIError

from cvforge.ai.config import ProviderConnection, ProviderKind
from cvforge.ai.types import ChatMessage, ModelInfo
from cvforge.core.config import settings
from cvforge.core.errors import ProviderTransportFailure

logger = logging.getLogger(__name__)

OPENROUTER_HEADERS = {
    "HTTP-Referer": "http://localhost",
    "X-Title": "CVForge",
}


def _as_messages(prompt: str | Sequence[ChatMessage]) -> list[dict[str, str]]:
    if isinstance(prompt, str):
        return [{"role": "user", "content": prompt}]
    return [{"role": m.role, "content": m.content} for m in prompt]


def _model_items(payload: Any) -> list[Any]:
    if isinstance(payload, list):
        return payload
    if not isinstance(payload, dict):
        return []
    data = payload.get("data")
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get("models"), list):
        return data["models"]
    models = payload.get("models")
    if isinstance(models, list):
        return models
    return []


def _as_created(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def normalize_models_payload(payload: Any, *, gpt_first: bool = True) -> list[ModelInfo]:
    models: list[ModelInfo] = []
    for index, item in enumerate(_model_items(payload)):
        if not isinstance(item, dict):
            continue
        model_id = item.get("id") or item.get("name") or f"model-{index}"
        created = item.get("created")
        if created is None:
            created = item.get("created_at")
        owner = item.get("owned_by") or item.get("organization") or item.get("provider") or "unknown"
        models.append(
            ModelInfo(id=str(model_id), created=_as_created(created), owned_by=str(owner))
        )

    if gpt_first:
        models.sort(key=lambda m: ("gpt" not in m.id.lower(), -m.created))
    else:
        models.sort(key=lambda m: -m.created)
    return models


class OpenAIProvider:
    """OpenAI-compatible `/chat/completions` dialect (OpenAI, OpenRouter, local gateways)."""

    def __init__(
        self,
        connection: ProviderConnection,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout_s: float | None = None,
        max_retries: int | None = None,
        temperature: float = 0.2,
    ):
        self._connection = connection
        self._temperature = temperature
        self._http_client = http_client
        self._timeout_s = timeout_s if timeout_s is not None else settings.provider_timeout_s
        self._headers = dict(OPENROUTER_HEADERS) if connection.kind == ProviderKind.OPENROUTER else {}

        client_kwargs: dict[str, Any] = {
            "api_key": connection.api_key,
            "base_url": connection.base_url,
            "max_retries": settings.provider_max_retries if max_retries is None else max_retries,
            "default_headers": self._headers or None,
            "timeout": self.timeout,
        }
        if http_client is not None:
            client_kwargs["http_client"] = http_client
        self._client = AsyncOpenAI(**client_kwargs)

    @property
    def timeout(self) -> httpx.Timeout:
        # Timeout(None) disables every phase; the SDK and httpx defaults would cap calls.
        return httpx.Timeout(self._timeout_s)

    @property
    def kind(self) -> ProviderKind:
        return self._connection.kind

    async def send_chat_prompt(
        self, prompt: str | Sequence[ChatMessage], *, max_tokens: int | None = None
    ) -> str:
        create_kwargs: dict[str, Any] = {
            "model": self._connection.model,
            "messages": _as_messages(prompt),
            "temperature": self._temperature,
        }
        if max_tokens is not None:
            create_kwargs["max_tokens"] = max_tokens

        try:
            completion = await self._client.chat.completions.create(**create_kwargs)
        except APIStatusError as exc:
            logger.warning(
                "provider_chat_http_error kind=%s status=%s", self.kind.value, exc.status_code
            )
            raise ProviderTransportFailure(
                f"Provider returned HTTP {exc.status_code}.", status_code=exc.status_code
            ) from exc
        except APITimeoutError as exc:
            logger.warning(
                "provider_chat_timeout kind=%s timeout_s=%s", self.kind.value, self._timeout_s
            )
            raise ProviderTransportFailure("Provider timed out.", code="provider_timeout") from exc
        except APIConnectionError as exc:
            logger.warning("provider_chat_unreachable kind=%s", self.kind.value)
            raise ProviderTransportFailure("Provider is unreachable.") from exc
        except OpenAIError as exc:
            raise ProviderTransportFailure(f"Provider call failed: {exc}") from exc

        if not completion.choices:
            raise ProviderTransportFailure("Provider returned no choices.")
        content = completion.choices[0].message.content or ""
        logger.info(
            "provider_chat_ok kind=%s prompt_chars=%s response_chars=%s",
            self.kind.value,
            sum(len(m["content"]) for m in create_kwargs["messages"]),
            len(content),
        )
        return content

    async def list_models(self) -> list[ModelInfo]:
        headers = {"Authorization": f"Bearer {self._connection.api_key}", **self._headers}
        url = f"{self._connection.base_url}/models"
        try:
            if self._http_client is not None:
                resp = await self._http_client.get(url, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await client.get(url, headers=headers)
        except httpx.TimeoutException as exc:
            raise ProviderTransportFailure("Provider timed out.", code="provider_timeout") from exc
        except httpx.HTTPError as exc:
            raise ProviderTransportFailure("Provider is unreachable.") from exc

        if resp.status_code >= 400:
            raise ProviderTransportFailure(
                f"Provider returned HTTP {resp.status_code}.", status_code=resp.status_code
            )
        try:
            payload = resp.json()
        except ValueError as exc:
            raise ProviderTransportFailure("Provider returned an invalid models payload.") from exc

        models = normalize_models_payload(
            payload, gpt_first=self.kind != ProviderKind.OPENROUTER
        )
        if not models:
            raise ProviderTransportFailure("Provider returned no models.")
        return models

    async def aclose(self) -> None:
        if self._http_client is None:
            await self._client.close()
