from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from fastapi import Depends

from cvforge.ai.config import ProviderConnection
from cvforge.ai.factory import get_ai_client
from cvforge.ai.types import LLMProvider
from cvforge.core.credentials import load_provider_connection
from cvforge.core.errors import PipelineError
from cvforge.core.store import LocalStore, get_device_store, get_store
from cvforge.services.ingestion_runner import IngestionRunner, get_ingestion_runner

from .errors import raise_http_error

ProviderFactory = Callable[[ProviderConnection], LLMProvider]


def store_dep() -> LocalStore:
    return get_store()


def device_store_dep() -> LocalStore:
    return get_device_store()


def provider_factory_dep() -> ProviderFactory:
    return get_ai_client


def ingestion_runner_dep() -> IngestionRunner:
    return get_ingestion_runner()


def connection_dep(
    store: LocalStore = Depends(store_dep),
    device_store: LocalStore = Depends(device_store_dep),
) -> ProviderConnection:
    try:
        return load_provider_connection(store, device_store)
    except PipelineError as exc:
        raise_http_error(exc)


@asynccontextmanager
async def open_provider(
    factory: ProviderFactory, connection: ProviderConnection
) -> AsyncIterator[LLMProvider]:
    provider = factory(connection)
    try:
        yield provider
    finally:
        await provider.aclose()
