from fastapi import APIRouter, Depends, Header, Query, Request

from cvforge.ai.config import ProviderConnection
from cvforge.api.deps import ProviderFactory, device_store_dep, open_provider, provider_factory_dep, store_dep
from cvforge.api.errors import raise_http_error
from cvforge.core.credentials import load_provider_connection
from cvforge.core.errors import MissingConfiguration, PipelineError
from cvforge.core.rate_limit import rate_limit
from cvforge.core.store import LocalStore
from cvforge.schemas.api import ModelOut, ModelsResponse, ModelTestRequest, ModelTestResponse

router = APIRouter()

TEST_PROMPT = "Reply with the single word OK."


def _resolve_connection(
    store: LocalStore,
    device_store: LocalStore,
    *,
    base_url: str | None,
    model: str | None,
    api_key: str | None,
) -> ProviderConnection:
    """Explicit values win; anything missing comes from the stored configuration."""
    stored: ProviderConnection | None = None
    if not (base_url and api_key and model):
        try:
            stored = load_provider_connection(store, device_store)
        except MissingConfiguration:
            if not api_key:
                raise
    key = api_key or (stored.api_key if stored else "")
    if not key:
        raise MissingConfiguration("An API key is required.")
    return ProviderConnection.build(
        base_url or (stored.base_url if stored else None),
        model or (stored.model if stored else ""),
        key,
    )


@router.get("/models", response_model=ModelsResponse)
@rate_limit(scope=None)
async def list_models(
    request: Request,
    base_url: str | None = Query(default=None, alias="baseURL"),
    x_api_key: str | None = Header(default=None),
    store: LocalStore = Depends(store_dep),
    device_store: LocalStore = Depends(device_store_dep),
    factory: ProviderFactory = Depends(provider_factory_dep),
):
    _ = request
    try:
        connection = _resolve_connection(
            store, device_store, base_url=base_url, model=None, api_key=x_api_key
        )
        async with open_provider(factory, connection) as provider:
            models = await provider.list_models()
    except PipelineError as exc:
        raise_http_error(exc)
    return ModelsResponse(models=[ModelOut(**m.to_payload()) for m in models])


@router.post("/models/test", response_model=ModelTestResponse)
@rate_limit(scope=None)
async def test_model(
    request: Request,
    payload: ModelTestRequest,
    store: LocalStore = Depends(store_dep),
    device_store: LocalStore = Depends(device_store_dep),
    factory: ProviderFactory = Depends(provider_factory_dep),
):
    _ = request
    try:
        connection = _resolve_connection(
            store,
            device_store,
            base_url=payload.base_url,
            model=payload.model,
            api_key=payload.api_key,
        )
        async with open_provider(factory, connection) as provider:
            reply = await provider.send_chat_prompt(TEST_PROMPT, max_tokens=5)
    except PipelineError as exc:
        raise_http_error(exc)
    return ModelTestResponse(ok=True, provider=connection.kind.value, reply=reply.strip())
