from fastapi import APIRouter, Depends

from cvforge.ai.config import detect_provider_kind
from cvforge.api.deps import device_store_dep, store_dep
from cvforge.api.errors import raise_http_error
from cvforge.core.credentials import credential_status, load_stored_config, save_provider_connection
from cvforge.core.errors import PipelineError
from cvforge.core.store import (
    SETTINGS_PROMPT_INSTRUCTION_PREFIX,
    SETTINGS_PROMPT_SYSTEM,
    SETTINGS_RETRY_COUNT,
    LocalStore,
)
from cvforge.schemas.api import AIConfigRequest, AIConfigResponse, PromptSettingsPayload
from cvforge.schemas.credentials import UserInfo
from cvforge.schemas.optimization import MATCH_MODES
from cvforge.services.cv_optimizer import load_prompt_settings, load_retry_count
from cvforge.services.default_prompts import DEFAULT_INSTRUCTIONS, DEFAULT_SYSTEM_PROMPT
from cvforge.services.profile import load_user_info, reset_local_data, save_user_info

router = APIRouter()


def _ai_config_response(store: LocalStore, device_store: LocalStore) -> AIConfigResponse:
    try:
        config = load_stored_config(store)
    except PipelineError:
        config = None
    return AIConfigResponse(
        base_url=config.base_url if config else None,
        model=config.model if config else None,
        provider=detect_provider_kind(config.base_url).value if config else None,
        credential_status=credential_status(store, device_store),
        retry_count=load_retry_count(store),
    )


@router.get("/settings/ai-config", response_model=AIConfigResponse)
async def get_ai_config(
    store: LocalStore = Depends(store_dep),
    device_store: LocalStore = Depends(device_store_dep),
):
    return _ai_config_response(store, device_store)


@router.put("/settings/ai-config", response_model=AIConfigResponse)
async def put_ai_config(
    payload: AIConfigRequest,
    store: LocalStore = Depends(store_dep),
    device_store: LocalStore = Depends(device_store_dep),
):
    try:
        save_provider_connection(
            store,
            device_store,
            base_url=payload.base_url,
            model=payload.model,
            api_key=payload.api_key,
            retry_count=payload.retry_count,
        )
    except PipelineError as exc:
        raise_http_error(exc)
    return _ai_config_response(store, device_store)


def _prompt_settings(store: LocalStore) -> PromptSettingsPayload:
    values = {mode: load_prompt_settings(store, mode).instruction_prompt for mode in MATCH_MODES}
    return PromptSettingsPayload(
        system_prompt=load_prompt_settings(store, "normal").system_prompt,
        retry_count=load_retry_count(store),
        **values,
    )


def _store_override(store: LocalStore, key: str, value: str | None, default: str) -> None:
    if value is None:
        return
    # Blank or default text removes the override.
    if not value.strip() or value.strip() == default.strip():
        store.delete(key)
    else:
        store.put(key, value)


@router.get("/settings/prompts", response_model=PromptSettingsPayload)
async def get_prompts(store: LocalStore = Depends(store_dep)):
    return _prompt_settings(store)


@router.put("/settings/prompts", response_model=PromptSettingsPayload)
async def put_prompts(payload: PromptSettingsPayload, store: LocalStore = Depends(store_dep)):
    _store_override(store, SETTINGS_PROMPT_SYSTEM, payload.system_prompt, DEFAULT_SYSTEM_PROMPT)
    for mode in MATCH_MODES:
        _store_override(
            store,
            f"{SETTINGS_PROMPT_INSTRUCTION_PREFIX}{mode}",
            getattr(payload, mode),
            DEFAULT_INSTRUCTIONS[mode],
        )
    if payload.retry_count is not None:
        store.put(SETTINGS_RETRY_COUNT, payload.retry_count)
    return _prompt_settings(store)


@router.delete("/settings/prompts", response_model=PromptSettingsPayload)
async def reset_prompts(store: LocalStore = Depends(store_dep)):
    store.delete(SETTINGS_PROMPT_SYSTEM)
    for mode in MATCH_MODES:
        store.delete(f"{SETTINGS_PROMPT_INSTRUCTION_PREFIX}{mode}")
    return _prompt_settings(store)


@router.get("/settings/user-info", response_model=UserInfo)
async def get_user_info(store: LocalStore = Depends(store_dep)):
    return load_user_info(store) or UserInfo()


@router.put("/settings/user-info", response_model=UserInfo)
async def put_user_info(payload: UserInfo, store: LocalStore = Depends(store_dep)):
    save_user_info(store, payload)
    return payload


@router.post("/settings/reset")
async def reset_settings(
    store: LocalStore = Depends(store_dep),
    device_store: LocalStore = Depends(device_store_dep),
):
    reset_local_data(store, device_store)
    return {"status": "ok"}
