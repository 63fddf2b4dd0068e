from fastapi import APIRouter, Depends, HTTPException, Request, status

from cvforge.ai.config import ProviderConnection
from cvforge.api.deps import ProviderFactory, connection_dep, open_provider, provider_factory_dep, store_dep
from cvforge.api.errors import raise_http_error
from cvforge.core.errors import PipelineError
from cvforge.core.rate_limit import rate_limit
from cvforge.core.store import LocalStore
from cvforge.schemas.api import OptimizationRequest, StatusUpdateRequest
from cvforge.schemas.optimization import OptimizedCVRecord
from cvforge.services.optimization_service import (
    RecordNotFound,
    delete_optimization,
    get_optimization,
    list_optimizations,
    run_optimization,
    update_optimization_status,
)

router = APIRouter()


def _not_found(record_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Optimization '{record_id}' not found.",
    )


@router.post("/optimizations", response_model=OptimizedCVRecord, status_code=status.HTTP_201_CREATED)
@rate_limit()
async def create_optimization(
    request: Request,
    payload: OptimizationRequest,
    store: LocalStore = Depends(store_dep),
    connection: ProviderConnection = Depends(connection_dep),
    factory: ProviderFactory = Depends(provider_factory_dep),
):
    _ = request
    try:
        async with open_provider(factory, connection) as provider:
            return await run_optimization(
                provider,
                store,
                job_description=payload.job_description,
                mode=payload.mode,
                language=payload.language,
                job_url=payload.job_url,
                job_details=payload.job_details,
                retry_count=payload.retry_count,
            )
    except PipelineError as exc:
        raise_http_error(exc)


@router.get("/optimizations", response_model=list[OptimizedCVRecord])
async def get_optimizations(store: LocalStore = Depends(store_dep)):
    return list_optimizations(store)


@router.get("/optimizations/{record_id}", response_model=OptimizedCVRecord)
async def get_optimization_record(record_id: str, store: LocalStore = Depends(store_dep)):
    try:
        return get_optimization(store, record_id)
    except RecordNotFound as exc:
        raise _not_found(record_id) from exc


@router.patch("/optimizations/{record_id}/status", response_model=OptimizedCVRecord)
async def patch_optimization_status(
    record_id: str,
    payload: StatusUpdateRequest,
    store: LocalStore = Depends(store_dep),
):
    try:
        return update_optimization_status(store, record_id, payload.status)
    except RecordNotFound as exc:
        raise _not_found(record_id) from exc


@router.delete("/optimizations/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_optimization(record_id: str, store: LocalStore = Depends(store_dep)):
    try:
        delete_optimization(store, record_id)
    except RecordNotFound as exc:
        raise _not_found(record_id) from exc
