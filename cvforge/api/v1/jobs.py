from fastapi import APIRouter, Depends, Request

from cvforge.ai.config import ProviderConnection
from cvforge.api.deps import ProviderFactory, connection_dep, open_provider, provider_factory_dep
from cvforge.api.errors import raise_http_error
from cvforge.core.errors import PipelineError
from cvforge.core.rate_limit import rate_limit
from cvforge.schemas.api import JobDetailsRequest, JobImportRequest, JobImportResponse
from cvforge.schemas.job import JobDetails
from cvforge.services.job_analysis import analyze_job_details, import_job_posting

router = APIRouter()


@router.post("/jobs/import", response_model=JobImportResponse)
@rate_limit()
async def import_job(
    request: Request,
    payload: JobImportRequest,
    connection: ProviderConnection = Depends(connection_dep),
    factory: ProviderFactory = Depends(provider_factory_dep),
):
    _ = request
    try:
        async with open_provider(factory, connection) as provider:
            imported = await import_job_posting(provider, text=payload.text, url=payload.url)
    except PipelineError as exc:
        raise_http_error(exc)
    return JobImportResponse(
        description=imported.description,
        is_job_posting=imported.classification.is_match,
        confidence=imported.classification.confidence,
        heuristic=imported.classification.heuristic,
        source=imported.source,
        url=imported.url,
    )


@router.post("/jobs/details", response_model=JobDetails)
@rate_limit()
async def job_details(
    request: Request,
    payload: JobDetailsRequest,
    connection: ProviderConnection = Depends(connection_dep),
    factory: ProviderFactory = Depends(provider_factory_dep),
):
    _ = request
    try:
        async with open_provider(factory, connection) as provider:
            return await analyze_job_details(payload.text, provider)
    except PipelineError as exc:
        raise_http_error(exc)
