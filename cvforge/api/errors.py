from __future__ import annotations

from typing import Any, NoReturn

from fastapi import HTTPException, status

from cvforge.core.errors import PipelineError, ProviderTransportFailure
from cvforge.services.ingestion_runner import AnalysisInProgress

_SOURCE_STATUS = {
    "document": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "provider": status.HTTP_502_BAD_GATEWAY,
    "credential": status.HTTP_409_CONFLICT,
    "internal": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def pipeline_error_status(exc: PipelineError) -> int:
    if isinstance(exc, AnalysisInProgress):
        return status.HTTP_409_CONFLICT
    return _SOURCE_STATUS.get(exc.source, status.HTTP_500_INTERNAL_SERVER_ERROR)


def pipeline_error_payload(exc: PipelineError) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "message": str(exc),
        "code": exc.code,
        "source": exc.source,
        "status": pipeline_error_status(exc),
    }
    if isinstance(exc, ProviderTransportFailure) and exc.status_code is not None:
        payload["providerStatus"] = exc.status_code
    return payload


def raise_http_error(exc: PipelineError) -> NoReturn:
    payload = pipeline_error_payload(exc)
    raise HTTPException(status_code=payload.pop("status"), detail=payload) from exc
