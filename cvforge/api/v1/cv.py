import asyncio
import json
from typing import Any

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status
from fastapi.responses import StreamingResponse

from cvforge.ai.config import ProviderConnection
from cvforge.api.deps import (
    ProviderFactory,
    connection_dep,
    ingestion_runner_dep,
    open_provider,
    provider_factory_dep,
    store_dep,
)
from cvforge.api.errors import pipeline_error_payload, raise_http_error
from cvforge.core.config import settings
from cvforge.core.errors import PipelineError
from cvforge.core.rate_limit import rate_limit
from cvforge.core.store import LocalStore
from cvforge.parsing.models import RawDocument
from cvforge.parsing.parse import validate_pdf_signature
from cvforge.schemas.analysis import AnalysisStatus
from cvforge.schemas.resume import StructuredResume
from cvforge.services.analysis_status import (
    StatusObserver,
    get_cv_analysis_status,
    get_parsed_cv_data,
    save_parsed_cv_data,
)
from cvforge.services.cv_analysis import analyze_cv_file
from cvforge.services.ingestion_runner import IngestionRunner

router = APIRouter()

UPLOAD_CHUNK_BYTES = 1024 * 64


async def _read_pdf_upload(file: UploadFile) -> RawDocument:
    filename = file.filename or "cv.pdf"
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if ext != "pdf":
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail="Only PDF files are supported.",
        )

    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await file.read(UPLOAD_CHUNK_BYTES)
        if not chunk:
            break
        total += len(chunk)
        if total > settings.max_upload_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File too large. Maximum allowed size is {settings.max_upload_bytes // (1024 * 1024)} MB.",
            )
        chunks.append(chunk)
    content = b"".join(chunks)

    try:
        validate_pdf_signature(content)
    except PipelineError as exc:
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=pipeline_error_payload(exc)["message"],
        ) from exc
    return RawDocument(content=content, filename=filename)


async def _ingest(
    factory: ProviderFactory,
    connection: ProviderConnection,
    document: RawDocument,
    store: LocalStore,
    observer: StatusObserver | None = None,
) -> StructuredResume:
    async with open_provider(factory, connection) as provider:
        return await analyze_cv_file(document, provider, store, observer=observer)


def _sse_event(event: str, payload: dict[str, Any]) -> str:
    data = json.dumps(payload, ensure_ascii=False)
    return f"event: {event}\ndata: {data}\n\n"


@router.post("/cv/analyze", response_model=AnalysisStatus)
@rate_limit()
async def analyze_cv(
    request: Request,
    file: UploadFile = File(...),
    store: LocalStore = Depends(store_dep),
    connection: ProviderConnection = Depends(connection_dep),
    factory: ProviderFactory = Depends(provider_factory_dep),
    runner: IngestionRunner = Depends(ingestion_runner_dep),
):
    _ = request
    document = await _read_pdf_upload(file)
    try:
        task = runner.start(_ingest(factory, connection, document, store))
        # A dropped client connection must not abort the run.
        await asyncio.shield(task)
    except asyncio.CancelledError:
        if task.cancelled():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=get_cv_analysis_status(store).error or "Analysis cancelled",
            )
        raise
    except PipelineError as exc:
        raise_http_error(exc)
    return get_cv_analysis_status(store)


@router.post("/cv/analyze/stream")
@rate_limit()
async def analyze_cv_stream(
    request: Request,
    file: UploadFile = File(...),
    store: LocalStore = Depends(store_dep),
    connection: ProviderConnection = Depends(connection_dep),
    factory: ProviderFactory = Depends(provider_factory_dep),
    runner: IngestionRunner = Depends(ingestion_runner_dep),
):
    document = await _read_pdf_upload(file)
    queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()

    def push_progress(snapshot: AnalysisStatus) -> None:
        payload = snapshot.to_payload()
        payload.pop("parsedData", None)
        queue.put_nowait({"kind": "progress", "payload": payload})

    try:
        task = runner.start(_ingest(factory, connection, document, store, observer=push_progress))
    except PipelineError as exc:
        raise_http_error(exc)

    def push_outcome(done: asyncio.Task) -> None:
        if done.cancelled():
            snapshot = get_cv_analysis_status(store)
            queue.put_nowait(
                {"kind": "error", "payload": {"message": snapshot.error or "Analysis cancelled", "code": "cancelled"}}
            )
        elif isinstance(done.exception(), PipelineError):
            queue.put_nowait({"kind": "error", "payload": pipeline_error_payload(done.exception())})
        elif done.exception() is not None:
            queue.put_nowait(
                {
                    "kind": "error",
                    "payload": {"message": str(done.exception()), "status": status.HTTP_500_INTERNAL_SERVER_ERROR},
                }
            )
        else:
            queue.put_nowait({"kind": "result", "payload": done.result().to_payload()})
        queue.put_nowait({"kind": "done", "payload": {}})

    task.add_done_callback(push_outcome)

    async def event_stream():
        yield _sse_event("connected", {"ok": True})
        while True:
            if await request.is_disconnected():
                # The run keeps going; its status stays observable.
                break
            event = await queue.get()
            kind = event.get("kind")
            if kind == "done":
                break
            yield _sse_event(kind, event.get("payload", {}))

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.delete("/cv/analyze")
async def cancel_analysis(
    store: LocalStore = Depends(store_dep),
    runner: IngestionRunner = Depends(ingestion_runner_dep),
):
    cancelled = await runner.cancel()
    return {"cancelled": cancelled, "status": get_cv_analysis_status(store).to_payload()}


@router.get("/cv/analysis-status", response_model=AnalysisStatus)
async def analysis_status(store: LocalStore = Depends(store_dep)):
    return get_cv_analysis_status(store)


@router.get("/cv", response_model=StructuredResume)
async def get_cv(store: LocalStore = Depends(store_dep)):
    resume = get_parsed_cv_data(store)
    if resume is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No CV has been imported yet.")
    return resume


@router.put("/cv", response_model=StructuredResume)
async def put_cv(payload: StructuredResume, store: LocalStore = Depends(store_dep)):
    save_parsed_cv_data(store, payload)
    return payload
