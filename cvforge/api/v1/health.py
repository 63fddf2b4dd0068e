from fastapi import APIRouter

from cvforge.parsing.ocr import ocr_engine_version

router = APIRouter()


@router.get("/health", summary="Health Check", description="Service liveness and OCR engine availability.")
async def health_check():
    version = ocr_engine_version()
    return {"status": "healthy", "ocrAvailable": version is not None, "ocrVersion": version}
