from datetime import datetime, UTC

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from loguru import logger

from ..deps import ExtractRequest, get_extraction_service
from ...core.errors import BadRequestError
from ...services.extraction.service import BACKEND_NAMES, ExtractionService

router = APIRouter(prefix="/api/extract", tags=["extract"])


@router.post("")
async def extract(req: ExtractRequest, service: ExtractionService = Depends(get_extraction_service)):
    """
    Extract invoice fields from a stored PDF with Gemini or Groq.

    Example request:
    {
        "fileId": "665f1c2e8b3e4a0012345678",
        "model": "groq"
    }

    Error statuses:
    - 400: missing fields, unknown model, API key not configured, retired model
    - 404: file not found
    - 429: quota or rate limit (retryable)
    - 503: AI service overloaded (retryable)
    - 500: anything else, including unparseable model output
    """
    logger.info("Extract request received", file_id=req.fileId, model=req.model)

    if not req.fileId or not req.model:
        raise BadRequestError("Both fileId and model are required", error="Missing required fields")
    if req.model not in BACKEND_NAMES:
        raise BadRequestError('Model must be either "gemini" or "groq"', error="Invalid model")

    invoice = await run_in_threadpool(service.extract, req.fileId, req.model)

    return {
        "success": True,
        "data": invoice.model_dump(),
        "model": req.model,
        "extractedAt": datetime.now(UTC).isoformat(),
    }
