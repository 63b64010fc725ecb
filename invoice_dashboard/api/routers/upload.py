import asyncio
import time
from datetime import datetime, UTC
from typing import AsyncIterator, Iterator

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import StreamingResponse
from loguru import logger

from ..deps import get_blob_store
from ...core.config import settings
from ...core.errors import AppError, BadRequestError
from ...services.storage.blob_store_base import BlobStoreBase

router = APIRouter(prefix="/api/upload", tags=["upload"])

PDF_CONTENT_TYPE = "application/pdf"


def _next_chunk(chunks: Iterator[bytes]) -> bytes | None:
    return next(chunks, None)


def _log_abandoned_read(read: asyncio.Future) -> None:
    if not read.cancelled() and read.exception() is not None:
        logger.warning(f"Abandoned chunk read failed: {read.exception()}")


async def _read_chunk(chunks: Iterator[bytes], timeout: float) -> bytes | None:
    """
    Next chunk from a worker thread, or asyncio.TimeoutError after `timeout`.

    The read is not cancelled on timeout (a worker thread cannot be
    interrupted); it finishes in the background and its result is dropped.
    """
    read = asyncio.ensure_future(run_in_threadpool(_next_chunk, chunks))
    done, _ = await asyncio.wait({read}, timeout=timeout)
    if not done:
        read.add_done_callback(_log_abandoned_read)
        raise asyncio.TimeoutError
    return read.result()


async def _discard_late_write(write: asyncio.Future, blob_store: BlobStoreBase) -> None:
    """
    Wait out a store call the request has already given up on.

    Worker threads cannot be interrupted, so the write may still commit after
    the deadline; a blob that lands anyway is deleted so no orphan is left.
    """
    try:
        file_id = await write
    except AppError:
        # The store discarded its own partial write
        return
    await run_in_threadpool(blob_store.delete, file_id)
    logger.warning("Discarded blob committed after the upload deadline", file_id=file_id)


@router.post("", status_code=201)
async def upload_pdf(
    pdf: UploadFile | None = File(None),
    blob_store: BlobStoreBase = Depends(get_blob_store),
):
    """
    Store an uploaded PDF in GridFS.

    Accepts multipart/form-data with the file in the `pdf` field.
    Rejects non-PDF content types, empty files and files over 25MB.
    """
    if pdf is None:
        raise BadRequestError("Please select a PDF file to upload", error="No file uploaded")

    if pdf.content_type != PDF_CONTENT_TYPE:
        raise BadRequestError(
            f"Only PDF files are allowed (got {pdf.content_type})", error="Only PDF files are allowed"
        )

    limit = settings.max_upload_bytes
    # One byte past the limit is enough to tell "too large" from "exactly at the limit"
    content = await pdf.read(limit + 1)
    if len(content) > limit:
        raise BadRequestError(
            f"File too large. Maximum size is {limit // (1024 * 1024)}MB.", error="File too large"
        )
    if not content:
        raise BadRequestError("File appears to be empty or corrupted", error="Invalid file")

    file_name = pdf.filename or "document.pdf"
    timeout = settings.upload_timeout_seconds
    # One deadline shared with the store, which checks it between chunks and before committing
    deadline = time.monotonic() + timeout
    write = asyncio.ensure_future(
        run_in_threadpool(blob_store.store, content, file_name, pdf.content_type, deadline)
    )
    done, _ = await asyncio.wait({write}, timeout=timeout)
    if not done:
        logger.error("Upload timed out", filename=file_name, size=len(content))
        await _discard_late_write(write, blob_store)
        raise AppError("Upload timeout", error="Upload failed", status_code=500)
    try:
        file_id = write.result()
    except AppError as e:
        logger.bind(filename=file_name).error(f"Upload failed: {e.details}")
        raise AppError(e.details, error="Upload failed", status_code=500)

    logger.info("PDF uploaded", file_id=file_id, filename=file_name, size=len(content))
    return {
        "success": True,
        "fileId": file_id,
        "fileName": file_name,
        "message": "File uploaded successfully",
        "size": len(content),
        "uploadedAt": datetime.now(UTC).isoformat(),
    }


@router.get("/{file_id}")
async def download_pdf(file_id: str, blob_store: BlobStoreBase = Depends(get_blob_store)):
    """
    Stream a stored PDF.

    The first chunk must arrive within the download timeout or the request
    fails with 408. After that, a stalled read ends the stream early; the
    status line has already been sent, so the client sees a truncated body.
    """
    timeout = settings.download_timeout_seconds
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout

    chunks = await run_in_threadpool(blob_store.iter_chunks, file_id)
    try:
        first = await _read_chunk(chunks, timeout)
    except asyncio.TimeoutError:
        logger.error("Download timed out before first chunk", file_id=file_id)
        raise AppError("File download took too long", error="Download timeout", status_code=408)

    async def body() -> AsyncIterator[bytes]:
        chunk = first
        while chunk is not None:
            yield chunk
            remaining = deadline - loop.time()
            if remaining <= 0:
                logger.error("Download timed out mid-stream", file_id=file_id)
                return
            try:
                chunk = await _read_chunk(chunks, remaining)
            except asyncio.TimeoutError:
                logger.error("Download timed out mid-stream", file_id=file_id)
                return
            except AppError as e:
                logger.bind(file_id=file_id).error(f"Download failed mid-stream: {e.details}")
                return
        logger.info("File download completed", file_id=file_id)

    return StreamingResponse(
        body(),
        media_type=PDF_CONTENT_TYPE,
        headers={
            "Content-Disposition": "inline",
            "Cache-Control": "private, max-age=3600",
        },
    )


@router.get("/{file_id}/info")
async def file_info(file_id: str, blob_store: BlobStoreBase = Depends(get_blob_store)):
    """Blob metadata: id, filename, contentType, size, uploadDate"""
    info = await run_in_threadpool(blob_store.info, file_id)
    return info.to_dict()


@router.delete("/{file_id}")
async def delete_pdf(file_id: str, blob_store: BlobStoreBase = Depends(get_blob_store)):
    """Delete a stored PDF. Invoice records referencing it are left alone."""
    await run_in_threadpool(blob_store.delete, file_id)
    logger.info("PDF deleted", file_id=file_id)
    return {
        "success": True,
        "message": "File deleted successfully",
        "deletedAt": datetime.now(UTC).isoformat(),
    }
