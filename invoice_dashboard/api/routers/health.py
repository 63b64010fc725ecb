import time
from datetime import datetime, UTC

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from ..deps import get_stores
from ...core.config import settings
from ...services.storage import Stores

router = APIRouter(tags=["health"])

_started = time.monotonic()


@router.get("/health")
async def health(stores: Stores = Depends(get_stores)):
    """Liveness plus record-store and blob-store connectivity; 503 when either check fails"""
    db_ok = await run_in_threadpool(stores.invoices.ping)
    gridfs_ok = await run_in_threadpool(stores.blobs.ping)

    body = {
        "status": "OK",
        "timestamp": datetime.now(UTC).isoformat(),
        "uptime": round(time.monotonic() - _started, 3),
        "database": {"connected": db_ok, "status": "connected" if db_ok else "disconnected"},
        "gridfs": "OK" if gridfs_ok else "FAIL",
        "environment": settings.app_env,
    }

    if not db_ok:
        return JSONResponse(status_code=503, content={**body, "status": "DEGRADED", "message": "Database not connected"})
    if not gridfs_ok:
        return JSONResponse(status_code=503, content={**body, "status": "DEGRADED", "message": "GridFS not available"})
    return body
