import time
from contextlib import asynccontextmanager
from datetime import datetime, UTC

from fastapi import FastAPI, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..core.config import settings
from ..core.errors import AppError
from ..core.logging import setup_logging
from ..services.storage import Stores, create_mongo_stores
from .routers import extract, health, invoices, upload

logger = setup_logging()


def create_app(stores: Stores | None = None) -> FastAPI:
    """
    Build the API.

    Without `stores`, the lifespan connects to MongoDB (retrying per the
    MONGO_* settings) and closes the connection on shutdown. Passing stores
    skips that, which is how tests and local demos run on the in-memory stores.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = None
        if getattr(app.state, "stores", None) is None:
            logger.info(f"Starting {settings.app_name}", environment=settings.app_env)
            owned = await run_in_threadpool(create_mongo_stores, settings)
            app.state.stores = owned
        logger.info("Server startup complete")
        try:
            yield
        finally:
            if owned is not None:
                owned.close()
                app.state.stores = None
            logger.info("Server shut down")

    app = FastAPI(title="PDF Invoice Dashboard API", version="1.0.0", lifespan=lifespan)
    app.state.stores = stores

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        log = logger.bind(path=request.url.path, status=exc.status_code)
        (log.warning if exc.status_code < 500 else log.error)(f"{exc.error}: {exc.details}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    # Bad request bodies are client input errors: 400 with readable details
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.error(f"Validation error: {exc.errors()}")
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "error": "Validation Error", "details": details},
        )

    # Unknown routes answer in the same JSON error shape as everything else
    @app.exception_handler(status.HTTP_404_NOT_FOUND)
    async def not_found_handler(request: Request, exc):
        logger.bind(path=request.url.path).warning(f"Endpoint not found: {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={
                "success": False,
                "error": "Endpoint not found",
                "details": f"{request.method} {request.url.path} does not exist",
                "path": request.url.path,
                "method": request.method,
                "timestamp": datetime.now(UTC).isoformat(),
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": "Internal server error", "details": str(exc)},
        )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        logger.bind(duration_ms=round((time.perf_counter() - started) * 1000, 1)).info(
            f"{request.method} {request.url.path} {response.status_code}"
        )
        return response

    # Configure CORS to allow frontend access
    # CORS_ORIGINS can be set in .env as comma-separated list
    # Example: CORS_ORIGINS=http://localhost:8501,https://your-frontend.com
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root():
        return {
            "message": "PDF Invoice Dashboard API",
            "version": app.version,
            "endpoints": {
                "health": "/health",
                "upload": "/api/upload",
                "extract": "/api/extract",
                "invoices": "/api/invoices",
            },
            "timestamp": datetime.now(UTC).isoformat(),
        }

    app.include_router(health.router)
    app.include_router(health.router, prefix="/api")
    app.include_router(upload.router)
    app.include_router(extract.router)
    app.include_router(invoices.router)
    return app


app = create_app()


def run():
    """Console entry point: serve the API with uvicorn"""
    import uvicorn

    uvicorn.run(
        "invoice_dashboard.api.main:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
        timeout_graceful_shutdown=settings.shutdown_grace_seconds,
    )


if __name__ == "__main__":
    run()
