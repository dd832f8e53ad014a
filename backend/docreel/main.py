"""
DocReel API application.

Routers live in ``docreel.routes``; every stage they call comes from the
shared ``ServiceContainer``. Errors raised as ``DocReelError`` are rendered
as ``{"error": true, "error_kind": ..., "message": ...}``.
"""

import asyncio
import contextlib
import os
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import API_DESCRIPTION, API_TITLE, API_VERSION, CORS_ORIGINS
from .core import (
    DocReelError,
    ErrorKind,
    clear_context,
    env_bool,
    get_logger,
    locate_media_tools,
    run_startup_runtime_checks,
    set_request_id,
    setup_logging,
)
from .routes import chunks_router, export_router, scripts_router, upload_router, videos_router
from .services.container import get_container

setup_logging(
    level=os.getenv("LOG_LEVEL", "INFO"),
    log_file=Path(os.environ["LOG_FILE"]) if os.getenv("LOG_FILE") else None,
    use_json=env_bool("JSON_LOGS", False),
)
logger = get_logger(__name__, service="api")

ERROR_STATUS_CODES = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.VALIDATION: 400,
    ErrorKind.UPSTREAM: 502,
    ErrorKind.INTERNAL: 500,
}


def _error_response(status_code: int, error_kind: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": True, "error_kind": error_kind, "message": message},
    )


async def _start_background_services(app: FastAPI) -> None:
    container = get_container()

    # Production refuses to start without ffmpeg unless told otherwise
    strict = env_bool("STARTUP_STRICT_RUNTIME_CHECKS", os.getenv("ENV", "").lower() == "production")
    app.state.runtime_report = run_startup_runtime_checks(export_dir=container.export_dir, strict_tools=strict)
    logger.info("Runtime checks passed", extra={"runtime_report": app.state.runtime_report, "strict": strict})

    app.state.retention_task = None
    sweep = container.retention_sweep
    if not sweep.enabled:
        return
    try:
        sweep.run_once()
    except Exception as exc:
        logger.error("Initial export sweep failed", extra={"error": str(exc)}, exc_info=True)
    app.state.retention_task = asyncio.create_task(sweep.run_periodic(), name="export-retention")


async def _stop_background_services(app: FastAPI) -> None:
    task = getattr(app.state, "retention_task", None)
    if task is not None:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
    await get_container().shutdown()


@asynccontextmanager
async def lifespan(app: FastAPI):
    await _start_background_services(app)
    try:
        yield
    finally:
        await _stop_background_services(app)


app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    lifespan=lifespan,
)


@app.middleware("http")
async def add_request_correlation(request: Request, call_next):
    """Tag every log line of a request with its X-Request-ID and echo the id back."""
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    set_request_id(request_id)
    started = time.perf_counter()
    try:
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        logger.info(f"{request.method} {request.url.path} -> {response.status_code}", extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round((time.perf_counter() - started) * 1000, 1),
            "client": request.client.host if request.client else None,
        })
        return response
    finally:
        clear_context()


@app.exception_handler(DocReelError)
async def handle_app_error(request: Request, exc: DocReelError):
    status_code = ERROR_STATUS_CODES.get(exc.error_kind, 500)
    if status_code >= 500:
        logger.error("Request failed", extra={"path": request.url.path, "error_kind": exc.error_kind, "error": exc.message})
    else:
        logger.info("Request rejected", extra={"path": request.url.path, "error_kind": exc.error_kind, "error": exc.message})
    return JSONResponse(status_code=status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(_request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if not errors:
        return _error_response(400, ErrorKind.VALIDATION, "Invalid request")
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "invalid value")
    return _error_response(400, ErrorKind.VALIDATION, f"{field}: {message}" if field else message)


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(_request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        kind = ErrorKind.NOT_FOUND
    elif exc.status_code >= 500:
        kind = ErrorKind.INTERNAL
    else:
        kind = ErrorKind.VALIDATION
    return _error_response(exc.status_code, kind, str(exc.detail))


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.error("Unhandled error", extra={"path": request.url.path, "error": str(exc)}, exc_info=True)
    return _error_response(500, ErrorKind.INTERNAL, "Internal server error")


app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for router in (upload_router, chunks_router, scripts_router, videos_router, export_router):
    app.include_router(router)


@app.get("/")
async def root():
    return {"name": API_TITLE, "version": API_VERSION, "docs": "/docs"}


@app.get("/health")
async def health_check():
    """
    Liveness plus a summary of what the pipeline can do right now. Missing
    ffmpeg only disables exports, so the service still reports healthy.
    """
    container = get_container()
    script_provider = container.script_stage.provider
    return {
        "status": "healthy",
        "checks": {
            "tools": {tool: path is not None for tool, path in locate_media_tools().items()},
            "script_provider": script_provider.name if script_provider else None,
            "video_provider": container.video_stage.provider.name if container.video_stage.provider_ready() else "mock",
            "sessions": len(container.store.list_sessions()),
            "runtime_startup": getattr(app.state, "runtime_report", None),
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8000")))
