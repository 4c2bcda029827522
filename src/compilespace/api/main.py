"""
FastAPI application for the execution service.

This module configures the FastAPI application, wires the configured
executor into an :class:`~compilespace.handler.ExecutionHandler`, and
registers the ``/execute`` and ``/health`` routes.  Every error the
service reports itself is returned as ``{"error": ..., "details": ...}``
so the editor can render it without knowing the cause.
"""

from __future__ import annotations

import logging
from typing import Dict

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..config import Config
from ..executor import build_executor
from ..handler import ExecutionFailedError, ExecutionHandler, ExecutionServiceError, UnsupportedLanguageError
from ..models import ErrorResponse, ExecuteRequest, ExecuteResponse
from ..workspace import Workspace


logger = logging.getLogger("compilespace")

if not logger.handlers:
    stream_handler = logging.StreamHandler()
    formatter = logging.Formatter("[compilespace] %(levelname)s - %(message)s")
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

logger.setLevel(logging.INFO)


config = Config.from_env()

logger.info(
    "Loaded config: runtime=%s, work_dir=%s, allowed_langs=%s, max_exec=%s",
    config.runtime,
    config.work_dir,
    config.allowed_langs,
    config.max_execution_seconds,
)

workspace = Workspace(config.work_dir)
try:
    # Containers may run as a different user than the service
    workspace.base_dir.chmod(0o777)
except PermissionError:
    logger.warning("Unable to chmod work dir %s; continuing", workspace.base_dir)

execution_handler = ExecutionHandler(
    executor=build_executor(config),
    workspace=workspace,
    allowed_langs=config.allowed_langs,
)


app = FastAPI(title="CompileSpace Execution Service", version="0.1.0")


@app.middleware("http")
async def authenticate(request: Request, call_next):
    """Middleware to enforce API key authentication when a key is configured."""
    path = request.url.path
    method = request.method
    client = getattr(request.client, "host", "unknown")

    logger.info("Incoming request: %s %s from %s", method, path, client)

    if config.api_key and method != "OPTIONS":
        provided_key = request.headers.get("x-api-key")
        if provided_key != config.api_key:
            logger.warning("Invalid API key for %s %s from %s", method, path, client)
            return JSONResponse(status_code=401, content={"detail": "Invalid API key"})

    response = await call_next(request)
    logger.info("Response: %s %s -> %s", method, path, response.status_code)
    return response


# Added last so it wraps the auth middleware and 401s carry CORS headers
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, error: str, details: str | None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, details=details).model_dump(),
    )


@app.exception_handler(UnsupportedLanguageError)
async def unsupported_language(request: Request, exc: UnsupportedLanguageError) -> JSONResponse:
    logger.warning("[/execute] Unsupported language: %s", exc.language)
    return _error(400, "Invalid language selected!", exc.language)


@app.exception_handler(ExecutionFailedError)
async def execution_failed(request: Request, exc: ExecutionFailedError) -> JSONResponse:
    logger.info("[/execute] Execution failed with exit_code=%s", exc.exit_code)
    return _error(500, "Execution Error", exc.details)


@app.get("/health")
async def health() -> Dict[str, str]:
    """Return a simple health check response."""
    return {"status": "ok"}


@app.post(
    "/execute",
    response_model=ExecuteResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def execute(req: ExecuteRequest):
    """Run the submitted source in the container for its language.

    Declared without ``async`` so the blocking run happens in the
    threadpool and concurrent requests do not stall each other.
    """
    try:
        outcome = execution_handler.execute(req.language, req.code)
    except ExecutionServiceError:
        raise
    except Exception as exc:
        logger.exception("[/execute] Unhandled error during execution: %s", exc)
        return _error(500, "Internal Server Error", str(exc))
    return ExecuteResponse(output=outcome.output, error=outcome.error)
