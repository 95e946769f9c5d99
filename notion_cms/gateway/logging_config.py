"""Loguru setup, stdlib log interception, per-request context and the JSON error envelope."""

import logging
import sys
import time
import uuid
from collections.abc import Callable
from pathlib import Path

from fastapi import Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from notion_cms.gateway.exceptions import APIError

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> | {extra} - <level>{message}</level>"
)


class InterceptHandler(logging.Handler):
    """Forward records from stdlib loggers (uvicorn, httpx) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk out of the logging module so loguru reports the real caller
        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def configure_logging(log_dir: Path, level: str = "INFO") -> None:
    """Log to stdout and to a rotated JSONL file under `log_dir`; route stdlib logging through loguru."""
    logger.remove()
    logger.add(sys.stdout, format=CONSOLE_FORMAT, level=level, colorize=True)

    log_dir.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_dir / "notion-cms.jsonl",
        level=level,
        serialize=True,
        rotation="50 MB",
        retention="30 days",
        compression="gz",
    )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in ("uvicorn.access", "httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tag every log line of a request with a short request id and log the outcome."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request.state.request_id = request_id = uuid.uuid4().hex[:8]
        started = time.perf_counter()

        with logger.contextualize(request_id=request_id):
            response = await call_next(request)
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.bind(tenant_id=getattr(request.state, "tenant_id", None)).info(
                f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.0f}ms)"
            )

        response.headers["X-Request-ID"] = request_id
        return response


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Render typed API errors as `{"success": false, "error": ...}`."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed with {exc.status_code}: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected with {exc.status_code}: {exc}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Keep framework errors (404 route, 405 method) in the same JSON envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "Invalid request", "details": jsonable_encoder(exc.errors())},
    )


def _generic_error_message(request: Request) -> str:
    if request.url.path.startswith("/v1/media"):
        return "Failed to process media upload"
    return "Failed to process webhook"


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log with whatever request context is known; the caller only gets a generic message."""
    context = {
        "request_id": getattr(request.state, "request_id", None),
        "tenant_id": getattr(request.state, "tenant_id", None),
    }
    logger.bind(**{k: v for k, v in context.items() if v}).exception(
        f"Unhandled exception on {request.method} {request.url.path}: {exc}"
    )
    return JSONResponse(status_code=500, content={"success": False, "error": _generic_error_message(request)})
