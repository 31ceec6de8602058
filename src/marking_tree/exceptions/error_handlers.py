"""
FastAPI exception handlers for structured error responses.

This module converts EngineError instances into client-facing payloads. The
engine itself never produces HTTP responses.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import logging

from marking_tree.exceptions.exceptions import EngineError
from marking_tree.settings import settings


logger = logging.getLogger(__name__)


def _include_debug() -> bool:
    return (
        settings.DEBUG_MODE.lower() in ['dev', 'development', 'local']
        and not settings.DISABLE_API_DEBUG_INFO
    )


async def engine_exception_handler(request: Request, exc: EngineError) -> JSONResponse:
    """
    Handle EngineError instances.

    SECURITY NOTE: Debug information is ONLY included when DEBUG_MODE is
    'dev', 'development', or 'local'.
    """
    include_debug = _include_debug()
    error_response = exc.to_error_response(include_debug=include_debug)

    log_error(request, exc, error_response.model_dump())

    # Return minimal response to client (only error_code and message for security)
    response_data = {
        "error_code": error_response.error_code,
        "message": error_response.message,
    }
    if include_debug and error_response.debug:
        response_data["debug"] = error_response.debug.model_dump(exclude_none=True)

    return JSONResponse(status_code=exc.http_status, content=response_data)


def log_error(request: Request, exc: EngineError, error_data: dict) -> None:
    """
    Log error with appropriate level and context.

    Args:
        request: FastAPI request
        exc: Exception that occurred
        error_data: Error response data
    """
    severity = error_data.get("severity", "error")
    log_context = {
        "error_code": exc.error_code,
        "path": request.url.path,
        "method": request.method,
        "user_id": exc.user_id,
        "context": exc.context,
    }

    message = f"[{exc.error_code}] {error_data.get('message', '')} - {request.method} {request.url.path}"

    if severity == "critical":
        logger.critical(message, extra=log_context, exc_info=exc)
    elif severity == "error":
        logger.error(message, extra=log_context, exc_info=exc)
    elif severity == "warning":
        logger.warning(message, extra=log_context)
    else:
        logger.info(message, extra=log_context)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(EngineError, engine_exception_handler)
