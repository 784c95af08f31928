"""Exception handlers mapping agentdeck errors to JSON error bodies."""

from datetime import datetime, timezone
from typing import Any

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from agentdeck.infrastructure.exceptions import (
    AgentDeckError,
    AgentNotFoundError,
    CapacityExceededError,
    ExecutionNotCancellableError,
    ExecutionNotFoundError,
    InvalidLimitError,
    NoValidTasksError,
)
from agentdeck.infrastructure.logger import get_logger

logger = get_logger(__name__)

ERROR_TO_STATUS: dict[type[AgentDeckError], int] = {
    AgentNotFoundError: 404,
    ExecutionNotFoundError: 404,
    NoValidTasksError: 400,
    InvalidLimitError: 400,
    ExecutionNotCancellableError: 409,
    CapacityExceededError: 429,
}

ERROR_TITLES: dict[type[AgentDeckError], str] = {
    AgentNotFoundError: "Agent not found",
    ExecutionNotFoundError: "Execution not found",
    InvalidLimitError: "Invalid limit parameter",
}


def status_for_error(exc: AgentDeckError) -> int:
    """Resolve an agentdeck error to an HTTP status, defaulting to 500."""
    for error_type, status in ERROR_TO_STATUS.items():
        if isinstance(exc, error_type):
            return status
    return 500


def error_response(status: int, error: str, details: Any | None = None) -> JSONResponse:
    """Build the uniform JSON error body."""
    body: dict[str, Any] = {
        "error": error,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status, content=body)


async def agentdeck_exception_handler(request: Request, exc: AgentDeckError) -> JSONResponse:
    status = status_for_error(exc)
    title = ERROR_TITLES.get(type(exc))
    if title is not None:
        return error_response(status, title, str(exc))
    return error_response(status, str(exc))


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report request validation failures as 400 instead of 422."""
    return error_response(400, "Validation failed", jsonable_encoder(exc.errors()))


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions, returns 500."""
    logger.error(
        "unhandled_api_exception",
        method=request.method,
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    debug = request.app.state.config.server.debug
    return error_response(
        500,
        "Internal server error",
        str(exc) if debug else None,
    )
