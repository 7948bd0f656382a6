"""Global exception handlers for consistent error responses.

Design:
- AppError subclasses -> their own HTTP status (400, 429, 500, 503)
- Request body validation -> 400 with the first validation message
- Unexpected Exception -> generic 500 (safety net)

Error bodies follow the route's response model: ``{"error": "<message>"}``
plus that model's empty defaults, so a client reading e.g. ``polishedText``
always finds the field.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ai_gateway.core.errors import AppError

logger = logging.getLogger(__name__)

INVALID_BODY_MESSAGE = "Invalid request body"
INTERNAL_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


def status_code_for(exc: AppError) -> int:
    """Map a domain error to its HTTP status code."""
    return exc.status_code


def _route_response_model(request: Request) -> type[BaseModel] | None:
    route = request.scope.get("route")
    model = getattr(route, "response_model", None)
    if isinstance(model, type) and issubclass(model, BaseModel) and "error" in model.model_fields:
        return model
    return None


def error_body(
    request: Request,
    message: str,
    extra: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build the error payload for the matched route.

    Args:
        request: FastAPI request (its scope carries the matched route).
        message: Human-readable error message.
        extra: Field values overriding the response model defaults.

    Returns:
        dict: Serialized response model with ``error`` set, or a bare
            ``{"error": message}`` outside the AI routes.
    """
    model = _route_response_model(request)
    if model is None:
        return {"error": message, **(extra or {})}
    return model(error=message, **(extra or {})).model_dump(by_alias=True, exclude_none=True)


def validation_message(exc: RequestValidationError) -> str:
    """Return the message of the first custom validator that rejected the body."""
    for error in exc.errors():
        cause = (error.get("ctx") or {}).get("error")
        if isinstance(cause, ValueError):
            return str(cause)
    return INVALID_BODY_MESSAGE


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with the route's error payload and the error's status.
    """
    status_code = status_code_for(exc)

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "request_path": request.url.path,
        },
    )

    return JSONResponse(
        status_code=status_code,
        content=error_body(request, exc.message, exc.details),
        headers=getattr(exc, "headers", None) or None,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Answer malformed or incomplete request bodies with 400."""
    message = validation_message(exc)
    logger.info(
        "request_validation_failed",
        extra={
            "error_message": message,
            "error_count": len(exc.errors()),
            "request_path": request.url.path,
        },
    )
    return JSONResponse(status_code=400, content=error_body(request, message))


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors; never leaks internals."""
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    model = _route_response_model(request)
    message = getattr(model, "failure_message", INTERNAL_ERROR_MESSAGE)
    return JSONResponse(status_code=500, content=error_body(request, message))


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(Exception)(general_exception_handler)
