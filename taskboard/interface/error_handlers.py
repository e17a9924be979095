"""Map typed errors onto HTTP responses with a uniform envelope."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskboard.core.config import Settings
from taskboard.core.errors import AppError, ErrorResponse, InternalError, ValidationFailed
from taskboard.core.logging import log_with_context
from taskboard.core.validators import field_errors_from


logger = logging.getLogger(__name__)


def error_response(error: AppError) -> JSONResponse:
    """Render an AppError as ``{success: false, message, details}``."""
    headers = {"WWW-Authenticate": "Bearer"} if error.status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_response().model_dump(mode="json"),
        headers=headers,
    )


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Install the handlers on the application."""

    async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error("request_failed", extra={"path": request.url.path, "error": exc.message})
        else:
            log_with_context(
                logger, "info", "request_rejected", path=request.url.path, status_code=exc.status_code, code=exc.code
            )
        return error_response(exc)

    async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        return await handle_app_error(request, ValidationFailed(field_errors_from(exc.errors())))

    async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = f"Route {request.url.path} not found" if exc.status_code == status.HTTP_404_NOT_FOUND else exc.detail
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(message=str(message)).model_dump(mode="json"),
            headers=getattr(exc, "headers", None),
        )

    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled_error", extra={"path": request.url.path, "error_type": type(exc).__name__})
        details = None if settings.is_production else {"type": type(exc).__name__, "error": str(exc)}
        return error_response(InternalError("Internal Server Error", details=details))

    app.add_exception_handler(AppError, handle_app_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, handle_request_validation)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, handle_unexpected)
