"""
Exception handlers that turn pipeline failures into ``ErrorResponse`` JSON.

Domain failures carry their own status code through the
``MapStylerException`` hierarchy. Request validation failures become 422
and anything unexpected becomes 500.
"""

import logging
import traceback
from typing import Any, Dict, List, Optional, Union

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from mapstyler.core.config import settings
from mapstyler.core.errors import MapStylerException
from mapstyler.models.errors import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)

# Multipart fields of the upload endpoints
UPLOAD_FIELDS = ("file", "source_id")


def _respond(request: Request, status_code: int, **fields: Any) -> JSONResponse:
    body = ErrorResponse(request_id=getattr(request.state, "request_id", None), **fields)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


async def mapstyler_exception_handler(request: Request, exc: MapStylerException) -> JSONResponse:
    """Render a domain exception with its own status code."""
    # Rejected uploads and unreadable styles are client errors
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"{type(exc).__name__}: {exc.error_code} - {exc.message}",
        extra={
            "error_code": exc.error_code,
            "status_code": exc.status_code,
            "details": exc.details,
        },
    )
    return _respond(
        request,
        exc.status_code,
        error_code=exc.error_code,
        message=exc.message,
        details=exc.details or None,
        suggestions=exc.suggestions or None,
    )


def _validation_suggestions(errors: List[ErrorDetail]) -> List[str]:
    names = {(error.field or "").rsplit(".", 1)[-1] for error in errors}
    missing_uploads = sorted(names.intersection(UPLOAD_FIELDS))
    if missing_uploads:
        return [f"Send '{name}' as a multipart form field" for name in missing_uploads]
    return ["Check the request format and field values"]


async def validation_error_handler(
    request: Request, exc: Union[RequestValidationError, PydanticValidationError]
) -> JSONResponse:
    """
    Report every failing field of a malformed request.

    Field paths are the dotted ``loc`` of each error, e.g. ``body.layer.fill_opacity``.
    """
    errors = [
        ErrorDetail(
            field=".".join(str(part) for part in error.get("loc", [])),
            message=error.get("msg", "Validation error"),
            code=error.get("type", "validation_error"),
        )
        for error in exc.errors()
    ]
    logger.warning(
        f"Request validation failed on {', '.join(e.field for e in errors) or 'request'}",
        extra={"error_count": len(errors)},
    )
    return _respond(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        error_code="VALIDATION_ERROR",
        message="Request validation failed",
        details={"validation_errors": [e.model_dump() for e in errors]},
        suggestions=_validation_suggestions(errors),
        errors=errors,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort for anything the pipeline did not anticipate."""
    logger.error(
        f"Unhandled exception: {type(exc).__name__} - {exc}",
        exc_info=True,
        extra={"exception_type": type(exc).__name__},
    )

    details: Optional[Dict[str, Any]] = None
    if settings.environment == "development":
        details = {
            "exception_type": type(exc).__name__,
            "exception_message": str(exc),
            "traceback": traceback.format_exc(),
        }

    return _respond(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code="INTERNAL_ERROR",
        message="An unexpected error occurred",
        details=details,
        suggestions=["Try again later"],
    )


def register_error_handlers(app: FastAPI) -> None:
    """Install the handlers on an application; subclasses resolve to their base handler."""
    app.add_exception_handler(MapStylerException, mapstyler_exception_handler)
    for validation_error in (RequestValidationError, PydanticValidationError):
        app.add_exception_handler(validation_error, validation_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
    logger.debug("Error handlers registered")
