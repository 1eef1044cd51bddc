"""
api/errors.py -- Render core.errors.ServiceError as the standard error envelope.

Shared by the app-level exception handler in api/main.py and by routes that
must attach extra headers to error responses (login's Cache-Control).
"""

from __future__ import annotations

from fastapi.responses import JSONResponse

from api.models import ErrorDetail, ErrorResponse
from core.config import get_settings
from core.errors import ConflictError, ServiceError, StorageError, ValidationError


def render_service_error(exc: ServiceError) -> JSONResponse:
    """Map a ServiceError to its status code and ErrorResponse body.

    StorageError detail (driver message, failing operation) is only included
    when DEBUG is on; clients otherwise get a generic message.
    """
    detail: str | None = None
    message = exc.message
    if isinstance(exc, StorageError):
        message = "A database error occurred."
        if get_settings().debug:
            detail = f"{exc.origin}: {exc.message}"
    elif isinstance(exc, ValidationError) and exc.fields:
        detail = ", ".join(exc.fields)
    elif isinstance(exc, ConflictError) and exc.count is not None:
        detail = str(exc.count)

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=ErrorDetail(code=exc.code, message=message, detail=detail)).model_dump(),
    )
