from __future__ import annotations

import logging
from typing import Any

from fastapi import HTTPException

from fitbook.api.v1.schemas import ErrorDetailSchema, ErrorSchema
from fitbook.application.exceptions import (
    BookingError,
    ConfigurationError,
    DuplicateBooking,
    InvalidInput,
    NotFound,
    StorageUnavailable,
)

logger = logging.getLogger(__name__)

_STATUS_CODES: tuple[tuple[type[BookingError], int], ...] = (
    (InvalidInput, 400),
    (NotFound, 404),
    (DuplicateBooking, 409),
    (StorageUnavailable, 503),
    (ConfigurationError, 500),
)

# OpenAPI documentation for the error bodies produced by to_http_exception.
ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorSchema, "description": "Invalid input"},
    404: {"model": ErrorSchema, "description": "Not found"},
    503: {"model": ErrorSchema, "description": "Storage unavailable"},
}
CONFLICT_RESPONSES: dict[int | str, dict[str, Any]] = {
    **ERROR_RESPONSES,
    409: {"model": ErrorSchema, "description": "Duplicate booking, with the existing booking"},
}


def to_http_exception(error: BookingError) -> HTTPException:
    status_code = next((code for cls, code in _STATUS_CODES if isinstance(error, cls)), 500)
    detail = ErrorDetailSchema(
        error_code=error.error_code,
        message=str(error),
        existing=error.existing if isinstance(error, DuplicateBooking) else None,
    )
    if status_code >= 500:
        logger.error("Request failed", extra={"error": str(error), "status": status_code})
    return HTTPException(status_code=status_code, detail=detail.model_dump(exclude_none=True))
