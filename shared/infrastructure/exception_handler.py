"""DRF exception handler that maps domain errors to HTTP responses."""

from __future__ import annotations

import structlog
from rest_framework import status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import exception_handler  # type: ignore

from shared.domain.exceptions import (
    AlreadyFinal,
    CapacityExceeded,
    ConcurrencyConflict,
    DomainError,
    DomainValidationError,
    NotFound,
    ResourceInactive,
    Unauthorized,
)

logger = structlog.get_logger(__name__)

STATUS_BY_ERROR = (
    (DomainValidationError, status.HTTP_400_BAD_REQUEST),
    (ResourceInactive, status.HTTP_400_BAD_REQUEST),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (CapacityExceeded, status.HTTP_409_CONFLICT),
    (AlreadyFinal, status.HTTP_409_CONFLICT),
    (Unauthorized, status.HTTP_403_FORBIDDEN),
    (ConcurrencyConflict, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def status_for(exc: DomainError) -> int:
    for error_type, http_status in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return http_status
    return status.HTTP_400_BAD_REQUEST


def domain_exception_handler(exc, context):
    if not isinstance(exc, DomainError):
        return exception_handler(exc, context)

    http_status = status_for(exc)
    view = context.get("view")
    logger.info(
        "domain_error",
        code=exc.code,
        status=http_status,
        view=view.__class__.__name__ if view else None,
        message=exc.message,
    )
    payload = {"detail": exc.message, "code": exc.code}
    if exc.details:
        payload["context"] = {key: str(value) for key, value in exc.details.items()}
    return Response(payload, status=http_status)
