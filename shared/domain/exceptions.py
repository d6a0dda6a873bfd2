"""
Domain Errors

Every business rule violation raised by the services derives from
DomainError. The API layer maps ``code`` to an HTTP status in one place
(shared.infrastructure.exception_handler).
"""


class DomainError(Exception):
    """Base class for errors the domain raises on purpose."""

    code = "domain_error"

    def __init__(self, message: str = "", **details):
        self.message = message or (self.__class__.__doc__ or self.code).strip()
        self.details = details
        super().__init__(self.message)


class DomainValidationError(DomainError):
    """Request is malformed or misses required fields."""

    code = "validation_error"


class InvalidRange(DomainValidationError):
    """Date range is inverted, empty or too long."""

    code = "invalid_range"


class NotFound(DomainError):
    """Requested resource or demand does not exist."""

    code = "not_found"


class ResourceInactive(DomainError):
    """Resource exists but is not open for booking."""

    code = "resource_inactive"


class CapacityExceeded(DomainError):
    """Not enough remaining capacity for the requested dates."""

    code = "capacity_exceeded"


class AlreadyFinal(DomainError):
    """Demand is in a terminal state."""

    code = "already_final"


class AlreadyCancelled(AlreadyFinal):
    """Demand has already been cancelled."""

    code = "already_cancelled"


class AlreadyCompleted(AlreadyFinal):
    """Demand has already been completed."""

    code = "already_completed"


class Unauthorized(DomainError):
    """Caller is not allowed to manage this resource."""

    code = "unauthorized"


class ConcurrencyConflict(DomainError):
    """Could not obtain capacity locks; the request may be retried."""

    code = "concurrency_conflict"
