"""
Service Errors

Exception hierarchy raised by the service layer. Each error carries a
machine-readable code and the HTTP status the routers translate it to.

Not-found and not-yours share one error class: callers cannot
tell whether a resource exists when it belongs to someone else.
"""

from uuid import UUID

from fastapi import HTTPException, status


class ServiceError(Exception):
    """Base exception for service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class BadRequestError(ServiceError):
    """Raised when a required field is missing or malformed."""

    def __init__(self, message: str):
        super().__init__(message=message, error_code="BAD_REQUEST", status_code=400)


class UnauthorizedError(ServiceError):
    """Raised when no credential was supplied."""

    def __init__(self, message: str = "Unauthorized access"):
        super().__init__(message=message, error_code="UNAUTHORIZED", status_code=401)


class AuthenticationFailedError(ServiceError):
    """Raised when the identity provider rejects a credential."""

    def __init__(self, message: str = "Identity credential could not be verified."):
        super().__init__(message=message, error_code="AUTHENTICATION_FAILED", status_code=401)


class ForbiddenError(ServiceError):
    """Raised for invalid session tokens and role violations."""

    def __init__(self, message: str = "Forbidden access"):
        super().__init__(message=message, error_code="FORBIDDEN", status_code=403)


class NotFoundError(ServiceError):
    """Raised when a resource does not exist or is not owned by the caller."""

    def __init__(self, resource: str, resource_id: UUID | str | None = None):
        message = f"{resource} {resource_id} not found" if resource_id else f"{resource} not found"
        super().__init__(message=message, error_code="NOT_FOUND", status_code=404)


class ProfileNotFoundError(ServiceError):
    """Raised when a verified identity has no registered profile."""

    def __init__(self):
        super().__init__(
            message="User profile not found. Please sign up first.",
            error_code="PROFILE_NOT_FOUND",
            status_code=404,
        )


class ConflictError(ServiceError):
    """Raised on duplicates and on operations that conflict with current state."""

    def __init__(self, message: str, error_code: str = "CONFLICT"):
        super().__init__(message=message, error_code=error_code, status_code=409)


class InvalidStatusError(ServiceError):
    """Raised when a status value is not accepted by the operation."""

    def __init__(self, value: str, allowed: list[str]):
        super().__init__(
            message=f"Invalid status '{value}'. Allowed values: {allowed}",
            error_code="INVALID_STATUS",
            status_code=400,
        )


class InvalidStatusTransitionError(ServiceError):
    """Raised when a state machine transition is not allowed."""

    def __init__(self, entity: str, current_status: str, new_status: str):
        self.current_status = current_status
        self.new_status = new_status
        super().__init__(
            message=f"Invalid {entity} status transition: {current_status} -> {new_status}",
            error_code="INVALID_STATUS_TRANSITION",
            status_code=409,
        )


class PaymentNotCompletedError(ServiceError):
    """Raised when the provider reports a checkout session that is not paid."""

    def __init__(self, payment_status: str | None):
        super().__init__(
            message=f"Payment not completed (status: {payment_status or 'unknown'})",
            error_code="PAYMENT_NOT_COMPLETED",
            status_code=402,
        )


class MetadataMissingError(ServiceError):
    """Raised when a paid checkout session lacks settlement metadata."""

    def __init__(self, missing: list[str]):
        super().__init__(
            message=f"Checkout session metadata is missing: {', '.join(missing)}",
            error_code="METADATA_MISSING",
            status_code=400,
        )


class ConfigurationError(ServiceError):
    """Raised when required server configuration is absent. Not user-recoverable."""

    def __init__(self, message: str = "Server configuration error."):
        super().__init__(message=message, error_code="CONFIGURATION_ERROR", status_code=500)


class ServerError(ServiceError):
    """Raised when an upstream provider call fails."""

    def __init__(self, message: str = "Upstream service failure."):
        super().__init__(message=message, error_code="SERVER_ERROR", status_code=502)


def to_http_exception(e: ServiceError) -> HTTPException:
    """Convert a service error into the API's HTTPException shape."""
    headers = {"WWW-Authenticate": "Bearer"} if e.status_code == 401 else None
    return HTTPException(
        status_code=e.status_code,
        detail={
            "error": e.error_code,
            "message": e.message,
        },
        headers=headers,
    )


def internal_error() -> HTTPException:
    """Generic 500 response for unexpected failures."""
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
