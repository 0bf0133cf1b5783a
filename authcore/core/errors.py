"""Error taxonomy shared by the credential manager, the store and the auth gate.

Every ServiceError carries the HTTP status and the message the API renders;
exception handlers in authcore.main turn them into
``{"error": true, "message": ..., "details": ..., "field": ...}``.
"""

from fastapi import status


class ServiceError(Exception):
    """Base for failures that map to a structured error response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: str | None = None,
        *,
        details: dict[str, str] | None = None,
        field: str | None = None,
    ) -> None:
        self.message = message or self.message
        self.details = details
        self.field = field
        super().__init__(self.message)


class ValidationFailed(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Validation failed"


class MissingFields(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Missing required fields"


class DuplicateIdentity(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    message = "User already exists"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message, field="email")


class InvalidCredentials(ServiceError):
    """Unknown account and wrong password both end here, with one message."""

    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid credentials"


class AuthMissing(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "No token, authorization denied"


class AuthExpired(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Token has expired"


class AuthInvalid(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Token is not valid"


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "User not found"


class InternalError(ServiceError):
    pass


class StoreUnavailable(InternalError):
    """Account store is disconnected or dropped the connection mid-request."""

    message = "Account store is unavailable"


class TokenSigningError(InternalError):
    message = "Could not sign token"


# Codec and store signals; callers translate these into ServiceErrors.


class TokenError(Exception):
    """Base for token verification failures."""


class TokenExpired(TokenError):
    pass


class TokenInvalid(TokenError):
    pass


class DuplicateKeyError(Exception):
    """The store rejected an insert on its unique email constraint."""
