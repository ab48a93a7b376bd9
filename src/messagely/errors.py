"""Application error hierarchy.

Every error the service layer raises derives from MessagelyError and carries
the HTTP status and a short machine-readable code. A single exception handler
in main.py turns them into JSON responses, so routes never build
HTTPExceptions by hand.

    MessagelyError
    ├── NotFoundError            404 not_found
    ├── DuplicateKeyError        409 conflict
    ├── ValidationError          400 validation_error
    ├── InvalidCredentialsError  401 invalid_credentials
    ├── InvalidTokenError        401 invalid_token
    ├── UnauthenticatedError     401 unauthenticated
    └── ForbiddenError           403 forbidden
"""


class MessagelyError(Exception):
    """Base class for all application errors."""

    status_code = 500
    code = "internal_error"
    default_message = "An unexpected error occurred"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(MessagelyError):
    status_code = 404
    code = "not_found"
    default_message = "Resource not found"


class DuplicateKeyError(MessagelyError):
    status_code = 409
    code = "conflict"
    default_message = "Resource already exists"


class ValidationError(MessagelyError):
    status_code = 400
    code = "validation_error"
    default_message = "Invalid input"


class InvalidCredentialsError(MessagelyError):
    """Login failed. Deliberately says nothing about which part was wrong."""

    status_code = 401
    code = "invalid_credentials"
    default_message = "Invalid username or password"


class InvalidTokenError(MessagelyError):
    status_code = 401
    code = "invalid_token"
    default_message = "Invalid token"


class UnauthenticatedError(MessagelyError):
    status_code = 401
    code = "unauthenticated"
    default_message = "Authentication required"


class ForbiddenError(MessagelyError):
    status_code = 403
    code = "forbidden"
    default_message = "Not allowed"
