"""
Domain errors raised by the service layer

Each error carries the HTTP status and error code the API layer
reports it with; services never build HTTP responses themselves.
"""


class TutorialAppError(Exception):
    """Base class for all domain errors"""

    status_code = 500
    error = "internal_server_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(TutorialAppError):
    """Referenced record does not exist or is not visible to the caller"""

    status_code = 404
    error = "not_found"


class ForbiddenError(TutorialAppError):
    """Caller is authenticated but not allowed to perform the operation"""

    status_code = 403
    error = "forbidden"


class ConflictError(TutorialAppError):
    """Operation would create a duplicate record"""

    status_code = 409
    error = "conflict"


class ExpiredError(TutorialAppError):
    """Quiz attempt was submitted after its expiry window"""

    status_code = 410
    error = "attempt_expired"


class ValidationError(TutorialAppError):
    """Input is well-formed but violates a business rule"""

    status_code = 400
    error = "validation_error"
