"""Domain errors raised by the services and the collaborators.

Each error carries the HTTP status the API layer answers with; the
handlers in ``main.py`` render them as ``{"detail": message}``.
"""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConflictError(AppError):
    """A uniqueness or state invariant would be violated."""
    status_code = 409


class NotFoundError(AppError):
    """The referenced record does not exist."""
    status_code = 404


class ValidationError(AppError):
    """Malformed input that passed schema parsing."""
    status_code = 400


class AuthenticationError(AppError):
    status_code = 401


class UnavailableError(AppError):
    """A collaborator could not be reached or refused access."""
    status_code = 503


class CollaboratorTimeoutError(AppError, TimeoutError):
    """A collaborator call did not finish within the configured timeout. Retryable."""
    status_code = 504
