"""
Domain-specific exceptions.

Services and the live session raise these; main.py converts them to HTTP
responses.
"""


class OneMoreError(Exception):
    """Base exception for all service errors."""
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class AuthenticationError(OneMoreError):
    """Raised when anonymous sign-in or token validation fails."""
    status_code = 401


class PermissionDeniedError(OneMoreError):
    """Raised when a user lacks the ownership required for an action."""
    status_code = 403


class NotFoundError(OneMoreError):
    """Raised when a session, participant or drink type does not exist."""
    status_code = 404


class ParticipantAlreadyClaimedError(OneMoreError):
    """Raised when another user claimed the participant slot first."""
    status_code = 409

    def __init__(self, message: str = "This participant was already claimed by someone else"):
        super().__init__(message)


class InvalidOperationError(OneMoreError):
    """Raised for malformed requests such as a delta other than +1/-1."""
    status_code = 400


class StoreError(OneMoreError):
    """Raised when the remote store rejects or fails an operation."""
    status_code = 502


def is_duplicate_key_error(exc: BaseException) -> bool:
    """True for unique-constraint violations reported by Postgres/PostgREST.

    Follows ``__cause__`` so a StoreError wrapping the original error still matches.
    """
    while exc is not None:
        if getattr(exc, "code", None) == "23505":
            return True
        message = str(getattr(exc, "message", None) or exc).lower()
        if "duplicate key" in message or "unique constraint" in message:
            return True
        exc = exc.__cause__
    return False
