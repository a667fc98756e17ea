class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a project, event or profile does not exist."""


class FetchError(DomainError):
    """Raised when a bulk load fails or times out. Retry is allowed."""


class SyncError(DomainError):
    """Raised when an attendance mutation could not be written.

    The optimistic local change has already been rolled back when this is raised.
    """


class SessionClosedError(DomainError):
    """Raised when an attendance view is used after it was closed."""
