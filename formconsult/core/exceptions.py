"""Custom application exceptions."""


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class UnauthorizedException(AppException):
    """Missing or invalid credentials."""

    def __init__(self, message: str = "Unauthorized"):
        """Initialize with 401 status code."""
        super().__init__(message, status_code=401)


class ForbiddenException(AppException):
    """Authenticated user fails the operation's access rule."""

    def __init__(self, message: str = "Forbidden"):
        """Initialize with 403 status code."""
        super().__init__(message, status_code=403)


class BadRequestException(AppException):
    """Bad request exception."""

    def __init__(self, message: str = "Bad request"):
        """Initialize with 400 status code."""
        super().__init__(message, status_code=400)


class ConflictException(AppException):
    """Conflict exception."""

    def __init__(self, message: str = "Conflict"):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409)


class InvalidTransitionException(ConflictException):
    """Requested status change is not allowed from the current status."""

    def __init__(self, current_status: str, target_status: str):
        """Initialize with both ends of the rejected transition."""
        self.current_status = current_status
        self.target_status = target_status
        super().__init__(
            f"Cannot move consultation from {current_status} to {target_status}"
        )


class ConcurrentUpdateException(ConflictException):
    """The record changed between read and write."""

    def __init__(self, message: str = "Consultation was modified concurrently, retry"):
        """Initialize with 409 status code."""
        super().__init__(message)


class ValidationException(AppException):
    """Validation error exception."""

    def __init__(self, message: str = "Validation error"):
        """Initialize with 422 status code."""
        super().__init__(message, status_code=422)


class PersistenceException(AppException):
    """Database write failed."""

    def __init__(self, message: str = "Failed to persist changes"):
        """Initialize with 500 status code."""
        super().__init__(message, status_code=500)
