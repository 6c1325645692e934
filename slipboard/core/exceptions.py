from enum import Enum

from fastapi import status


class ErrorKind(str, Enum):
    NOT_CONFIGURED = "NOT_CONFIGURED"
    NOT_FOUND = "NOT_FOUND"
    INVALID_INPUT = "INVALID_INPUT"
    CONFLICT = "CONFLICT"


class ServiceError(Exception):
    """Base exception for service layer errors."""

    kind: ErrorKind = ErrorKind.INVALID_INPUT

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NotConfiguredError(ServiceError):
    """Storage is unavailable. Not retried."""

    kind = ErrorKind.NOT_CONFIGURED

    def __init__(self, message: str = "Database not configured") -> None:
        super().__init__(message, status.HTTP_503_SERVICE_UNAVAILABLE)


class NotFoundError(ServiceError):
    """Missing resource, or a resource the caller may not see."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class InvalidInputError(ServiceError):
    kind = ErrorKind.INVALID_INPUT

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class ConflictError(ServiceError):
    """A status-guarded write matched nothing (already signed, already claimed...)."""

    kind = ErrorKind.CONFLICT

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_409_CONFLICT)
