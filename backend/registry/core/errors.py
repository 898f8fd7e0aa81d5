"""Domain errors raised by the registry services.

Every error maps to a distinct HTTP status in ``registry.main``; services never
raise ``HTTPException`` themselves so they can be driven directly from tests
and scripts.
"""

from fastapi import status


class RegistryError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(RegistryError):
    """Malformed or out-of-range input."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(RegistryError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(RegistryError):
    """Action not allowed given the current state of the entity."""

    status_code = status.HTTP_409_CONFLICT


class AuthorizationError(RegistryError):
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str, *, authenticated: bool = True) -> None:
        super().__init__(message)
        if not authenticated:
            self.status_code = status.HTTP_401_UNAUTHORIZED
