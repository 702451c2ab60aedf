from __future__ import annotations


class NotAuthenticatedError(PermissionError):
    """Raised when a record operation runs without an authenticated user id."""

    def __init__(self, message: str = "Usuario no autenticado") -> None:
        super().__init__(message)
