"""Shared exceptions for service layer operations."""
from typing import Any


class ValidationError(Exception):
    """Raised when input is rejected by a service (maps to 400)."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class NotFoundError(Exception):
    """Raised when a requested resource does not exist (maps to 404)."""

    def __init__(self, resource: str, resource_id: int | str) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found")


class DuplicateUrlError(Exception):
    """
    Raised when a bookmark for the same URL already exists (maps to 409).

    `existing` holds the hydrated existing bookmark so the client can show it.
    """

    def __init__(self, url: str, existing: Any) -> None:
        self.url = url
        self.existing = existing
        super().__init__("Bookmark already exists")


class TagPathConflictError(Exception):
    """Raised when a tag rename would produce a path that is already taken."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Tag path '{path}' already exists")


class UnauthorizedError(Exception):
    """Raised when a request lacks write access (maps to 401)."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)
