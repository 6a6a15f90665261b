"""Custom exceptions for catalog operations."""

from __future__ import annotations


class CatalogError(Exception):
    """Base exception for catalog-related errors."""

    def __init__(self, message: str, code: str = "CATALOG_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class NotFoundError(CatalogError):
    """Raised when a referenced path, row or association does not exist."""

    def __init__(self, message: str, code: str = "NOT_FOUND"):
        super().__init__(message, code)


class RepositoryNotFoundError(NotFoundError):
    """Raised when a repository root is missing or not a directory."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Repository directory not found: {path}", "REPOSITORY_NOT_FOUND")


class DuplicateError(CatalogError):
    """Raised when creating an entity that already exists."""

    def __init__(self, message: str):
        super().__init__(message, "DUPLICATE")


class ValidationError(CatalogError):
    """Raised when input is empty or out of bounds."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message, "VALIDATION_ERROR")


class AccessError(CatalogError):
    """Raised when part of the filesystem cannot be read."""

    def __init__(self, path: str, message: str | None = None):
        self.path = path
        super().__init__(message or f"Permission denied: {path}", "ACCESS_DENIED")


class StorageError(CatalogError):
    """Raised when the catalog database cannot be read or written."""

    def __init__(self, message: str, code: str = "STORAGE_ERROR"):
        super().__init__(message, code)


class CatalogNotInitializedError(StorageError):
    """Raised when the catalog database has not been created yet."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        super().__init__(
            f"There's no catalog at {db_path}, create one first",
            "NOT_INITIALIZED",
        )
