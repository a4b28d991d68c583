class StorageError(Exception):
    """Base exception for task and session persistence."""


class StorageConfigurationError(StorageError):
    """Raised when the storage backend configuration is invalid."""


class InvalidTaskError(StorageError, ValueError):
    """Raised when task fields fail validation."""
