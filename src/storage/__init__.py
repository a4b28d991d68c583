from .contracts import PomorangeStore
from .errors import InvalidTaskError, StorageConfigurationError, StorageError
from .factory import STORAGE_BACKENDS, build_store
from .json_store import JsonFileStore
from .models import SessionRecord, Task
from .sqlite_store import SQLiteStore

__all__ = [
    "InvalidTaskError",
    "JsonFileStore",
    "PomorangeStore",
    "SQLiteStore",
    "STORAGE_BACKENDS",
    "SessionRecord",
    "StorageConfigurationError",
    "StorageError",
    "Task",
    "build_store",
]
