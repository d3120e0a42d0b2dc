"""
Storage Services Package

Provides the key-value persistence interface and its implementations.
JSON files on disk are the default backend; in-memory storage serves
tests and ephemeral use.
"""

from finance_tracker.services.storage.interface import (
    StorageError,
    StorageInterface,
    StorageKind,
    StorageQuotaExceededError,
)
from finance_tracker.services.storage.json_file import JsonFileStorage
from finance_tracker.services.storage.memory import InMemoryStorage

__all__ = [
    # Interface
    "StorageInterface",
    "StorageKind",
    # Exceptions
    "StorageError",
    "StorageQuotaExceededError",
    # Implementations
    "InMemoryStorage",
    "JsonFileStorage",
]
