"""Services package."""

from finance_tracker.services.storage import (
    InMemoryStorage,
    JsonFileStorage,
    StorageError,
    StorageInterface,
    StorageKind,
    StorageQuotaExceededError,
)
from finance_tracker.services.transfer import (
    ImportRejectedError,
    ParsedImport,
    build_export_document,
    export_to_json,
    parse_import_document,
)

__all__ = [
    # Storage services
    "InMemoryStorage",
    "JsonFileStorage",
    "StorageError",
    "StorageInterface",
    "StorageKind",
    "StorageQuotaExceededError",
    # Import / export
    "ImportRejectedError",
    "ParsedImport",
    "build_export_document",
    "export_to_json",
    "parse_import_document",
]
