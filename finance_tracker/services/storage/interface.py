"""
Abstract Storage Interface

DESIGN DECISION: Persistence is an opaque key-value contract.
This allows us to:
1. Keep JSON files on disk for everyday use
2. Use in-memory storage for testing
3. Keep the store decoupled from how bytes reach disk

The interface is intentionally tiny: one document per kind, loaded and
saved whole.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Optional


class StorageKind(str, Enum):
    """The documents the tracker persists."""
    TRANSACTIONS = "transactions"
    SETTINGS = "settings"


class StorageInterface(ABC):
    """
    Abstract interface for key-value persistence.

    Any storage implementation must implement these methods.
    Documents are plain JSON-compatible values (lists, dicts, numbers,
    strings).
    """

    @abstractmethod
    def load(self, kind: StorageKind) -> Optional[Any]:
        """
        Load the document stored for a kind.

        Args:
            kind: Which document to read

        Returns:
            The document, or None when nothing usable is stored
            (first run, or unreadable data)
        """
        pass

    @abstractmethod
    def save(self, kind: StorageKind, data: Any) -> bool:
        """
        Replace the document stored for a kind.

        Args:
            kind: Which document to write
            data: JSON-compatible document

        Returns:
            True if saved successfully

        Raises:
            StorageQuotaExceededError: If the document exceeds the quota
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def remove(self, kind: StorageKind) -> bool:
        """
        Delete the document stored for a kind.

        Returns:
            True if something was removed
        """
        pass

    def clear(self) -> bool:
        """Remove every tracker document."""
        for kind in StorageKind:
            self.remove(kind)
        return True


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageQuotaExceededError(StorageError):
    """Document is larger than the storage quota allows."""

    def __init__(self, kind: StorageKind, size: int, limit: int):
        super().__init__(
            f"Document for {kind.value} is {size} bytes; quota is {limit} bytes"
        )
        self.kind = kind
        self.size = size
        self.limit = limit
