"""
In-Memory Storage

Keeps documents as JSON text in a dict. Serializing on save means a
caller can never mutate what was stored through a reference it still
holds, and it gives an exact byte size for the optional quota.

Used by tests and by hosts that want an ephemeral tracker.
"""

import json
from typing import Any, Optional

import structlog

from finance_tracker.services.storage.interface import (
    StorageError,
    StorageInterface,
    StorageKind,
    StorageQuotaExceededError,
)


logger = structlog.get_logger(__name__)


class InMemoryStorage(StorageInterface):
    """Dict-backed key-value storage with an optional byte quota."""

    def __init__(self, quota_bytes: Optional[int] = None):
        self._documents: dict[StorageKind, str] = {}
        self._quota_bytes = quota_bytes
        self._fail_next_saves = 0
        self.save_calls = 0

    def fail_next_saves(self, count: int = 1) -> None:
        """Make the next `count` saves raise StorageError."""
        self._fail_next_saves = count

    def load(self, kind: StorageKind) -> Optional[Any]:
        text = self._documents.get(kind)
        if text is None:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            logger.error("storage_document_corrupt", kind=kind.value, error=str(e))
            return None

    def save(self, kind: StorageKind, data: Any) -> bool:
        self.save_calls += 1

        if self._fail_next_saves:
            self._fail_next_saves -= 1
            raise StorageError(f"Simulated write failure for {kind.value}")

        try:
            text = json.dumps(data)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Document for {kind.value} is not JSON-serializable: {e}") from e

        size = len(text.encode("utf-8"))
        if self._quota_bytes is not None and size > self._quota_bytes:
            raise StorageQuotaExceededError(kind, size, self._quota_bytes)

        self._documents[kind] = text
        return True

    def remove(self, kind: StorageKind) -> bool:
        return self._documents.pop(kind, None) is not None

    def put_raw(self, kind: StorageKind, text: str) -> None:
        """Store text as-is, bypassing serialization (for corrupt-data cases)."""
        self._documents[kind] = text
