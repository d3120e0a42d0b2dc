"""
JSON File Storage Implementation

DESIGN DECISION: Each kind is stored as one JSON file under a data
directory, e.g. ``.finance_tracker/sft_transactions.json``:
1. Users can read and back up their data directly
2. No database setup required
3. Writes go to a temp file first and are swapped in with os.replace,
   so a crash never leaves a half-written document

TRADEOFFS:
- The whole collection is rewritten on every save (fine for personal use)
- A per-document byte quota mirrors the limits of browser storage
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from finance_tracker.config import StorageSettings, get_config
from finance_tracker.services.storage.interface import (
    StorageError,
    StorageInterface,
    StorageKind,
    StorageQuotaExceededError,
)


logger = structlog.get_logger(__name__)


class JsonFileStorage(StorageInterface):
    """
    File-backed key-value storage.

    Transient OS errors on write are retried; quota violations are not.
    """

    def __init__(self, settings: Optional[StorageSettings] = None):
        self._settings = settings or get_config().storage
        self._data_dir = Path(self._settings.data_dir)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def path_for(self, kind: StorageKind) -> Path:
        """File holding the document for a kind."""
        return self._data_dir / f"{self._settings.key_prefix}{kind.value}.json"

    def load(self, kind: StorageKind) -> Optional[Any]:
        path = self.path_for(kind)
        if not path.exists():
            return None

        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error("storage_read_failed", path=str(path), error=str(e))
            return None

        if not text.strip():
            return None

        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            logger.error("storage_document_corrupt", path=str(path), error=str(e))
            return None

    def save(self, kind: StorageKind, data: Any) -> bool:
        try:
            payload = json.dumps(data, ensure_ascii=False, indent=2)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Document for {kind.value} is not JSON-serializable: {e}") from e

        encoded = payload.encode("utf-8")
        limit = self._settings.max_bytes_per_key
        if len(encoded) > limit:
            raise StorageQuotaExceededError(kind, len(encoded), limit)

        try:
            self._write_with_retry(self.path_for(kind), encoded)
        except OSError as e:
            raise StorageError(f"Error writing to storage [{kind.value}]: {e}") from e

        return True

    def remove(self, kind: StorageKind) -> bool:
        path = self.path_for(kind)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Error removing from storage [{kind.value}]: {e}") from e
        return True

    def _write_with_retry(self, path: Path, encoded: bytes) -> None:
        writer = retry(
            retry=retry_if_exception_type(OSError),
            stop=stop_after_attempt(self._settings.save_attempts),
            wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
            reraise=True,
        )(self._write_atomic)
        writer(path, encoded)

    def _write_atomic(self, path: Path, encoded: bytes) -> None:
        """Write to a sibling temp file, then swap it into place."""
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(encoded)
            os.replace(tmp_name, path)
        except OSError:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise
