"""
Process-local storage backend.

Keeps serialized documents only, so two turns never share a live state
object. A ``threading.Lock`` makes each batch atomic; the lock is never held
across an ``await``.
"""
from __future__ import annotations

from itertools import count
from threading import Lock
from typing import Mapping, Sequence

from welcomebot.core.engine.domain import StoredRecord
from welcomebot.core.engine.errors import StateConflictError
from welcomebot.core.engine.ports import Storage
from welcomebot.infra.logging_config import get_logger
from welcomebot.infra.metrics import AppMetrics

logger = get_logger(__name__)


class MemoryStorage(Storage):

    def __init__(self) -> None:
        self._records: dict[str, StoredRecord] = {}
        self._lock = Lock()
        self._versions = count(1)

    async def read(self, keys: Sequence[str]) -> dict[str, StoredRecord]:
        with self._lock:
            return {
                key: StoredRecord(document=rec.document, etag=rec.etag)
                for key in keys
                if (rec := self._records.get(key)) is not None
            }

    async def write(self, changes: Mapping[str, StoredRecord]) -> dict[str, str]:
        with self._lock:
            for key, new in changes.items():
                self._check_etag(key, new.etag)

            etags: dict[str, str] = {}
            for key, new in changes.items():
                etag = str(next(self._versions))
                self._records[key] = StoredRecord(document=new.document, etag=etag)
                etags[key] = etag
            return etags

    async def delete(self, keys: Sequence[str]) -> None:
        with self._lock:
            for key in keys:
                self._records.pop(key, None)

    def raw(self, key: str) -> str | None:
        """Stored document for *key* (inspection helper for tests and debugging)."""
        with self._lock:
            rec = self._records.get(key)
            return rec.document if rec else None

    def _check_etag(self, key: str, expected: str | None) -> None:
        if expected == "*":
            return
        current = self._records.get(key)
        if expected is None:
            if current is not None:
                AppMetrics.state_conflict("memory")
                raise StateConflictError(f"Record already exists: {key}")
            return
        if current is not None and current.etag != expected:
            AppMetrics.state_conflict("memory")
            raise StateConflictError(
                f"Etag mismatch for {key}: expected {expected}, found {current.etag}"
            )
