# welcomebot/core/engine/ports.py
from __future__ import annotations
from typing import Protocol, Mapping, Sequence
from welcomebot.core.engine.domain import Activity, ResourceResponse, StoredRecord


class Storage(Protocol):
    async def read(self, keys: Sequence[str]) -> dict[str, StoredRecord]:
        """Return the records that exist; missing keys are simply absent."""
        ...

    async def write(self, changes: Mapping[str, StoredRecord]) -> dict[str, str]:
        """
        Write all *changes* as one batch and return the new etag per key.

        Per record: etag ``"*"`` overwrites, ``None`` creates only if absent,
        anything else replaces only if it equals the stored etag. A mismatch
        raises ``StateConflictError`` and nothing from the batch is written.
        """
        ...

    async def delete(self, keys: Sequence[str]) -> None: ...


class ActivitySender(Protocol):
    async def send_activities(self, activities: Sequence[Activity]) -> list[ResourceResponse]: ...
