# welcomebot/core/engine/state.py
"""
Per-user state on top of a ``Storage`` backend.

The record of the current turn is loaded at most once (on first accessor use)
and kept in ``TurnContext.turn_state``; accessors read and mutate that in-turn
copy. Nothing reaches storage until ``UserState.save_changes`` is called, which
the turn orchestrator does exactly once, after the handler finished.

Commits are compare-and-swap on the etag read at load time, so two turns for
the same user that raced on the same version cannot both win.
"""
from __future__ import annotations

import hashlib
import json
from dataclasses import asdict, fields, is_dataclass
from typing import Any, Callable, Optional

from welcomebot.core.engine.domain import CachedState, StoredRecord
from welcomebot.core.engine.errors import StateStoreError
from welcomebot.core.engine.ports import Storage
from welcomebot.core.engine.turn_context import TurnContext
from welcomebot.infra.logging_config import get_logger

logger = get_logger(__name__)


def _encode_value(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def serialize_state(state: dict[str, Any]) -> str:
    """Deterministic JSON: the same record always produces the same text."""
    return json.dumps(
        state,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=_encode_value,
    )


def _digest(document: str) -> str:
    return hashlib.sha256(document.encode("utf-8")).hexdigest()


class UserState:
    """
    Durable per-user record addressed by ``ConversationKey``.

    One instance is shared by the whole process and passed explicitly to the
    bot and to the orchestrator. It holds no per-turn data itself.
    """

    def __init__(
        self,
        storage: Storage,
        *,
        namespace: str = "UserState",
        skip_unchanged_commits: bool = False,
    ) -> None:
        self.storage = storage
        self.namespace = namespace
        self.skip_unchanged_commits = skip_unchanged_commits
        self._cache_key = f"state:{namespace}"

    def create_property(self, name: str, state_type: Optional[type] = None) -> "StatePropertyAccessor":
        if not name:
            raise ValueError("Property name must not be empty")
        return StatePropertyAccessor(self, name, state_type)

    def get_storage_key(self, context: TurnContext) -> str:
        return context.conversation_key.storage_key(self.namespace)

    def get_cached_state(self, context: TurnContext) -> Optional[CachedState]:
        return context.turn_state.get(self._cache_key)

    async def load(self, context: TurnContext, force: bool = False) -> CachedState:
        cached = self.get_cached_state(context)
        if cached is not None and not force:
            return cached

        key = self.get_storage_key(context)
        try:
            items = await self.storage.read([key])
        except StateStoreError:
            raise
        except Exception as exc:
            raise StateStoreError(f"Failed to read user state: {exc}") from exc

        record = items.get(key)
        if record is None:
            cached = CachedState(state={}, etag=None, hash=_digest(serialize_state({})))
        else:
            try:
                state = json.loads(record.document)
            except ValueError as exc:
                raise StateStoreError(f"Stored user state is not valid JSON: {key}") from exc
            if not isinstance(state, dict):
                raise StateStoreError(f"Stored user state is not an object: {key}")
            cached = CachedState(state=state, etag=record.etag, hash=_digest(record.document))

        context.turn_state[self._cache_key] = cached
        return cached

    async def save_changes(self, context: TurnContext, force: bool = False) -> bool:
        """
        Commit the in-turn record. Returns True if storage was written.

        A turn that never loaded state has nothing to persist and is a no-op.
        """
        cached = self.get_cached_state(context)
        if cached is None:
            return False

        document = serialize_state(cached.state)
        digest = _digest(document)
        if self.skip_unchanged_commits and not force and digest == cached.hash:
            context.log.debug("User state unchanged, commit skipped")
            return False

        key = self.get_storage_key(context)
        try:
            etags = await self.storage.write({key: StoredRecord(document=document, etag=cached.etag)})
        except StateStoreError:
            raise
        except Exception as exc:
            raise StateStoreError(f"Failed to write user state: {exc}") from exc

        cached.etag = etags.get(key, cached.etag)
        cached.hash = digest
        return True

    def clear_state(self, context: TurnContext) -> None:
        """Empty the in-turn record; the next commit overwrites the stored one."""
        cached = self.get_cached_state(context)
        etag = cached.etag if cached is not None else None
        context.turn_state[self._cache_key] = CachedState(state={}, etag=etag, hash="")

    async def delete(self, context: TurnContext) -> None:
        """Remove the stored record and forget the in-turn copy."""
        context.turn_state.pop(self._cache_key, None)
        key = self.get_storage_key(context)
        try:
            await self.storage.delete([key])
        except StateStoreError:
            raise
        except Exception as exc:
            raise StateStoreError(f"Failed to delete user state: {exc}") from exc


class StatePropertyAccessor:
    """
    Named view over one field of the user record.

    Stateless: the same accessor is reused across turns. When ``state_type`` is
    a dataclass, a stored dict is turned back into that type on first read in
    the turn (unknown keys are dropped) so handlers can mutate it in place.
    """

    def __init__(self, state: UserState, name: str, state_type: Optional[type] = None):
        self._state = state
        self.name = name
        self.state_type = state_type

    async def get(self, context: TurnContext, default_factory: Optional[Callable[[], Any]] = None) -> Any:
        cached = await self._state.load(context)

        if self.name in cached.state:
            value = cached.state[self.name]
            if isinstance(value, dict) and self.state_type is not None and is_dataclass(self.state_type):
                known = {f.name for f in fields(self.state_type)}
                value = self.state_type(**{k: v for k, v in value.items() if k in known})
                cached.state[self.name] = value
            return value

        if default_factory is None:
            return None

        value = default_factory()
        cached.state[self.name] = value
        return value

    async def set(self, context: TurnContext, value: Any) -> None:
        cached = await self._state.load(context)
        cached.state[self.name] = value

    async def delete(self, context: TurnContext) -> None:
        cached = await self._state.load(context)
        cached.state.pop(self.name, None)
