from __future__ import annotations
from typing import Mapping, Sequence

import asyncpg

from welcomebot.core.engine.domain import StoredRecord
from welcomebot.core.engine.errors import StateConflictError, StateStoreError
from welcomebot.core.engine.ports import Storage
from welcomebot.infra.db_async import db_conn
from welcomebot.infra.db_resilience_async import retry_on_transient_error
from welcomebot.infra.metrics import AppMetrics
from welcomebot.infra.logging_config import get_logger

logger = get_logger(__name__)

_DB_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, RuntimeError)


def _parse_etag(key: str, etag: str) -> int:
    try:
        return int(etag)
    except ValueError:
        raise StateConflictError(f"Invalid etag for {key}: {etag!r}") from None


class AsyncPostgresStorage(Storage):
    """
    asyncpg implementation of Storage over the ``bot_state`` table.

    A write batch runs in one transaction; any etag mismatch rolls back the
    whole batch. ``version`` is the etag.
    """

    async def read(self, keys: Sequence[str]) -> dict[str, StoredRecord]:
        if not keys:
            return {}
        try:
            rows = await self._fetch(list(keys))
        except _DB_ERRORS as exc:
            logger.error(f"Failed to read state: keys={len(keys)}", exc_info=True)
            AppMetrics.storage_error("postgres", "read")
            raise StateStoreError(f"State read failed: {exc.__class__.__name__}") from exc

        return {
            row["storage_key"]: StoredRecord(document=row["document"], etag=str(row["version"]))
            for row in rows
        }

    async def write(self, changes: Mapping[str, StoredRecord]) -> dict[str, str]:
        if not changes:
            return {}
        try:
            return await self._write_batch(dict(changes))
        except StateConflictError:
            AppMetrics.state_conflict("postgres")
            raise
        except _DB_ERRORS as exc:
            logger.error(f"Failed to write state: keys={len(changes)}", exc_info=True)
            AppMetrics.storage_error("postgres", "write")
            raise StateStoreError(f"State write failed: {exc.__class__.__name__}") from exc

    async def delete(self, keys: Sequence[str]) -> None:
        if not keys:
            return
        try:
            await self._delete(list(keys))
        except _DB_ERRORS as exc:
            logger.error(f"Failed to delete state: keys={len(keys)}", exc_info=True)
            AppMetrics.storage_error("postgres", "delete")
            raise StateStoreError(f"State delete failed: {exc.__class__.__name__}") from exc

    # ------------------------------------------------------------------
    # SQL
    # ------------------------------------------------------------------

    @retry_on_transient_error(max_retries=3)
    async def _fetch(self, keys: list[str]):
        async with db_conn() as conn:
            return await conn.fetch(
                "SELECT storage_key, document, version FROM bot_state WHERE storage_key = ANY($1::text[])",
                keys,
            )

    @retry_on_transient_error(max_retries=3)
    async def _write_batch(self, changes: dict[str, StoredRecord]) -> dict[str, str]:
        etags: dict[str, str] = {}
        async with db_conn(autocommit=False) as conn:
            for key, record in changes.items():
                version = await self._write_one(conn, key, record)
                etags[key] = str(version)
        return etags

    @staticmethod
    async def _write_one(conn: asyncpg.Connection, key: str, record: StoredRecord) -> int:
        if record.etag == "*":
            return await conn.fetchval(
                """
                INSERT INTO bot_state(storage_key, document)
                VALUES ($1, $2)
                ON CONFLICT (storage_key)
                DO UPDATE SET
                  document = EXCLUDED.document,
                  version = bot_state.version + 1,
                  updated_at = now()
                RETURNING version
                """,
                key, record.document,
            )

        if record.etag is not None:
            version = await conn.fetchval(
                """
                UPDATE bot_state
                SET document = $2, version = version + 1, updated_at = now()
                WHERE storage_key = $1 AND version = $3
                RETURNING version
                """,
                key, record.document, _parse_etag(key, record.etag),
            )
            if version is not None:
                return version
            exists = await conn.fetchval("SELECT 1 FROM bot_state WHERE storage_key = $1", key)
            if exists:
                raise StateConflictError(f"Etag mismatch for {key}: expected {record.etag}")

        # Create (etag None) or re-create a record deleted since it was read
        version = await conn.fetchval(
            """
            INSERT INTO bot_state(storage_key, document)
            VALUES ($1, $2)
            ON CONFLICT (storage_key) DO NOTHING
            RETURNING version
            """,
            key, record.document,
        )
        if version is None:
            raise StateConflictError(f"Record already exists: {key}")
        return version

    @retry_on_transient_error(max_retries=3)
    async def _delete(self, keys: list[str]) -> None:
        async with db_conn() as conn:
            await conn.execute("DELETE FROM bot_state WHERE storage_key = ANY($1::text[])", keys)
