"""
Async database resilience utilities.
Retry logic for transient asyncpg failures.
"""
from __future__ import annotations
import asyncio
from typing import TypeVar, Callable
from functools import wraps

import asyncpg
from welcomebot.core.engine.errors import BotError
from welcomebot.infra.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar('T')


def is_transient_error(exc: Exception) -> bool:
    """
    Check if database error is transient (should retry).

    Transient errors:
    - Connection errors
    - Server closed connection
    - Too many connections
    - Deadlock / serialization failure
    """
    if isinstance(exc, BotError):
        # Domain outcomes (e.g. etag conflicts) are final for this attempt.
        return False

    if isinstance(exc, (
        asyncpg.PostgresConnectionError,
        asyncpg.TooManyConnectionsError,
        asyncpg.DeadlockDetectedError,
        asyncpg.SerializationError,
    )):
        return True

    if isinstance(exc, (ConnectionError, TimeoutError, asyncio.TimeoutError)):
        return True

    error_message = str(exc).lower()
    transient_patterns = [
        "connection reset",
        "server closed",
        "too many connections",
        "timeout",
    ]
    return any(pattern in error_message for pattern in transient_patterns)


def retry_on_transient_error(
    max_retries: int = 3,
    initial_delay: float = 0.1,
    backoff_factor: float = 2.0,
    max_delay: float = 5.0
):
    """
    Decorator to retry an async function on transient database errors.

    The whole decorated operation is re-run, so it must be safe to repeat
    (a single statement or a complete transaction).

    Example:
        @retry_on_transient_error(max_retries=3)
        async def read(key: str):
            async with db_conn() as conn:
                return await conn.fetchrow("SELECT ... WHERE storage_key = $1", key)
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            delay = initial_delay

            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except Exception as exc:
                    if not is_transient_error(exc):
                        raise

                    if attempt >= max_retries:
                        logger.error(
                            f"Max retries ({max_retries}) exceeded in {func.__name__}",
                            exc_info=True
                        )
                        raise

                    logger.warning(
                        f"Transient error in {func.__name__} (attempt {attempt + 1}/{max_retries}): {exc}. "
                        f"Retrying in {delay:.2f}s..."
                    )

                    await asyncio.sleep(delay)
                    delay = min(delay * backoff_factor, max_delay)

        return wrapper
    return decorator
