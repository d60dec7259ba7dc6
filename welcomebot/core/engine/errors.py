# welcomebot/core/engine/errors.py
"""
Typed errors of the turn pipeline.

Handlers raise ``HandlerError`` (or anything else); the dispatcher wraps every
handler failure in ``DispatchError``. Storage backends raise
``StateStoreError``. The orchestrator converts whichever of these stopped the
turn into a single ``TurnError`` that the transport decides how to report.
"""
from __future__ import annotations

from typing import Optional


class BotError(Exception):
    """Base class for all turn pipeline errors."""

    retryable: bool = False

    def __init__(self, detail: str = "Internal error"):
        self.detail = detail
        super().__init__(detail)


class InvalidActivityError(BotError):
    """Inbound activity lacks the identity needed to build a turn context."""


class HandlerError(BotError):
    """Raised by a handler to report that it could not complete the turn."""


class DispatchError(BotError):
    """A handler failed while the dispatcher was running it."""

    def __init__(self, detail: str, handler: str):
        self.handler = handler
        super().__init__(detail)


class StateStoreError(BotError):
    """Durable read or write failed. The whole turn may be retried."""

    retryable = True


class StateConflictError(StateStoreError):
    """Stored etag changed since the record was loaded (concurrent turn for the same key)."""


class TurnClosedError(BotError):
    """Attempt to send through a turn context after its state was committed."""


class TurnError(BotError):
    """Surfaced to the caller of ``TurnOrchestrator.on_turn``."""

    def __init__(self, detail: str, stage: str, cause: Optional[BaseException] = None):
        self.stage = stage
        self.cause = cause
        super().__init__(detail)

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        exc = self.cause
        while exc is not None:
            if isinstance(exc, BotError) and exc.retryable:
                return True
            exc = exc.__cause__
        return False
