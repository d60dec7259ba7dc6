# welcomebot/core/engine/use_cases.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from welcomebot.core.engine.activity_handler import ActivityHandler, DispatchOutcome
from welcomebot.core.engine.domain import Activity, ActivityTypes
from welcomebot.core.engine.errors import (
    DispatchError,
    InvalidActivityError,
    StateConflictError,
    TurnError,
)
from welcomebot.core.engine.ports import ActivitySender
from welcomebot.core.engine.state import UserState
from welcomebot.core.engine.turn_context import TurnContext
from welcomebot.infra.logging_config import get_logger
from welcomebot.infra.metrics import AppMetrics

logger = get_logger(__name__)

_KNOWN_TYPES = frozenset(t.value for t in ActivityTypes)


def _type_label(activity: Activity) -> str:
    """Metric label for the activity type; unknown types share one label."""
    return activity.type if activity.type in _KNOWN_TYPES else "other"


@dataclass
class TurnResult:
    outcome: DispatchOutcome
    sent: list[Activity] = field(default_factory=list)
    committed: bool = False


class TurnOrchestrator:
    """
    Application service for one inbound activity.
    Workflow: context -> dispatch (handlers send replies) -> seal -> commit user state.

    Each stage runs only if the previous one succeeded. A failed handler means
    nothing is committed for the turn. The first failure is raised as
    ``TurnError``; retry policy belongs to the caller.

    A sender is required, either at construction or per call. Calling
    ``on_turn`` without one is a wiring bug and raises ``ValueError`` before
    the turn starts; every failure after that is a ``TurnError``.
    """

    def __init__(
        self,
        *,
        bot: ActivityHandler,
        user_state: UserState,
        sender: ActivitySender | None = None,
    ) -> None:
        self.bot = bot
        self.user_state = user_state
        self.sender = sender

    async def on_turn(self, activity: Activity, sender: Optional[ActivitySender] = None) -> TurnResult:
        sender = sender or self.sender
        if sender is None:
            raise ValueError("No ActivitySender configured for this turn")

        type_label = _type_label(activity)
        AppMetrics.turn_received(type_label)

        with AppMetrics.track_turn_time(type_label):
            # 1. context
            try:
                context = TurnContext.from_activity(activity, sender)
            except InvalidActivityError as exc:
                logger.warning(f"Rejected activity id={activity.id}: {exc.detail}")
                AppMetrics.turn_failed("context")
                raise TurnError(exc.detail, stage="context", cause=exc) from exc

            # 2. dispatch
            try:
                outcome = await self.bot.on_turn(context)
            except DispatchError as exc:
                context.log.error(f"Turn aborted before commit: {exc.detail}", exc_info=True)
                AppMetrics.turn_failed("dispatch")
                raise TurnError(exc.detail, stage="dispatch", cause=exc) from exc

            AppMetrics.activities_sent(len(context.sent_activities))

            # 3. commit
            context.seal()
            loaded = self.user_state.get_cached_state(context) is not None
            try:
                committed = await self.user_state.save_changes(context)
            except StateConflictError as exc:
                context.log.warning(f"User state conflict, turn not committed: {exc.detail}")
                AppMetrics.turn_failed("commit")
                raise TurnError(exc.detail, stage="commit", cause=exc) from exc
            except Exception as exc:
                context.log.error("User state commit failed", exc_info=True)
                AppMetrics.turn_failed("commit")
                detail = getattr(exc, "detail", None) or f"{exc.__class__.__name__}: {exc}"
                raise TurnError(detail, stage="commit", cause=exc) from exc

            if committed:
                AppMetrics.state_committed("written")
            else:
                AppMetrics.state_committed("skipped" if loaded else "noop")

        context.log.info(
            f"Turn complete: type={activity.type}, outcome={outcome.value}, "
            f"sent={len(context.sent_activities)}, committed={committed}"
        )
        return TurnResult(outcome=outcome, sent=context.sent_activities, committed=committed)
