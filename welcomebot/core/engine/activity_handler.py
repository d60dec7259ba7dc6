# welcomebot/core/engine/activity_handler.py
"""
Activity dispatcher - routes one inbound activity to one handler.

Bots subclass ``ActivityHandler`` and override the ``on_*`` hooks they need.
The base hooks are no-ops, so an unknown or uninteresting activity is a
successful turn with no replies.
"""
from __future__ import annotations

from enum import Enum

from welcomebot.core.engine.domain import ActivityTypes, ChannelAccount
from welcomebot.core.engine.errors import BotError, DispatchError
from welcomebot.core.engine.turn_context import TurnContext
from welcomebot.infra.logging_config import get_logger

logger = get_logger(__name__)


class DispatchOutcome(str, Enum):
    MEMBERS_ADDED = "members_added"
    MESSAGE = "message"
    UNHANDLED = "unhandled"


class ActivityHandler:

    async def on_turn(self, context: TurnContext) -> DispatchOutcome:
        """
        Classify ``context.activity`` and run the matching handler.

        Raises:
            DispatchError: the handler failed; the original exception is chained.
        """
        activity = context.activity

        if activity.is_type(ActivityTypes.CONVERSATION_UPDATE) and activity.members_added:
            members = [
                m for m in activity.members_added
                if not m.same_identity(activity.recipient)
            ]
            await self._run("on_members_added", self.on_members_added(members, context))
            return DispatchOutcome.MEMBERS_ADDED

        if activity.is_type(ActivityTypes.MESSAGE):
            await self._run("on_message_activity", self.on_message_activity(context))
            return DispatchOutcome.MESSAGE

        context.log.debug(f"No handler for activity type '{activity.type}'")
        return DispatchOutcome.UNHANDLED

    async def on_members_added(self, members_added: list[ChannelAccount], context: TurnContext) -> None:
        """*members_added* never contains the bot itself."""
        return None

    async def on_message_activity(self, context: TurnContext) -> None:
        return None

    @staticmethod
    async def _run(handler: str, coro) -> None:
        try:
            await coro
        except DispatchError:
            raise
        except BotError as exc:
            raise DispatchError(f"{handler} failed: {exc.detail}", handler=handler) from exc
        except Exception as exc:
            raise DispatchError(f"{handler} failed: {exc.__class__.__name__}: {exc}", handler=handler) from exc
