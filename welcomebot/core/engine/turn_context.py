# welcomebot/core/engine/turn_context.py
"""
Per-turn handle passed to every handler.

A ``TurnContext`` is created for exactly one inbound activity and dropped when
the turn ends. Anything that must outlive the turn goes through ``UserState``;
``turn_state`` is only a scratch cache for the duration of the turn.
"""
from __future__ import annotations

from typing import Any, Sequence, Union

from welcomebot.core.engine.domain import Activity, ConversationKey, ResourceResponse
from welcomebot.core.engine.errors import TurnClosedError
from welcomebot.core.engine.message_factory import MessageFactory
from welcomebot.core.engine.ports import ActivitySender
from welcomebot.infra.logging_config import LogContext, get_logger

logger = get_logger(__name__)


class TurnContext:
    def __init__(self, activity: Activity, sender: ActivitySender, key: ConversationKey):
        self._activity = activity
        self._sender = sender
        self._key = key
        self._sent: list[Activity] = []
        self._sealed = False
        self.turn_state: dict[str, Any] = {}
        self.log = LogContext(
            logger,
            channel_id=key.channel_id,
            conversation_id=key.conversation_id,
            user_id=key.user_id,
            activity_id=activity.id,
        )

    @classmethod
    def from_activity(cls, activity: Activity, sender: ActivitySender) -> "TurnContext":
        """Bind *activity* to its conversation key. Raises ``InvalidActivityError``."""
        return cls(activity, sender, ConversationKey.from_activity(activity))

    @property
    def activity(self) -> Activity:
        return self._activity

    @property
    def conversation_key(self) -> ConversationKey:
        return self._key

    @property
    def responded(self) -> bool:
        return bool(self._sent)

    @property
    def sent_activities(self) -> list[Activity]:
        return list(self._sent)

    @property
    def sealed(self) -> bool:
        return self._sealed

    def seal(self) -> None:
        """Close the context for sending; called right before state is committed."""
        self._sealed = True

    async def send_activity(self, activity_or_text: Union[Activity, str]) -> ResourceResponse:
        if isinstance(activity_or_text, str):
            activity_or_text = MessageFactory.text(activity_or_text)
        responses = await self.send_activities([activity_or_text])
        return responses[0]

    async def send_activities(self, activities: Sequence[Activity]) -> list[ResourceResponse]:
        """Address *activities* as replies to the inbound activity and send them in order."""
        if self._sealed:
            raise TurnClosedError("Turn context is sealed: state was already committed")
        if not activities:
            return []

        outbound = [a.as_reply_to(self._activity) for a in activities]
        responses = await self._sender.send_activities(outbound)
        self._sent.extend(outbound)
        self.log.debug(f"Sent {len(outbound)} activity(ies)")
        return responses
