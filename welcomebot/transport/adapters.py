"""
Adapters between wire models and domain activities.
These are pure converters - they don't contain domain logic.
"""
from __future__ import annotations

import uuid
from dataclasses import asdict, is_dataclass
from typing import Sequence

from welcomebot.core.engine.domain import (
    Activity,
    Attachment,
    ChannelAccount,
    ConversationAccount,
    HeroCard,
    ResourceResponse,
)
from welcomebot.core.engine.ports import ActivitySender
from welcomebot.infra.logging_config import get_logger, mask_user_id
from welcomebot.transport.schemas import (
    ActivityIn,
    ActivityOut,
    AttachmentOut,
    CardActionOut,
    ChannelAccountIn,
    ChannelAccountOut,
    ConversationAccountOut,
    HeroCardOut,
)

logger = get_logger(__name__)


def _account(model: ChannelAccountIn | None) -> ChannelAccount | None:
    if model is None:
        return None
    return ChannelAccount(id=model.id, name=model.name)


class ActivityAdapter:
    """Converts Bot Framework shaped JSON activities to and from domain activities."""

    def adapt(self, payload: ActivityIn) -> Activity:
        activity = Activity(
            type=payload.type,
            id=payload.id or f"http_{uuid.uuid4().hex[:16]}",
            channel_id=payload.channel_id,
            conversation=(
                ConversationAccount(id=payload.conversation.id, name=payload.conversation.name)
                if payload.conversation else None
            ),
            from_property=_account(payload.from_),
            recipient=_account(payload.recipient),
            text=payload.text,
            members_added=tuple(_account(m) for m in payload.members_added),
            members_removed=tuple(_account(m) for m in payload.members_removed),
        )

        sender = activity.from_property.id if activity.from_property else ""
        logger.info(
            f"Inbound activity: type={activity.type}, channel={activity.channel_id}, "
            f"from={mask_user_id(sender)}, has_text={activity.has_text()}, "
            f"members_added={len(activity.members_added)}"
        )
        return activity

    def to_out(self, activity: Activity) -> ActivityOut:
        return ActivityOut(
            type=activity.type,
            channel_id=activity.channel_id,
            conversation=(
                ConversationAccountOut(id=activity.conversation.id) if activity.conversation else None
            ),
            from_=(
                ChannelAccountOut(id=activity.from_property.id, name=activity.from_property.name)
                if activity.from_property else None
            ),
            recipient=(
                ChannelAccountOut(id=activity.recipient.id, name=activity.recipient.name)
                if activity.recipient else None
            ),
            text=activity.text,
            attachments=[self._attachment_out(a) for a in activity.attachments],
            reply_to_id=activity.reply_to_id,
        )

    @staticmethod
    def _attachment_out(attachment: Attachment) -> AttachmentOut:
        content = attachment.content
        if isinstance(content, HeroCard):
            content = HeroCardOut(
                title=content.title,
                text=content.text,
                buttons=[
                    CardActionOut(
                        type=b.type,
                        title=b.title,
                        value=b.value,
                        text=b.text,
                        display_text=b.display_text,
                    )
                    for b in content.buttons
                ],
            )
        elif is_dataclass(content) and not isinstance(content, type):
            content = asdict(content)
        return AttachmentOut(content_type=attachment.content_type, content=content)


class CollectingSender(ActivitySender):
    """
    Sender for request/response delivery: keeps the turn's outbound activities
    so the HTTP handler can return them in the response body.
    """

    def __init__(self) -> None:
        self.activities: list[Activity] = []

    async def send_activities(self, activities: Sequence[Activity]) -> list[ResourceResponse]:
        self.activities.extend(activities)
        return [ResourceResponse(id=f"out_{uuid.uuid4().hex[:16]}") for _ in activities]
