# tests/conftest.py
"""Pytest configuration and fixtures"""
import pytest
import sys
from pathlib import Path
from typing import Sequence

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from welcomebot.core.engine.domain import (  # noqa: E402
    Activity,
    ChannelAccount,
    ConversationAccount,
    ResourceResponse,
)


BOT = ChannelAccount(id="bot-001", name="WelcomeBot")
USER = ChannelAccount(id="user-4242", name="Ana")


class RecordingSender:
    """ActivitySender that keeps every batch it was asked to send."""

    def __init__(self, events: list | None = None):
        self.batches: list[list[Activity]] = []
        self.events = events if events is not None else []

    @property
    def activities(self) -> list[Activity]:
        return [a for batch in self.batches for a in batch]

    async def send_activities(self, activities: Sequence[Activity]) -> list[ResourceResponse]:
        self.batches.append(list(activities))
        self.events.extend("send" for _ in activities)
        start = len(self.activities) - len(activities)
        return [ResourceResponse(id=f"r{start + i}") for i in range(len(activities))]


@pytest.fixture
def bot_account():
    return BOT


@pytest.fixture
def user_account():
    return USER


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def make_activity():
    """Factory for inbound activities addressed from USER to BOT on channel 'test'."""

    def _make(
        type: str = "message",
        text: str | None = None,
        members_added: tuple[ChannelAccount, ...] = (),
        from_property: ChannelAccount | None = USER,
        recipient: ChannelAccount | None = BOT,
        channel_id: str | None = "test",
        conversation_id: str | None = "conv-1",
        activity_id: str = "act-1",
    ) -> Activity:
        return Activity(
            type=type,
            id=activity_id,
            channel_id=channel_id,
            conversation=ConversationAccount(id=conversation_id) if conversation_id else None,
            from_property=from_property,
            recipient=recipient,
            text=text,
            members_added=tuple(members_added),
        )

    return _make
