# tests/test_domain.py
"""Tests for activity addressing, conversation keys and outbound builders."""
import pytest

from welcomebot.core.engine.domain import (
    HERO_CARD_CONTENT_TYPE,
    Activity,
    ActivityTypes,
    ChannelAccount,
    ConversationKey,
    HeroCard,
)
from welcomebot.core.engine.errors import InvalidActivityError, StateStoreError, TurnError
from welcomebot.core.engine.message_factory import CardFactory, MessageFactory


class TestActivity:

    def test_is_type_accepts_enum_and_string(self, make_activity):
        activity = make_activity(type="conversationUpdate")
        assert activity.is_type(ActivityTypes.CONVERSATION_UPDATE)
        assert activity.is_type("conversationUpdate")
        assert not activity.is_type(ActivityTypes.MESSAGE)

    def test_has_text(self, make_activity):
        assert make_activity(text="hi").has_text()
        assert not make_activity(text="   ").has_text()
        assert not make_activity(text=None).has_text()

    def test_as_reply_to_swaps_from_and_recipient(self, make_activity, bot_account, user_account):
        inbound = make_activity(text="hello", activity_id="in-7")
        reply = MessageFactory.text("hey").as_reply_to(inbound)

        assert reply.from_property == bot_account
        assert reply.recipient == user_account
        assert reply.channel_id == "test"
        assert reply.conversation.id == "conv-1"
        assert reply.reply_to_id == "in-7"
        assert reply.text == "hey"

    def test_as_reply_to_keeps_explicit_addressing(self, make_activity):
        other = ChannelAccount(id="someone-else")
        outbound = Activity(type="message", text="x", recipient=other)
        reply = outbound.as_reply_to(make_activity())
        assert reply.recipient == other

    def test_same_identity_ignores_name(self):
        assert ChannelAccount(id="a", name="Ana").same_identity(ChannelAccount(id="a", name="Other"))
        assert not ChannelAccount(id="a").same_identity(ChannelAccount(id="b"))
        assert not ChannelAccount(id="a").same_identity(None)


class TestConversationKey:

    def test_from_activity(self, make_activity):
        key = ConversationKey.from_activity(make_activity())
        assert key == ConversationKey(channel_id="test", conversation_id="conv-1", user_id="user-4242")

    def test_storage_key_layout(self):
        key = ConversationKey(channel_id="msteams", conversation_id="c9", user_id="u1")
        assert key.storage_key("UserState") == "UserState/msteams/conversations/c9/users/u1"

    def test_slashes_in_ids_cannot_collide(self):
        a = ConversationKey(channel_id="c", conversation_id="k/users/u1", user_id="v")
        b = ConversationKey(channel_id="c", conversation_id="k", user_id="u1/users/v")

        assert a != b
        assert a.storage_key("UserState") != b.storage_key("UserState")

    def test_ids_are_percent_encoded(self):
        key = ConversationKey(channel_id="msteams", conversation_id="19:a/b", user_id="29:x%y")
        assert key.storage_key("UserState") == "UserState/msteams/conversations/19%3Aa%2Fb/users/29%3Ax%25y"

    def test_missing_parts_are_listed(self, make_activity):
        activity = make_activity(channel_id=None, from_property=None)
        with pytest.raises(InvalidActivityError) as exc_info:
            ConversationKey.from_activity(activity)
        assert "channel_id" in exc_info.value.detail
        assert "from.id" in exc_info.value.detail
        assert "conversation.id" not in exc_info.value.detail

    def test_missing_conversation(self, make_activity):
        with pytest.raises(InvalidActivityError):
            ConversationKey.from_activity(make_activity(conversation_id=None))


class TestFactories:

    def test_text_message(self):
        activity = MessageFactory.text("Olá")
        assert activity.type == "message"
        assert activity.text == "Olá"
        assert activity.attachments == ()

    def test_hero_card_attachment(self):
        button = CardFactory.open_url_action("Docs", "https://example.org/docs")
        attachment = CardFactory.hero_card(HeroCard(title="T", text="B", buttons=(button,)))
        activity = MessageFactory.attachment(attachment)

        assert attachment.content_type == HERO_CARD_CONTENT_TYPE
        assert activity.attachments == (attachment,)
        assert button.type == "openUrl"
        assert button.value == "https://example.org/docs"
        assert button.title == button.text == button.display_text == "Docs"


class TestErrors:

    def test_turn_error_retryable_follows_cause_chain(self):
        store_error = StateStoreError("db down")
        wrapper = RuntimeError("wrapped")
        wrapper.__cause__ = store_error

        assert TurnError("x", stage="commit", cause=store_error).retryable
        assert TurnError("x", stage="commit", cause=wrapper).retryable
        assert not TurnError("x", stage="dispatch", cause=ValueError("bad")).retryable
        assert not TurnError("x", stage="context").retryable
