# tests/test_adapters.py
import pytest

from welcomebot.core.engine.domain import Activity, ChannelAccount, HeroCard
from welcomebot.core.engine.message_factory import CardFactory, MessageFactory
from welcomebot.transport.adapters import ActivityAdapter, CollectingSender
from welcomebot.transport.schemas import ActivityIn


class TestActivityAdapter:

    def setup_method(self):
        self.adapter = ActivityAdapter()

    def test_adapt_bot_framework_json(self):
        payload = ActivityIn.model_validate({
            "type": "conversationUpdate",
            "id": "a-1",
            "channelId": "msteams",
            "conversation": {"id": "19:abc"},
            "from": {"id": "user-1", "name": "Ana"},
            "recipient": {"id": "bot-1"},
            "membersAdded": [{"id": "user-1"}, {"id": "bot-1"}],
            "serviceUrl": "https://ignored.example",
        })

        activity = self.adapter.adapt(payload)

        assert activity.type == "conversationUpdate"
        assert activity.channel_id == "msteams"
        assert activity.conversation.id == "19:abc"
        assert activity.from_property == ChannelAccount(id="user-1", name="Ana")
        assert activity.members_added == (ChannelAccount(id="user-1"), ChannelAccount(id="bot-1"))

    def test_adapt_generates_activity_id_if_missing(self):
        activity = self.adapter.adapt(ActivityIn(type="message", text="hi"))
        assert activity.id.startswith("http_")

    def test_to_out_text(self):
        inbound = Activity(type="message", id="in-1", from_property=ChannelAccount(id="u"),
                           recipient=ChannelAccount(id="b"))
        out = self.adapter.to_out(MessageFactory.text("olá").as_reply_to(inbound))
        data = out.model_dump(by_alias=True, exclude_none=True)

        assert data["from"] == {"id": "b"}
        assert data["recipient"] == {"id": "u"}
        assert data["replyToId"] == "in-1"
        assert data["attachments"] == []

    def test_to_out_hero_card(self):
        card = HeroCard(title="T", text="B", buttons=(CardFactory.open_url_action("Go", "https://x.test"),))
        out = self.adapter.to_out(MessageFactory.attachment(CardFactory.hero_card(card)))
        data = out.model_dump(by_alias=True, exclude_none=True)

        [attachment] = data["attachments"]
        assert attachment["content"]["buttons"] == [{
            "type": "openUrl",
            "title": "Go",
            "value": "https://x.test",
            "text": "Go",
            "displayText": "Go",
        }]


class TestCollectingSender:

    @pytest.mark.asyncio
    async def test_collects_in_order(self):
        sender = CollectingSender()
        responses = await sender.send_activities([MessageFactory.text("1"), MessageFactory.text("2")])

        assert [a.text for a in sender.activities] == ["1", "2"]
        assert len({r.id for r in responses}) == 2
