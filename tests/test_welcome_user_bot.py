# tests/test_welcome_user_bot.py
"""Tests for the Welcome User bot replies."""
import pytest

from welcomebot.core.bots.welcome_user.state import STATE_PROPERTY, WelcomeUserState
from welcomebot.core.bots.welcome_user.texts import INTRO_CARD_URL, get_text
from welcomebot.core.engine.domain import HERO_CARD_CONTENT_TYPE, ChannelAccount, HeroCard
from welcomebot.core.engine.state import UserState
from welcomebot.core.engine.turn_context import TurnContext
from welcomebot.core.handlers.welcome_user_bot import WelcomeUserBot
from welcomebot.infra.memory_storage import MemoryStorage

WELCOME_PT = "Olá seja bem vindo ao bot do Ibmec, digite hello ou help"
FALLBACK_PT = "Diga alguma coisa para eu poder te ajudar ou digite help"


class TestWelcomeUserBot:

    def setup_method(self):
        self.user_state = UserState(MemoryStorage())
        self.bot = WelcomeUserBot(self.user_state)

    async def _message(self, make_activity, sender, text):
        context = TurnContext.from_activity(make_activity(text=text), sender)
        await self.bot.on_turn(context)
        return context

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text,expected", [
        ("hello", "You said hello"),
        ("HELLO", "You said hello"),
        ("  Hi ", "You said hi"),
    ])
    async def test_greeting_echo(self, make_activity, sender, text, expected):
        await self._message(make_activity, sender, text)
        assert [a.text for a in sender.activities] == [expected]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["intro", "HELP", " Intro "])
    async def test_intro_card(self, make_activity, sender, text):
        await self._message(make_activity, sender, text)

        [reply] = sender.activities
        [attachment] = reply.attachments
        assert attachment.content_type == HERO_CARD_CONTENT_TYPE
        card = attachment.content
        assert isinstance(card, HeroCard)
        assert card.title == "Está com dúvidas?"
        assert card.text == "Que tal aprender mais?"
        [button] = card.buttons
        assert button.type == "openUrl"
        assert button.title == "Ver Documentação do Bot Framework"
        assert button.value == INTRO_CARD_URL

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["what?", "", None, "hello there"])
    async def test_fallback(self, make_activity, sender, text):
        await self._message(make_activity, sender, text)
        assert [a.text for a in sender.activities] == [FALLBACK_PT]

    @pytest.mark.asyncio
    async def test_message_turn_loads_user_state(self, make_activity, sender):
        context = await self._message(make_activity, sender, "hello")
        cached = self.user_state.get_cached_state(context)
        assert cached.state[STATE_PROPERTY] == WelcomeUserState(did_bot_welcome_user=False)

    @pytest.mark.asyncio
    async def test_replies_do_not_depend_on_history(self, make_activity, sender):
        for _ in range(2):
            context = await self._message(make_activity, sender, "hi")
            await self.user_state.save_changes(context)
        assert [a.text for a in sender.activities] == ["You said hi", "You said hi"]

    @pytest.mark.asyncio
    async def test_welcome_each_added_member_in_one_batch(self, make_activity, sender, bot_account):
        members = (ChannelAccount(id="u-a"), ChannelAccount(id="u-b"), bot_account)
        activity = make_activity(type="conversationUpdate", members_added=members)
        context = TurnContext.from_activity(activity, sender)

        await self.bot.on_turn(context)

        assert len(sender.batches) == 1
        assert [a.text for a in sender.activities] == [WELCOME_PT, WELCOME_PT]

    @pytest.mark.asyncio
    async def test_bot_only_join_sends_nothing(self, make_activity, sender, bot_account):
        activity = make_activity(type="conversationUpdate", members_added=(bot_account,))
        context = TurnContext.from_activity(activity, sender)

        await self.bot.on_turn(context)

        assert sender.batches == []

    @pytest.mark.asyncio
    async def test_members_added_does_not_touch_state(self, make_activity, sender):
        activity = make_activity(type="conversationUpdate", members_added=(ChannelAccount(id="u-a"),))
        context = TurnContext.from_activity(activity, sender)
        await self.bot.on_turn(context)
        assert self.user_state.get_cached_state(context) is None

    @pytest.mark.asyncio
    async def test_english_texts(self, make_activity, sender):
        bot = WelcomeUserBot(self.user_state, language="en")
        context = TurnContext.from_activity(make_activity(text="???"), sender)
        await bot.on_turn(context)
        assert sender.activities[0].text == get_text("fallback", "en")


class TestTexts:

    def test_unknown_language_falls_back_to_portuguese(self):
        assert get_text("welcome", "de") == WELCOME_PT

    def test_unknown_key_returns_key(self):
        assert get_text("nope") == "nope"
