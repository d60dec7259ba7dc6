# welcomebot/core/handlers/welcome_user_bot.py
"""
Welcome User bot.

Greets every member that joins a conversation and answers a few fixed
utterances. Replies depend on the current message only; the per-user
``WelcomeUserState`` is fetched (and created on first contact) each message
turn so the lazy-default path runs the same way on every turn.
"""
from __future__ import annotations

from welcomebot.core.bots.welcome_user.state import STATE_PROPERTY, WelcomeUserState
from welcomebot.core.bots.welcome_user.texts import DEFAULT_LANGUAGE, INTRO_CARD_URL, get_text
from welcomebot.core.engine.activity_handler import ActivityHandler
from welcomebot.core.engine.domain import ChannelAccount, HeroCard, ResourceResponse
from welcomebot.core.engine.message_factory import CardFactory, MessageFactory
from welcomebot.core.engine.state import UserState
from welcomebot.core.engine.turn_context import TurnContext

GREETINGS = frozenset({"hello", "hi"})
INTRO_REQUESTS = frozenset({"intro", "help"})


class WelcomeUserBot(ActivityHandler):

    def __init__(self, user_state: UserState, language: str = DEFAULT_LANGUAGE) -> None:
        self.user_state = user_state
        self.language = language
        self.state_accessor = user_state.create_property(STATE_PROPERTY, WelcomeUserState)

    async def on_members_added(self, members_added: list[ChannelAccount], context: TurnContext) -> None:
        if not members_added:
            return
        welcome = get_text("welcome", self.language)
        await context.send_activities([MessageFactory.text(welcome) for _ in members_added])

    async def on_message_activity(self, context: TurnContext) -> None:
        await self.state_accessor.get(context, WelcomeUserState)

        text = (context.activity.text or "").strip().lower()

        if text in GREETINGS:
            await context.send_activity(f"{get_text('echo_prefix', self.language)}{text}")
        elif text in INTRO_REQUESTS:
            await self.send_intro_card(context)
        else:
            await context.send_activity(get_text("fallback", self.language))

    async def send_intro_card(self, context: TurnContext) -> ResourceResponse:
        card = HeroCard(
            title=get_text("intro_title", self.language),
            text=get_text("intro_text", self.language),
            buttons=(
                CardFactory.open_url_action(get_text("intro_button", self.language), INTRO_CARD_URL),
            ),
        )
        return await context.send_activity(MessageFactory.attachment(CardFactory.hero_card(card)))
