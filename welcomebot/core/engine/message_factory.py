# welcomebot/core/engine/message_factory.py
"""Builders for outbound activities and card attachments."""
from __future__ import annotations

from typing import Optional

from welcomebot.core.engine.domain import (
    HERO_CARD_CONTENT_TYPE,
    ActionTypes,
    Activity,
    ActivityTypes,
    Attachment,
    CardAction,
    HeroCard,
)


class MessageFactory:

    @staticmethod
    def text(text: str) -> Activity:
        return Activity(type=ActivityTypes.MESSAGE.value, text=text)

    @staticmethod
    def attachment(attachment: Attachment, text: Optional[str] = None) -> Activity:
        return Activity(
            type=ActivityTypes.MESSAGE.value,
            text=text,
            attachments=(attachment,),
        )


class CardFactory:

    @staticmethod
    def hero_card(card: HeroCard) -> Attachment:
        return Attachment(content_type=HERO_CARD_CONTENT_TYPE, content=card)

    @staticmethod
    def open_url_action(title: str, url: str) -> CardAction:
        return CardAction(
            type=ActionTypes.OPEN_URL.value,
            title=title,
            value=url,
            text=title,
            display_text=title,
        )
