# welcomebot/core/bots/welcome_user/texts.py
"""
Reply texts of the Welcome User bot.

``get_text(key, lang)`` falls back to Portuguese, then to the key itself, so a
missing translation never breaks a turn.
"""
from __future__ import annotations

DEFAULT_LANGUAGE = "pt"

# Target of the single open-link action on the intro card.
INTRO_CARD_URL = "https://learn.microsoft.com/en-us/microsoftteams/platform/bots/bot-features"

TRANSLATIONS: dict[str, dict[str, str]] = {
    "welcome": {
        "pt": "Olá seja bem vindo ao bot do Ibmec, digite hello ou help",
        "en": "Hello and welcome! Type hello or help",
    },
    "fallback": {
        "pt": "Diga alguma coisa para eu poder te ajudar ou digite help",
        "en": "Say something so I can help you, or type help",
    },
    "echo_prefix": {
        "pt": "You said ",
        "en": "You said ",
    },
    "intro_title": {
        "pt": "Está com dúvidas?",
        "en": "Got questions?",
    },
    "intro_text": {
        "pt": "Que tal aprender mais?",
        "en": "How about learning more?",
    },
    "intro_button": {
        "pt": "Ver Documentação do Bot Framework",
        "en": "See the Bot Framework documentation",
    },
}


def get_text(key: str, lang: str = DEFAULT_LANGUAGE) -> str:
    translation = TRANSLATIONS.get(key)
    if translation is None:
        return key
    return translation.get(lang) or translation[DEFAULT_LANGUAGE]
