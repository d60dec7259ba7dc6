# welcomebot/core/bots/welcome_user/__init__.py
"""
Welcome User bot -- package layout.

Sub-modules:
    texts  -- translated reply texts + get_text(key, lang) accessor
    state  -- WelcomeUserState, the per-user record field this bot owns

The handler itself lives in ``welcomebot.core.handlers.welcome_user_bot``.
"""
