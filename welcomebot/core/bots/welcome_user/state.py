# welcomebot/core/bots/welcome_user/state.py
from __future__ import annotations

from dataclasses import dataclass

STATE_PROPERTY = "WelcomeUserState"


@dataclass
class WelcomeUserState:
    """Per-user record field owned by the welcome bot."""
    did_bot_welcome_user: bool = False
