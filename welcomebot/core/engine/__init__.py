# welcomebot/core/engine/__init__.py
"""
Core engine -- channel-agnostic turn processing.

This package contains the activity model, the storage and sender ports, the
per-turn context, user state with property accessors, the activity dispatcher
and the turn orchestrator.

Canonical imports:
    from welcomebot.core.engine import TurnOrchestrator, UserState, ActivityHandler
    from welcomebot.core.engine.domain import Activity, ChannelAccount
    from welcomebot.core.engine.ports import Storage, ActivitySender
"""
from welcomebot.core.engine.domain import (  # noqa: F401
    ActionTypes,
    Activity,
    ActivityTypes,
    Attachment,
    CardAction,
    ChannelAccount,
    ConversationAccount,
    ConversationKey,
    HeroCard,
    ResourceResponse,
    StoredRecord,
)
from welcomebot.core.engine.errors import (  # noqa: F401
    BotError,
    DispatchError,
    HandlerError,
    InvalidActivityError,
    StateConflictError,
    StateStoreError,
    TurnClosedError,
    TurnError,
)
from welcomebot.core.engine.ports import ActivitySender, Storage  # noqa: F401
from welcomebot.core.engine.message_factory import CardFactory, MessageFactory  # noqa: F401
from welcomebot.core.engine.turn_context import TurnContext  # noqa: F401
from welcomebot.core.engine.state import StatePropertyAccessor, UserState  # noqa: F401
from welcomebot.core.engine.activity_handler import ActivityHandler, DispatchOutcome  # noqa: F401
from welcomebot.core.engine.use_cases import TurnOrchestrator, TurnResult  # noqa: F401
