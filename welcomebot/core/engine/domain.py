# welcomebot/core/engine/domain.py
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional
from urllib.parse import quote

from welcomebot.core.engine.errors import InvalidActivityError


# ============================================================================
# ENUMS
# ============================================================================

class ActivityTypes(str, Enum):
    """Activity kinds the dispatcher knows about. Any other string is allowed."""
    MESSAGE = "message"
    CONVERSATION_UPDATE = "conversationUpdate"


class ActionTypes(str, Enum):
    OPEN_URL = "openUrl"


HERO_CARD_CONTENT_TYPE = "application/vnd.microsoft.card.hero"


# ============================================================================
# IDENTITIES
# ============================================================================

@dataclass(frozen=True)
class ChannelAccount:
    """A user or bot on a channel. Identity is the ``id``; ``name`` is display only."""
    id: str
    name: Optional[str] = None

    def same_identity(self, other: Optional["ChannelAccount"]) -> bool:
        return other is not None and self.id == other.id


@dataclass(frozen=True)
class ConversationAccount:
    id: str
    name: Optional[str] = None


# ============================================================================
# CARDS / ATTACHMENTS (outbound only)
# ============================================================================

@dataclass(frozen=True)
class CardAction:
    type: str
    title: str
    value: Any
    text: Optional[str] = None
    display_text: Optional[str] = None


@dataclass(frozen=True)
class HeroCard:
    title: str = ""
    text: str = ""
    buttons: tuple[CardAction, ...] = ()


@dataclass(frozen=True)
class Attachment:
    content_type: str
    content: Any = None


# ============================================================================
# ACTIVITY
# ============================================================================

@dataclass(frozen=True)
class Activity:
    """
    One inbound or outbound conversation event.

    Inbound activities are built once by the transport and never mutated.
    Outbound activities are usually created by ``MessageFactory`` with only
    ``type``/``text``/``attachments`` set; ``TurnContext`` fills in the
    addressing fields from the inbound activity before sending.
    """
    type: str
    id: Optional[str] = None
    channel_id: Optional[str] = None
    conversation: Optional[ConversationAccount] = None
    from_property: Optional[ChannelAccount] = None
    recipient: Optional[ChannelAccount] = None
    text: Optional[str] = None
    members_added: tuple[ChannelAccount, ...] = ()
    members_removed: tuple[ChannelAccount, ...] = ()
    attachments: tuple[Attachment, ...] = ()
    reply_to_id: Optional[str] = None

    def is_type(self, activity_type: ActivityTypes | str) -> bool:
        value = activity_type.value if isinstance(activity_type, ActivityTypes) else activity_type
        return self.type == value

    def has_text(self) -> bool:
        return bool(self.text and self.text.strip())

    def as_reply_to(self, inbound: "Activity") -> "Activity":
        """Return a copy addressed back to the sender of *inbound*."""
        return replace(
            self,
            channel_id=self.channel_id or inbound.channel_id,
            conversation=self.conversation or inbound.conversation,
            from_property=self.from_property or inbound.recipient,
            recipient=self.recipient or inbound.from_property,
            reply_to_id=self.reply_to_id or inbound.id,
        )


@dataclass(frozen=True)
class ResourceResponse:
    """Identifier the transport assigned to a sent activity."""
    id: str


# ============================================================================
# STATE
# ============================================================================

@dataclass(frozen=True)
class ConversationKey:
    """Partition of durable per-user state: one user in one conversation on one channel."""
    channel_id: str
    conversation_id: str
    user_id: str

    @classmethod
    def from_activity(cls, activity: Activity) -> "ConversationKey":
        channel_id = activity.channel_id
        conversation_id = activity.conversation.id if activity.conversation else None
        user_id = activity.from_property.id if activity.from_property else None

        missing = [
            name for name, value in (
                ("channel_id", channel_id),
                ("conversation.id", conversation_id),
                ("from.id", user_id),
            )
            if not value
        ]
        if missing:
            raise InvalidActivityError(
                f"Activity cannot be bound to user state, missing: {', '.join(missing)}"
            )
        return cls(channel_id=channel_id, conversation_id=conversation_id, user_id=user_id)

    def storage_key(self, namespace: str) -> str:
        """Each id is percent-encoded so distinct keys never share a storage record."""
        channel, conversation, user = (
            quote(part, safe="") for part in (self.channel_id, self.conversation_id, self.user_id)
        )
        return f"{namespace}/{channel}/conversations/{conversation}/users/{user}"


@dataclass
class StoredRecord:
    """
    Durable form of one user state record.

    ``document`` is the serialized JSON text; storage backends treat it as
    opaque. ``etag`` is the version token: ``None`` means "create only",
    ``"*"`` means "overwrite unconditionally".
    """
    document: str
    etag: Optional[str] = None


@dataclass
class CachedState:
    """In-turn copy of a user state record plus what is needed to commit it."""
    state: dict[str, Any] = field(default_factory=dict)
    etag: Optional[str] = None
    hash: str = ""
