"""
Wire models for the HTTP transport.

Field names follow the Bot Framework activity JSON (camelCase, ``from``).
"""
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class ChannelAccountIn(_WireModel):
    id: str = Field(min_length=1, max_length=256)
    name: str | None = Field(default=None, max_length=256)


class ConversationAccountIn(_WireModel):
    id: str = Field(min_length=1, max_length=256)
    name: str | None = Field(default=None, max_length=256)


class ActivityIn(_WireModel):
    type: str = Field(min_length=1, max_length=64)
    id: str | None = Field(default=None, max_length=128)
    channel_id: str | None = Field(default=None, max_length=64)
    conversation: ConversationAccountIn | None = None
    from_: ChannelAccountIn | None = Field(default=None, alias="from")
    recipient: ChannelAccountIn | None = None
    text: str | None = Field(default=None, max_length=4000)
    members_added: list[ChannelAccountIn] = Field(default_factory=list, max_length=100)
    members_removed: list[ChannelAccountIn] = Field(default_factory=list, max_length=100)


class ChannelAccountOut(_WireModel):
    id: str
    name: str | None = None


class ConversationAccountOut(_WireModel):
    id: str


class CardActionOut(_WireModel):
    type: str
    title: str
    value: Any
    text: str | None = None
    display_text: str | None = None


class HeroCardOut(_WireModel):
    title: str
    text: str
    buttons: list[CardActionOut] = Field(default_factory=list)


class AttachmentOut(_WireModel):
    content_type: str
    content: HeroCardOut | dict[str, Any] | str | None = None


class ActivityOut(_WireModel):
    type: str
    channel_id: str | None = None
    conversation: ConversationAccountOut | None = None
    from_: ChannelAccountOut | None = Field(default=None, alias="from")
    recipient: ChannelAccountOut | None = None
    text: str | None = None
    attachments: list[AttachmentOut] = Field(default_factory=list)
    reply_to_id: str | None = None


class TurnOut(_WireModel):
    activities: list[ActivityOut] = Field(default_factory=list)
