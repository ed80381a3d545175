"""
Core interface definitions

Types shared by the dispatcher, the error handler and the commands. Nothing
here talks to Discord directly except ``BotEvent.from_message``, which is the
single place a ``discord.Message`` is turned into a platform-neutral event.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, List, Optional, Protocol, runtime_checkable
import discord

from .logging_config import BotLogger


class ChannelKind(Enum):
    """Kind of channel an event arrived in"""
    DIRECT = "dm"
    GROUP = "group_dm"
    GUILD = "guild"
    THREAD = "thread"

    @classmethod
    def from_channel(cls, channel: Any) -> "ChannelKind":
        if isinstance(channel, discord.DMChannel):
            return cls.DIRECT
        if isinstance(channel, discord.GroupChannel):
            return cls.GROUP
        if isinstance(channel, discord.Thread):
            return cls.THREAD
        return cls.GUILD


@dataclass(frozen=True)
class BotEvent:
    """Inbound message event"""
    text: str
    message_id: int
    channel_id: int
    channel_kind: ChannelKind
    user_id: int
    thread_id: Optional[int] = None
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def is_direct_message(self) -> bool:
        return self.channel_kind is ChannelKind.DIRECT

    @property
    def timestamp(self) -> str:
        return self.created_at.isoformat()

    @classmethod
    def from_message(cls, message: discord.Message, text: Optional[str] = None) -> "BotEvent":
        """
        Build an event from a Discord message

        Args:
            message: Source message
            text: Text to carry instead of ``message.content`` (e.g. with the mention stripped)
        """
        channel_kind = ChannelKind.from_channel(message.channel)
        return cls(
            text=message.content if text is None else text,
            message_id=message.id,
            channel_id=message.channel.id,
            channel_kind=channel_kind,
            user_id=message.author.id,
            thread_id=message.channel.id if channel_kind is ChannelKind.THREAD else None,
            created_at=message.created_at,
        )


def get_thread_id(event: BotEvent) -> Optional[int]:
    """Thread a reply to ``event`` must go to, None for channel level."""
    return event.thread_id


def get_reply_thread_id(event: BotEvent) -> int:
    """Thread a reply should go to, opening one on the event's message when not already in a thread."""
    return event.thread_id or event.message_id


class ReplyFunction(Protocol):
    """Posts a text reply to the event's origin"""

    def __call__(self, text: str, thread_id: Optional[int] = None) -> Awaitable[Any]:
        ...


@runtime_checkable
class MessagingClient(Protocol):
    """Side-channel operations on the messaging platform"""

    async def upload_file(
        self,
        data: bytes,
        filename: str,
        channel_id: int,
        thread_id: Optional[int] = None,
        comment: Optional[str] = None
    ) -> Any:
        """Upload ``data`` as a file to a channel or thread"""
        ...

    async def add_reaction(self, channel_id: int, message_id: int, reaction: str) -> None:
        """Add an emoji reaction to a message"""
        ...


@dataclass
class CommandContext:
    """
    Per-invocation command context

    Attributes:
        event: Triggering event
        reply: Reply function bound to the event's origin
        logger: Logger handle
        args: Arguments with the command name stripped
        client: Messaging client for uploads and reactions
        command_name: Token the command was invoked with, as typed
    """
    event: BotEvent
    reply: ReplyFunction
    logger: BotLogger
    args: List[str]
    client: MessagingClient
    command_name: str = ""

    async def respond(self, text: str, thread_id: Optional[int] = None) -> Any:
        """Reply in the event's thread unless ``thread_id`` says otherwise"""
        return await self.reply(text, thread_id=thread_id if thread_id is not None else get_thread_id(self.event))
