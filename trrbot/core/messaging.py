"""
Discord messaging

Implements the reply function and the MessagingClient on top of discord.py.

Thread ids follow one convention everywhere: ``None`` means channel level,
the id of the current thread means "post there", and the id of the
triggering message means "open a thread on that message". Discord gives a
thread started from a message the message's id, so an already opened thread
is found again by that id.
"""

import io
import logging
import re
from typing import Any, List, Optional, Union
import discord

from .error_handler import DiscordAPIError
from .interfaces import ReplyFunction

MAX_MESSAGE_LENGTH = 2000
THREAD_NAME_MAX_LENGTH = 100
DEFAULT_THREAD_NAME = "trrbot"

Messageable = Union[discord.abc.Messageable, discord.Thread]

CUSTOM_EMOJI_PATTERN = re.compile(r'^<a?:\w+:\d+>$', re.ASCII)


def is_custom_emoji_markup(reaction: str) -> bool:
    """``<:name:id>`` or ``<a:name:id>``, as Discord renders a custom emoji in message text."""
    return CUSTOM_EMOJI_PATTERN.match(reaction.strip()) is not None


def normalize_emoji_name(reaction: str) -> str:
    """Strip ``:`` delimiters (``:smile:`` -> ``smile``); custom emoji markup is kept as is."""
    reaction = reaction.strip()
    if is_custom_emoji_markup(reaction):
        return reaction
    return reaction.replace(':', '')


def thread_name_for(message: discord.Message) -> str:
    name = ' '.join(message.content.split())[:THREAD_NAME_MAX_LENGTH]
    return name or DEFAULT_THREAD_NAME


def split_message(text: str, limit: int = MAX_MESSAGE_LENGTH) -> List[str]:
    """
    Split ``text`` into chunks Discord accepts

    Chunks end on line boundaries; a single line longer than ``limit`` is cut.
    """
    if len(text) <= limit:
        return [text]

    chunks: List[str] = []
    current = ""
    for line in text.split("\n"):
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]

        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > limit:
            chunks.append(current)
            current = line
        else:
            current = candidate

    if current:
        chunks.append(current)
    return chunks


class DiscordMessagingClient:
    """
    MessagingClient backed by a discord.py client

    Every Discord failure is raised as DiscordAPIError.
    """

    def __init__(self, client: discord.Client):
        """
        Initialize the messaging client

        Args:
            client: Logged-in discord.py client
        """
        self.client = client
        self.logger = logging.getLogger("trrbot.messaging")

    async def get_channel(self, channel_id: int) -> Any:
        """Cached channel, fetched from the API on a cache miss"""
        channel = self.client.get_channel(channel_id)
        if channel is not None:
            return channel
        try:
            return await self.client.fetch_channel(channel_id)
        except discord.HTTPException as e:
            raise DiscordAPIError(
                f"Failed to fetch channel {channel_id}: {e}",
                channel_id=channel_id,
                status=e.status
            ) from e

    async def resolve_target(
        self,
        channel: Any,
        thread_id: Optional[int],
        source_message: Optional[discord.Message] = None
    ) -> Messageable:
        """
        Where a message for ``thread_id`` should be sent

        Args:
            channel: Channel of the triggering message
            thread_id: Thread id per the module convention
            source_message: Triggering message, used to open a thread

        Returns:
            The channel or thread to send to
        """
        if thread_id is None or thread_id == channel.id:
            return channel

        # DMs and group DMs have no threads
        if not isinstance(channel, discord.TextChannel):
            return channel

        thread = channel.get_thread(thread_id)
        if thread is not None:
            return thread

        try:
            if source_message is not None and source_message.id == thread_id:
                message = source_message
            else:
                message = await channel.fetch_message(thread_id)
            thread = await message.create_thread(name=thread_name_for(message))
            self.logger.debug(f"Opened thread {thread.id} on message {message.id}")
            return thread
        except discord.HTTPException as e:
            raise DiscordAPIError(
                f"Failed to open thread on message {thread_id}: {e}",
                channel_id=channel.id,
                thread_id=thread_id,
                status=e.status
            ) from e

    async def upload_file(
        self,
        data: bytes,
        filename: str,
        channel_id: int,
        thread_id: Optional[int] = None,
        comment: Optional[str] = None
    ) -> discord.Message:
        """
        Upload ``data`` as a file

        Args:
            data: File content
            filename: File name shown in Discord
            channel_id: Target channel
            thread_id: Thread per the module convention
            comment: Message text sent with the file
        """
        channel = await self.get_channel(channel_id)
        target = await self.resolve_target(channel, thread_id)

        try:
            file = discord.File(io.BytesIO(data), filename=filename)
            message = await target.send(content=comment, file=file)
            self.logger.debug(f"Uploaded {filename} ({len(data)} bytes) to {channel_id}")
            return message
        except discord.HTTPException as e:
            raise DiscordAPIError(
                f"Failed to upload {filename}: {e}",
                channel_id=channel_id,
                filename=filename,
                status=e.status
            ) from e

    def resolve_emoji(
        self,
        reaction: str,
        guild: Optional[discord.Guild]
    ) -> Union[str, discord.Emoji, discord.PartialEmoji]:
        """
        Map a reaction to something ``add_reaction`` accepts

        Custom emoji markup (``<:name:id>``) becomes a PartialEmoji. Bare
        names of the guild's custom emoji resolve to that emoji; anything
        else is passed through as a unicode emoji.
        """
        if is_custom_emoji_markup(reaction):
            return discord.PartialEmoji.from_str(reaction.strip())

        name = normalize_emoji_name(reaction)
        if guild is not None:
            emoji = discord.utils.get(guild.emojis, name=name)
            if emoji is not None:
                return emoji
        return name

    async def add_reaction(self, channel_id: int, message_id: int, reaction: str) -> None:
        """
        Add a reaction to a message

        Raises:
            DiscordAPIError: The reaction could not be added
        """
        channel = await self.get_channel(channel_id)
        emoji = self.resolve_emoji(reaction, getattr(channel, 'guild', None))

        try:
            await channel.get_partial_message(message_id).add_reaction(emoji)
        except discord.HTTPException as e:
            raise DiscordAPIError(
                f"Failed to add reaction {reaction}: {e}",
                channel_id=channel_id,
                message_id=message_id,
                reaction=reaction,
                status=e.status
            ) from e


def make_reply(message: discord.Message, messaging: DiscordMessagingClient) -> ReplyFunction:
    """
    Build the reply function for one triggering message

    Args:
        message: Triggering message
        messaging: Messaging client used to resolve threads

    Returns:
        ``reply(text, thread_id=None)``; text over the message length limit is
        sent as several messages and the last one is returned
    """
    async def reply(text: str, thread_id: Optional[int] = None) -> discord.Message:
        target = await messaging.resolve_target(message.channel, thread_id, source_message=message)
        try:
            sent = None
            for chunk in split_message(text):
                sent = await target.send(chunk)
            return sent
        except discord.HTTPException as e:
            raise DiscordAPIError(
                f"Failed to send reply: {e}",
                channel_id=message.channel.id,
                thread_id=thread_id,
                status=e.status
            ) from e

    return reply
