"""trrbot Discord event handler."""
import logging
import re
from typing import Optional
import discord
from discord.ext import commands

from trrbot.storage.reaction_service import ReactionService, distinct_reactions
from .dispatcher import CommandDispatcher
from .interfaces import BotEvent, ChannelKind
from .logging_config import BotLogger
from .messaging import DiscordMessagingClient, make_reply


class EventHandler:
    """
    trrbot Discord event handler

    Routes incoming messages:
    - DMs are commands without a mention
    - guild messages starting with the bot mention are commands
    - every guild message is checked for automatic reactions
    """

    def __init__(
        self,
        bot: commands.Bot,
        dispatcher: CommandDispatcher,
        reaction_service: ReactionService,
        messaging: Optional[DiscordMessagingClient] = None
    ):
        """
        Initialize the event handler

        Args:
            bot: Discord bot instance
            dispatcher: Command dispatcher
            reaction_service: Service deciding automatic reactions
            messaging: Messaging client, built from ``bot`` when omitted
        """
        self.logger = logging.getLogger("trrbot.events")
        self.bot_logger = BotLogger("events")
        self.bot = bot
        self.dispatcher = dispatcher
        self.reaction_service = reaction_service
        self.messaging = messaging or DiscordMessagingClient(bot)

        self._register_events()

    def _register_events(self) -> None:
        """Register Discord event handlers"""
        @self.bot.event
        async def on_ready():
            await self._on_ready()

        @self.bot.event
        async def on_message(message):
            await self._on_message(message)

        self.logger.debug("Event handlers registered")

    async def _on_ready(self) -> None:
        """Handle the ready event"""
        if self.bot.user is None:
            self.logger.error("Bot user is None in on_ready")
            return

        self.logger.info(f"Bot ready. Logged in as {self.bot.user.name} ({self.bot.user.id})")

        activity = discord.Activity(type=discord.ActivityType.listening, name="@mention help")
        await self.bot.change_presence(activity=activity)

    def strip_mention(self, content: str) -> Optional[str]:
        """
        Remove the leading bot mention

        Args:
            content: Message content

        Returns:
            The text after the mention, or None when the message does not
            start with a mention of this bot
        """
        if self.bot.user is None:
            return None

        match = re.match(rf'^\s*<@!?{self.bot.user.id}>', content)
        if match is None:
            return None
        return content[match.end():].strip()

    async def _on_message(self, message: discord.Message) -> None:
        """
        Handle an incoming message

        Args:
            message: Discord message
        """
        if message.author.bot or message.author == self.bot.user:
            return

        if not message.content:
            return

        channel_kind = ChannelKind.from_channel(message.channel)

        if channel_kind is ChannelKind.DIRECT:
            await self._dispatch(message, message.content)
            return

        command_text = self.strip_mention(message.content)
        if command_text is not None:
            await self._dispatch(message, command_text)
            return

        await self._add_reactions(message)

    async def _dispatch(self, message: discord.Message, text: str) -> None:
        event = BotEvent.from_message(message, text=text)
        try:
            await self.dispatcher.dispatch(
                text,
                event,
                make_reply(message, self.messaging),
                self.bot_logger,
                self.messaging
            )
        except Exception as e:
            # the error handler answers command failures; this only catches dispatcher bugs
            self.logger.error(f"Unexpected error while dispatching message {message.id}: {e}", exc_info=True)

    async def _add_reactions(self, message: discord.Message) -> None:
        """
        Add the reactions mapped to trigger texts found in the message

        A failure for one reaction is logged and the others are still added.
        """
        try:
            mappings = await self.reaction_service.get_all_reaction_mappings()
            matching = await self.reaction_service.get_matching_mappings(message.content, mappings)
            if not matching:
                return

            for reaction in distinct_reactions(matching):
                try:
                    await self.messaging.add_reaction(message.channel.id, message.id, reaction)

                    for mapping in matching:
                        if mapping.reaction == reaction:
                            await self.reaction_service.increment_reaction_usage(
                                mapping.trigger_text,
                                mapping.reaction
                            )
                except Exception as e:
                    self.bot_logger.warning(
                        "Failed to add reaction",
                        reaction=reaction,
                        channel_id=message.channel.id,
                        message_id=message.id,
                        error=str(e)
                    )

        except Exception as e:
            self.bot_logger.error(
                "Message handler error",
                error=e,
                channel_id=message.channel.id,
                message_id=message.id
            )
