"""trrbot main implementation."""
import asyncio
import logging
import signal
from typing import Optional
import discord
from discord.ext import commands

from trrbot.commands import build_command_registry
from trrbot.commands.registry import CommandRegistry
from trrbot.core.dependency_container import DependencyContainer
from trrbot.core.dispatcher import CommandDispatcher
from trrbot.core.error_handler import CommandErrorHandler
from trrbot.core.event_handler import EventHandler
from trrbot.core.messaging import DiscordMessagingClient
from trrbot.storage import BotDatabase, GroupService, ReactionService
from trrbot.utils.config_manager import ConfigManager


class TrrBot:
    """
    trrbot main class

    Text-command bot for Discord:
    - random choice, dice, shuffling and secret strings
    - named groups of items to pick from or shuffle
    - automatic emoji reactions to trigger texts
    """

    def __init__(self, config: ConfigManager):
        """
        Initialize the bot

        Args:
            config: Configuration manager
        """
        self.logger = logging.getLogger("trrbot.bot")
        self.config = config

        self.container = DependencyContainer()
        self._shutdown_task: Optional[asyncio.Task] = None

        intents = discord.Intents.default()
        intents.message_content = True

        # commands are text messages handled by EventHandler, not by the ext prefix parser
        self.bot = commands.Bot(
            command_prefix=commands.when_mentioned,
            intents=intents,
            help_command=None
        )

        self._register_dependencies()
        self._init_core_modules()

        self.bot.add_listener(self._on_ready, 'on_ready')

        self.logger.info("Bot initialized")

    def _register_dependencies(self) -> None:
        """Register components in dependency order"""
        def create_database(config: ConfigManager) -> BotDatabase:
            return BotDatabase(config.get_database_path())

        def create_group_service(database: BotDatabase) -> GroupService:
            return GroupService(database)

        def create_reaction_service(database: BotDatabase) -> ReactionService:
            return ReactionService(database)

        def create_registry(
            config: ConfigManager,
            group_service: GroupService,
            reaction_service: ReactionService
        ) -> CommandRegistry:
            return build_command_registry(group_service, reaction_service, config.get_mention_name())

        def create_dispatcher(registry: CommandRegistry, error_handler: CommandErrorHandler) -> CommandDispatcher:
            return CommandDispatcher(registry, error_handler)

        def create_messaging(client: commands.Bot) -> DiscordMessagingClient:
            return DiscordMessagingClient(client)

        def create_event_handler(
            client: commands.Bot,
            dispatcher: CommandDispatcher,
            reaction_service: ReactionService,
            messaging: DiscordMessagingClient
        ) -> EventHandler:
            return EventHandler(client, dispatcher, reaction_service, messaging)

        self.container.register_instance("config", self.config)
        self.container.register_instance("client", self.bot)
        self.container.register_singleton("database", create_database, ["config"])
        self.container.register_singleton("group_service", create_group_service, ["database"])
        self.container.register_singleton("reaction_service", create_reaction_service, ["database"])
        self.container.register_singleton("registry", create_registry, ["config", "group_service", "reaction_service"])
        self.container.register_singleton("error_handler", CommandErrorHandler)
        self.container.register_singleton("dispatcher", create_dispatcher, ["registry", "error_handler"])
        self.container.register_singleton("messaging", create_messaging, ["client"])
        self.container.register_singleton(
            "event_handler",
            create_event_handler,
            ["client", "dispatcher", "reaction_service", "messaging"]
        )

        self.container.validate_dependencies()
        self.logger.debug("Dependencies registered")

    def _init_core_modules(self) -> None:
        """Resolve the core components"""
        try:
            self.database: BotDatabase = self.container.resolve("database")
            self.registry: CommandRegistry = self.container.resolve("registry")
            self.dispatcher: CommandDispatcher = self.container.resolve("dispatcher")
            self.event_handler: EventHandler = self.container.resolve("event_handler")
            self.logger.info(f"Core modules initialized ({len(self.registry.registrations)} commands)")
        except Exception as e:
            self.logger.error(f"Core module initialization failed: {e}", exc_info=True)
            raise RuntimeError(f"Core module initialization failed: {e}") from e

    async def _on_ready(self) -> None:
        self.logger.debug(f"Connected to {len(self.bot.guilds)} guilds")

    async def start(self, token: str) -> None:
        """
        Initialize the database and start the client

        Args:
            token: Discord bot token
        """
        await self.database.initialize()
        self.logger.info("Starting bot...")
        await self.bot.start(token)

    async def close(self) -> None:
        """Close the client and the database"""
        try:
            self.logger.info("Shutting down bot...")
            if not self.bot.is_closed():
                await self.bot.close()
        except Exception as e:
            self.logger.error(f"Error while closing the client: {e}", exc_info=True)
        finally:
            if not self.database.is_closed:
                await self.database.close()
            self.logger.info("Bot shut down")

    async def _run(self, token: str) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self._on_signal, sig)
            except NotImplementedError:
                # add_signal_handler is unavailable on Windows; Ctrl+C still raises KeyboardInterrupt
                pass

        try:
            await self.start(token)
        finally:
            await self.close()

    def _on_signal(self, sig: signal.Signals) -> None:
        # the loop keeps only a weak reference to tasks
        if self._shutdown_task is None:
            self.logger.info(f"Received {sig.name}, shutting down")
            self._shutdown_task = asyncio.get_running_loop().create_task(self.close())

    def run(self, token: str) -> None:
        """
        Run the bot until it is stopped (blocking)

        Args:
            token: Discord bot token
        """
        try:
            asyncio.run(self._run(token))
        except KeyboardInterrupt:
            self.logger.info("Bot stopped by user")

    def get_stats(self) -> dict:
        """
        Get bot statistics

        Returns:
            Dictionary with bot statistics
        """
        return {
            "bot_ready": self.bot.is_ready(),
            "guild_count": len(self.bot.guilds),
            "command_count": len(self.registry.registrations),
            "error_stats": self.dispatcher.error_handler.get_error_stats(),
        }
