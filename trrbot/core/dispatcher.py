"""
Command dispatch pipeline

Turns raw command text into one command execution:
tokenize, resolve, DM-only gate, build context, execute. Any failure raised
by the command goes to the CommandErrorHandler; the dispatcher never decides
how a failure is logged or worded.
"""

from typing import Optional

from trrbot.commands.registry import CommandRegistry
from trrbot.utils.random_utils import parse_command
from .error_handler import CommandErrorHandler
from .interfaces import BotEvent, CommandContext, MessagingClient, ReplyFunction, get_thread_id
from .logging_config import BotLogger

EMPTY_COMMAND_MESSAGE = "何かコマンドを指定してください。"
DM_ONLY_MESSAGE = "このコマンドはDMでのみ使用できます。"


class CommandDispatcher:
    """
    Dispatches command text to commands

    Holds no per-event state; concurrent events share one instance.
    """

    def __init__(self, registry: CommandRegistry, error_handler: Optional[CommandErrorHandler] = None):
        """
        Initialize the dispatcher

        Args:
            registry: Command registry
            error_handler: Handler for failed commands
        """
        self.registry = registry
        self.error_handler = error_handler or CommandErrorHandler()

    async def dispatch(
        self,
        raw_text: str,
        event: BotEvent,
        reply: ReplyFunction,
        logger: BotLogger,
        client: MessagingClient
    ) -> None:
        """
        Dispatch one command

        Args:
            raw_text: Command text with any leading bot mention removed
            event: Triggering event
            reply: Reply function bound to the event's origin
            logger: Logger handle
            client: Messaging client for uploads and reactions
        """
        tokens = parse_command(raw_text)

        if not tokens:
            await reply(EMPTY_COMMAND_MESSAGE, thread_id=get_thread_id(event))
            return

        command_token = tokens[0]
        command = self.registry.resolve(command_token)
        registration = self.registry.resolve_registration(command_token)
        command_name = self.registry.resolve_name(command_token)

        if registration is not None and registration.dm_only and not event.is_direct_message:
            logger.with_scope(f"cmd:{command_name}").info(
                "DM-only command rejected",
                command=command_name,
                user_id=event.user_id,
                channel_id=event.channel_id,
                channel_kind=event.channel_kind.value
            )
            await reply(DM_ONLY_MESSAGE, thread_id=get_thread_id(event))
            return

        context = CommandContext(
            event=event,
            reply=reply,
            logger=logger,
            args=tokens[1:],
            client=client,
            command_name=command_token,
        )

        logger.log_debug(command_name, "Executing command", args=context.args)

        try:
            await command.execute(context)
        except Exception as e:
            await self.error_handler.handle(e, context, command_name)
            return

        logger.log_command_success(
            command_name,
            user_id=event.user_id,
            channel_id=event.channel_id
        )
