"""
Command error handling

Provides the bot's error taxonomy and the single place where failed commands
are logged and answered:
- categorised exceptions carrying a user-facing message
- severity and retryability per category
- structured log records with event context
- a reply that never leaks internals to the channel
"""

import logging
import sqlite3
import traceback
from enum import Enum
from typing import Any, Dict, Optional
import discord

from .interfaces import CommandContext, get_thread_id

GENERIC_USER_MESSAGE = "エラーが発生しました。"


class ErrorCategory(Enum):
    """Error categories"""
    USER_ERROR = "user_error"          # bad user input
    DATABASE_ERROR = "database"        # storage failure
    PLATFORM_ERROR = "platform"        # Discord API failure
    SYSTEM_ERROR = "system"            # anything else


class Severity(Enum):
    """Log level an error is reported at"""
    WARN = "warn"
    ERROR = "error"

    @property
    def level(self) -> int:
        return logging.WARNING if self is Severity.WARN else logging.ERROR


class BotError(Exception):
    """Base class of all bot errors"""

    def __init__(
        self,
        message: str,
        user_message: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.SYSTEM_ERROR,
        retryable: bool = False,
        severity: Severity = Severity.ERROR,
        **context
    ):
        """
        Initialize the error

        Args:
            message: Internal message, logged only
            user_message: Message shown to the user
            category: Error category
            retryable: Whether retrying the same action may succeed
            severity: Log level to report at
            **context: Extra structured context (ids, arguments, ...)
        """
        super().__init__(message)
        self.message = message
        self.category = category
        self.user_message = user_message or GENERIC_USER_MESSAGE
        self.retryable = retryable
        self.severity = severity
        self.context = context


class ValidationError(BotError):
    """User input violates a constraint; never retryable, logged as a warning"""

    def __init__(self, message: str, user_message: str, **context):
        super().__init__(
            message,
            user_message,
            ErrorCategory.USER_ERROR,
            retryable=False,
            severity=Severity.WARN,
            **context
        )


class DatabaseError(BotError):
    """Storage failure"""

    def __init__(self, message: str, **context):
        super().__init__(
            message,
            "データベース操作中にエラーが発生しました。しばらく待ってから再試行してください。",
            ErrorCategory.DATABASE_ERROR,
            retryable=True,
            severity=Severity.ERROR,
            **context
        )


class DiscordAPIError(BotError):
    """Discord API failure"""

    def __init__(self, message: str, **context):
        super().__init__(
            message,
            "Discord APIとの通信中にエラーが発生しました。しばらく待ってから再試行してください。",
            ErrorCategory.PLATFORM_ERROR,
            retryable=True,
            severity=Severity.ERROR,
            **context
        )


def classify_error(error: Any) -> BotError:
    """
    Map any raised value onto the bot error taxonomy

    Args:
        error: Raised value, not necessarily an exception

    Returns:
        ``error`` itself when it is a BotError, otherwise an equivalent BotError
    """
    if isinstance(error, BotError):
        return error

    if isinstance(error, discord.HTTPException):
        return DiscordAPIError(str(error), status=error.status, error_type=type(error).__name__)

    if isinstance(error, sqlite3.Error):
        return DatabaseError(str(error), error_type=type(error).__name__)

    if isinstance(error, BaseException):
        context: Dict[str, Any] = {'error_type': type(error).__name__}
        if error.__traceback__ is not None:
            context['stack'] = ''.join(
                traceback.format_exception(type(error), error, error.__traceback__)
            )
        return BotError(str(error) or type(error).__name__, **context)

    return BotError(str(error), error_type=type(error).__name__)


class CommandErrorHandler:
    """
    Centralized command error handler

    Logs exactly one record per failure at the error's severity and sends the
    user-facing message back to where the command came from.
    """

    def __init__(self):
        """Initialize the error handler"""
        self.logger = logging.getLogger("trrbot.error_handler")

        # error counts by type name
        self._error_stats: Dict[str, int] = {}

    async def handle(
        self,
        error: Any,
        context: CommandContext,
        command_name: Optional[str] = None
    ) -> None:
        """
        Handle a failed command. Never raises.

        Args:
            error: Raised value
            context: Context of the failed command
            command_name: Resolved command name, if known
        """
        try:
            await self._handle(error, context, command_name)
        except Exception as e:
            # The handler itself failed; the stdlib logger is all that is left
            self.logger.error(f"Error handler failed: {e} (original error: {error!r})", exc_info=True)

    async def _handle(
        self,
        error: Any,
        context: CommandContext,
        command_name: Optional[str]
    ) -> None:
        event = context.event
        logger = context.logger.with_scope(f"cmd:{command_name}") if command_name else context.logger

        bot_error = classify_error(error)
        error_name = type(error).__name__ if isinstance(error, BaseException) else type(bot_error).__name__
        self._error_stats[error_name] = self._error_stats.get(error_name, 0) + 1

        first_token = event.text.split()[0] if event.text.split() else None
        log_context: Dict[str, Any] = {
            'command': command_name or first_token,
            'user_id': event.user_id,
            'channel_id': event.channel_id,
            'channel_kind': event.channel_kind.value,
            'timestamp': event.timestamp,
            'error_name': error_name,
            'category': bot_error.category.value,
            'is_retryable': bot_error.retryable,
        }
        log_context.update(bot_error.context)

        logger.log(bot_error.severity.level, bot_error.message, log_context)

        try:
            await context.reply(bot_error.user_message, thread_id=get_thread_id(event))
        except Exception as reply_error:
            logger.log(
                logging.ERROR,
                "Failed to send error message to user",
                {
                    'command': log_context['command'],
                    'channel_id': event.channel_id,
                    'original_error': bot_error.message,
                    'reply_error': str(reply_error),
                    'reply_error_type': type(reply_error).__name__,
                }
            )

    def get_error_stats(self) -> Dict[str, int]:
        """
        Get error counts

        Returns:
            Mapping of error type name to occurrences
        """
        return self._error_stats.copy()

    def reset_error_stats(self) -> None:
        """Reset error counts"""
        self._error_stats.clear()
        self.logger.info("Error statistics reset")
