"""
Structured logging for command handling

BotLogger wraps a stdlib logger and attaches two structured fields to each
record through ``extra``:
- ``context``: key/value mapping describing the event
- ``scope``: optional tag such as ``cmd:group``

Serialization is left to the handler's formatter.
"""

import logging
from typing import Any, Dict, Optional


class BotLogger:
    """
    Leveled structured logger handed to commands

    Instances are cheap; ``with_scope`` returns a new handle instead of
    changing this one, so a logger shared between concurrent events is never
    retagged underneath another command.
    """

    def __init__(self, name: str, scope: Optional[str] = None):
        """
        Initialize the logger

        Args:
            name: Logger name below ``trrbot``
            scope: Optional tag attached to every record
        """
        self.logger = logging.getLogger(f"trrbot.{name}")
        self.name = name
        self.scope = scope

    def with_scope(self, scope: str) -> "BotLogger":
        """
        Return a handle whose records are tagged with ``scope``

        Args:
            scope: Scope marker, e.g. ``cmd:dice``
        """
        return BotLogger(self.name, scope)

    def _log(self, level: int, message: str, context: Dict[str, Any], exc_info: Any = None) -> None:
        self.logger.log(
            level,
            message,
            extra={'context': context, 'scope': self.scope},
            exc_info=exc_info
        )

    def log(self, level: int, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        """
        Log one record with a prepared context mapping

        Args:
            level: stdlib logging level
            message: Log message
            context: Structured fields; keys are not restricted to identifiers
        """
        self._log(level, message, dict(context or {}))

    def debug(self, message: str, **context) -> None:
        """Log a debug record"""
        self._log(logging.DEBUG, message, context)

    def info(self, message: str, **context) -> None:
        """Log an info record"""
        self._log(logging.INFO, message, context)

    def warning(self, message: str, **context) -> None:
        """Log a warning record"""
        self._log(logging.WARNING, message, context)

    warn = warning

    def error(self, message: str, error: Optional[BaseException] = None, **context) -> None:
        """Log an error record, with the traceback of ``error`` when given"""
        self._log(logging.ERROR, message, context, exc_info=error)

    def log_command_success(self, command_name: str, **context) -> None:
        """
        Log a successful command execution

        Args:
            command_name: Name the command was invoked with
            **context: Extra fields such as user and channel ids
        """
        self.with_scope(f"cmd:{command_name}").info(
            "Command executed successfully",
            command=command_name,
            status='success',
            **context
        )

    def log_debug(self, command_name: str, message: str, **data) -> None:
        """
        Log a debug record scoped to a command

        Args:
            command_name: Command name used for the scope
            message: Log message
            **data: Optional structured data
        """
        self.with_scope(f"cmd:{command_name}").debug(message, **data)
