"""Logging setup for TrrBot."""
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional


class ContextFormatter(logging.Formatter):
    """
    Formatter that appends the structured fields attached by BotLogger.

    Records carry an optional ``scope`` (e.g. ``cmd:group``) and a ``context``
    mapping; both are rendered after the message as ``key=value`` pairs.
    """

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)

        scope = getattr(record, 'scope', None)
        context = getattr(record, 'context', None)

        parts = []
        if scope:
            parts.append(f"[{scope}]")
        if context:
            parts.extend(f"{key}={value!r}" for key, value in context.items())

        if not parts:
            return message
        return f"{message} | {' '.join(parts)}"


def setup_logger(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    max_size: int = 10485760,
    backup_count: int = 5
) -> logging.Logger:
    """
    Configure the ``trrbot`` logger hierarchy.

    Args:
        log_level: Logging level name
        log_file: Optional path of a rotating log file
        max_size: Maximum size of the log file in bytes before rotation
        backup_count: Number of rotated files to keep

    Returns:
        The configured root ``trrbot`` logger
    """
    logger = logging.getLogger("trrbot")
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Reconfiguring replaces previous handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = ContextFormatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_size,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # discord.py is chatty at DEBUG
    logging.getLogger("discord").setLevel(max(logger.level, logging.INFO))

    return logger
