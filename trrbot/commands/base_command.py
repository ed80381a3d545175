"""
Base command class

Every command the bot understands implements this contract:
- a description and usage examples for the help listing
- asynchronous execution against a CommandContext
- optional custom help text for sub-command style commands
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional

from trrbot.core.interfaces import CommandContext


class CommandKind(Enum):
    """Closed set of command kinds"""
    CHOICE = "choice"
    DICE = "dice"
    SHUFFLE = "shuffle"
    GROUP_SHUFFLE = "group_shuffle"
    GROUP = "group"
    GROUP_CHOICE = "group_choice"
    REACTION = "reaction"
    SECRET = "secret"
    ZAKO_SECRET = "zako_secret"
    HELP = "help"
    DEFAULT = "default"


class BaseCommand(ABC):
    """
    Base class of all commands

    Commands hold no per-invocation state; the same instance serves every event.
    """

    kind: CommandKind
    description: str = ""

    def __init__(self, mention_name: str = "@trrbot"):
        """
        Initialize the command

        Args:
            mention_name: How users address the bot, used in examples
        """
        self.mention_name = mention_name
        self.logger = logging.getLogger(f"trrbot.commands.{self.__class__.__name__}")

    @abstractmethod
    def get_examples(self, command_name: str) -> List[str]:
        """
        Build usage examples

        Args:
            command_name: Name or alias the examples should use

        Returns:
            Example invocations
        """

    @abstractmethod
    async def execute(self, context: CommandContext) -> None:
        """
        Execute the command

        Args:
            context: Command execution context
        """

    def get_help_text(self, command_name: str) -> Optional[str]:
        """
        Build custom help text

        Sub-command style commands override this; None means the help command
        renders the standard description/example entry.

        Args:
            command_name: Name the help entry is shown under
        """
        return None
