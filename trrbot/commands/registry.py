"""Command registry and resolution.

The registry is built once at startup from a static list of registrations and
never changes afterwards. Resolution of the first token of a message follows a
fixed precedence:

1. dice notation (``NdM``, e.g. ``2d6``) always resolves to the dice command,
   even if some alias has the same text;
2. primary names and aliases, case-insensitively;
3. anything else resolves to the default command.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from .base_command import BaseCommand

logger = logging.getLogger("trrbot.commands.registry")

DICE_CODE_PATTERN = re.compile(r'^(\d+)d(\d+)$', re.IGNORECASE | re.ASCII)


def is_dice_code(text: str) -> bool:
    """Check whether ``text`` is dice notation such as ``2d6`` or ``10D20``."""
    return DICE_CODE_PATTERN.match(text) is not None


class RegistryConfigurationError(ValueError):
    """Raised when registrations are inconsistent (duplicate names or aliases)."""


@dataclass(frozen=True)
class CommandRegistration:
    """Static binding of a command to its names and policy flags.

    Attributes:
        command: Command instance
        primary_name: Canonical name
        aliases: Alternative names
        display_name: Name shown in help instead of the primary name
        dm_only: Restrict the command to direct messages
    """

    command: BaseCommand
    primary_name: str
    aliases: Tuple[str, ...] = ()
    display_name: Optional[str] = None
    dm_only: bool = False

    @property
    def names(self) -> Tuple[str, ...]:
        return (self.primary_name,) + tuple(self.aliases)

    @property
    def shown_name(self) -> str:
        return self.display_name or self.primary_name


class CommandRegistry:
    """Immutable registry of all commands.

    Example:
        registry = CommandRegistry(registrations, dice_command, default_command)

        command = registry.resolve("gc")
        await command.execute(context)
    """

    def __init__(
        self,
        registrations: Iterable[CommandRegistration],
        dice_command: BaseCommand,
        default_command: BaseCommand,
    ):
        """Build the registry.

        Args:
            registrations: Registrations in help order
            dice_command: Command that dice notation resolves to
            default_command: Fallback for unknown names

        Raises:
            RegistryConfigurationError: If two registrations share a name or alias
        """
        self._registrations: Tuple[CommandRegistration, ...] = tuple(registrations)
        self._dice_command = dice_command
        self._default_command = default_command
        self._index: Dict[str, CommandRegistration] = {}

        for registration in self._registrations:
            for name in registration.names:
                key = name.lower()
                existing = self._index.get(key)
                if existing is not None:
                    raise RegistryConfigurationError(
                        f"Command name '{name}' of '{registration.primary_name}' "
                        f"collides with '{existing.primary_name}'"
                    )
                if is_dice_code(key):
                    logger.warning(
                        f"Name '{name}' of '{registration.primary_name}' is dice notation "
                        f"and will always resolve to the dice command"
                    )
                self._index[key] = registration

        logger.debug(f"Command registry built with {len(self._registrations)} registrations")

    @property
    def registrations(self) -> Tuple[CommandRegistration, ...]:
        return self._registrations

    @property
    def dice_command(self) -> BaseCommand:
        return self._dice_command

    @property
    def default_command(self) -> BaseCommand:
        return self._default_command

    def resolve(self, command_name: str) -> BaseCommand:
        """Resolve a command name token to a command.

        Never fails: unknown names resolve to the default command.

        Args:
            command_name: First token of the message

        Returns:
            The command to execute
        """
        name = command_name.lower()

        if is_dice_code(name):
            return self._dice_command

        registration = self._index.get(name)
        if registration is None:
            return self._default_command
        return registration.command

    def resolve_registration(self, command_name: str) -> Optional[CommandRegistration]:
        """Look up the registration a name belongs to.

        Dice notation has no registration of its own and returns None.

        Args:
            command_name: Command name or alias

        Returns:
            The registration, or None
        """
        name = command_name.lower()
        if is_dice_code(name):
            return None
        return self._index.get(name)

    def resolve_name(self, command_name: str) -> str:
        """Canonical name for logging: primary name, ``dice`` or ``default``."""
        registration = self.resolve_registration(command_name)
        if registration is not None:
            return registration.primary_name
        if is_dice_code(command_name):
            return "dice"
        return "default"

    def list_commands(self) -> List[str]:
        """List primary names in registration order."""
        return [registration.primary_name for registration in self._registrations]
