"""
Commands and the registry that resolves them.

``build_command_registry`` is the single static list of registrations; its
order is the order of the help listing.
"""

from trrbot.storage.group_service import GroupService
from trrbot.storage.reaction_service import ReactionService
from .base_command import BaseCommand, CommandKind
from .choice_command import ChoiceCommand, DefaultCommand
from .dice_command import DiceCommand
from .group_commands import GroupChoiceCommand, GroupCommand, GroupShuffleCommand
from .help_command import HelpCommand
from .reaction_command import ReactionCommand
from .registry import (
    CommandRegistration,
    CommandRegistry,
    RegistryConfigurationError,
    is_dice_code,
)
from .secret_commands import SecretCommand, ZakoSecretCommand
from .shuffle_command import ShuffleCommand


def build_command_registry(
    group_service: GroupService,
    reaction_service: ReactionService,
    mention_name: str = "@trrbot"
) -> CommandRegistry:
    """
    Build the command registry

    Args:
        group_service: Service used by the group commands
        reaction_service: Service used by the reaction command
        mention_name: How users address the bot, used in examples

    Returns:
        The registry, with the help command wired to its registrations

    Raises:
        RegistryConfigurationError: Duplicate names or aliases
    """
    help_command = HelpCommand(mention_name)
    dice_command = DiceCommand(mention_name)

    registrations = [
        CommandRegistration(help_command, 'help'),
        CommandRegistration(ChoiceCommand(mention_name), 'choice'),
        CommandRegistration(
            GroupChoiceCommand(group_service, mention_name),
            'groupChoice',
            aliases=('gc', 'group-choice', 'gchoice'),
            display_name='gc'
        ),
        CommandRegistration(ReactionCommand(reaction_service, mention_name), 'reaction'),
        CommandRegistration(GroupCommand(group_service, mention_name), 'group'),
        CommandRegistration(dice_command, 'dice'),
        CommandRegistration(ZakoSecretCommand(mention_name), 'zako-secret', dm_only=True),
        CommandRegistration(SecretCommand(mention_name), 'secret', dm_only=True),
        CommandRegistration(ShuffleCommand(mention_name), 'shuffle'),
        CommandRegistration(
            GroupShuffleCommand(group_service, mention_name),
            'groupShuffle',
            aliases=('gs', 'group-shuffle', 'gshuffle'),
            display_name='gs'
        ),
    ]

    registry = CommandRegistry(registrations, dice_command, DefaultCommand(mention_name))
    help_command.attach_registrations(registry.registrations)
    return registry


__all__ = [
    'BaseCommand',
    'CommandKind',
    'CommandRegistration',
    'CommandRegistry',
    'RegistryConfigurationError',
    'is_dice_code',
    'build_command_registry',
    'ChoiceCommand',
    'DefaultCommand',
    'DiceCommand',
    'GroupChoiceCommand',
    'GroupCommand',
    'GroupShuffleCommand',
    'HelpCommand',
    'ReactionCommand',
    'SecretCommand',
    'ZakoSecretCommand',
    'ShuffleCommand',
]
