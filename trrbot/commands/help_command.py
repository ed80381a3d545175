"""
Help command

Renders the command listing from the registrations. The registrations are
attached once after the registry is built, since the help command is itself
one of them.
"""

from typing import List, Sequence

from trrbot.core.interfaces import CommandContext
from .base_command import BaseCommand, CommandKind
from .registry import CommandRegistration

HELP_HEADER = "\n*使用可能なコマンド:*\n_ヒント: DMではメンション不要でコマンドを実行できます_\n\n"


class HelpCommand(BaseCommand):
    """List every command with a description and an example"""

    kind = CommandKind.HELP
    description = "このヘルプメッセージを表示します"

    def __init__(self, mention_name: str = "@trrbot"):
        super().__init__(mention_name)
        self._registrations: Sequence[CommandRegistration] = ()

    def attach_registrations(self, registrations: Sequence[CommandRegistration]) -> None:
        """
        Attach the registrations to list

        Raises:
            RuntimeError: Registrations were already attached
        """
        if self._registrations:
            raise RuntimeError("Help registrations are already attached")
        self._registrations = tuple(registrations)

    def get_examples(self, command_name: str) -> List[str]:
        return [f"{self.mention_name} {command_name}"]

    def render_entry(self, registration: CommandRegistration) -> str:
        """Help text of one registration"""
        shown_name = registration.shown_name
        command = registration.command

        custom = command.get_help_text(shown_name)
        if custom is not None:
            return custom

        if registration.dm_only:
            name_display = f"*{shown_name} (DM専用)*"
        elif registration.aliases and registration.display_name:
            other_names = [name for name in registration.names if name != shown_name]
            name_display = f"*{shown_name} ({', '.join(other_names)})*"
        else:
            name_display = f"*{shown_name}*"

        text = f"{name_display} - {command.description}\n"

        examples = command.get_examples(shown_name)
        if examples:
            text += f"  例: `{examples[0]}`"
            # dice also shows its shorthand
            if command.kind is CommandKind.DICE and len(examples) > 2:
                text += f", `{examples[2]}`"
            text += '\n'

        return text + '\n'

    def render(self) -> str:
        return HELP_HEADER + ''.join(self.render_entry(registration) for registration in self._registrations)

    async def execute(self, context: CommandContext) -> None:
        await context.respond(self.render())
