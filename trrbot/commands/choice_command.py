"""
Choice commands

``choice`` picks one of its arguments; the default command does the same with
the whole input when the first word is not a known command.
"""

from typing import List

from trrbot.core.interfaces import CommandContext
from trrbot.utils.random_utils import random_item
from .base_command import BaseCommand, CommandKind


class ChoiceCommand(BaseCommand):
    """Pick one of the given options"""

    kind = CommandKind.CHOICE
    description = "指定された選択肢からランダムに1つ選びます"

    def get_examples(self, command_name: str) -> List[str]:
        return [f"{self.mention_name} {command_name} ラーメン カレー 寿司"]

    async def execute(self, context: CommandContext) -> None:
        if not context.args:
            await context.respond("選択肢を指定してください。")
            return

        choice = random_item(context.args)
        await context.respond(f"選ばれたのは: *{choice}*")


class DefaultCommand(BaseCommand):
    """
    Fallback for unknown command names

    The unknown first word is itself one of the options, so
    ``ラーメン カレー`` works without a command name.
    """

    kind = CommandKind.DEFAULT
    description = "未知のコマンドが入力された場合、入力されたテキスト全体を選択肢として扱います"

    def get_examples(self, command_name: str) -> List[str]:
        return [f"{self.mention_name} 選択肢1 選択肢2 選択肢3"]

    async def execute(self, context: CommandContext) -> None:
        choices = [context.command_name] + list(context.args) if context.command_name else list(context.args)
        choices = [choice for choice in choices if choice.strip()]

        if not choices:
            await context.respond("'help'コマンドでヘルプを表示できます。")
            return

        choice = random_item(choices)
        await context.respond(f"選ばれたのは: *{choice}*")
