"""Shuffle command"""

from typing import List, Sequence

from trrbot.core.interfaces import CommandContext
from trrbot.utils.random_utils import shuffle
from .base_command import BaseCommand, CommandKind


def format_numbered(items: Sequence[str]) -> str:
    """Render ``items`` as a 1-based numbered list."""
    return '\n'.join(f"{index}. {item}" for index, item in enumerate(items, start=1))


class ShuffleCommand(BaseCommand):
    """Shuffle the given items into a numbered order"""

    kind = CommandKind.SHUFFLE
    description = "指定された項目をランダムに並び替えて順序付けて返します"

    def get_examples(self, command_name: str) -> List[str]:
        return [
            f"{self.mention_name} {command_name} A B C D",
            f"{self.mention_name} {command_name} 項目1 項目2 項目3",
        ]

    async def execute(self, context: CommandContext) -> None:
        if len(context.args) < 2:
            await context.respond(
                f"並び替える項目を2つ以上指定してください。\n例: `{self.mention_name} shuffle A B C D`"
            )
            return

        await context.respond(f"シャッフル結果:\n{format_numbered(shuffle(context.args))}")
