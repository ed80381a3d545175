"""
Dice command

Supports three forms:
- ``dice`` rolls 1-6
- ``dice 10`` rolls 1-10
- ``2d6`` or ``dice 2d6`` rolls two six-sided dice and sums them
"""

import re
from typing import List, Optional, Tuple

from trrbot.core.error_handler import ValidationError
from trrbot.core.interfaces import CommandContext
from trrbot.utils.random_utils import random_int
from .base_command import BaseCommand, CommandKind
from .registry import DICE_CODE_PATTERN

DEFAULT_FACES = 6
MAX_DICE_COUNT = 100
MAX_DICE_FACES = 1_000_000

_INTEGER_PATTERN = re.compile(r'^[+-]?\d+', re.ASCII)


class DiceCommand(BaseCommand):
    """Roll dice"""

    kind = CommandKind.DICE
    description = "サイコロを振って、ランダムな数字を返します"

    def get_examples(self, command_name: str) -> List[str]:
        return [
            f"{self.mention_name} {command_name}",
            f"{self.mention_name} {command_name} 10",
            f"{self.mention_name} 2d6",
            f"{self.mention_name} 3d10",
        ]

    def parse_dice_code(self, text: str) -> Optional[Tuple[int, int]]:
        """
        Parse dice notation

        Args:
            text: Candidate such as ``2d6``

        Returns:
            ``(count, faces)``, or None when ``text`` is not dice notation

        Raises:
            ValidationError: Zero dice, zero faces, or more than the allowed maximum
        """
        match = DICE_CODE_PATTERN.match(text)
        if match is None:
            return None

        count = int(match.group(1))
        faces = int(match.group(2))

        if count < 1 or faces < 1:
            raise ValidationError(
                f"Invalid dice code: {text}",
                "有効な正の整数を指定してください。",
                dice_code=text
            )
        if count > MAX_DICE_COUNT:
            raise ValidationError(
                f"Too many dice: {count}",
                f"サイコロは{MAX_DICE_COUNT}個まで振れます。",
                dice_code=text,
                count=count,
                max_count=MAX_DICE_COUNT
            )
        if faces > MAX_DICE_FACES:
            raise ValidationError(
                f"Too many faces: {faces}",
                f"サイコロの面数は{MAX_DICE_FACES}までです。",
                dice_code=text,
                faces=faces,
                max_faces=MAX_DICE_FACES
            )

        return count, faces

    @staticmethod
    def roll(count: int, faces: int) -> List[int]:
        return [random_int(1, faces) for _ in range(count)]

    async def execute(self, context: CommandContext) -> None:
        dice_code = self.parse_dice_code(context.command_name)
        if dice_code is None and context.args:
            dice_code = self.parse_dice_code(context.args[0])

        if dice_code is not None:
            count, faces = dice_code
            results = self.roll(count, faces)
            await context.respond(
                f"🎲 {count}d{faces} の結果: {', '.join(str(r) for r in results)} = *{sum(results)}*"
            )
            return

        faces = DEFAULT_FACES
        if context.args:
            # leading integer, like parseInt
            match = _INTEGER_PATTERN.match(context.args[0])
            if match is None or int(match.group(0)) < 1:
                await context.respond("有効な正の整数を指定してください。")
                return
            faces = int(match.group(0))

        if faces > MAX_DICE_FACES:
            raise ValidationError(
                f"Too many faces: {faces}",
                f"サイコロの面数は{MAX_DICE_FACES}までです。",
                faces=faces,
                max_faces=MAX_DICE_FACES
            )

        await context.respond(f"🎲 結果: *{random_int(1, faces)}*")
