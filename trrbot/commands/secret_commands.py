"""
Secret string commands

Both commands are DM-only; the restriction lives in their registrations.
"""

import re
from typing import List

from trrbot.core.interfaces import CommandContext
from trrbot.utils.random_utils import Alphabet, random_string
from .base_command import BaseCommand, CommandKind

DEFAULT_SECRET_LENGTH = 10
MAX_SECRET_LENGTH = 100

_INTEGER_PATTERN = re.compile(r'^[+-]?\d+', re.ASCII)


class _SecretCommandBase(BaseCommand):
    """Shared length parsing for the secret commands"""

    alphabet: Alphabet = Alphabet.ALPHANUMERIC
    result_template: str = ""

    def get_examples(self, command_name: str) -> List[str]:
        return [
            f"{self.mention_name} {command_name} 10",
            f"{self.mention_name} {command_name} 20",
        ]

    async def execute(self, context: CommandContext) -> None:
        length = DEFAULT_SECRET_LENGTH

        if context.args:
            match = _INTEGER_PATTERN.match(context.args[0])
            if match is None or int(match.group(0)) < 1:
                await context.respond("有効な正の整数を指定してください。")
                return
            # cap to keep the reply short
            length = min(int(match.group(0)), MAX_SECRET_LENGTH)

        secret = random_string(length, self.alphabet)
        context.logger.log_debug(context.command_name, "Secret generated", length=length)
        await context.respond(self.result_template.format(secret=secret))


class SecretCommand(_SecretCommandBase):
    """Random string including symbols"""

    kind = CommandKind.SECRET
    description = "指定された長さのランダムな英数字と記号を含む文字列を生成します"
    alphabet = Alphabet.WITH_SYMBOLS
    result_template = "🔐 生成されたシークレット文字列（記号含む）: `{secret}`"


class ZakoSecretCommand(_SecretCommandBase):
    """Random alphanumeric string"""

    kind = CommandKind.ZAKO_SECRET
    description = "指定された長さのランダムな英数字文字列を生成します"
    alphabet = Alphabet.ALPHANUMERIC
    result_template = "🔑 生成されたシークレット文字列: `{secret}`"
