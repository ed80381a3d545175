"""
Reaction command

Manages the trigger text to emoji mappings used for automatic reactions and
exports them as CSV.
"""

from datetime import datetime
from typing import List, Optional

from trrbot.core.interfaces import CommandContext, get_reply_thread_id
from trrbot.storage.reaction_service import ReactionService
from .base_command import BaseCommand, CommandKind

REACTION_SUBCOMMANDS = ('list', 'add', 'remove', 'export')
EXPORT_COMMENT = "リアクションマッピングをCSVファイルとしてエクスポートしました。"


def export_filename(now: Optional[datetime] = None) -> str:
    """``reaction-mappings-<timestamp>.csv`` with ``:`` and ``.`` replaced by ``-``."""
    timestamp = (now or datetime.now()).isoformat().replace(':', '-').replace('.', '-')
    return f"reaction-mappings-{timestamp}.csv"


class ReactionCommand(BaseCommand):
    """Reaction mapping management"""

    kind = CommandKind.REACTION
    description = "リアクションマッピングを管理します"

    def __init__(self, reaction_service: ReactionService, mention_name: str = "@trrbot"):
        super().__init__(mention_name)
        self.reaction_service = reaction_service

    def get_examples(self, command_name: str) -> List[str]:
        prefix = f"{self.mention_name} {command_name}"
        return [
            f"{prefix} export",
            f"{prefix} list",
            f"{prefix} add トリガー :emoji:",
            f"{prefix} remove トリガー :emoji:",
        ]

    async def _reply(self, context: CommandContext, text: str) -> None:
        await context.respond(text, thread_id=get_reply_thread_id(context.event))

    async def execute(self, context: CommandContext) -> None:
        args = context.args

        if not args:
            await self._reply(context, f"サブコマンドを指定してください（{', '.join(REACTION_SUBCOMMANDS)}）。")
            return

        sub_command = args[0].lower()

        if sub_command == 'list':
            await self._handle_list(context)
        elif sub_command == 'export':
            await self._handle_export(context)
        elif sub_command in ('add', 'remove'):
            if len(args) < 3:
                await self._reply(context, "トリガーテキストとリアクションを指定してください。")
                return
            if sub_command == 'add':
                await self._handle_add(context, args[1], args[2])
            else:
                await self._handle_remove(context, args[1], args[2])
        else:
            await self._reply(
                context,
                f"未知のサブコマンド: {sub_command}\n有効なサブコマンド: {', '.join(REACTION_SUBCOMMANDS)}"
            )

    async def _handle_list(self, context: CommandContext) -> None:
        mappings = await self.reaction_service.get_all_reaction_mappings()

        if not mappings:
            await self._reply(context, "リアクションマッピングはありません。")
            return

        lines = [
            f'"{mapping.trigger_text}" → {mapping.reaction}（{mapping.usage_count}回）'
            for mapping in mappings
        ]
        await self._reply(context, "*リアクションマッピング一覧:*\n" + '\n'.join(lines))

    async def _handle_add(self, context: CommandContext, trigger_text: str, reaction: str) -> None:
        mapping = await self.reaction_service.add_reaction_mapping(trigger_text, reaction)
        await self._reply(
            context,
            f'リアクションマッピングを追加しました: "{mapping.trigger_text}" → {mapping.reaction}'
        )

    async def _handle_remove(self, context: CommandContext, trigger_text: str, reaction: str) -> None:
        if await self.reaction_service.remove_reaction_mapping(trigger_text, reaction):
            await self._reply(context, f'リアクションマッピングを削除しました: "{trigger_text}" → {reaction}')
        else:
            await self._reply(context, f'リアクションマッピング "{trigger_text}" → {reaction} は存在しません。')

    async def _handle_export(self, context: CommandContext) -> None:
        csv_content = await self.reaction_service.export_csv()

        if csv_content is None:
            await self._reply(context, "エクスポートするリアクションマッピングはありません。")
            return

        filename = export_filename()
        await context.client.upload_file(
            csv_content.encode('utf-8'),
            filename,
            context.event.channel_id,
            thread_id=get_reply_thread_id(context.event),
            comment=EXPORT_COMMENT
        )
        context.logger.log_debug("reaction", "Reaction mappings exported", filename=filename)
