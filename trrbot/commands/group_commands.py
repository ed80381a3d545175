"""
Group commands

- ``group``: sub-command style management of groups and their items
- ``gc``: pick a random item from a group, optionally excluding some
- ``gs``: shuffle a group's items
"""

from typing import List, Optional

from trrbot.core.interfaces import CommandContext, get_reply_thread_id
from trrbot.storage.group_service import GroupService
from trrbot.utils.random_utils import shuffle
from .base_command import BaseCommand, CommandKind
from .shuffle_command import format_numbered

GROUP_SUBCOMMANDS = ('list', 'create', 'delete', 'items', 'add', 'remove', 'clear')
EXCLUSION_SEPARATOR = '-'


class GroupCommand(BaseCommand):
    """
    Group management

    Replies go to a thread opened on the triggering message so listings do
    not clutter the channel.
    """

    kind = CommandKind.GROUP
    description = "グループを管理します"

    def __init__(self, group_service: GroupService, mention_name: str = "@trrbot"):
        super().__init__(mention_name)
        self.group_service = group_service

    def get_examples(self, command_name: str) -> List[str]:
        prefix = f"{self.mention_name} {command_name}"
        return [
            f"{prefix} list",
            f"{prefix} create グループ名",
            f"{prefix} delete グループ名",
            f"{prefix} items グループ名",
            f"{prefix} add グループ名 アイテム",
            f"{prefix} remove グループ名 アイテム",
            f"{prefix} clear グループ名",
        ]

    def get_help_text(self, command_name: str) -> Optional[str]:
        lines = [f"*{command_name}* - {self.description}"]
        lines.extend(f"  例: `{example}`" for example in self.get_examples(command_name))
        return '\n'.join(lines) + '\n\n'

    async def _reply(self, context: CommandContext, text: str) -> None:
        await context.respond(text, thread_id=get_reply_thread_id(context.event))

    async def execute(self, context: CommandContext) -> None:
        args = context.args

        if not args:
            await self._reply(context, f"サブコマンドを指定してください（{', '.join(GROUP_SUBCOMMANDS)}）。")
            return

        sub_command = args[0].lower()

        if sub_command == 'list':
            await self._handle_list(context)
            return

        if sub_command not in GROUP_SUBCOMMANDS:
            await self._reply(
                context,
                f"未知のサブコマンド: {sub_command}\n有効なサブコマンド: {', '.join(GROUP_SUBCOMMANDS)}"
            )
            return

        if sub_command in ('add', 'remove'):
            if len(args) < 3:
                await self._reply(context, "グループ名とアイテムを指定してください。")
                return
        elif len(args) < 2:
            await self._reply(context, "グループ名を指定してください。")
            return

        group_name = args[1]
        context.logger.log_debug("group", f"Sub-command {sub_command}", group_name=group_name)

        if sub_command == 'create':
            await self._handle_create(context, group_name)
        elif sub_command == 'delete':
            await self._handle_delete(context, group_name)
        elif sub_command == 'items':
            await self._handle_items(context, group_name)
        elif sub_command == 'add':
            await self._handle_add(context, group_name, args[2:])
        elif sub_command == 'remove':
            await self._handle_remove(context, group_name, ' '.join(args[2:]))
        elif sub_command == 'clear':
            await self._handle_clear(context, group_name)

    async def _handle_list(self, context: CommandContext) -> None:
        groups = await self.group_service.get_all_groups()

        if not groups:
            await self._reply(context, "グループはありません。")
            return

        names = '\n'.join(group.name for group in groups)
        await self._reply(context, f"*グループ一覧:*\n{names}")

    async def _handle_create(self, context: CommandContext, group_name: str) -> None:
        group = await self.group_service.create_group(group_name)
        await self._reply(context, f'グループ "{group.name}" を作成しました。')

    async def _handle_delete(self, context: CommandContext, group_name: str) -> None:
        if await self.group_service.delete_group(group_name):
            await self._reply(context, f'グループ "{group_name}" を削除しました。')
        else:
            await self._reply(context, f'グループ "{group_name}" は存在しません。')

    async def _handle_items(self, context: CommandContext, group_name: str) -> None:
        items = await self.group_service.get_items(group_name)

        if not items:
            await self._reply(context, f'グループ "{group_name}" にはアイテムがありません。')
            return

        texts = '\n'.join(item.item_text for item in items)
        await self._reply(context, f'*グループ "{group_name}" のアイテム:*\n{texts}')

    async def _handle_add(self, context: CommandContext, group_name: str, item_texts: List[str]) -> None:
        items = await self.group_service.add_items(group_name, item_texts)

        if len(items) == 1:
            await self._reply(context, f'グループ "{group_name}" にアイテム "{items[0].item_text}" を追加しました。')
            return

        texts = '\n'.join(item.item_text for item in items)
        await self._reply(context, f'グループ "{group_name}" に {len(items)} 個のアイテムを追加しました：\n{texts}')

    async def _handle_remove(self, context: CommandContext, group_name: str, item_text: str) -> None:
        if await self.group_service.remove_item(group_name, item_text):
            await self._reply(context, f'グループ "{group_name}" からアイテム "{item_text}" を削除しました。')
        else:
            await self._reply(context, f'グループ "{group_name}" またはアイテム "{item_text}" は存在しません。')

    async def _handle_clear(self, context: CommandContext, group_name: str) -> None:
        if await self.group_service.clear_items(group_name):
            await self._reply(context, f'グループ "{group_name}" のすべてのアイテムを削除しました。')
        else:
            await self._reply(context, f'グループ "{group_name}" は存在しません。')


class GroupChoiceCommand(BaseCommand):
    """Pick a random item from a group"""

    kind = CommandKind.GROUP_CHOICE
    description = "指定されたグループからランダムに1つのアイテムを選びます（- の後に除外するアイテムを指定できます）"

    def __init__(self, group_service: GroupService, mention_name: str = "@trrbot"):
        super().__init__(mention_name)
        self.group_service = group_service

    def get_examples(self, command_name: str) -> List[str]:
        return [
            f"{self.mention_name} {command_name} 食べ物",
            f"{self.mention_name} {command_name} 食べ物 - ラーメン",
        ]

    async def execute(self, context: CommandContext) -> None:
        if not context.args:
            await context.respond("グループ名を指定してください。")
            return

        if EXCLUSION_SEPARATOR in context.args:
            separator_index = context.args.index(EXCLUSION_SEPARATOR)
            name_words = context.args[:separator_index]
            exclusions = context.args[separator_index + 1:]
        else:
            name_words = list(context.args)
            exclusions = []

        if not name_words:
            await context.respond("グループ名を指定してください。")
            return

        group_name = ' '.join(name_words)
        item = await self.group_service.get_random_item(group_name, exclusions)

        if item is None:
            await context.respond(f'グループ "{group_name}" は存在しないか、アイテムがありません。')
            return

        await context.respond(f"選ばれたのは: *{item}*")


class GroupShuffleCommand(BaseCommand):
    """Shuffle a group's items"""

    kind = CommandKind.GROUP_SHUFFLE
    description = "指定されたグループ内のアイテムをランダムに並び替えて順序付けて返します"

    def __init__(self, group_service: GroupService, mention_name: str = "@trrbot"):
        super().__init__(mention_name)
        self.group_service = group_service

    def get_examples(self, command_name: str) -> List[str]:
        return [f"{self.mention_name} {command_name} グループ名"]

    async def execute(self, context: CommandContext) -> None:
        if not context.args:
            await context.respond(
                f"グループ名を指定してください。\n例: `{self.mention_name} gshuffle グループ名`"
            )
            return

        group_name = context.args[0]
        items = await self.group_service.get_items(group_name)

        if not items:
            await context.respond(f'グループ "{group_name}" は存在しないか、アイテムがありません。')
            return

        if len(items) == 1:
            await context.respond(
                f'グループ "{group_name}" にはアイテムが1つしかありません: *{items[0].item_text}*'
            )
            return

        shuffled = shuffle([item.item_text for item in items])
        await context.respond(f'グループ "{group_name}" のシャッフル結果:\n{format_numbered(shuffled)}')
