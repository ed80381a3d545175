"""
Group command tests

group, gc and gs against a mocked GroupService.
"""

from datetime import datetime
from unittest.mock import AsyncMock, Mock

import pytest

from conftest import make_context, make_event, reply_text
from trrbot.commands import GroupChoiceCommand, GroupCommand, GroupShuffleCommand
from trrbot.core.error_handler import ValidationError
from trrbot.core.interfaces import ChannelKind
from trrbot.storage.database import Group, GroupItem
from trrbot.storage.group_service import GroupService

NOW = datetime(2024, 1, 1)


def _group(name, group_id=1):
    return Group(id=group_id, name=name, created_at=NOW, updated_at=NOW)


def _items(*texts):
    return [GroupItem(id=i, group_id=1, item_text=text, created_at=NOW) for i, text in enumerate(texts, start=1)]


@pytest.fixture
def group_service():
    service = Mock(spec=GroupService)
    service.get_all_groups = AsyncMock(return_value=[])
    service.create_group = AsyncMock()
    service.delete_group = AsyncMock(return_value=True)
    service.get_items = AsyncMock(return_value=[])
    service.add_items = AsyncMock()
    service.remove_item = AsyncMock(return_value=True)
    service.clear_items = AsyncMock(return_value=True)
    service.get_random_item = AsyncMock(return_value=None)
    return service


class TestGroupCommand:
    """group"""

    async def _run(self, group_service, args, event=None):
        context = make_context(args, event=event, command_name="group")
        await GroupCommand(group_service).execute(context)
        return context

    @pytest.mark.asyncio
    async def test_no_subcommand(self, group_service):
        context = await self._run(group_service, [])
        assert reply_text(context.reply) == "サブコマンドを指定してください（list, create, delete, items, add, remove, clear）。"

    @pytest.mark.asyncio
    async def test_unknown_subcommand(self, group_service):
        context = await self._run(group_service, ["rename", "x"])
        assert reply_text(context.reply).startswith("未知のサブコマンド: rename\n")

    @pytest.mark.asyncio
    async def test_replies_open_thread_on_message(self, group_service):
        context = await self._run(group_service, ["list"])
        context.reply.assert_awaited_once_with("グループはありません。", thread_id=context.event.message_id)

    @pytest.mark.asyncio
    async def test_replies_stay_in_current_thread(self, group_service):
        event = make_event("group list", channel_kind=ChannelKind.THREAD, thread_id=4242)
        context = await self._run(group_service, ["list"], event=event)
        assert context.reply.await_args.kwargs["thread_id"] == 4242

    @pytest.mark.asyncio
    async def test_list(self, group_service):
        group_service.get_all_groups.return_value = [_group("食べ物"), _group("飲み物", 2)]
        context = await self._run(group_service, ["LIST"])
        assert reply_text(context.reply) == "*グループ一覧:*\n食べ物\n飲み物"

    @pytest.mark.asyncio
    async def test_create(self, group_service):
        group_service.create_group.return_value = _group("食べ物")
        context = await self._run(group_service, ["create", "食べ物"])

        group_service.create_group.assert_awaited_once_with("食べ物")
        assert reply_text(context.reply) == 'グループ "食べ物" を作成しました。'

    @pytest.mark.asyncio
    async def test_create_duplicate_propagates(self, group_service):
        group_service.create_group.side_effect = ValidationError(
            "Group already exists: 食べ物", 'グループ名 "食べ物" は既に存在します。'
        )
        with pytest.raises(ValidationError):
            await self._run(group_service, ["create", "食べ物"])

    @pytest.mark.asyncio
    @pytest.mark.parametrize("sub_command", ["create", "delete", "items", "clear"])
    async def test_missing_group_name(self, group_service, sub_command):
        context = await self._run(group_service, [sub_command])
        assert reply_text(context.reply) == "グループ名を指定してください。"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("sub_command", ["add", "remove"])
    async def test_missing_item(self, group_service, sub_command):
        context = await self._run(group_service, [sub_command, "食べ物"])
        assert reply_text(context.reply) == "グループ名とアイテムを指定してください。"

    @pytest.mark.asyncio
    async def test_delete_missing(self, group_service):
        group_service.delete_group.return_value = False
        context = await self._run(group_service, ["delete", "x"])
        assert reply_text(context.reply) == 'グループ "x" は存在しません。'

    @pytest.mark.asyncio
    async def test_items(self, group_service):
        group_service.get_items.return_value = _items("ラーメン", "カレー")
        context = await self._run(group_service, ["items", "食べ物"])
        assert reply_text(context.reply) == '*グループ "食べ物" のアイテム:*\nラーメン\nカレー'

    @pytest.mark.asyncio
    async def test_items_empty(self, group_service):
        context = await self._run(group_service, ["items", "食べ物"])
        assert reply_text(context.reply) == 'グループ "食べ物" にはアイテムがありません。'

    @pytest.mark.asyncio
    async def test_add_single(self, group_service):
        group_service.add_items.return_value = _items("ラーメン")
        context = await self._run(group_service, ["add", "食べ物", "ラーメン"])

        group_service.add_items.assert_awaited_once_with("食べ物", ["ラーメン"])
        assert reply_text(context.reply) == 'グループ "食べ物" にアイテム "ラーメン" を追加しました。'

    @pytest.mark.asyncio
    async def test_add_several(self, group_service):
        group_service.add_items.return_value = _items("ラーメン", "カレー", "寿司")
        context = await self._run(group_service, ["add", "食べ物", "ラーメン", "カレー", "寿司"])

        group_service.add_items.assert_awaited_once_with("食べ物", ["ラーメン", "カレー", "寿司"])
        assert reply_text(context.reply) == 'グループ "食べ物" に 3 個のアイテムを追加しました：\nラーメン\nカレー\n寿司'

    @pytest.mark.asyncio
    async def test_remove(self, group_service):
        context = await self._run(group_service, ["remove", "食べ物", "ラーメン"])
        group_service.remove_item.assert_awaited_once_with("食べ物", "ラーメン")
        assert reply_text(context.reply) == 'グループ "食べ物" からアイテム "ラーメン" を削除しました。'

    @pytest.mark.asyncio
    async def test_remove_missing(self, group_service):
        group_service.remove_item.return_value = False
        context = await self._run(group_service, ["remove", "食べ物", "ピザ"])
        assert reply_text(context.reply) == 'グループ "食べ物" またはアイテム "ピザ" は存在しません。'

    @pytest.mark.asyncio
    async def test_clear(self, group_service):
        context = await self._run(group_service, ["clear", "食べ物"])
        assert reply_text(context.reply) == 'グループ "食べ物" のすべてのアイテムを削除しました。'


class TestGroupChoiceCommand:
    """gc"""

    async def _run(self, group_service, args):
        context = make_context(args, command_name="gc")
        await GroupChoiceCommand(group_service).execute(context)
        return context

    @pytest.mark.asyncio
    async def test_no_args(self, group_service):
        context = await self._run(group_service, [])
        assert reply_text(context.reply) == "グループ名を指定してください。"

    @pytest.mark.asyncio
    async def test_pick(self, group_service):
        group_service.get_random_item.return_value = "カレー"
        context = await self._run(group_service, ["食べ物"])

        group_service.get_random_item.assert_awaited_once_with("食べ物", [])
        assert reply_text(context.reply) == "選ばれたのは: *カレー*"

    @pytest.mark.asyncio
    async def test_multi_word_name_and_exclusions(self, group_service):
        group_service.get_random_item.return_value = "寿司"
        await self._run(group_service, ["昼", "ご飯", "-", "ラーメン", "カレー"])

        group_service.get_random_item.assert_awaited_once_with("昼 ご飯", ["ラーメン", "カレー"])

    @pytest.mark.asyncio
    async def test_not_found(self, group_service):
        context = await self._run(group_service, ["食べ物", "-", "全部"])
        assert reply_text(context.reply) == 'グループ "食べ物" は存在しないか、アイテムがありません。'

    @pytest.mark.asyncio
    async def test_separator_without_name(self, group_service):
        context = await self._run(group_service, ["-", "ラーメン"])
        assert reply_text(context.reply) == "グループ名を指定してください。"
        group_service.get_random_item.assert_not_awaited()


class TestGroupShuffleCommand:
    """gs"""

    async def _run(self, group_service, args):
        context = make_context(args, command_name="gs")
        await GroupShuffleCommand(group_service).execute(context)
        return context

    @pytest.mark.asyncio
    async def test_no_args(self, group_service):
        context = await self._run(group_service, [])
        assert reply_text(context.reply).startswith("グループ名を指定してください。\n例: ")

    @pytest.mark.asyncio
    async def test_not_found(self, group_service):
        context = await self._run(group_service, ["食べ物"])
        assert reply_text(context.reply) == 'グループ "食べ物" は存在しないか、アイテムがありません。'

    @pytest.mark.asyncio
    async def test_single_item(self, group_service):
        group_service.get_items.return_value = _items("ラーメン")
        context = await self._run(group_service, ["食べ物"])
        assert reply_text(context.reply) == 'グループ "食べ物" にはアイテムが1つしかありません: *ラーメン*'

    @pytest.mark.asyncio
    async def test_shuffled(self, group_service):
        group_service.get_items.return_value = _items("a", "b", "c")
        context = await self._run(group_service, ["食べ物"])

        lines = reply_text(context.reply).split("\n")
        assert lines[0] == 'グループ "食べ物" のシャッフル結果:'
        assert sorted(line.split(". ", 1)[1] for line in lines[1:]) == ["a", "b", "c"]
