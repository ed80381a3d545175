"""
Event handler and messaging tests

- DM and mention routing into the dispatcher
- automatic reactions with partial-failure tolerance
- thread resolution for replies
"""

import logging
from datetime import datetime
from unittest.mock import AsyncMock, Mock

import discord
import pytest

from trrbot.core.error_handler import DiscordAPIError
from trrbot.core.event_handler import EventHandler
from trrbot.core.interfaces import BotEvent, ChannelKind
from trrbot.core.messaging import (
    MAX_MESSAGE_LENGTH,
    DiscordMessagingClient,
    make_reply,
    normalize_emoji_name,
    split_message,
)
from trrbot.storage.database import ReactionMapping
from trrbot.storage.reaction_service import ReactionService

BOT_ID = 999
NOW = datetime(2024, 1, 1)


def _mapping(trigger, reaction, mapping_id=1):
    return ReactionMapping(mapping_id, trigger, reaction, 0, NOW, NOW)


def _message(content, channel=None, author_bot=False, message_id=1234):
    message = Mock(spec=discord.Message)
    message.id = message_id
    message.content = content
    message.created_at = NOW
    message.author = Mock()
    message.author.id = 42
    message.author.bot = author_bot
    message.channel = channel or _guild_channel()
    return message


def _guild_channel(channel_id=555):
    channel = Mock(spec=discord.TextChannel)
    channel.id = channel_id
    channel.send = AsyncMock()
    return channel


def _dm_channel(channel_id=777):
    channel = Mock(spec=discord.DMChannel)
    channel.id = channel_id
    channel.send = AsyncMock()
    return channel


@pytest.fixture
def bot():
    bot = Mock()
    bot.user = Mock()
    bot.user.id = BOT_ID
    bot.user.name = "trrbot"
    bot.event = lambda func: func
    return bot


@pytest.fixture
def dispatcher():
    dispatcher = Mock()
    dispatcher.dispatch = AsyncMock()
    return dispatcher


@pytest.fixture
def reaction_service():
    service = Mock(spec=ReactionService)
    service.get_all_reaction_mappings = AsyncMock(return_value=[])
    service.get_matching_mappings = AsyncMock(
        side_effect=lambda text, mappings: [m for m in mappings if m.trigger_text in text]
    )
    service.increment_reaction_usage = AsyncMock(return_value=True)
    return service


@pytest.fixture
def messaging():
    messaging = Mock(spec=DiscordMessagingClient)
    messaging.add_reaction = AsyncMock()
    return messaging


@pytest.fixture
def handler(bot, dispatcher, reaction_service, messaging):
    return EventHandler(bot, dispatcher, reaction_service, messaging)


class TestBotEvent:
    """BotEvent.from_message"""

    def test_guild_message(self):
        event = BotEvent.from_message(_message("hello"), text="stripped")
        assert event.text == "stripped"
        assert event.channel_kind is ChannelKind.GUILD
        assert event.thread_id is None
        assert event.message_id == 1234
        assert event.user_id == 42

    def test_thread_message(self):
        thread = Mock(spec=discord.Thread)
        thread.id = 31337
        event = BotEvent.from_message(_message("hi", channel=thread))
        assert event.channel_kind is ChannelKind.THREAD
        assert event.thread_id == 31337

    def test_dm_message(self):
        event = BotEvent.from_message(_message("hi", channel=_dm_channel()))
        assert event.is_direct_message


class TestMessageRouting:
    """EventHandler._on_message"""

    @pytest.mark.asyncio
    async def test_dm_dispatches_whole_content(self, handler, dispatcher):
        await handler._on_message(_message("choice a b", channel=_dm_channel()))

        dispatcher.dispatch.assert_awaited_once()
        text, event = dispatcher.dispatch.await_args.args[:2]
        assert text == "choice a b"
        assert event.channel_kind is ChannelKind.DIRECT

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", [f"<@{BOT_ID}> dice 10", f"<@!{BOT_ID}>   dice 10"])
    async def test_mention_is_stripped(self, handler, dispatcher, content):
        await handler._on_message(_message(content))

        text, event = dispatcher.dispatch.await_args.args[:2]
        assert text == "dice 10"
        assert event.text == "dice 10"

    @pytest.mark.asyncio
    async def test_mention_of_someone_else_is_not_a_command(self, handler, dispatcher, reaction_service):
        await handler._on_message(_message("<@123> dice"))

        dispatcher.dispatch.assert_not_awaited()
        reaction_service.get_all_reaction_mappings.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_bot_messages_ignored(self, handler, dispatcher, reaction_service):
        await handler._on_message(_message("choice a b", channel=_dm_channel(), author_bot=True))

        dispatcher.dispatch.assert_not_awaited()
        reaction_service.get_all_reaction_mappings.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_dispatch_failure_does_not_propagate(self, handler, dispatcher, caplog):
        dispatcher.dispatch.side_effect = RuntimeError("bug")

        with caplog.at_level(logging.ERROR, logger="trrbot"):
            await handler._on_message(_message("choice", channel=_dm_channel()))

        assert any("Unexpected error while dispatching" in r.getMessage() for r in caplog.records)


class TestAutoReactions:
    """Automatic reactions"""

    @pytest.mark.asyncio
    async def test_adds_each_reaction_once_and_counts_usage(self, handler, reaction_service, messaging):
        reaction_service.get_all_reaction_mappings.return_value = [
            _mapping("おはよう", ":sunny:", 1),
            _mapping("朝", ":sunny:", 2),
            _mapping("ラーメン", ":ramen:", 3),
            _mapping("夜", ":moon:", 4),
        ]

        await handler._on_message(_message("朝だ、おはよう。ラーメン"))

        reactions = [call.args[2] for call in messaging.add_reaction.await_args_list]
        assert reactions == [":sunny:", ":ramen:"]
        counted = [call.args for call in reaction_service.increment_reaction_usage.await_args_list]
        assert counted == [("おはよう", ":sunny:"), ("朝", ":sunny:"), ("ラーメン", ":ramen:")]

    @pytest.mark.asyncio
    async def test_one_failure_does_not_stop_the_rest(self, handler, reaction_service, messaging, caplog):
        reaction_service.get_all_reaction_mappings.return_value = [
            _mapping("a", ":broken:", 1),
            _mapping("b", ":ok:", 2),
        ]
        messaging.add_reaction.side_effect = [DiscordAPIError("Unknown Emoji"), None]

        with caplog.at_level(logging.WARNING, logger="trrbot"):
            await handler._on_message(_message("a b"))

        assert messaging.add_reaction.await_count == 2
        reaction_service.increment_reaction_usage.assert_awaited_once_with("b", ":ok:")
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert warnings[0].context["reaction"] == ":broken:"

    @pytest.mark.asyncio
    async def test_storage_failure_is_logged(self, handler, reaction_service, caplog):
        reaction_service.get_all_reaction_mappings.side_effect = RuntimeError("db down")

        with caplog.at_level(logging.ERROR, logger="trrbot"):
            await handler._on_message(_message("anything"))

        assert any(r.getMessage() == "Message handler error" for r in caplog.records)


class TestMessaging:
    """DiscordMessagingClient and reply functions"""

    def test_normalize_emoji_name(self):
        assert normalize_emoji_name(":smile:") == "smile"
        assert normalize_emoji_name("👍") == "👍"

    def test_custom_emoji_lookup(self):
        messaging = DiscordMessagingClient(Mock())
        guild = Mock()
        custom = Mock()
        custom.name = "party"
        guild.emojis = [custom]

        assert messaging.resolve_emoji(":party:", guild) is custom
        assert messaging.resolve_emoji("👍", guild) == "👍"
        assert messaging.resolve_emoji(":party:", None) == "party"

    def test_custom_emoji_markup(self):
        messaging = DiscordMessagingClient(Mock())
        guild = Mock()
        guild.emojis = []

        emoji = messaging.resolve_emoji("<:party:123456789012345678>", guild)
        assert isinstance(emoji, discord.PartialEmoji)
        assert emoji.name == "party"
        assert emoji.id == 123456789012345678
        assert not emoji.animated

        animated = messaging.resolve_emoji("<a:dance:42>", None)
        assert animated.animated and animated.id == 42

        assert normalize_emoji_name("<:party:123456789012345678>") == "<:party:123456789012345678>"

    @pytest.mark.asyncio
    async def test_add_reaction_with_custom_emoji_markup(self):
        channel = _guild_channel()
        partial_message = Mock()
        partial_message.add_reaction = AsyncMock()
        channel.get_partial_message = Mock(return_value=partial_message)
        client = Mock()
        client.get_channel = Mock(return_value=channel)

        await DiscordMessagingClient(client).add_reaction(555, 1234, "<:party:99>")

        emoji = partial_message.add_reaction.await_args.args[0]
        assert (emoji.name, emoji.id) == ("party", 99)

    @pytest.mark.asyncio
    async def test_reply_at_channel_level(self):
        channel = _guild_channel()
        reply = make_reply(_message("x", channel=channel), DiscordMessagingClient(Mock()))

        await reply("hello")

        channel.send.assert_awaited_once_with("hello")

    @pytest.mark.asyncio
    async def test_reply_opens_thread_on_message(self):
        channel = _guild_channel()
        channel.get_thread = Mock(return_value=None)
        message = _message("group list", channel=channel)
        thread = Mock()
        thread.send = AsyncMock()
        message.create_thread = AsyncMock(return_value=thread)

        await make_reply(message, DiscordMessagingClient(Mock()))("listing", thread_id=message.id)

        message.create_thread.assert_awaited_once_with(name="group list")
        thread.send.assert_awaited_once_with("listing")
        channel.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_reply_reuses_existing_thread(self):
        channel = _guild_channel()
        thread = Mock()
        thread.send = AsyncMock()
        channel.get_thread = Mock(return_value=thread)
        message = _message("group list", channel=channel)

        await make_reply(message, DiscordMessagingClient(Mock()))("again", thread_id=message.id)

        thread.send.assert_awaited_once_with("again")

    @pytest.mark.asyncio
    async def test_reply_in_dm_ignores_thread(self):
        channel = _dm_channel()
        message = _message("group list", channel=channel)

        await make_reply(message, DiscordMessagingClient(Mock()))("hi", thread_id=message.id)

        channel.send.assert_awaited_once_with("hi")

    @pytest.mark.asyncio
    async def test_long_reply_sent_in_pieces(self):
        channel = _guild_channel()
        text = "\n".join(f"{i}. item-{i:03d}" for i in range(1, 301))
        assert len(text) > 4000

        await make_reply(_message("gs big", channel=channel), DiscordMessagingClient(Mock()))(text)

        sent = [call.args[0] for call in channel.send.await_args_list]
        assert len(sent) > 1
        assert all(len(chunk) <= MAX_MESSAGE_LENGTH for chunk in sent)
        assert "\n".join(sent) == text

    @pytest.mark.asyncio
    async def test_reply_failure_raises_discord_api_error(self):
        channel = _guild_channel()
        channel.send.side_effect = discord.HTTPException(Mock(status=403, reason="Forbidden"), "Missing Access")
        reply = make_reply(_message("x", channel=channel), DiscordMessagingClient(Mock()))

        with pytest.raises(DiscordAPIError):
            await reply("hello")


class TestSplitMessage:
    """split_message"""

    def test_short_text_untouched(self):
        assert split_message("hello") == ["hello"]
        assert split_message("x" * MAX_MESSAGE_LENGTH) == ["x" * MAX_MESSAGE_LENGTH]

    def test_splits_on_line_boundaries(self):
        assert split_message("aaa\nbbb\nccc", limit=7) == ["aaa\nbbb", "ccc"]

    def test_overlong_line_is_cut(self):
        chunks = split_message("ab\n" + "x" * 12, limit=5)
        assert chunks == ["ab", "xxxxx", "xxxxx", "xx"]
