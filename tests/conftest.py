"""
Test configuration

Fixtures for events, reply mocks, messaging client mocks and a temporary
database.
"""

import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest

from trrbot.core.interfaces import BotEvent, ChannelKind, CommandContext
from trrbot.core.logging_config import BotLogger


def make_event(
    text: str = "",
    channel_kind: ChannelKind = ChannelKind.GUILD,
    thread_id=None,
    message_id: int = 1001,
    channel_id: int = 2002,
    user_id: int = 3003
) -> BotEvent:
    """Build a BotEvent with fixed ids"""
    return BotEvent(
        text=text,
        message_id=message_id,
        channel_id=channel_id,
        channel_kind=channel_kind,
        user_id=user_id,
        thread_id=thread_id,
        created_at=datetime(2024, 1, 1, 12, 0, 0),
    )


def make_context(args, event=None, command_name="", reply=None, client=None) -> CommandContext:
    """Build a CommandContext around mocks"""
    return CommandContext(
        event=event or make_event(" ".join([command_name] + list(args)).strip()),
        reply=reply or AsyncMock(),
        logger=BotLogger("test"),
        args=list(args),
        client=client or make_client(),
        command_name=command_name,
    )


def make_client() -> Mock:
    """Messaging client mock"""
    client = Mock()
    client.upload_file = AsyncMock()
    client.add_reaction = AsyncMock()
    return client


def reply_text(reply: AsyncMock) -> str:
    """Text of the single reply sent through ``reply``"""
    reply.assert_awaited_once()
    return reply.await_args.args[0]


@pytest.fixture
def event():
    return make_event("choice a b")


@pytest.fixture
def reply():
    return AsyncMock()


@pytest.fixture
def client():
    return make_client()


@pytest.fixture
def bot_logger():
    return BotLogger("test")


@pytest.fixture
def temp_db_path():
    """Path of a database file in a temporary directory"""
    temp_dir = tempfile.mkdtemp()
    yield str(Path(temp_dir) / "trrbot.db")
    shutil.rmtree(temp_dir, ignore_errors=True)
