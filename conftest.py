"""
Pytest configuration and fake Discord objects shared by the tests.
"""

import itertools
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import List, Optional

import discord
import pytest

from community_bot.config.settings import BotSettings


BOT_ID = 4242
NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

_ids = itertools.count(10_000)


def http_error(cls=discord.Forbidden, status: int = 403, reason: str = "Forbidden"):
    return cls(SimpleNamespace(status=status, reason=reason), "Missing Permissions")


class FakeUser:
    def __init__(self, user_id: int, bot: bool = False) -> None:
        self.id = user_id
        self.bot = bot

    @property
    def mention(self) -> str:
        return f"<@{self.id}>"


class FakeMessage:
    def __init__(self, channel: "FakeChannel", content: str, author: FakeUser, created_at: datetime) -> None:
        self.id = next(_ids)
        self.channel = channel
        self.content = content
        self.author = author
        self.created_at = created_at
        self.pinned = False

    async def pin(self) -> None:
        self.channel.pin_calls += 1
        if self.channel.fail_pin:
            raise http_error()
        self.pinned = True

    async def edit(self, *, content: str) -> "FakeMessage":
        self.channel.edit_calls += 1
        if self.channel.fail_edit:
            raise http_error()
        self.content = content
        return self

    async def delete(self) -> None:
        if self.channel.fail_single_delete:
            raise http_error()
        self.channel.messages.remove(self)
        self.channel.single_deletes += 1


class FakeChannel:
    """
    In-memory text channel. `messages` is kept oldest first, like Discord.
    """

    def __init__(self, channel_id: int = 1, now: datetime = NOW) -> None:
        self.id = channel_id
        self.now = now
        self.bot_user = FakeUser(BOT_ID, bot=True)
        self.messages: List[FakeMessage] = []
        self.sent: List[str] = []
        self.send_kwargs: List[dict] = []
        self.bulk_batches: List[int] = []
        self.single_deletes = 0
        self.pin_calls = 0
        self.edit_calls = 0
        self.history_calls = 0
        self.fail_pin = False
        self.fail_edit = False
        self.fail_send = False
        self.fail_bulk = False
        self.fail_single_delete = False

    def add(self, content: str, author: Optional[FakeUser] = None, age: timedelta = timedelta(0)) -> FakeMessage:
        message = FakeMessage(self, content, author or FakeUser(1), self.now - age)
        self.messages.append(message)
        return message

    async def send(self, content: str, **kwargs) -> FakeMessage:
        if self.fail_send:
            raise http_error()
        self.sent.append(content)
        self.send_kwargs.append(kwargs)
        message = FakeMessage(self, content, self.bot_user, self.now)
        self.messages.append(message)
        return message

    async def fetch_message(self, message_id: int) -> FakeMessage:
        for message in self.messages:
            if message.id == message_id:
                return message
        raise http_error(discord.NotFound, 404, "Not Found")

    async def pins(self) -> List[FakeMessage]:
        return [m for m in reversed(self.messages) if m.pinned]

    async def history(self, limit: int = 100):
        self.history_calls += 1
        for message in list(reversed(self.messages))[:limit]:
            yield message

    async def delete_messages(self, messages) -> None:
        if self.fail_bulk:
            raise http_error()
        assert len(messages) <= 100
        for message in messages:
            self.messages.remove(message)
        self.bulk_batches.append(len(messages))


def make_client(channel: Optional[FakeChannel] = None):
    async def fetch_channel(channel_id):
        raise http_error(discord.NotFound, 404, "Not Found")

    return SimpleNamespace(
        get_channel=lambda channel_id: channel if channel is not None and channel.id == channel_id else None,
        fetch_channel=fetch_channel,
        user=SimpleNamespace(id=BOT_ID),
    )


def make_settings(**overrides) -> BotSettings:
    values = dict(discord_token="token", client_id=111, guild_id=222)
    values.update(overrides)
    return BotSettings(**values)


@pytest.fixture
def channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture
def settings() -> BotSettings:
    return make_settings()
