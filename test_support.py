import math
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from community_bot.features import support
from conftest import NOW, FakeChannel, make_client, make_settings


def _fill(channel, count, age=timedelta(minutes=1)):
    for i in range(count):
        channel.add(f"message {i}", age=age)


@pytest.mark.asyncio
@pytest.mark.parametrize("count", [1, 100, 250])
async def test_recent_messages_are_bulk_deleted_in_batches(channel, count):
    _fill(channel, count)

    report = await support.purge_channel(channel, delete_delay=0, now=lambda: NOW)

    assert report.bulk_batches == math.ceil(count / 100)
    assert channel.bulk_batches == [min(100, count - i) for i in range(0, count, 100)]
    assert report.bulk_deleted == count
    assert channel.messages == []
    assert not report.stuck


@pytest.mark.asyncio
async def test_old_messages_are_deleted_individually(channel):
    _fill(channel, 3, age=timedelta(days=30))
    _fill(channel, 5)

    report = await support.purge_channel(channel, delete_delay=0, now=lambda: NOW)

    assert channel.bulk_batches == [5]
    assert report.single_deleted == 3
    assert channel.messages == []


@pytest.mark.asyncio
async def test_individual_deletes_are_throttled(channel, monkeypatch):
    sleep = AsyncMock()
    monkeypatch.setattr(support.asyncio, "sleep", sleep)
    _fill(channel, 2, age=timedelta(days=20))

    await support.purge_channel(channel, now=lambda: NOW)

    assert sleep.await_count == 2
    sleep.assert_awaited_with(support.DELETE_DELAY_SECONDS)


@pytest.mark.asyncio
async def test_purge_stops_when_nothing_can_be_deleted(channel):
    channel.fail_single_delete = True
    _fill(channel, 4, age=timedelta(days=20))

    report = await support.purge_channel(channel, delete_delay=0, now=lambda: NOW)

    assert report.stuck
    assert report.failed == 4
    assert channel.history_calls == 1
    assert len(channel.messages) == 4


@pytest.mark.asyncio
async def test_bulk_failure_falls_back_to_single_deletes(channel):
    channel.fail_bulk = True
    _fill(channel, 3)

    report = await support.purge_channel(channel, delete_delay=0, now=lambda: NOW)

    assert report.bulk_batches == 0
    assert report.single_deleted == 3
    assert channel.messages == []


@pytest.mark.asyncio
async def test_bulk_and_single_failures_terminate(channel):
    channel.fail_bulk = True
    channel.fail_single_delete = True
    _fill(channel, 3)

    report = await support.purge_channel(channel, delete_delay=0, now=lambda: NOW)

    assert report.stuck
    assert len(channel.messages) == 3


def test_partition_by_age_respects_bulk_delete_limit(channel):
    fresh = channel.add("fresh", age=timedelta(days=1))
    edge = channel.add("edge", age=timedelta(days=14))
    stale = channel.add("stale", age=timedelta(days=15))

    recent, old = support.partition_by_age(channel.messages, NOW)

    assert recent == [fresh]
    assert old == [edge, stale]


@pytest.mark.asyncio
async def test_reset_leaves_only_the_daily_message(monkeypatch):
    monkeypatch.setattr(support, "DELETE_DELAY_SECONDS", 0)
    channel = FakeChannel(channel_id=77, now=datetime.now(tz=timezone.utc))
    _fill(channel, 120)
    _fill(channel, 2, age=timedelta(days=40))
    settings = make_settings(support_channel_id=77, support_daily_message="Ask here!")

    report = await support.reset_support_channel(make_client(channel), settings)

    assert report.posted
    assert [m.content for m in channel.messages] == ["Ask here!"]
    assert report.purge.deleted == 122


@pytest.mark.asyncio
async def test_reset_posts_even_when_purge_gets_stuck(monkeypatch):
    monkeypatch.setattr(support, "DELETE_DELAY_SECONDS", 0)
    channel = FakeChannel(channel_id=77, now=datetime.now(tz=timezone.utc))
    channel.fail_single_delete = True
    _fill(channel, 2, age=timedelta(days=40))
    settings = make_settings(support_channel_id=77, support_daily_message="Ask here!")

    report = await support.reset_support_channel(make_client(channel), settings)

    assert report.purge.stuck
    assert report.posted
    assert channel.sent == ["Ask here!"]


@pytest.mark.asyncio
async def test_reset_without_channel_configured(channel):
    report = await support.reset_support_channel(make_client(channel), make_settings())

    assert report.reason == "not configured"
    assert channel.history_calls == 0


@pytest.mark.asyncio
async def test_reset_with_unknown_channel(channel):
    settings = make_settings(support_channel_id=999)

    report = await support.reset_support_channel(make_client(channel), settings)

    assert report.reason == "channel unavailable"
    assert not report.posted


@pytest.mark.asyncio
async def test_reset_send_failure_is_reported(monkeypatch):
    monkeypatch.setattr(support, "DELETE_DELAY_SECONDS", 0)
    channel = FakeChannel(channel_id=77, now=datetime.now(tz=timezone.utc))
    channel.fail_send = True
    settings = make_settings(support_channel_id=77)

    report = await support.reset_support_channel(make_client(channel), settings)

    assert not report.posted
    assert "Forbidden" in report.reason
