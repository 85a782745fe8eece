"""
Nightly support channel reset.

Every message in the support channel is removed (bulk delete for messages
younger than Discord's 14 day limit, one by one for older ones) and the daily
support message is posted as the channel's only content.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

import discord

from community_bot.config.settings import BotSettings
from community_bot.discord.channels import resolve_text_channel
from community_bot.discord.outcomes import attempt


logger = logging.getLogger(__name__)

FETCH_LIMIT = 100  # Discord maximum per history page / bulk delete
BULK_DELETE_MAX_AGE = timedelta(days=14)
BULK_DELETE_MARGIN = timedelta(minutes=5)
DELETE_DELAY_SECONDS = 0.35


@dataclass
class PurgeReport:
    bulk_batches: int = 0
    bulk_deleted: int = 0
    single_deleted: int = 0
    failed: int = 0
    stuck: bool = False

    @property
    def deleted(self) -> int:
        return self.bulk_deleted + self.single_deleted


@dataclass
class ResetReport:
    purge: Optional[PurgeReport] = None
    posted_message_id: Optional[int] = None
    reason: Optional[str] = None

    @property
    def posted(self) -> bool:
        return self.posted_message_id is not None


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def _created_at(message: Any) -> datetime:
    created = message.created_at
    return created if created.tzinfo else created.replace(tzinfo=timezone.utc)


def partition_by_age(messages: list[Any], now: datetime) -> tuple[list[Any], list[Any]]:
    """
    Split messages into (bulk deletable, too old for bulk delete).
    """
    cutoff = now - BULK_DELETE_MAX_AGE + BULK_DELETE_MARGIN
    recent, old = [], []
    for message in messages:
        (recent if _created_at(message) > cutoff else old).append(message)
    return recent, old


async def _fetch_page(channel: Any) -> list[Any]:
    return [message async for message in channel.history(limit=FETCH_LIMIT)]


async def _delete_one_by_one(messages: list[Any], report: PurgeReport, delay: float) -> int:
    deleted = 0
    for message in messages:
        outcome = await attempt(message.delete())
        if outcome.ok:
            deleted += 1
        else:
            report.failed += 1
            logger.debug("Could not delete message %s: %s", message.id, outcome.reason)
        if delay:
            await asyncio.sleep(delay)
    report.single_deleted += deleted
    return deleted


async def purge_channel(
    channel: Any,
    *,
    delete_delay: float = DELETE_DELAY_SECONDS,
    now: Callable[[], datetime] = _utcnow,
) -> PurgeReport:
    """
    Delete every message in `channel`.

    Stops when the channel is empty or when a full pass deletes nothing
    (e.g. missing Manage Messages), so it never spins forever.
    """
    report = PurgeReport()
    while True:
        page = await attempt(_fetch_page(channel))
        if not page.ok:
            logger.warning("Could not read channel history: %s", page.reason)
            break
        messages = page.value or []
        if not messages:
            break

        recent, old = partition_by_age(messages, now())
        progressed = 0

        if recent:
            bulk = await attempt(channel.delete_messages(recent))
            if bulk.ok:
                report.bulk_batches += 1
                report.bulk_deleted += len(recent)
                progressed += len(recent)
            else:
                logger.warning("Bulk delete failed, deleting one by one: %s", bulk.reason)
                progressed += await _delete_one_by_one(recent, report, delete_delay)

        if old:
            progressed += await _delete_one_by_one(old, report, delete_delay)

        if not progressed:
            report.stuck = True
            logger.warning(
                "Could not delete any of %d remaining messages, giving up on purge", len(messages)
            )
            break

    return report


async def reset_support_channel(client: discord.Client, settings: BotSettings) -> ResetReport:
    if not settings.support_enabled:
        return ResetReport(reason="not configured")

    try:
        channel = await resolve_text_channel(client, settings.support_channel_id, "Support")  # type: ignore[arg-type]
        if channel is None:
            return ResetReport(reason="channel unavailable")

        purge = await purge_channel(channel, delete_delay=DELETE_DELAY_SECONDS)
        logger.info(
            "🧹 Support channel purged: %d bulk (%d batches), %d single, %d failed",
            purge.bulk_deleted,
            purge.bulk_batches,
            purge.single_deleted,
            purge.failed,
        )

        sent = await attempt(channel.send(settings.support_daily_message))
        if not sent.ok:
            logger.error("Could not post daily support message: %s", sent.reason)
            return ResetReport(purge=purge, reason=sent.reason)

        logger.info("✅ Support channel reset (%s)", channel.id)
        return ResetReport(purge=purge, posted_message_id=sent.value.id)
    except Exception as e:
        logger.exception("Support channel reset failed")
        return ResetReport(reason=str(e))
