from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

import discord

from community_bot.config.settings import BotSettings
from community_bot.discord.outcomes import attempt


logger = logging.getLogger(__name__)

DEDUP_LOOKBACK = 10
DEDUP_WINDOW = timedelta(seconds=60)


@dataclass
class JoinResult:
    skipped_bot: bool = False
    welcomed: bool = False
    duplicate: bool = False
    role_added: bool = False
    reason: Optional[str] = None


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


async def has_recent_welcome(
    channel: Any,
    mention: str,
    bot_user_id: int,
    now: Callable[[], datetime] = _utcnow,
) -> bool:
    """
    True when the bot already welcomed `mention` in the last minute.

    Guards against duplicate join deliveries when more than one bot instance is running.
    Best-effort only: two join events handled at the same time can both pass
    this check before either welcome is sent, and both will post.
    """
    cutoff = now() - DEDUP_WINDOW
    try:
        async for message in channel.history(limit=DEDUP_LOOKBACK):
            created = message.created_at if message.created_at.tzinfo else message.created_at.replace(tzinfo=timezone.utc)
            if message.author.id == bot_user_id and mention in (message.content or "") and created >= cutoff:
                return True
    except discord.HTTPException as e:
        logger.debug("Could not read welcome channel history: %s", e)
    return False


async def send_welcome(member: discord.Member, settings: BotSettings, bot_user_id: int, result: JoinResult) -> None:
    channel = member.guild.get_channel(settings.welcome_channel_id)  # type: ignore[arg-type]
    if channel is None or not callable(getattr(channel, "send", None)):
        logger.warning("Welcome channel %s not found", settings.welcome_channel_id)
        return

    if settings.welcome_dedup and await has_recent_welcome(channel, member.mention, bot_user_id):
        logger.info("Skipping duplicate welcome for %s", member.id)
        result.duplicate = True
        return

    sent = await attempt(channel.send(settings.render_welcome(member.mention)))
    if sent.ok:
        result.welcomed = True
        logger.info("👋 Welcomed %s (%s)", member, member.id)
    else:
        result.reason = sent.reason
        logger.warning("Could not send welcome for %s: %s", member.id, sent.reason)


async def assign_auto_role(member: discord.Member, settings: BotSettings, result: JoinResult) -> None:
    role = member.guild.get_role(settings.auto_role_id)  # type: ignore[arg-type]
    if role is None:
        logger.warning("Auto role %s not found", settings.auto_role_id)
        return
    if any(r.id == role.id for r in member.roles):
        return

    added = await attempt(member.add_roles(role, reason="Auto role on join"))
    if added.ok:
        result.role_added = True
        logger.info("Assigned role %s to %s", role.id, member.id)
    else:
        result.reason = added.reason
        logger.error("Failed to auto-assign role: %s", added.reason)


async def handle_member_join(member: discord.Member, settings: BotSettings, bot_user_id: int) -> JoinResult:
    result = JoinResult()
    if member.bot:
        result.skipped_bot = True
        return result

    if settings.welcome_channel_id is not None:
        await send_welcome(member, settings, bot_user_id, result)

    if settings.auto_role_id is not None:
        await assign_auto_role(member, settings, result)

    return result
