"""
Rules posts: keep one pinned message per configured rules page.

Pages are matched to their messages through ids persisted in configuration
(`RULES_MESSAGE_n_ID`). Missing messages are recreated and their new ids are
logged so they can be copied back into the configuration. Existing messages
are edited in place whenever the configured text changes.

With `RULES_DISCOVERY=pinned` a single page is matched against the bot's own
pinned message instead, which needs no persisted id.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal, Optional

import discord

from community_bot.config.settings import BotSettings, RulesPage
from community_bot.discord.channels import resolve_text_channel
from community_bot.discord.outcomes import attempt


logger = logging.getLogger(__name__)

PageAction = Literal["created", "edited", "unchanged", "failed"]


@dataclass(frozen=True)
class PageResult:
    index: int
    action: PageAction
    message_id: Optional[int] = None
    pinned: Optional[bool] = None
    reason: Optional[str] = None


async def _ensure_pinned(message: Any, index: int) -> bool:
    if getattr(message, "pinned", False):
        return True
    pin = await attempt(message.pin())
    if not pin.ok:
        logger.warning("Rules page %d (%s) not pinned: %s", index, message.id, pin.reason)
    return pin.ok


async def _create_page(channel: Any, index: int, text: str) -> PageResult:
    sent = await attempt(channel.send(text))
    if not sent.ok:
        logger.error("Could not post rules page %d: %s", index, sent.reason)
        return PageResult(index, "failed", reason=sent.reason)

    message = sent.value
    pinned = await _ensure_pinned(message, index)

    logger.info("✅ Created Rules Page %d", index)
    logger.info("RULES_MESSAGE_%d_ID = %s", index, message.id)
    return PageResult(index, "created", message_id=message.id, pinned=pinned)


async def _sync_page(message: Any, index: int, text: str) -> PageResult:
    # A page whose first pin failed gets pinned once permissions allow it.
    pinned = await _ensure_pinned(message, index)

    if message.content == text:
        logger.debug("Rules page %d already up to date (%s)", index, message.id)
        return PageResult(index, "unchanged", message_id=message.id, pinned=pinned)

    edited = await attempt(message.edit(content=text))
    if not edited.ok:
        logger.error("Could not update rules page %d (%s): %s", index, message.id, edited.reason)
        return PageResult(index, "failed", message_id=message.id, pinned=pinned, reason=edited.reason)

    logger.info("✏️ Updated Rules Page %d (%s)", index, message.id)
    return PageResult(index, "edited", message_id=message.id, pinned=pinned)


async def reconcile_rules_page(channel: Any, page: RulesPage) -> PageResult:
    """
    Make sure exactly one message in `channel` carries `page.text`.
    """
    message = None
    if page.message_id is not None:
        fetched = await attempt(channel.fetch_message(page.message_id))
        if fetched.ok:
            message = fetched.value
        else:
            logger.warning(
                "Rules page %d message %s not found, posting a new one: %s",
                page.index,
                page.message_id,
                fetched.reason,
            )

    if message is None:
        return await _create_page(channel, page.index, page.text)
    return await _sync_page(message, page.index, page.text)


async def find_own_pin(channel: Any, bot_user_id: int) -> Any | None:
    pins = await attempt(channel.pins())
    if not pins.ok:
        logger.warning("Could not list pinned messages: %s", pins.reason)
        return None
    for message in pins.value or []:
        if message.author.id == bot_user_id:
            return message
    return None


async def reconcile_pinned_page(channel: Any, text: str, bot_user_id: int) -> PageResult:
    """
    Single-page variant: locate the bot's pinned message instead of a stored id.
    """
    message = await find_own_pin(channel, bot_user_id)
    if message is None:
        return await _create_page(channel, 1, text)
    return await _sync_page(message, 1, text)


async def ensure_rules_posts(client: discord.Client, settings: BotSettings) -> list[PageResult]:
    if not settings.rules_enabled:
        logger.info("Rules posts not configured, skipping")
        return []

    channel = await resolve_text_channel(client, settings.rules_channel_id, "Rules")  # type: ignore[arg-type]
    if channel is None:
        return []

    if settings.rules_discovery == "pinned":
        return [await reconcile_pinned_page(channel, settings.rules_pages[0].text, client.user.id)]

    return [await reconcile_rules_page(channel, page) for page in settings.rules_pages]
