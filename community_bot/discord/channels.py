from __future__ import annotations

import logging
from typing import Any

import discord

from community_bot.discord.outcomes import attempt


logger = logging.getLogger(__name__)


def is_text_based(channel: Any) -> bool:
    return channel is not None and callable(getattr(channel, "send", None)) and callable(
        getattr(channel, "history", None)
    )


async def resolve_text_channel(client: discord.Client, channel_id: int, purpose: str) -> Any | None:
    """
    Look a channel up in the cache, falling back to the API.

    Returns None (and logs) when the channel is missing, inaccessible or not text based.
    """
    channel = client.get_channel(channel_id)
    if channel is None:
        outcome = await attempt(client.fetch_channel(channel_id))
        if not outcome.ok:
            logger.warning("%s channel %s unavailable: %s", purpose, channel_id, outcome.reason)
            return None
        channel = outcome.value

    if not is_text_based(channel):
        logger.warning("%s channel %s is not a text channel", purpose, channel_id)
        return None
    return channel
