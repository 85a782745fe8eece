"""
Entrypoint: `python -m community_bot.main` or the `community-bot` console script.
"""

import asyncio
import logging
import os

from community_bot.config.loader import get_settings
from community_bot.discord.client import CommunityBot


LOG_FORMAT = "%(asctime)s %(levelname)s: %(message)s"


def setup_logging() -> None:
    level_name = "DEBUG" if os.environ.get("DEBUG") else os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)


async def run_bot() -> None:
    settings = get_settings()
    logging.info(f"🚀 Bot starting | guild: {settings.guild_id} | community: {settings.community_name}")

    async with CommunityBot(settings) as bot:
        await bot.start(settings.discord_token)


def main() -> None:
    setup_logging()
    try:
        asyncio.run(run_bot())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
