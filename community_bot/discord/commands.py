from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import discord
from discord import app_commands

from community_bot.config.settings import BotSettings


DEVELOPER_ID = 698301697134559308


@dataclass(frozen=True)
class CommandReply:
    content: str
    allowed_mentions: Optional[discord.AllowedMentions] = None


def build_reply(name: str | None, settings: BotSettings) -> CommandReply | None:
    if name == "ping":
        return CommandReply(f"✅ {settings.community_name}'s Bot is online!")
    if name == "credits":
        # Render the mention without notifying the developer.
        return CommandReply(
            f"This bot is developed by <@{DEVELOPER_ID}>",
            allowed_mentions=discord.AllowedMentions.none(),
        )
    return None


async def dispatch_command(interaction: discord.Interaction, settings: BotSettings) -> bool:
    """
    Reply to a known command; unknown command names are ignored.
    """
    name = getattr(interaction.command, "name", None)
    reply = build_reply(name, settings)
    if reply is None:
        return False

    kwargs = {}
    if reply.allowed_mentions is not None:
        kwargs["allowed_mentions"] = reply.allowed_mentions
    await interaction.response.send_message(reply.content, **kwargs)
    logging.info(f"/{name} used by {interaction.user.id}")
    return True


def register_commands(tree: app_commands.CommandTree, settings: BotSettings) -> discord.Object:
    """
    Bind the slash commands to the configured guild. Returns the guild object to sync.
    """
    guild = discord.Object(id=settings.guild_id)

    @tree.command(name="ping", description="Check if the bot is online.", guild=guild)
    async def ping_command(interaction: discord.Interaction) -> None:
        await dispatch_command(interaction, settings)

    @tree.command(name="credits", description="See who developed the bot.", guild=guild)
    async def credits_command(interaction: discord.Interaction) -> None:
        await dispatch_command(interaction, settings)

    return guild
