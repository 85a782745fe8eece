from __future__ import annotations

import logging

import discord


def parse_error_message(error: Exception) -> str:
    """
    Map raw Discord exceptions into short, human-readable messages.
    Used for logs.
    """
    s, t = str(error), type(error).__name__
    status = getattr(error, "status", None)
    if status == 429 or "429" in s or t == "RateLimited":
        return "⚠️ Rate Limited: Discord is temporarily rate-limiting the bot."
    if isinstance(error, discord.Forbidden) or status == 403:
        return "❌ Forbidden: the bot is missing permissions for this action."
    if isinstance(error, discord.NotFound) or status == 404:
        return "❌ Not Found: the channel, message or role no longer exists."
    if isinstance(error, discord.DiscordServerError) or (isinstance(status, int) and status >= 500):
        return "❌ Discord Server Error: Discord failed to handle the request."
    if "Connection" in t or "ECONNREFUSED" in s or "ETIMEDOUT" in s:
        return "❌ Connection Error: Unable to reach Discord."
    return f"❌ {t}: {s.split(chr(10))[0][:100]}"


async def handle_app_command_error(
    interaction: discord.Interaction,
    error: Exception,
) -> None:
    """
    Standard handler for slash command errors.
    """
    logging.exception("App command error: %s", error)
    try:
        if not interaction.response.is_done():
            await interaction.response.send_message(
                "Something went wrong while running this command.", ephemeral=True
            )
        else:
            await interaction.followup.send(
                "Something went wrong while running this command.", ephemeral=True
            )
    except discord.HTTPException as e:
        logging.warning(
            "Could not report error for command %s: %s",
            getattr(interaction.command, "name", "unknown"),
            parse_error_message(e),
        )
