from __future__ import annotations

import logging

import discord
from discord.ext import commands

from community_bot.config.settings import BotSettings
from community_bot.discord.commands import register_commands
from community_bot.discord.errors import handle_app_command_error, parse_error_message
from community_bot.features.rules import ensure_rules_posts
from community_bot.features.support import reset_support_channel
from community_bot.features.welcome import handle_member_join
from community_bot.scheduler import DailyScheduler


SUPPORT_RESET_JOB = "support_reset"


class CommunityBot(commands.Bot):
    def __init__(self, settings: BotSettings, scheduler: DailyScheduler | None = None) -> None:
        intents = discord.Intents.default()
        intents.members = True
        activity = discord.Activity(type=discord.ActivityType.watching, name=settings.community_name[:128])
        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            activity=activity,
            application_id=settings.client_id,
        )
        self.settings = settings
        self.scheduler = scheduler or DailyScheduler(settings.timezone)
        self.command_guild = register_commands(self.tree, settings)
        self.tree.error(self.on_app_command_error)
        self._started = False

    async def on_app_command_error(self, interaction: discord.Interaction, error: Exception) -> None:
        await handle_app_command_error(interaction, error)

    # ── Startup ──────────────────────────────────────────────────────────────

    async def sync_commands(self) -> None:
        try:
            synced = await self.tree.sync(guild=self.command_guild)
            logging.info(f"✅ Slash commands registered ({len(synced)} for guild {self.settings.guild_id})")
        except discord.HTTPException as e:
            logging.error(f"Error registering commands: {parse_error_message(e)}")

    def schedule_support_reset(self) -> None:
        if not self.settings.support_enabled:
            logging.info("Support channel not configured, nightly reset disabled")
            return
        self.scheduler.add_job(
            SUPPORT_RESET_JOB,
            reset_support_channel,
            self.settings.support_reset_cron,
            args=(self, self.settings),
        )
        self.scheduler.start()
        logging.info(
            f"✅ Support reset scheduled ({self.settings.support_reset_cron}, {self.settings.timezone})"
        )

    async def run_startup(self) -> None:
        if client_id := self.settings.client_id:
            logging.info(f"\n\nBOT INVITE URL:\nhttps://discord.com/oauth2/authorize?client_id={client_id}&permissions=268512256&scope=bot%20applications.commands\n")

        # Each step is independent: a failure is logged and the next one still runs.
        try:
            await self.sync_commands()
        except Exception:
            logging.exception("Command registration failed")

        try:
            await ensure_rules_posts(self, self.settings)
        except Exception:
            logging.exception("Rules posts update failed")

        try:
            self.schedule_support_reset()
        except Exception:
            logging.exception("Could not schedule the support reset")
            return

        if self.settings.support_enabled and self.settings.support_reset_on_startup:
            logging.info("Running support reset at startup")
            try:
                await self.scheduler.tick(SUPPORT_RESET_JOB)
            except Exception:
                logging.exception("Startup support reset failed")

    # ── Events ───────────────────────────────────────────────────────────────

    async def on_ready(self) -> None:
        logging.info(f"✅ Logged in as {self.user}")
        # on_ready fires again after reconnects
        if self._started:
            return
        self._started = True
        await self.run_startup()

    async def on_member_join(self, member: discord.Member) -> None:
        await handle_member_join(member, self.settings, self.user.id)

    async def close(self) -> None:
        await self.scheduler.stop()
        await super().close()
