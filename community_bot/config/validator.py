"""
Configuration validator for the bot settings mapping.

Validates required keys, Discord ids, flags, the reset schedule and common
misconfigurations of the rules pages.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from community_bot.scheduler import build_trigger

from .settings import RULES_DISCOVERY_MODES, parse_bool, parse_snowflake


logger = logging.getLogger(__name__)

REQUIRED_KEYS = ("DISCORD_TOKEN", "CLIENT_ID", "GUILD_ID")
SNOWFLAKE_KEYS = (
    "CLIENT_ID",
    "GUILD_ID",
    "WELCOME_CHANNEL_ID",
    "AUTO_ROLE_ID",
    "SUPPORT_CHANNEL_ID",
    "RULES_CHANNEL_ID",
    "RULES_MESSAGE_1_ID",
    "RULES_MESSAGE_2_ID",
)
BOOL_KEYS = ("WELCOME_DEDUP", "SUPPORT_RESET_ON_STARTUP")


class ConfigValidationError(Exception):
    """Raised when config validation fails."""
    pass


def _is_blank(value: Any) -> bool:
    return value is None or not str(value).strip()


def validate_cron(expr: str) -> None:
    """
    Raise ValueError unless `expr` is a 5-field cron expression with every
    field in range. Builds the same trigger the scheduler uses, so anything
    accepted here also schedules at startup.
    """
    build_trigger(expr, ZoneInfo("UTC"))


def validate_config(cfg: Mapping[str, Any], source: str = "environment") -> None:
    """
    Validate the merged configuration mapping (upper-cased keys).

    Raises ConfigValidationError if validation fails.
    Logs detailed error messages before raising.

    Args:
        cfg: merged key/value configuration
        source: human-readable description of where the values came from

    Raises:
        ConfigValidationError: If validation fails
    """
    errors = []
    warnings = []

    # ── Required keys ───────────────────────────────────────────────────────
    missing = [key for key in REQUIRED_KEYS if _is_blank(cfg.get(key))]
    if missing:
        errors.append(f"Missing required environment variables: {', '.join(missing)}")

    # ── Discord ids ─────────────────────────────────────────────────────────
    for key in SNOWFLAKE_KEYS:
        try:
            parse_snowflake(cfg.get(key))
        except ValueError:
            errors.append(f"'{key}' must be a numeric Discord id, got {cfg.get(key)!r}")

    # ── Flags ───────────────────────────────────────────────────────────────
    for key in BOOL_KEYS:
        try:
            parse_bool(cfg.get(key))
        except ValueError:
            errors.append(f"'{key}' must be a boolean (true/false), got {cfg.get(key)!r}")

    # ── Support reset schedule ──────────────────────────────────────────────
    cron = cfg.get("SUPPORT_RESET_CRON")
    if not _is_blank(cron):
        try:
            validate_cron(str(cron))
        except ValueError as e:
            errors.append(
                f"'SUPPORT_RESET_CRON' must be a valid 5-field cron (minute hour day month weekday), got {cron!r}: {e}"
            )

    tz = cfg.get("TIMEZONE")
    if not _is_blank(tz):
        try:
            ZoneInfo(str(tz).strip())
        except (ZoneInfoNotFoundError, ValueError):
            errors.append(f"'TIMEZONE' is not a known IANA timezone: {tz!r}")

    if not _is_blank(cfg.get("SUPPORT_DAILY_MESSAGE")) and not _is_blank(cfg.get("SUPPORT_MESSAGE")):
        warnings.append("Both SUPPORT_DAILY_MESSAGE and SUPPORT_MESSAGE are set; using SUPPORT_DAILY_MESSAGE")

    if not _is_blank(cfg.get("SUPPORT_DAILY_MESSAGE") or cfg.get("SUPPORT_MESSAGE")) and _is_blank(
        cfg.get("SUPPORT_CHANNEL_ID")
    ):
        warnings.append("Support message is set but SUPPORT_CHANNEL_ID is not; nightly reset disabled")

    # ── Rules pages ─────────────────────────────────────────────────────────
    discovery = str(cfg.get("RULES_DISCOVERY") or "ids").strip().lower()
    if discovery not in RULES_DISCOVERY_MODES:
        errors.append(
            f"'RULES_DISCOVERY' must be one of {', '.join(RULES_DISCOVERY_MODES)}, got {cfg.get('RULES_DISCOVERY')!r}"
        )

    has_channel = not _is_blank(cfg.get("RULES_CHANNEL_ID"))
    has_page = {i: not _is_blank(cfg.get(f"RULES_MESSAGE_{i}")) for i in (1, 2)}

    if (has_page[1] or has_page[2]) and not has_channel:
        warnings.append("Rules text is set but RULES_CHANNEL_ID is not; rules posts disabled")
    if has_channel and discovery == "ids" and has_page[1] != has_page[2]:
        warnings.append("Only one of RULES_MESSAGE_1 / RULES_MESSAGE_2 is set; rules posts disabled")
    if has_channel and discovery == "pinned" and has_page[2]:
        warnings.append("RULES_DISCOVERY=pinned supports a single page; RULES_MESSAGE_2 is ignored")
    for i in (1, 2):
        if not _is_blank(cfg.get(f"RULES_MESSAGE_{i}_ID")) and not has_page[i]:
            warnings.append(f"RULES_MESSAGE_{i}_ID is set without RULES_MESSAGE_{i}; it is ignored")

    # ── Log warnings ────────────────────────────────────────────────────────
    for warning in warnings:
        logger.warning("Config warning: %s", warning)

    # ── Log errors and exit if any ──────────────────────────────────────────
    if errors:
        logger.error("=" * 70)
        logger.error("CONFIG VALIDATION FAILED (%s)", source)
        logger.error("=" * 70)
        for i, error in enumerate(errors, 1):
            logger.error("[%d] %s", i, error)
        logger.error("=" * 70)
        logger.error("Please fix the errors above and restart the bot.")
        logger.error("=" * 70)
        raise ConfigValidationError(f"Config validation failed with {len(errors)} error(s)")
