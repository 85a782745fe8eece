from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping


DEFAULT_COMMUNITY_NAME = "Georgia Roleplay Community"
DEFAULT_WELCOME_MESSAGE = "Welcome to **{community}**, {user}!"
DEFAULT_SUPPORT_MESSAGE = (
    "👋 **Need help?** Post your question in this channel and a staff member will get back to you.\n"
    "This channel is cleared every night at midnight."
)
DEFAULT_RESET_CRON = "0 0 * * *"
DEFAULT_TIMEZONE = "America/New_York"

RULES_DISCOVERY_MODES = ("ids", "pinned")

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off"}


def parse_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    s = str(value).strip().lower()
    if not s:
        return default
    if s in TRUE_VALUES:
        return True
    if s in FALSE_VALUES:
        return False
    raise ValueError(f"not a boolean: {value!r}")


def parse_snowflake(value: Any) -> int | None:
    """
    Parse a Discord id. Empty values mean "not configured".
    """
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    if not s.isdigit():
        raise ValueError(f"not a numeric Discord id: {value!r}")
    return int(s)


def _text(raw: Mapping[str, Any], key: str) -> str | None:
    value = raw.get(key)
    if value is None:
        return None
    s = str(value)
    return s if s.strip() else None


@dataclass(frozen=True)
class RulesPage:
    index: int
    text: str
    message_id: int | None = None

    @property
    def id_key(self) -> str:
        return f"RULES_MESSAGE_{self.index}_ID"


@dataclass(frozen=True)
class BotSettings:
    discord_token: str
    client_id: int
    guild_id: int

    community_name: str = DEFAULT_COMMUNITY_NAME

    welcome_channel_id: int | None = None
    auto_role_id: int | None = None
    welcome_message: str = DEFAULT_WELCOME_MESSAGE
    welcome_dedup: bool = True

    support_channel_id: int | None = None
    support_daily_message: str = DEFAULT_SUPPORT_MESSAGE
    support_reset_cron: str = DEFAULT_RESET_CRON
    support_reset_on_startup: bool = False
    timezone: str = DEFAULT_TIMEZONE

    rules_channel_id: int | None = None
    rules_pages: tuple[RulesPage, ...] = field(default_factory=tuple)
    rules_discovery: str = "ids"

    @property
    def rules_enabled(self) -> bool:
        if self.rules_channel_id is None:
            return False
        if self.rules_discovery == "pinned":
            return len(self.rules_pages) >= 1 and self.rules_pages[0].index == 1
        return len(self.rules_pages) == 2

    @property
    def support_enabled(self) -> bool:
        return self.support_channel_id is not None

    def render_welcome(self, mention: str) -> str:
        return self.welcome_message.replace("{community}", self.community_name).replace("{user}", mention)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "BotSettings":
        """
        Build settings from an already validated, upper-cased key/value mapping.
        """
        pages = []
        for index in (1, 2):
            text = _text(raw, f"RULES_MESSAGE_{index}")
            if text is not None:
                # Discord trims surrounding whitespace from message content.
                pages.append(RulesPage(index, text.strip(), parse_snowflake(raw.get(f"RULES_MESSAGE_{index}_ID"))))

        support_message = _text(raw, "SUPPORT_DAILY_MESSAGE") or _text(raw, "SUPPORT_MESSAGE")

        return cls(
            discord_token=str(raw["DISCORD_TOKEN"]).strip(),
            client_id=parse_snowflake(raw["CLIENT_ID"]),  # type: ignore[arg-type]
            guild_id=parse_snowflake(raw["GUILD_ID"]),  # type: ignore[arg-type]
            community_name=_text(raw, "COMMUNITY_NAME") or DEFAULT_COMMUNITY_NAME,
            welcome_channel_id=parse_snowflake(raw.get("WELCOME_CHANNEL_ID")),
            auto_role_id=parse_snowflake(raw.get("AUTO_ROLE_ID")),
            welcome_message=_text(raw, "WELCOME_MESSAGE") or DEFAULT_WELCOME_MESSAGE,
            welcome_dedup=parse_bool(raw.get("WELCOME_DEDUP"), default=True),
            support_channel_id=parse_snowflake(raw.get("SUPPORT_CHANNEL_ID")),
            support_daily_message=support_message or DEFAULT_SUPPORT_MESSAGE,
            support_reset_cron=_text(raw, "SUPPORT_RESET_CRON") or DEFAULT_RESET_CRON,
            support_reset_on_startup=parse_bool(raw.get("SUPPORT_RESET_ON_STARTUP")),
            timezone=(_text(raw, "TIMEZONE") or DEFAULT_TIMEZONE).strip(),
            rules_channel_id=parse_snowflake(raw.get("RULES_CHANNEL_ID")),
            rules_pages=tuple(pages),
            rules_discovery=(_text(raw, "RULES_DISCOVERY") or "ids").strip().lower(),
        )
