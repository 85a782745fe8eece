from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Generic, Optional, TypeVar

import discord

from community_bot.discord.errors import parse_error_message


T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """
    Result of a single Discord API call: either a value or a short failure reason.
    """

    ok: bool
    value: Optional[T] = None
    reason: Optional[str] = None
    error: Optional[Exception] = None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Outcome[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: Exception) -> "Outcome[T]":
        return cls(ok=False, reason=parse_error_message(error), error=error)

    @property
    def forbidden(self) -> bool:
        return isinstance(self.error, discord.Forbidden)

    @property
    def not_found(self) -> bool:
        return isinstance(self.error, discord.NotFound)


async def attempt(awaitable: Awaitable[T]) -> Outcome[T]:
    """
    Await a Discord call and capture API failures instead of raising them.

    Only `discord.HTTPException` (and its subclasses Forbidden/NotFound/...)
    is captured; programming errors still propagate.
    """
    try:
        return Outcome.success(await awaitable)
    except discord.HTTPException as e:
        return Outcome.failure(e)
