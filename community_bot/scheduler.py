"""
Recurring jobs on the bot's event loop.

A thin wrapper over APScheduler's AsyncIOScheduler: jobs are registered by
name with a 5-field cron expression evaluated in a named IANA timezone, so
daylight-saving changes are tracked by the tz database. `tick()` runs a job
immediately without waiting for the wall clock.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Tuple
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger


JobFunc = Callable[..., Awaitable[Any]]


def parse_cron(expr: str) -> dict[str, Any]:
    parts = expr.split()
    if len(parts) != 5:
        raise ValueError(f"Invalid cron: {expr}")
    minute, hour, day, month, dow = parts
    kwargs = {"second": 0}
    if minute != "*": kwargs["minute"] = minute
    if hour != "*": kwargs["hour"] = hour
    if day != "*": kwargs["day"] = day
    if month != "*": kwargs["month"] = month
    if dow != "*": kwargs["day_of_week"] = dow
    return kwargs


def build_trigger(expr: str, tz: ZoneInfo) -> CronTrigger:
    return CronTrigger(timezone=tz, **parse_cron(expr))


class DailyScheduler:
    def __init__(self, timezone: str, scheduler: AsyncIOScheduler | None = None) -> None:
        self.timezone = ZoneInfo(timezone)
        self._scheduler = scheduler or AsyncIOScheduler(timezone=self.timezone)
        self._jobs: Dict[str, Tuple[JobFunc, tuple, CronTrigger]] = {}

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def add_job(self, name: str, func: JobFunc, cron: str, args: tuple = ()) -> None:
        trigger = build_trigger(cron, self.timezone)
        self._scheduler.add_job(
            func,
            trigger,
            id=name,
            replace_existing=True,
            args=list(args),
            max_instances=1,
            coalesce=True,
            misfire_grace_time=3600,
        )
        self._jobs[name] = (func, tuple(args), trigger)
        logging.info(f"Scheduled job '{name}': {cron} ({self.timezone.key})")

    def start(self) -> None:
        if not self._scheduler.running:
            self._scheduler.start()
            logging.info("Scheduler started")

    async def stop(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            # AsyncIOScheduler finishes shutting down on the next loop iteration
            await asyncio.sleep(0)
            logging.info("Scheduler stopped")

    async def tick(self, name: str) -> Any:
        """
        Run a registered job now, outside of its schedule.
        """
        func, args, _ = self._jobs[name]
        return await func(*args)

    def next_fire_time(self, name: str, now: datetime | None = None) -> datetime | None:
        _, _, trigger = self._jobs[name]
        return trigger.get_next_fire_time(None, now or datetime.now(self.timezone))
