"""
Fixed-time scan schedule in the exchange's timezone.

Scans run sequentially from one loop, so two scans never overlap.
"""
import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from datetime import time as dtime
from datetime import timezone
from zoneinfo import ZoneInfo

import sentry_sdk

from .constants import TIMEZONE
from .logger import logger, set_correlation_id
from .models import ScanMode

WEEKDAYS = (0, 1, 2, 3, 4)


@dataclass(frozen=True)
class ScheduledScan:
    time: str
    mode: ScanMode = ScanMode.OVERSOLD
    weekdays: tuple[int, ...] = WEEKDAYS

    @property
    def at(self) -> dtime:
        hour, minute = self.time.split(":")
        return dtime(int(hour), int(minute))

    @classmethod
    def from_config(cls, entry) -> "ScheduledScan":
        return cls(time=entry.time, mode=ScanMode(entry.mode), weekdays=tuple(entry.weekdays))


def next_run_time(
    entries: list[ScheduledScan],
    now: datetime,
    tz: str = TIMEZONE,
) -> tuple[datetime, ScheduledScan]:
    """
    Earliest fire time strictly after ``now``

    Args:
        entries: Schedule entries
        now: Reference time; naive values are taken as local time in ``tz``
        tz: IANA timezone the entry times are expressed in

    Returns:
        (fire time as an aware datetime in tz, entry)
    """
    if not entries:
        raise ValueError("Schedule has no entries")

    zone = ZoneInfo(tz)
    local = now.astimezone(zone) if now.tzinfo else now.replace(tzinfo=zone)

    for offset in range(8):
        day = local.date() + timedelta(days=offset)
        candidates = [
            (datetime.combine(day, entry.at, tzinfo=zone), entry)
            for entry in entries
            if day.weekday() in entry.weekdays
        ]
        upcoming = [c for c in candidates if c[0] > local]
        if upcoming:
            return min(upcoming, key=lambda c: c[0])

    raise ValueError("Schedule entries have no valid weekdays")


async def run_schedule(
    service,
    delivery,
    entries: list[ScheduledScan],
    tickers: list[str],
    tz: str = TIMEZONE,
    clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    max_runs: int | None = None,
):
    """
    Sleep until each scheduled time, run the scan and deliver the report.

    A failed scan is logged, reported to Sentry and does not stop the loop.

    Args:
        service: ScanService
        delivery: ReportDelivery, or None to only store reports
        max_runs: Stop after this many scans (None runs forever)
    """
    runs = 0
    last_fire: datetime | None = None

    logger.info("scheduler.started", entries=len(entries), timezone=tz, tickers=len(tickers))

    while max_runs is None or runs < max_runs:
        now = clock()
        if last_fire is not None and now < last_fire:
            now = last_fire
        fire, entry = next_run_time(entries, now, tz)

        delay = max(0.0, (fire - clock()).total_seconds())
        logger.info("scheduler.waiting", mode=entry.mode.value, fire=fire.isoformat(), seconds=round(delay))
        await sleep(delay)
        last_fire = fire

        set_correlation_id(f"{entry.mode.value}-{fire:%Y%m%d%H%M}")
        try:
            report = await service.run_scan(
                tickers, entry.mode, title=f"Scheduled {entry.mode.value.title()} Scan ({entry.time})"
            )
            if delivery is not None:
                await delivery.deliver(report)
        except Exception as e:
            logger.exception("scheduler.scan_failed", mode=entry.mode.value, error=str(e)[:100])
            sentry_sdk.capture_exception(e)

        runs += 1
