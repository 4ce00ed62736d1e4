"""Tests for the fixed-time scan schedule"""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch
from zoneinfo import ZoneInfo

import pytest

from stoch_screener.config import ScheduleEntryConfig
from stoch_screener.models import ScanMode
from stoch_screener.scheduler import ScheduledScan, next_run_time, run_schedule

JAKARTA = ZoneInfo("Asia/Jakarta")
ENTRIES = [
    ScheduledScan("10:00", ScanMode.OVERSOLD),
    ScheduledScan("15:30", ScanMode.MOMENTUM),
    ScheduledScan("16:00", ScanMode.OVERSOLD),
]


def wib(*args):
    return datetime(*args, tzinfo=JAKARTA)


class TestScheduledScan:
    def test_at_parses_time(self):
        assert ScheduledScan("09:05").at.hour == 9
        assert ScheduledScan("09:05").at.minute == 5

    def test_from_config(self):
        entry = ScheduledScan.from_config(ScheduleEntryConfig(time="15:30", mode="momentum", weekdays=[0, 2]))

        assert entry == ScheduledScan("15:30", ScanMode.MOMENTUM, (0, 2))


class TestNextRunTime:
    """Tests for next_run_time"""

    def test_before_first_scan(self):
        # Thursday
        fire, entry = next_run_time(ENTRIES, wib(2024, 5, 2, 8, 0))

        assert fire == wib(2024, 5, 2, 10, 0)
        assert entry.mode == ScanMode.OVERSOLD

    def test_between_scans(self):
        fire, entry = next_run_time(ENTRIES, wib(2024, 5, 2, 12, 0))

        assert fire == wib(2024, 5, 2, 15, 30)
        assert entry.mode == ScanMode.MOMENTUM

    def test_strictly_after_now(self):
        """A scan at exactly now is not selected again"""
        fire, _ = next_run_time(ENTRIES, wib(2024, 5, 2, 10, 0))
        assert fire == wib(2024, 5, 2, 15, 30)

    def test_after_last_scan_rolls_to_next_day(self):
        fire, _ = next_run_time(ENTRIES, wib(2024, 5, 2, 17, 0))
        assert fire == wib(2024, 5, 3, 10, 0)

    def test_friday_evening_skips_weekend(self):
        fire, _ = next_run_time(ENTRIES, wib(2024, 5, 3, 16, 30))
        assert fire == wib(2024, 5, 6, 10, 0)

    def test_utc_input_converted(self):
        """01:00 UTC is 08:00 in Jakarta"""
        fire, _ = next_run_time(ENTRIES, datetime(2024, 5, 2, 1, 0, tzinfo=timezone.utc))

        assert fire == wib(2024, 5, 2, 10, 0)
        assert fire.tzinfo == JAKARTA

    def test_naive_input_is_local(self):
        fire, _ = next_run_time(ENTRIES, datetime(2024, 5, 2, 9, 59))
        assert fire == wib(2024, 5, 2, 10, 0)

    def test_weekend_only_entry(self):
        entries = [ScheduledScan("11:00", weekdays=(5,))]
        fire, _ = next_run_time(entries, wib(2024, 5, 2, 8, 0))
        assert fire == wib(2024, 5, 4, 11, 0)

    def test_no_entries_raises(self):
        with pytest.raises(ValueError):
            next_run_time([], wib(2024, 5, 2, 8, 0))

    def test_no_weekdays_raises(self):
        with pytest.raises(ValueError):
            next_run_time([ScheduledScan("10:00", weekdays=())], wib(2024, 5, 2, 8, 0))


class TestRunSchedule:
    """Tests for the scheduler loop"""

    def run(self, service, delivery, max_runs, start=wib(2024, 5, 2, 8, 0)):
        sleeps = []

        async def fake_sleep(seconds):
            sleeps.append(seconds)

        asyncio.run(run_schedule(
            service, delivery, ENTRIES, ["BBCA"],
            clock=lambda: start, sleep=fake_sleep, max_runs=max_runs,
        ))
        return sleeps

    def test_runs_each_entry_in_order(self):
        service = AsyncMock()
        delivery = AsyncMock()

        sleeps = self.run(service, delivery, max_runs=4)

        modes = [call.args[1] for call in service.run_scan.await_args_list]
        assert modes == [ScanMode.OVERSOLD, ScanMode.MOMENTUM, ScanMode.OVERSOLD, ScanMode.OVERSOLD]
        assert delivery.deliver.await_count == 4
        assert sleeps[0] == 2 * 60 * 60

    def test_scan_title_names_time(self):
        service = AsyncMock()

        self.run(service, None, max_runs=1)

        assert service.run_scan.await_args.kwargs["title"] == "Scheduled Oversold Scan (10:00)"

    def test_failed_scan_does_not_stop_loop(self):
        service = AsyncMock()
        service.run_scan.side_effect = [RuntimeError("upstream down"), AsyncMock()]
        delivery = AsyncMock()

        with patch("stoch_screener.scheduler.sentry_sdk.capture_exception") as capture:
            self.run(service, delivery, max_runs=2)

        assert service.run_scan.await_count == 2
        assert delivery.deliver.await_count == 1
        capture.assert_called_once()
