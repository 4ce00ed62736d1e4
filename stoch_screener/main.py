"""Application wiring: config → ScanService → terminal / Telegram"""

import asyncio
import os
from datetime import datetime

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

from . import ui
from .config import Config
from .delivery import ReportDelivery
from .logger import logger, set_correlation_id
from .models import ScanMode, ScanReport
from .scanner import ScanService
from .scheduler import ScheduledScan, run_schedule
from .telegram_client import TelegramClient

ENVIRONMENT = os.getenv('ENVIRONMENT', 'production')


def init_sentry(dsn: str | None) -> bool:
    """Initialize Sentry error tracking when a DSN is configured"""
    if not dsn:
        return False

    sentry_logging = LoggingIntegration(
        level=None,           # Capture nothing from logging
        event_level=None      # Send nothing as events (we capture manually)
    )
    sentry_sdk.init(
        dsn=dsn,
        environment=ENVIRONMENT,
        release="stoch-screener@1.0.0",
        traces_sample_rate=0.1,
        send_default_pii=False,
        integrations=[sentry_logging],
        # Capture errors but not info/warning
        before_send=lambda event, hint: event if event.get('level') in ('error', 'fatal') else None
    )
    logger.info("sentry.initialized", environment=ENVIRONMENT)
    return True


def _prepare(cfg: Config):
    logger.set_level(cfg.log_level)
    init_sentry(cfg.sentry_dsn)


def build_delivery(cfg: Config) -> ReportDelivery | None:
    """Telegram delivery for configured subscribers, or None"""
    if cfg.telegram is None or not cfg.telegram.chat_ids:
        return None
    return ReportDelivery(TelegramClient(cfg.telegram.bot_token), cfg.telegram.chat_ids)


async def _scan(cfg: Config, symbols: list[str], mode: ScanMode, send: bool, reuse_cached: bool) -> ScanReport:
    delivery = build_delivery(cfg) if send else None

    async with ScanService.create(cfg) as service:
        report = service.cached_report(mode) if reuse_cached else None

        if report is not None:
            ui.print_info(f"Using cached {mode.value} report from {report.generated_at:%H:%M}")
        else:
            chat_progress = None
            if delivery is not None:
                chat_progress = delivery.progress_reporter(
                    delivery.chat_ids[0], f"{mode.value.title()} Scan", every=cfg.telegram.progress_every
                )

            with ui.create_scan_progress() as progress:
                task = progress.add_task(f"Screening ({mode.value})", total=len(symbols))

                def on_progress(processed: int, total: int):
                    progress.update(task, completed=processed, total=total)
                    if chat_progress is not None:
                        chat_progress(processed, total)

                try:
                    report = await service.run_scan(symbols, mode, on_progress=on_progress)
                finally:
                    if chat_progress is not None:
                        await chat_progress.flush()

        if send:
            if delivery is None:
                ui.print_warning("No Telegram subscribers configured; report not sent")
            else:
                outcome = await delivery.deliver(report)
                ui.print_success(f"Report sent to {outcome['delivered']} chat(s), {outcome['failed']} failed")

    return report


def run_scan_once(cfg: Config, symbols: list[str], mode: ScanMode = ScanMode.OVERSOLD,
                  send: bool = False, reuse_cached: bool = False) -> ScanReport:
    """Run one scan in the foreground with a progress bar and print the result"""
    _prepare(cfg)
    mode = ScanMode(mode)
    set_correlation_id(f"{mode.value}-{datetime.now():%H%M%S}")

    ui.print_header(f"IDX {mode.value.title()} Scan", f"{len(symbols)} symbols")

    try:
        report = asyncio.run(_scan(cfg, symbols, mode, send, reuse_cached))
    except Exception as e:
        logger.exception("scan.failed", mode=mode.value)
        sentry_sdk.capture_exception(e)
        raise

    if report.results:
        ui.console.print(ui.create_results_table(report))
    ui.print_report_summary(report)
    return report


async def _schedule(cfg: Config, symbols: list[str]):
    entries = [ScheduledScan.from_config(e) for e in cfg.schedule.scans]
    async with ScanService.create(cfg) as service:
        await run_schedule(service, build_delivery(cfg), entries, symbols, tz=cfg.schedule.timezone)


def run_scheduled(cfg: Config, symbols: list[str]) -> None:
    """Run the fixed-time schedule until interrupted"""
    _prepare(cfg)
    ui.print_header("Scheduled scans", f"{len(cfg.schedule.scans)} entries, {cfg.schedule.timezone}")
    for entry in cfg.schedule.scans:
        ui.print_info(f"{entry.time} {entry.mode.value} on weekdays {entry.weekdays}")

    asyncio.run(_schedule(cfg, symbols))


async def _stats(cfg: Config) -> dict:
    async with ScanService.create(cfg) as service:
        outcome = await service.evaluate_signals()
        logger.info("signals.evaluated", **outcome)
        return service.tracker.get_stats()


def show_stats(cfg: Config) -> dict:
    """Evaluate pending signals and print performance statistics"""
    _prepare(cfg)
    stats = asyncio.run(_stats(cfg))
    ui.print_stats_panel(stats, title="📊 Signal Performance")
    return stats
