"""Scan orchestration.

One scan: sanitize tickers → screen in paced batches (fetch through the
TTL cache, compute oscillator and momentum) → build the mode's report →
persist it → record signals for later performance evaluation.

All state (cache, stores, HTTP session) is owned by a ScanService
instance; nothing lives at module level.
"""

import asyncio
import contextlib
import time
from datetime import datetime
from zoneinfo import ZoneInfo

from .cache import TTLCache
from .config import Config
from .data_source import CachingFetcher, MarketDataFetcher, create_session
from .indicators import analyze_series
from .logger import logger
from .models import ScanMode, ScanReport, ScreeningResult
from .report import MomentumRules, build_report
from .scan_store import ScanStore
from .screener import BatchScreener, ProgressHandler
from .signal_tracker import SignalTracker
from .validation import sanitize_symbols


class ScanService:
    """Run scans against one fetcher, cache and set of stores"""

    def __init__(
        self,
        config: Config,
        fetcher,
        cache: TTLCache,
        store: ScanStore,
        screener: BatchScreener,
        tracker: SignalTracker | None = None,
    ):
        self.config = config
        self.fetcher = fetcher
        self.cache = cache
        self.store = store
        self.screener = screener
        self.tracker = tracker

    @classmethod
    @contextlib.asynccontextmanager
    async def create(cls, config: Config):
        """
        Build a service with its own HTTP session, cache sweeper and stores.

        Usage:
            async with ScanService.create(cfg) as service:
                report = await service.run_scan(symbols, ScanMode.OVERSOLD)
        """
        md = config.market_data
        sc = config.screener

        session = create_session(sc.max_concurrency)
        cache = TTLCache(ttl_seconds=config.cache.ttl_minutes * 60)
        sweeper = cache.start_sweeper(config.cache.sweep_minutes * 60)

        try:
            fetcher = CachingFetcher(
                MarketDataFetcher(
                    session,
                    base_url=md.base_url,
                    symbol_suffix=md.symbol_suffix,
                    timeout=md.request_timeout,
                    max_attempts=md.max_attempts,
                    retry_base_delay=md.retry_base_delay,
                    min_bars=md.min_bars,
                ),
                cache,
            )
            screener = BatchScreener(
                batch_size=sc.batch_size,
                max_concurrency=sc.max_concurrency,
                pacing_seconds=sc.pacing_seconds,
                deadline_seconds=sc.deadline_seconds,
            )
            yield cls(
                config,
                fetcher=fetcher,
                cache=cache,
                store=ScanStore(config.storage.scan_store_path),
                screener=screener,
                tracker=SignalTracker(config.storage.signal_history_path),
            )
        finally:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
            await session.close()
            logger.debug("scan_service.closed", **cache.get_stats())

    def _now(self) -> datetime:
        return datetime.now(ZoneInfo(self.config.schedule.timezone))

    async def analyze(self, symbol: str) -> ScreeningResult:
        """Fetch (through the cache) and analyze one ticker"""
        ind = self.config.indicator
        series = await self.fetcher.fetch(symbol, self.config.market_data.lookback_days)
        return analyze_series(
            series,
            k_period=ind.k_period,
            k_smoothing=ind.k_smoothing,
            d_period=ind.d_period,
            oversold=ind.oversold,
            oversold_rule=ind.oversold_rule,
            min_length=ind.min_length,
            signal_policy=ind.signal_policy,
        )

    async def run_scan(
        self,
        tickers: list[str],
        mode: ScanMode = ScanMode.OVERSOLD,
        on_progress: ProgressHandler | None = None,
        title: str | None = None,
        now: datetime | None = None,
    ) -> ScanReport:
        """
        Screen tickers and produce the report for ``mode``.

        Invalid ticker codes are not fetched; they appear as error results.
        Per-symbol failures never raise; systemic failures propagate.
        """
        mode = ScanMode(mode)
        valid, invalid = sanitize_symbols(tickers)
        if invalid:
            logger.warning("scan.invalid_symbols", count=len(invalid), symbols=invalid[:10])

        logger.info("scan.started", mode=mode.value, symbols=len(valid))
        started = time.monotonic()

        results = await self.screener.screen(valid, self.analyze, on_progress)
        results += [ScreeningResult.failure(str(s), "invalid ticker format") for s in invalid]

        report = build_report(
            mode,
            results,
            title=title,
            now=now or self._now(),
            rules=MomentumRules(**self.config.momentum.model_dump()),
            oversold=self.config.indicator.oversold,
        )

        self.store.save(report)
        if mode == ScanMode.OVERSOLD and self.tracker is not None:
            self.tracker.record(results)

        logger.info(
            "scan.completed",
            mode=mode.value,
            screened=report.screened,
            with_signal=report.with_signal,
            errors=report.errors,
            seconds=round(time.monotonic() - started, 1),
            cache_entries=len(self.cache),
        )
        return report

    def cached_report(self, mode: ScanMode, now: datetime | None = None) -> ScanReport | None:
        """Last stored report for mode if it is younger than the cache TTL"""
        stored = self.store.get(mode)
        if stored is None:
            return None

        age = stored.age_minutes(now)
        if age > self.config.cache.ttl_minutes:
            logger.debug("scan.cached_report_stale", mode=ScanMode(mode).value, age_minutes=round(age, 1))
            return None
        return stored.report

    async def evaluate_signals(self) -> dict:
        """Fill in returns for recorded signals old enough to evaluate"""
        if self.tracker is None:
            return {"updated": 0, "failed": 0}
        return await self.tracker.evaluate(self.fetcher)
