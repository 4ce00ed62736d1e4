"""
Batched concurrent screening.

Symbols are split into sequential chunks; every symbol of a chunk runs
concurrently, chunks never overlap, and a fixed pause separates them.
Per-symbol failures come back as error results so one bad ticker never
aborts the scan.
"""
import asyncio
import inspect
import time
from collections.abc import Awaitable, Callable, Sequence

from .constants import BATCH_SIZE, BATCH_SLEEP_SECONDS, MAX_CONCURRENT
from .exceptions import SystemicError
from .logger import logger
from .models import ScreeningResult

DEADLINE_EXCEEDED = "scan deadline exceeded"

SymbolWork = Callable[[str], Awaitable[ScreeningResult]]
ProgressHandler = Callable[[int, int], object]


def chunked(items: Sequence[str], size: int) -> list[list[str]]:
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


def error_message(error: Exception) -> str:
    return getattr(error, "message", None) or str(error) or type(error).__name__


class BatchScreener:
    """
    Run per-symbol work over a ticker list in paced chunks

    Usage:
        screener = BatchScreener(batch_size=15, pacing_seconds=0.15)
        results = await screener.screen(symbols, analyze, on_progress=show)
    """

    def __init__(
        self,
        batch_size: int = BATCH_SIZE,
        max_concurrency: int = MAX_CONCURRENT,
        pacing_seconds: float = BATCH_SLEEP_SECONDS,
        deadline_seconds: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        if batch_size < 1 or max_concurrency < 1:
            raise ValueError("batch_size and max_concurrency must be positive")
        self.chunk_size = min(batch_size, max_concurrency)
        self.pacing_seconds = pacing_seconds
        self.deadline_seconds = deadline_seconds
        self._sleep = sleep
        self._clock = clock

    async def _notify(self, on_progress: ProgressHandler | None, processed: int, total: int):
        if on_progress is None:
            return
        try:
            outcome = on_progress(processed, total)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception:
            logger.exception("screener.progress_handler_failed", processed=processed, total=total)

    async def _run_one(self, work: SymbolWork, symbol: str) -> ScreeningResult:
        try:
            return await work(symbol)
        except SystemicError:
            raise
        except Exception as e:
            logger.warning("screener.symbol_failed", symbol=symbol, error=error_message(e)[:120])
            return ScreeningResult.failure(symbol, error_message(e))

    async def screen(
        self,
        symbols: Sequence[str],
        work: SymbolWork,
        on_progress: ProgressHandler | None = None,
    ) -> list[ScreeningResult]:
        """
        Screen every symbol exactly once

        Args:
            symbols: Tickers to screen, in submission order
            work: Coroutine function producing a ScreeningResult for one symbol
            on_progress: Called with (processed, total) after every completion,
                from this coroutine only; may be sync or async

        Returns:
            One result per symbol, in chunk-submission order

        Raises:
            SystemicError: raised by work; remaining symbols are cancelled
        """
        total = len(symbols)
        if total == 0:
            await self._notify(on_progress, 0, 0)
            return []

        chunks = chunked(symbols, self.chunk_size)
        started = self._clock()
        processed = 0
        results: list[ScreeningResult] = []

        logger.info("screener.started", symbols=total, chunks=len(chunks), chunk_size=self.chunk_size)

        for index, chunk in enumerate(chunks):
            if self.deadline_seconds is not None and self._clock() - started >= self.deadline_seconds:
                logger.warning("screener.deadline_exceeded", skipped=len(chunk), chunk=index + 1)
                for symbol in chunk:
                    results.append(ScreeningResult.failure(symbol, DEADLINE_EXCEEDED))
                    processed += 1
                    await self._notify(on_progress, processed, total)
                continue

            tasks = [asyncio.ensure_future(self._run_one(work, symbol)) for symbol in chunk]
            try:
                for completed in asyncio.as_completed(tasks):
                    await completed
                    processed += 1
                    await self._notify(on_progress, processed, total)
            except BaseException:
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                raise

            results.extend(task.result() for task in tasks)

            if index < len(chunks) - 1:
                await self._sleep(self.pacing_seconds)

        failed = sum(1 for r in results if not r.ok)
        logger.info("screener.completed", symbols=total, failed=failed,
                    seconds=round(self._clock() - started, 2))
        return results
