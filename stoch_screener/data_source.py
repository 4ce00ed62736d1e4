"""
Daily OHLCV bars from a Yahoo-chart-compatible JSON endpoint.

One GET per ticker per attempt, fixed timeout, exponential backoff on
transport errors and retryable HTTP statuses. CachingFetcher puts the
TTL cache in front of it.
"""
import asyncio
import time
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone

import aiohttp
from tenacity import RetryError

from .cache import TTLCache
from .constants import (
    DAYS_TO_FETCH,
    DEFAULT_RETRY_DELAY,
    MARKET_DATA_URL,
    MAX_CONCURRENT,
    MAX_RETRY_ATTEMPTS,
    MIN_DATA_POINTS,
    REQUEST_TIMEOUT,
    SYMBOL_SUFFIX,
    USER_AGENT,
)
from .exceptions import (
    DataSourceError,
    FetchTimeout,
    FetchTransportError,
    InsufficientData,
    UpstreamError,
    UpstreamRateLimited,
)
from .logger import logger
from .models import PriceBar, PriceSeries
from .retry import async_retrying, is_retryable_http_status


def create_session(max_connections: int = MAX_CONCURRENT) -> aiohttp.ClientSession:
    """Shared HTTP session for all market data requests of one process"""
    return aiohttp.ClientSession(
        headers={"User-Agent": USER_AGENT},
        connector=aiohttp.TCPConnector(limit=max_connections),
    )


def parse_chart(symbol: str, payload: dict) -> list[PriceBar]:
    """
    Convert a chart JSON payload into bars, in upstream order.

    Bars missing any of open/high/low/close are dropped, as are bars whose
    range is inconsistent. Missing volume counts as 0.

    Raises:
        DataSourceError: payload carries an upstream error or has no series
    """
    if not isinstance(payload, dict):
        raise DataSourceError("Malformed payload", context={"symbol": symbol, "type": type(payload).__name__})

    chart = payload.get("chart") or {}
    if chart.get("error"):
        error = chart["error"]
        description = error.get("description") if isinstance(error, dict) else error
        raise DataSourceError(f"Upstream error: {description}", context={"symbol": symbol})

    results = chart.get("result") or []
    if not results or not results[0].get("timestamp"):
        raise DataSourceError("No data available", context={"symbol": symbol})

    result = results[0]
    timestamps = result["timestamp"]
    quote = (result.get("indicators", {}).get("quote") or [{}])[0]
    offset = (result.get("meta") or {}).get("gmtoffset") or 0

    def column(name: str) -> list:
        values = quote.get(name) or []
        return values + [None] * (len(timestamps) - len(values))

    opens, highs, lows, closes, volumes = (
        column("open"), column("high"), column("low"), column("close"), column("volume")
    )

    bars = []
    dropped = 0
    for i, ts in enumerate(timestamps):
        if not (opens[i] and highs[i] and lows[i] and closes[i]):
            dropped += 1
            continue
        try:
            bars.append(PriceBar(
                date=datetime.fromtimestamp(ts + offset, tz=timezone.utc).date(),
                open=float(opens[i]),
                high=float(highs[i]),
                low=float(lows[i]),
                close=float(closes[i]),
                volume=int(volumes[i] or 0),
            ))
        except ValueError:
            dropped += 1

    if dropped:
        logger.debug("data.bars_dropped", symbol=symbol, dropped=dropped)
    return bars


class MarketDataFetcher:
    """Fetch one ticker's daily history with timeout and retry"""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        base_url: str = MARKET_DATA_URL,
        symbol_suffix: str = SYMBOL_SUFFIX,
        timeout: float = REQUEST_TIMEOUT,
        max_attempts: int = MAX_RETRY_ATTEMPTS,
        retry_base_delay: float = DEFAULT_RETRY_DELAY,
        min_bars: int = MIN_DATA_POINTS,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.session = session
        self.base_url = base_url.rstrip("/")
        self.symbol_suffix = symbol_suffix
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.retry_base_delay = retry_base_delay
        self.min_bars = min_bars
        self._clock = clock
        self._sleep = sleep

    async def _get_json(self, symbol: str, lookback_days: int) -> dict:
        """Single GET attempt, mapping failures onto the fetch error taxonomy"""
        end = int(self._clock())
        start = end - lookback_days * 24 * 60 * 60
        url = f"{self.base_url}/{symbol}{self.symbol_suffix}"
        params = {"period1": start, "period2": end, "interval": "1d"}

        try:
            async with self.session.get(
                url, params=params, timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as resp:
                if resp.status == 429:
                    raise UpstreamRateLimited("Rate limited", context={"symbol": symbol, "status": 429})
                if is_retryable_http_status(resp.status):
                    raise FetchTransportError("Server error", context={"symbol": symbol, "status": resp.status})
                if resp.status >= 400:
                    raise UpstreamError(f"HTTP {resp.status}", context={"symbol": symbol})
                return await resp.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise FetchTimeout("Request timed out", context={"symbol": symbol, "timeout": self.timeout},
                               original_error=e)
        except aiohttp.ClientResponseError as e:
            raise FetchTransportError("Bad response", context={"symbol": symbol}, original_error=e)
        except aiohttp.ClientError as e:
            raise FetchTransportError("Network error", context={"symbol": symbol}, original_error=e)
        except ValueError as e:
            raise DataSourceError("Malformed JSON response", context={"symbol": symbol}, original_error=e)

    async def fetch(self, symbol: str, lookback_days: int = DAYS_TO_FETCH) -> PriceSeries:
        """
        Fetch daily bars for symbol

        Returns:
            PriceSeries ascending by date

        Raises:
            UpstreamError: retries exhausted or non-retryable HTTP status
            InsufficientData: fewer than min_bars usable bars
            DataSourceError: malformed or empty payload
        """
        logger.debug("data.fetch", symbol=symbol, days=lookback_days)
        attempts = 0

        try:
            async for attempt in async_retrying(
                max_attempts=self.max_attempts,
                base_delay=self.retry_base_delay,
                retryable_exceptions=(FetchTransportError,),
                sleep=self._sleep,
            ):
                with attempt:
                    attempts += 1
                    payload = await self._get_json(symbol, lookback_days)
        except RetryError as e:
            last = e.last_attempt
            logger.warning("data.retries_exhausted", symbol=symbol, attempts=last.attempt_number)
            raise UpstreamError(
                f"Failed to fetch {symbol} after {last.attempt_number} attempts",
                attempts=last.attempt_number,
                last_error=last.exception(),
                context={"symbol": symbol},
            )
        except UpstreamError as e:
            raise UpstreamError(f"Failed to fetch {symbol}: {e.message}", attempts=attempts,
                                context={"symbol": symbol})

        series = PriceSeries.from_bars(symbol, parse_chart(symbol, payload))
        if len(series) < self.min_bars:
            raise InsufficientData(
                f"Insufficient data for {symbol}: only {len(series)} bars",
                context={"symbol": symbol, "required": self.min_bars},
            )

        logger.debug("data.fetched", symbol=symbol, rows=len(series))
        return series


class CachingFetcher:
    """TTL cache in front of a fetcher; key is (symbol, lookback_days)"""

    def __init__(self, fetcher: MarketDataFetcher, cache: TTLCache):
        self.fetcher = fetcher
        self.cache = cache

    async def fetch(self, symbol: str, lookback_days: int = DAYS_TO_FETCH) -> PriceSeries:
        key = (symbol, lookback_days)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("cache.hit", symbol=symbol)
            return cached

        series = await self.fetcher.fetch(symbol, lookback_days)
        self.cache.set(key, series)
        return series
