"""
Tests for the market data fetcher: parsing, retry/backoff, caching.

The aiohttp session is replaced by a scripted fake; no network access.
"""
import asyncio
from datetime import date
from unittest.mock import AsyncMock

import aiohttp
import pytest

from conftest import make_series
from stoch_screener.cache import TTLCache
from stoch_screener.data_source import CachingFetcher, MarketDataFetcher, parse_chart
from stoch_screener.exceptions import (
    DataSourceError,
    FetchTimeout,
    InsufficientData,
    UpstreamError,
    UpstreamRateLimited,
)

DAY = 24 * 60 * 60
# 2023-12-31 20:00 UTC, i.e. 2024-01-01 03:00 in Jakarta (UTC+7)
START_TS = 1704052800
JAKARTA_OFFSET = 7 * 60 * 60


def chart_payload(n=40, missing=(), reverse=False):
    timestamps = [START_TS + i * DAY for i in range(n)]
    closes = [1000.0 + i for i in range(n)]
    quote = {
        "open": list(closes),
        "high": [c + 5 for c in closes],
        "low": [c - 5 for c in closes],
        "close": list(closes),
        "volume": [10_000] * n,
    }
    for i in missing:
        quote["close"][i] = None
    if reverse:
        timestamps.reverse()
        quote = {k: list(reversed(v)) for k, v in quote.items()}
    return {
        "chart": {
            "result": [{
                "meta": {"gmtoffset": JAKARTA_OFFSET},
                "timestamp": timestamps,
                "indicators": {"quote": [quote]},
            }],
            "error": None,
        }
    }


class FakeResponse:
    def __init__(self, status=200, payload=None):
        self.status = status
        self.payload = payload

    async def json(self, content_type=None):
        return self.payload


class FakeRequest:
    def __init__(self, outcome):
        self.outcome = outcome

    async def __aenter__(self):
        if isinstance(self.outcome, BaseException):
            raise self.outcome
        return self.outcome

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    """Returns scripted outcomes in order; the last one repeats"""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params))
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        return FakeRequest(outcome)


def make_fetcher(session, delays=None, **kwargs):
    async def fake_sleep(seconds):
        if delays is not None:
            delays.append(seconds)

    return MarketDataFetcher(session, clock=lambda: 1_720_000_000, sleep=fake_sleep, **kwargs)


class TestParseChart:
    """Tests for chart payload parsing"""

    def test_parses_all_complete_bars(self):
        bars = parse_chart("BBCA", chart_payload(5))

        assert len(bars) == 5
        assert bars[0].close == 1000.0
        assert bars[0].high == 1005.0
        assert bars[0].volume == 10_000

    def test_drops_bars_missing_ohlc(self):
        bars = parse_chart("BBCA", chart_payload(10, missing=(2, 5)))
        assert len(bars) == 8

    def test_missing_volume_is_zero(self):
        payload = chart_payload(3)
        payload["chart"]["result"][0]["indicators"]["quote"][0]["volume"] = [None, 5, None]

        bars = parse_chart("BBCA", payload)

        assert [b.volume for b in bars] == [0, 5, 0]

    def test_dates_use_exchange_offset(self):
        """A bar stamped late evening UTC belongs to the next local day"""
        bars = parse_chart("BBCA", chart_payload(1))
        assert bars[0].date == date(2024, 1, 1)

    def test_inconsistent_range_is_dropped(self):
        payload = chart_payload(3)
        payload["chart"]["result"][0]["indicators"]["quote"][0]["high"][1] = 1.0

        assert len(parse_chart("BBCA", payload)) == 2

    def test_upstream_error_raises(self):
        payload = {"chart": {"result": None, "error": {"code": "Not Found", "description": "No data found"}}}

        with pytest.raises(DataSourceError, match="No data found"):
            parse_chart("XXXX", payload)

    @pytest.mark.parametrize("payload", [None, [], "oops"])
    def test_non_object_payload_raises(self, payload):
        with pytest.raises(DataSourceError, match="Malformed payload"):
            parse_chart("BBCA", payload)

    def test_empty_result_raises(self):
        with pytest.raises(DataSourceError):
            parse_chart("XXXX", {"chart": {"result": [], "error": None}})


class TestMarketDataFetcher:
    """Tests for fetch, retry and error mapping"""

    def test_fetch_success(self):
        session = FakeSession(FakeResponse(200, chart_payload(40)))

        series = asyncio.run(make_fetcher(session).fetch("BBCA", 100))

        assert series.symbol == "BBCA"
        assert len(series) == 40
        url, params = session.calls[0]
        assert url.endswith("/BBCA.JK")
        assert params["interval"] == "1d"
        assert params["period2"] - params["period1"] == 100 * DAY

    def test_descending_upstream_order_is_sorted(self):
        session = FakeSession(FakeResponse(200, chart_payload(40, reverse=True)))

        series = asyncio.run(make_fetcher(session).fetch("BBCA"))

        dates = [b.date for b in series.bars]
        assert dates == sorted(dates)

    def test_insufficient_data_not_retried(self):
        session = FakeSession(FakeResponse(200, chart_payload(20)))

        with pytest.raises(InsufficientData):
            asyncio.run(make_fetcher(session).fetch("BBCA"))

        assert len(session.calls) == 1

    def test_duplicate_dates_not_counted_towards_min_bars(self):
        """30 bars with one repeated date leave 29 usable bars"""
        payload = chart_payload(30)
        result = payload["chart"]["result"][0]
        result["timestamp"][1] = result["timestamp"][0]
        session = FakeSession(FakeResponse(200, payload))

        with pytest.raises(InsufficientData, match="only 29 bars"):
            asyncio.run(make_fetcher(session).fetch("BBCA"))

    def test_transport_errors_retried_with_backoff(self):
        delays = []
        session = FakeSession(
            aiohttp.ClientConnectionError("reset"),
            FakeResponse(503),
            FakeResponse(200, chart_payload(40)),
        )

        series = asyncio.run(make_fetcher(session, delays).fetch("BBCA"))

        assert len(series) == 40
        assert len(session.calls) == 3
        assert delays == [1.0, 2.0]

    def test_exhausted_retries_raise_upstream_error(self):
        session = FakeSession(asyncio.TimeoutError())

        with pytest.raises(UpstreamError) as exc_info:
            asyncio.run(make_fetcher(session, []).fetch("BBCA"))

        assert exc_info.value.attempts == 3
        assert isinstance(exc_info.value.last_error, FetchTimeout)
        assert len(session.calls) == 3

    def test_rate_limit_is_retried(self):
        session = FakeSession(FakeResponse(429), FakeResponse(200, chart_payload(40)))

        series = asyncio.run(make_fetcher(session, []).fetch("BBCA"))

        assert len(series) == 40
        assert len(session.calls) == 2

    def test_rate_limit_exhausted_carries_cause(self):
        session = FakeSession(FakeResponse(429))

        with pytest.raises(UpstreamError) as exc_info:
            asyncio.run(make_fetcher(session, [], max_attempts=2).fetch("BBCA"))

        assert exc_info.value.attempts == 2
        assert isinstance(exc_info.value.last_error, UpstreamRateLimited)

    def test_client_error_status_not_retried(self):
        session = FakeSession(FakeResponse(404))

        with pytest.raises(UpstreamError) as exc_info:
            asyncio.run(make_fetcher(session, []).fetch("XXXX"))

        assert exc_info.value.attempts == 1
        assert len(session.calls) == 1

    def test_custom_base_delay(self):
        delays = []
        session = FakeSession(asyncio.TimeoutError())

        with pytest.raises(UpstreamError):
            asyncio.run(make_fetcher(session, delays, retry_base_delay=0.5, max_attempts=4).fetch("BBCA"))

        assert delays == [0.5, 1.0, 2.0]


class TestCachingFetcher:
    """Tests for the TTL cache in front of the fetcher"""

    def test_hit_skips_network(self):
        series = make_series([100.0] * 40, symbol="BBCA")
        inner = AsyncMock()
        inner.fetch.return_value = series
        fetcher = CachingFetcher(inner, TTLCache(ttl_seconds=60))

        async def run():
            first = await fetcher.fetch("BBCA", 100)
            second = await fetcher.fetch("BBCA", 100)
            return first, second

        first, second = asyncio.run(run())

        assert first is series
        assert second is series
        inner.fetch.assert_awaited_once_with("BBCA", 100)

    def test_key_includes_lookback(self):
        inner = AsyncMock()
        inner.fetch.return_value = make_series([100.0] * 40)
        fetcher = CachingFetcher(inner, TTLCache(ttl_seconds=60))

        async def run():
            await fetcher.fetch("BBCA", 100)
            await fetcher.fetch("BBCA", 50)

        asyncio.run(run())

        assert inner.fetch.await_count == 2

    def test_expired_entry_refetched(self):
        now = [0.0]
        inner = AsyncMock()
        inner.fetch.return_value = make_series([100.0] * 40)
        fetcher = CachingFetcher(inner, TTLCache(ttl_seconds=60, clock=lambda: now[0]))

        async def run():
            await fetcher.fetch("BBCA", 100)
            now[0] = 61.0
            await fetcher.fetch("BBCA", 100)

        asyncio.run(run())

        assert inner.fetch.await_count == 2

    def test_failures_not_cached(self):
        inner = AsyncMock()
        inner.fetch.side_effect = InsufficientData("short")
        cache = TTLCache(ttl_seconds=60)
        fetcher = CachingFetcher(inner, cache)

        with pytest.raises(InsufficientData):
            asyncio.run(fetcher.fetch("BBCA", 100))

        assert len(cache) == 0
