"""Shared fixtures and builders for the test suite"""

import os

# Keep test runs from writing daily log files
os.environ.setdefault("LOG_TO_FILE", "0")

from datetime import date, timedelta  # noqa: E402

import pytest  # noqa: E402

from stoch_screener.models import PriceBar, PriceSeries, ScreeningResult, Signal  # noqa: E402


def make_series(closes, highs=None, lows=None, volumes=None, symbol="TEST", start=date(2024, 1, 1)):
    """Build a PriceSeries; high/low default to close +/- 1, volume to 1000"""
    highs = highs or [c + 1 for c in closes]
    lows = lows or [c - 1 for c in closes]
    volumes = volumes or [1000] * len(closes)
    bars = [
        PriceBar(
            date=start + timedelta(days=i),
            open=c,
            high=h,
            low=lo,
            close=c,
            volume=v,
        )
        for i, (c, h, lo, v) in enumerate(zip(closes, highs, lows, volumes))
    ]
    return PriceSeries.from_bars(symbol, bars)


def make_result(symbol="BBCA", signal=Signal.BUY, price=1000.0, traded_value=1e9, **kwargs):
    """Successful ScreeningResult with sensible defaults"""
    fields = dict(
        symbol=symbol,
        price=price,
        date=date(2024, 5, 2),
        k=15.0,
        d=12.0,
        previous_k=10.0,
        previous_d=11.0,
        signal=signal,
        volume=1_000_000,
        avg_volume_20=800_000.0,
        volume_ratio=1.25,
        traded_value=traded_value,
    )
    fields.update(kwargs)
    return ScreeningResult(**fields)


@pytest.fixture
def series_factory():
    return make_series


@pytest.fixture
def result_factory():
    return make_result
