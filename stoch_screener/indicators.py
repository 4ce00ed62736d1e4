import numpy as np
import pandas as pd

from .constants import (
    MOMENTUM_STRONG_5D,
    MOMENTUM_STRONG_10D,
    MOMENTUM_STRONG_VOLUME,
    STOCH_D_PERIOD,
    STOCH_FLAT_RANGE_VALUE,
    STOCH_K_PERIOD,
    STOCH_K_SMOOTH,
    STOCH_OVERSOLD,
    VOLUME_CONFIRM_RATIO,
)
from .exceptions import IndicatorUnavailable
from .models import MomentumReading, PriceSeries, ScreeningResult, Signal, StochasticReading

OVERSOLD_RULES = ("both", "either")
MIN_LENGTH_GATES = ("full", "k_period")
SIGNAL_POLICIES = ("base", "volume")


def _sma(values: np.ndarray, window: int) -> np.ndarray:
    """Trailing simple moving average; empty when there are fewer values than ``window``."""
    if window <= 0:
        raise ValueError("window must be positive")
    if len(values) < window:
        return np.array([], dtype=float)
    return np.lib.stride_tricks.sliding_window_view(values, window).mean(axis=1)


def raw_percent_k(series: PriceSeries, k_period: int = STOCH_K_PERIOD) -> pd.Series:
    """
    Calculate raw Stochastic %K

    One value per bar from index ``k_period - 1`` onwards. When the window's
    highest high equals its lowest low the value is exactly 50 instead of a
    division by zero.

    Args:
        series: Price series, ascending by date
        k_period: Lookback window

    Returns:
        Series of raw %K values (0-100), empty if the series is too short
    """
    if len(series) < k_period:
        return pd.Series([], dtype=float)

    df = series.to_frame()
    highest_high = df["High"].rolling(k_period).max()
    lowest_low = df["Low"].rolling(k_period).min()

    flat = highest_high.eq(lowest_low)
    with np.errstate(divide="ignore", invalid="ignore"):
        raw = (df["Close"] - lowest_low) / (highest_high - lowest_low) * 100
    raw = raw.mask(flat, STOCH_FLAT_RANGE_VALUE)

    return raw.iloc[k_period - 1:].reset_index(drop=True)


def compute_oscillator(
    series: PriceSeries,
    k_period: int = STOCH_K_PERIOD,
    k_smoothing: int = STOCH_K_SMOOTH,
    d_period: int = STOCH_D_PERIOD,
    min_length: str = "full",
) -> StochasticReading | None:
    """
    Calculate the smoothed Stochastic Oscillator (%K, %D)

    Args:
        series: Price series, ascending by date
        k_period: %K lookback window
        k_smoothing: SMA width applied to raw %K
        d_period: SMA width applied to smoothed %K to get %D
        min_length: "full" requires k_period + k_smoothing + d_period bars,
            "k_period" only k_period bars

    Returns:
        Latest and previous %K/%D, or None if the series is too short
    """
    if min_length not in MIN_LENGTH_GATES:
        raise ValueError(f"Unknown min_length gate: {min_length}")

    required = k_period + k_smoothing + d_period if min_length == "full" else k_period
    if len(series) < required:
        return None

    raw_k = raw_percent_k(series, k_period).to_numpy(dtype=float)
    smoothed_k = _sma(raw_k, k_smoothing)
    d_line = _sma(smoothed_k, d_period)

    if len(smoothed_k) == 0 or len(d_line) == 0:
        return None

    return StochasticReading(
        k=float(smoothed_k[-1]),
        d=float(d_line[-1]),
        previous_k=float(smoothed_k[-2]) if len(smoothed_k) > 1 else None,
        previous_d=float(d_line[-2]) if len(d_line) > 1 else None,
    )


def is_oversold(reading: StochasticReading, oversold: float = STOCH_OVERSOLD, rule: str = "both") -> bool:
    if rule == "both":
        return reading.k < oversold and reading.d < oversold
    if rule == "either":
        return reading.k < oversold or reading.d < oversold
    raise ValueError(f"Unknown oversold rule: {rule}")


def crossed_up(reading: StochasticReading) -> bool:
    """%K crossed above %D on the latest bar (previous equality counts as below)"""
    if reading.previous_k is None or reading.previous_d is None:
        return False
    return reading.previous_k <= reading.previous_d and reading.k > reading.d


def classify_signal(
    reading: StochasticReading | None,
    oversold: float = STOCH_OVERSOLD,
    rule: str = "both",
) -> Signal:
    """
    Classify a reading into BUY / POTENTIAL / HOLD.

    BUY: bullish crossover while oversold.
    POTENTIAL: bullish crossover outside the oversold zone.
    HOLD: anything else, including readings without previous values.
    """
    if reading is None or reading.previous_k is None or reading.previous_d is None:
        return Signal.HOLD

    if crossed_up(reading):
        if is_oversold(reading, oversold, rule):
            return Signal.BUY
        return Signal.POTENTIAL

    return Signal.HOLD


def classify_with_volume(
    reading: StochasticReading | None,
    volume: float,
    avg_volume_20: float,
    oversold: float = STOCH_OVERSOLD,
    rule: str = "both",
) -> Signal:
    """
    Stricter policy layered on classify_signal.

    A BUY needs same-day volume above 80% of the 20-day average, otherwise it
    drops to POTENTIAL. A HOLD that is oversold with %K still rising becomes
    POTENTIAL.
    """
    signal = classify_signal(reading, oversold, rule)
    if reading is None or reading.previous_k is None:
        return signal

    has_volume = volume > avg_volume_20 * VOLUME_CONFIRM_RATIO

    if signal == Signal.BUY and not has_volume:
        return Signal.POTENTIAL

    if signal == Signal.HOLD and is_oversold(reading, oversold, rule) and reading.k > reading.previous_k:
        return Signal.POTENTIAL

    return signal


def compute_momentum(series: PriceSeries) -> MomentumReading | None:
    """
    Price momentum over 1/5/10/20 trading days plus volume statistics.

    "N days ago" is N positions back in the series, clamped to the current
    price when the series holds fewer than N+1 bars.
    """
    if len(series) < 2:
        return None

    closes = series.closes
    volumes = series.volumes
    current = closes[-1]

    def change(n: int) -> float:
        past = closes[-(n + 1)] if len(closes) >= n + 1 else current
        return (current - past) / past * 100

    avg_volume_20 = float(np.mean(volumes[-20:]))
    avg_volume_5 = float(np.mean(volumes[-5:]))
    volume_ratio = avg_volume_5 / avg_volume_20 if avg_volume_20 > 0 else 0.0

    momentum_5d = change(5)
    momentum_10d = change(10)

    return MomentumReading(
        change_1d=change(1),
        momentum_5d=momentum_5d,
        momentum_10d=momentum_10d,
        momentum_20d=change(20),
        volume_ratio=volume_ratio,
        avg_volume_20=avg_volume_20,
        ma_5=float(np.mean(closes[-5:])),
        high_20=float(max(series.highs[-20:])),
        traded_value=current * volumes[-1],
        is_strong=(
            momentum_5d > MOMENTUM_STRONG_5D
            and momentum_10d > MOMENTUM_STRONG_10D
            and avg_volume_5 > avg_volume_20 * MOMENTUM_STRONG_VOLUME
        ),
    )


def analyze_series(
    series: PriceSeries,
    k_period: int = STOCH_K_PERIOD,
    k_smoothing: int = STOCH_K_SMOOTH,
    d_period: int = STOCH_D_PERIOD,
    oversold: float = STOCH_OVERSOLD,
    oversold_rule: str = "both",
    min_length: str = "full",
    signal_policy: str = "base",
) -> ScreeningResult:
    """
    Run the oscillator and momentum calculations for one ticker.

    Raises:
        IndicatorUnavailable: series too short for the oscillator windows
    """
    reading = compute_oscillator(series, k_period, k_smoothing, d_period, min_length)
    if reading is None:
        raise IndicatorUnavailable(
            "Series too short for oscillator",
            context={"symbol": series.symbol, "bars": len(series)},
        )

    momentum = compute_momentum(series)
    last = series.last

    if signal_policy == "volume":
        signal = classify_with_volume(reading, last.volume, momentum.avg_volume_20, oversold, oversold_rule)
    elif signal_policy == "base":
        signal = classify_signal(reading, oversold, oversold_rule)
    else:
        raise ValueError(f"Unknown signal policy: {signal_policy}")

    return ScreeningResult(
        symbol=series.symbol,
        price=last.close,
        date=last.date,
        k=reading.k,
        d=reading.d,
        previous_k=reading.previous_k,
        previous_d=reading.previous_d,
        signal=signal,
        volume=last.volume,
        avg_volume_20=momentum.avg_volume_20,
        volume_ratio=last.volume / momentum.avg_volume_20 if momentum.avg_volume_20 > 0 else 0.0,
        traded_value=momentum.traded_value,
        momentum=momentum,
    )
