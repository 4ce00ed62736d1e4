"""
Screening data models and type definitions.

Price data flows through the pipeline as immutable dataclasses; results are
converted to plain dicts only at the persistence boundary.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

import pandas as pd


class Signal(str, Enum):
    """Oscillator signal category. HOLD means "no signal"."""

    BUY = "BUY"
    POTENTIAL = "POTENTIAL"
    HOLD = "HOLD"


class ScanMode(str, Enum):
    OVERSOLD = "oversold"
    MOMENTUM = "momentum"


@dataclass(frozen=True)
class PriceBar:
    """One trading day for one ticker."""

    date: date
    open: float
    high: float
    low: float
    close: float
    volume: int = 0

    def __post_init__(self):
        if min(self.open, self.high, self.low, self.close) <= 0:
            raise ValueError(f"Prices must be positive: {self}")
        if self.volume < 0:
            raise ValueError(f"Volume cannot be negative: {self}")
        if not (self.low <= min(self.open, self.close) and self.high >= max(self.open, self.close)):
            raise ValueError(f"Bar range violated (low <= open,close <= high): {self}")


@dataclass(frozen=True)
class PriceSeries:
    """Bars for one ticker, ascending by date, no duplicate dates."""

    symbol: str
    bars: tuple[PriceBar, ...] = ()

    @classmethod
    def from_bars(cls, symbol: str, bars) -> "PriceSeries":
        """
        Build a series from bars in any order.

        Bars are sorted ascending by date; for duplicate dates the last bar
        supplied wins.
        """
        by_date = {}
        for bar in bars:
            by_date[bar.date] = bar
        return cls(symbol=symbol, bars=tuple(by_date[d] for d in sorted(by_date)))

    def __len__(self) -> int:
        return len(self.bars)

    @property
    def last(self) -> PriceBar:
        return self.bars[-1]

    @property
    def closes(self) -> list[float]:
        return [b.close for b in self.bars]

    @property
    def highs(self) -> list[float]:
        return [b.high for b in self.bars]

    @property
    def lows(self) -> list[float]:
        return [b.low for b in self.bars]

    @property
    def volumes(self) -> list[int]:
        return [b.volume for b in self.bars]

    def to_frame(self) -> pd.DataFrame:
        """DataFrame with Date, Open, High, Low, Close, Volume columns"""
        return pd.DataFrame({
            "Date": [b.date for b in self.bars],
            "Open": [b.open for b in self.bars],
            "High": self.highs,
            "Low": self.lows,
            "Close": self.closes,
            "Volume": self.volumes,
        })


@dataclass(frozen=True)
class StochasticReading:
    k: float
    d: float
    previous_k: float | None = None
    previous_d: float | None = None


@dataclass(frozen=True)
class MomentumReading:
    change_1d: float
    momentum_5d: float
    momentum_10d: float
    momentum_20d: float
    volume_ratio: float
    avg_volume_20: float
    ma_5: float
    high_20: float
    traded_value: float
    is_strong: bool


@dataclass(frozen=True)
class ScreeningResult:
    """Per-ticker outcome of one screening pass (success or error)."""

    symbol: str
    price: float | None = None
    date: date | None = None
    k: float | None = None
    d: float | None = None
    previous_k: float | None = None
    previous_d: float | None = None
    signal: Signal | None = None
    volume: int | None = None
    avg_volume_20: float | None = None
    volume_ratio: float | None = None
    traded_value: float | None = None
    momentum: MomentumReading | None = None
    error: str | None = None

    @classmethod
    def failure(cls, symbol: str, error: str) -> "ScreeningResult":
        return cls(symbol=symbol, error=error or "unknown error")

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def has_signal(self) -> bool:
        return self.ok and self.signal in (Signal.BUY, Signal.POTENTIAL)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["date"] = self.date.isoformat() if self.date else None
        data["signal"] = self.signal.value if self.signal else None
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScreeningResult":
        data = dict(data)
        if data.get("date"):
            data["date"] = date.fromisoformat(data["date"])
        if data.get("signal"):
            data["signal"] = Signal(data["signal"])
        if data.get("momentum"):
            data["momentum"] = MomentumReading(**data["momentum"])
        return cls(**data)


@dataclass
class ScanReport:
    """Finished, user-presentable scan output handed to delivery."""

    mode: ScanMode
    title: str
    text: str
    screened: int
    with_signal: int
    errors: int
    generated_at: datetime
    results: list[ScreeningResult] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode.value,
            "title": self.title,
            "text": self.text,
            "screened": self.screened,
            "with_signal": self.with_signal,
            "errors": self.errors,
            "generated_at": self.generated_at.isoformat(),
            "results": [r.to_dict() for r in self.results],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScanReport":
        return cls(
            mode=ScanMode(data["mode"]),
            title=data.get("title", ""),
            text=data["text"],
            screened=data.get("screened", 0),
            with_signal=data.get("with_signal", 0),
            errors=data.get("errors", 0),
            generated_at=datetime.fromisoformat(data["generated_at"]),
            results=[ScreeningResult.from_dict(r) for r in data.get("results", [])],
        )
