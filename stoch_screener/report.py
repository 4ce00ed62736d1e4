"""Turn screening results into user-facing scan reports (Telegram Markdown)"""
from dataclasses import dataclass
from datetime import datetime

from .constants import (
    CURRENCY_PREFIX,
    MOMENTUM_MIN_CHANGE_1D,
    MOMENTUM_MIN_PRICE,
    MOMENTUM_MIN_VALUE,
    MOMENTUM_NEAR_HIGH,
    MOMENTUM_TOP_N,
    MOMENTUM_VOLUME_SPIKE,
    STOCH_OVERSOLD,
)
from .models import ScanMode, ScanReport, ScreeningResult, Signal

DISCLAIMER = "_Not investment advice. Always do your own research._"


@dataclass(frozen=True)
class MomentumRules:
    """Every rule must hold for a ticker to appear in the momentum report"""

    min_change_1d: float = MOMENTUM_MIN_CHANGE_1D
    min_price: float = MOMENTUM_MIN_PRICE
    near_high_fraction: float = MOMENTUM_NEAR_HIGH
    min_traded_value: float = MOMENTUM_MIN_VALUE
    volume_spike: float = MOMENTUM_VOLUME_SPIKE
    top_n: int = MOMENTUM_TOP_N


def format_price(price: float) -> str:
    return f"{CURRENCY_PREFIX} {price:,.0f}"


def format_value(value: float) -> str:
    """Traded value in billions (B) or millions (M)"""
    if value >= 1e9:
        return f"{CURRENCY_PREFIX} {value / 1e9:.1f}B"
    return f"{CURRENCY_PREFIX} {value / 1e6:.1f}M"


def _signed(value: float) -> str:
    return f"{value:+.1f}%"


def _header(title: str, now: datetime) -> list[str]:
    return [f"📊 *{title}*", f"📅 {now:%Y-%m-%d %H:%M %Z}".rstrip(), ""]


def _footer(screened: int, with_signal: int, errors: int) -> list[str]:
    return [
        "",
        f"📈 Total screened: {screened}",
        f"✅ With signals: {with_signal}",
        f"❌ Errors: {errors}",
        "",
        DISCLAIMER,
    ]


def _traded_value(result: ScreeningResult) -> float:
    return result.traded_value or 0.0


def build_oversold_report(
    results: list[ScreeningResult],
    title: str = "Stochastic Oversold Scan",
    now: datetime | None = None,
    oversold: float = STOCH_OVERSOLD,
) -> ScanReport:
    """
    BUY and POTENTIAL tickers, each group sorted by traded value (descending)

    Errored results are left out of both groups and only counted in the footer.
    """
    now = now or datetime.now()
    errors = sum(1 for r in results if not r.ok)
    flagged = [r for r in results if r.has_signal]

    buys = sorted((r for r in flagged if r.signal == Signal.BUY), key=_traded_value, reverse=True)
    potentials = sorted((r for r in flagged if r.signal == Signal.POTENTIAL), key=_traded_value, reverse=True)

    lines = _header(title, now)

    if not flagged:
        lines += [
            "No signals found.",
            "",
            "The screener looks for:",
            "• %K crossing above %D",
            f"• Stochastic %K & %D below {oversold:g}",
        ]

    if buys:
        lines += [f"🟢 *BUY Signals ({len(buys)})*", "_Oversold + Crossover_", ""]
        for r in buys:
            lines += [
                f"*{r.symbol}* - {format_price(r.price)}",
                f"K: {r.k:.1f} | D: {r.d:.1f}",
                f"Vol: {(r.volume_ratio or 0) * 100:.0f}% of avg",
                "",
            ]

    if potentials:
        lines += [f"🟡 *Watch List ({len(potentials)})*", "_Crossover outside oversold zone_", ""]
        for r in potentials:
            momentum_5d = r.momentum.momentum_5d if r.momentum else 0.0
            lines += [
                f"*{r.symbol}* - {format_price(r.price)}",
                f"K: {r.k:.1f} | D: {r.d:.1f}",
                f"5D: {_signed(momentum_5d)}",
                "",
            ]

    lines += _footer(len(results), len(flagged), errors)

    return ScanReport(
        mode=ScanMode.OVERSOLD,
        title=title,
        text="\n".join(lines),
        screened=len(results),
        with_signal=len(flagged),
        errors=errors,
        generated_at=now,
        results=buys + potentials,
    )


def passes_momentum_rules(result: ScreeningResult, rules: MomentumRules) -> bool:
    m = result.momentum
    if not result.ok or m is None or result.price is None:
        return False
    return (
        m.change_1d > rules.min_change_1d
        and result.price >= rules.min_price
        and result.price >= rules.near_high_fraction * m.high_20
        and (result.traded_value or 0) >= rules.min_traded_value
        and result.price > m.ma_5
        and (result.volume or 0) > rules.volume_spike * m.avg_volume_20
    )


def build_momentum_report(
    results: list[ScreeningResult],
    title: str = "Momentum Scan",
    now: datetime | None = None,
    rules: MomentumRules | None = None,
) -> ScanReport:
    """
    Tickers passing every momentum rule, ascending by 1-day change, capped at top_n

    Ascending order puts fresh breakouts ahead of already-extended movers.
    """
    now = now or datetime.now()
    rules = rules or MomentumRules()
    errors = sum(1 for r in results if not r.ok)

    matched = sorted(
        (r for r in results if passes_momentum_rules(r, rules)),
        key=lambda r: r.momentum.change_1d,
    )
    rows = matched[:rules.top_n]

    lines = _header(title, now)

    if not rows:
        lines += [
            "No momentum stocks found.",
            "",
            f"Criteria: 1D > {_signed(rules.min_change_1d)}, price ≥ {format_price(rules.min_price)}, "
            f"within {(1 - rules.near_high_fraction) * 100:.0f}% of 20D high, "
            f"value ≥ {format_value(rules.min_traded_value)}, above MA5, "
            f"volume > {rules.volume_spike:g}x avg",
        ]
    else:
        lines += [f"🚀 *Momentum Leaders ({len(rows)} of {len(matched)})*", ""]
        for idx, r in enumerate(rows, 1):
            m = r.momentum
            strong = " 🔥" if m.is_strong else ""
            lines += [
                f"{idx}. *{r.symbol}* - {format_price(r.price)}{strong}",
                f"   1D: {_signed(m.change_1d)} | 5D: {_signed(m.momentum_5d)} | 10D: {_signed(m.momentum_10d)}",
                f"   Vol: {(r.volume or 0) / m.avg_volume_20:.1f}x avg | Val: {format_value(_traded_value(r))}",
                "",
            ]

    lines += _footer(len(results), len(matched), errors)

    return ScanReport(
        mode=ScanMode.MOMENTUM,
        title=title,
        text="\n".join(lines),
        screened=len(results),
        with_signal=len(matched),
        errors=errors,
        generated_at=now,
        results=rows,
    )


def build_report(
    mode: ScanMode,
    results: list[ScreeningResult],
    title: str | None = None,
    now: datetime | None = None,
    rules: MomentumRules | None = None,
    oversold: float = STOCH_OVERSOLD,
) -> ScanReport:
    mode = ScanMode(mode)
    if mode == ScanMode.MOMENTUM:
        return build_momentum_report(results, title or "Momentum Scan", now, rules)
    return build_oversold_report(results, title or "Stochastic Oversold Scan", now, oversold)
