"""Tests for report aggregation and formatting"""

from datetime import datetime

import pytest

from conftest import make_result
from stoch_screener.models import MomentumReading, ScanMode, ScreeningResult, Signal
from stoch_screener.report import (
    MomentumRules,
    build_momentum_report,
    build_oversold_report,
    build_report,
    passes_momentum_rules,
)

NOW = datetime(2024, 5, 2, 10, 0)


def momentum_result(symbol="BBCA", change_1d=2.0, price=1000.0, high_20=1050.0, ma_5=950.0,
                    volume=5_000_000, avg_volume_20=2_000_000.0, strong=False):
    return make_result(
        symbol=symbol,
        signal=Signal.HOLD,
        price=price,
        volume=volume,
        avg_volume_20=avg_volume_20,
        traded_value=price * volume,
        momentum=MomentumReading(
            change_1d=change_1d,
            momentum_5d=4.0,
            momentum_10d=6.0,
            momentum_20d=8.0,
            volume_ratio=1.5,
            avg_volume_20=avg_volume_20,
            ma_5=ma_5,
            high_20=high_20,
            traded_value=price * volume,
            is_strong=strong,
        ),
    )


class TestOversoldReport:
    """Tests for the oversold (stochastic) report"""

    def test_no_signals_renders_message(self):
        results = [make_result(symbol="BBCA", signal=Signal.HOLD)]

        report = build_oversold_report(results, now=NOW)

        assert report.text
        assert "No signals found" in report.text
        assert report.with_signal == 0
        assert report.screened == 1

    def test_empty_input_renders_message(self):
        report = build_oversold_report([], now=NOW)

        assert "No signals found" in report.text
        assert "Total screened: 0" in report.text

    def test_partitions_and_sorts_by_traded_value(self):
        results = [
            make_result(symbol="BBNI", signal=Signal.BUY, traded_value=5e9),
            make_result(symbol="BBCA", signal=Signal.BUY, traded_value=9e9),
            make_result(symbol="TLKM", signal=Signal.POTENTIAL, traded_value=1e9),
            make_result(symbol="ASII", signal=Signal.POTENTIAL, traded_value=3e9),
            make_result(symbol="UNVR", signal=Signal.HOLD, traded_value=99e9),
        ]

        report = build_oversold_report(results, now=NOW)

        assert [r.symbol for r in report.results] == ["BBCA", "BBNI", "ASII", "TLKM"]
        assert "BUY Signals (2)" in report.text
        assert "Watch List (2)" in report.text
        assert report.text.index("*BBCA*") < report.text.index("*BBNI*") < report.text.index("*ASII*")
        assert "UNVR" not in report.text

    def test_errors_counted_not_listed(self):
        results = [
            make_result(symbol="BBCA", signal=Signal.BUY),
            ScreeningResult.failure("BBNI", "timeout"),
            ScreeningResult.failure("BMRI", "no data"),
        ]

        report = build_oversold_report(results, now=NOW)

        assert report.errors == 2
        assert report.screened == 3
        assert report.with_signal == 1
        assert "BBNI" not in report.text
        assert "Errors: 2" in report.text
        assert "Total screened: 3" in report.text
        assert "With signals: 1" in report.text

    def test_disclaimer_present(self):
        report = build_oversold_report([make_result()], now=NOW)
        assert "Not investment advice" in report.text

    def test_buy_row_format(self):
        result = make_result(symbol="BBCA", price=9250.0, k=15.04, d=12.0, volume_ratio=1.25)

        text = build_oversold_report([result], now=NOW).text

        assert "*BBCA* - Rp 9,250" in text
        assert "K: 15.0 | D: 12.0" in text
        assert "Vol: 125% of avg" in text


class TestMomentumRules:
    """Tests for the momentum filter"""

    def test_passing_result(self):
        assert passes_momentum_rules(momentum_result(), MomentumRules())

    @pytest.mark.parametrize("override", [
        {"change_1d": 1.0},
        {"price": 40.0, "ma_5": 30.0, "high_20": 41.0},
        {"high_20": 1200.0},
        {"volume": 500_000, "avg_volume_20": 200_000.0},
        {"ma_5": 1000.0},
        {"volume": 3_000_000, "avg_volume_20": 2_000_000.0},
    ])
    def test_each_rule_can_reject(self, override):
        assert not passes_momentum_rules(momentum_result(**override), MomentumRules())

    def test_error_result_rejected(self):
        assert not passes_momentum_rules(ScreeningResult.failure("BBCA", "x"), MomentumRules())


class TestMomentumReport:
    """Tests for the momentum report"""

    def test_sorted_ascending_by_change(self):
        results = [
            momentum_result("AAAA", change_1d=5.0),
            momentum_result("BBBB", change_1d=1.5),
            momentum_result("CCCC", change_1d=3.0),
        ]

        report = build_momentum_report(results, now=NOW)

        assert [r.symbol for r in report.results] == ["BBBB", "CCCC", "AAAA"]

    def test_capped_at_top_n(self):
        results = [momentum_result(f"S{i:03d}", change_1d=1.1 + i * 0.1) for i in range(40)]

        report = build_momentum_report(results, now=NOW, rules=MomentumRules(top_n=30))

        assert len(report.results) == 30
        assert report.with_signal == 40
        assert report.results[0].symbol == "S000"

    def test_empty_renders_message(self):
        report = build_momentum_report([momentum_result(change_1d=0.5)], now=NOW)

        assert "No momentum stocks found" in report.text
        assert report.results == []

    def test_strong_flagged(self):
        report = build_momentum_report([momentum_result(strong=True)], now=NOW)
        assert "🔥" in report.text


class TestBuildReport:
    def test_dispatch_by_mode(self):
        assert build_report(ScanMode.OVERSOLD, [], now=NOW).mode == ScanMode.OVERSOLD
        assert build_report("momentum", [], now=NOW).mode == ScanMode.MOMENTUM

    def test_custom_title(self):
        report = build_report(ScanMode.OVERSOLD, [], title="Finance Sector", now=NOW)
        assert "*Finance Sector*" in report.text
