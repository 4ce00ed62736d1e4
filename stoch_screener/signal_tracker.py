"""
Signal history and simple performance measurement.

Features:
- Every BUY / POTENTIAL signal is appended with its entry price
- History trimmed to the newest MAX_SIGNAL_HISTORY records
- Signals old enough are evaluated against the latest close
- Win rate, average return and a return bucket histogram
"""

import json
from collections import defaultdict
from datetime import date
from pathlib import Path

from .constants import DAYS_TO_FETCH, MAX_SIGNAL_HISTORY, PERFORMANCE_HOLD_DAYS, RETURN_BUCKETS
from .exceptions import DataSourceError
from .logger import logger
from .models import ScreeningResult


def bucket_label(return_pct: float, edges: tuple[float, ...] = RETURN_BUCKETS) -> str:
    """Histogram bucket for a return, e.g. "<=-5%", "-5% to 0%", "0% to 5%", ">5%"."""
    if return_pct <= edges[0]:
        return f"<={edges[0]:g}%"
    for low, high in zip(edges, edges[1:]):
        if return_pct <= high:
            return f"{low:g}% to {high:g}%"
    return f">{edges[-1]:g}%"


def bucket_labels(edges: tuple[float, ...] = RETURN_BUCKETS) -> list[str]:
    labels = [f"<={edges[0]:g}%"]
    labels += [f"{low:g}% to {high:g}%" for low, high in zip(edges, edges[1:])]
    labels.append(f">{edges[-1]:g}%")
    return labels


class SignalTracker:
    """Record emitted signals and measure how they played out"""

    def __init__(self, data_file: str = "data/signal_history.json", max_history: int = MAX_SIGNAL_HISTORY):
        self.data_file = Path(data_file)
        self.max_history = max_history
        self.data = self._load_data()

    def _load_data(self) -> dict:
        """Load signal history from JSON file"""
        if not self.data_file.exists():
            return {"signal_history": []}

        try:
            with open(self.data_file, encoding="utf-8") as f:
                data = json.load(f)
            data.setdefault("signal_history", [])
            data["signal_history"] = data["signal_history"][-self.max_history:]
            return data
        except (OSError, ValueError, AttributeError) as e:
            logger.error("signal_tracker.load_failed", error=str(e))
            return {"signal_history": []}

    def _save_data(self):
        """Save signal history to JSON file"""
        try:
            self.data_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.data_file, "w", encoding="utf-8") as f:
                json.dump(self.data, f, indent=2)
        except OSError as e:
            logger.error("signal_tracker.save_failed", error=str(e))

    @property
    def history(self) -> list[dict]:
        return self.data["signal_history"]

    def record(self, results: list[ScreeningResult], today: date | None = None) -> int:
        """
        Append every BUY / POTENTIAL result to the history.

        A signal already recorded for the same symbol, date and type is
        skipped, so repeated scans on one trading day log it once.

        Returns:
            Number of signals recorded
        """
        today = today or date.today()
        recorded = 0
        seen = {(s["symbol"], s["signal_date"], s["signal_type"]) for s in self.history}

        for result in results:
            if not result.has_signal:
                continue
            key = (result.symbol, (result.date or today).isoformat(), result.signal.value)
            if key in seen:
                continue
            seen.add(key)
            self.history.append({
                "symbol": key[0],
                "signal_date": key[1],
                "signal_type": key[2],
                "entry_price": result.price,
                "k": round(result.k, 2),
                "d": round(result.d, 2),
            })
            recorded += 1

        if recorded:
            self.data["signal_history"] = self.history[-self.max_history:]
            self._save_data()
            logger.info("signal_tracker.recorded", count=recorded, total=len(self.history))
        return recorded

    async def evaluate(self, fetcher, hold_days: int = PERFORMANCE_HOLD_DAYS, today: date | None = None) -> dict:
        """
        Fill in performance for signals at least ``hold_days`` old.

        Exit price is the latest close returned by ``fetcher``; one fetch per
        symbol. Fetch failures leave the signal pending.

        Returns:
            {"updated": n, "failed": n}
        """
        today = today or date.today()
        due = defaultdict(list)

        for signal in self.history:
            if "performance" in signal or not signal.get("entry_price"):
                continue
            age = (today - date.fromisoformat(signal["signal_date"])).days
            if age >= hold_days:
                due[signal["symbol"]].append(signal)

        updated = 0
        failed = 0

        for symbol, signals in due.items():
            try:
                series = await fetcher.fetch(symbol, DAYS_TO_FETCH)
            except DataSourceError as e:
                logger.warning("signal_tracker.evaluate_failed", symbol=symbol, error=e.message[:80])
                failed += len(signals)
                continue

            exit_price = series.last.close
            for signal in signals:
                entry = signal["entry_price"]
                return_pct = (exit_price - entry) / entry * 100
                signal["performance"] = {
                    "hold_days": hold_days,
                    "exit_price": exit_price,
                    "return_pct": round(return_pct, 2),
                    "evaluated_on": today.isoformat(),
                }
                updated += 1

        if updated:
            self._save_data()
            logger.info("signal_tracker.evaluated", updated=updated, failed=failed)

        return {"updated": updated, "failed": failed}

    def get_stats(self, symbol: str | None = None) -> dict:
        """
        Get performance statistics for signals.

        Args:
            symbol: Optional symbol to filter by

        Returns:
            Dictionary with totals, avg_return, win_rate and return buckets
        """
        signals = self.history
        if symbol:
            signals = [s for s in signals if s["symbol"] == symbol]

        evaluated = [s for s in signals if "performance" in s]
        buckets = dict.fromkeys(bucket_labels(), 0)

        if not evaluated:
            return {
                "total_signals": len(signals),
                "evaluated": 0,
                "pending": len(signals),
                "avg_return": None,
                "win_rate": None,
                "buckets": buckets,
            }

        returns = [s["performance"]["return_pct"] for s in evaluated]
        for r in returns:
            buckets[bucket_label(r)] += 1
        wins = len([r for r in returns if r > 0])

        return {
            "total_signals": len(signals),
            "evaluated": len(evaluated),
            "pending": len(signals) - len(evaluated),
            "avg_return": round(sum(returns) / len(returns), 2),
            "win_rate": round(wins / len(returns) * 100, 1),
            "buckets": buckets,
        }
