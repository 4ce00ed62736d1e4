"""Tests for the last-report store"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from conftest import make_result
from stoch_screener.models import ScanMode, ScanReport
from stoch_screener.scan_store import ScanStore

WIB = timezone(timedelta(hours=7))
NOW = datetime(2024, 5, 2, 10, 0, tzinfo=WIB)


def report(mode=ScanMode.OVERSOLD, generated_at=NOW, text="report text"):
    return ScanReport(mode=mode, title="Scan", text=text, screened=1, with_signal=1, errors=0,
                      generated_at=generated_at, results=[make_result()])


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "data" / "last_scans.json"


class TestScanStore:
    """Tests for ScanStore"""

    def test_empty_store(self, store_path):
        assert ScanStore(str(store_path)).get(ScanMode.OVERSOLD) is None

    def test_save_and_reload(self, store_path):
        ScanStore(str(store_path)).save(report())

        stored = ScanStore(str(store_path)).get(ScanMode.OVERSOLD)

        assert stored.report.text == "report text"
        assert stored.report.results[0].symbol == "BBCA"
        assert stored.timestamp == NOW

    def test_modes_kept_separately(self, store_path):
        store = ScanStore(str(store_path))
        store.save(report(ScanMode.OVERSOLD, text="oversold"))
        store.save(report(ScanMode.MOMENTUM, text="momentum"))

        assert store.get("oversold").report.text == "oversold"
        assert store.get(ScanMode.MOMENTUM).report.text == "momentum"

    def test_save_overwrites_same_mode(self, store_path):
        store = ScanStore(str(store_path))
        store.save(report(text="first"))
        store.save(report(text="second"))

        assert store.get(ScanMode.OVERSOLD).report.text == "second"
        assert list(json.loads(store_path.read_text())) == ["oversold"]

    def test_explicit_timestamp(self, store_path):
        store = ScanStore(str(store_path))
        store.save(report(), timestamp=NOW - timedelta(hours=1))

        assert store.get(ScanMode.OVERSOLD).age_minutes(NOW) == 60

    def test_corrupt_file_starts_empty(self, store_path):
        store_path.parent.mkdir(parents=True)
        store_path.write_text("[1, 2")

        assert ScanStore(str(store_path)).data == {}

    def test_non_object_file_starts_empty(self, store_path):
        store_path.parent.mkdir(parents=True)
        store_path.write_text("[1, 2]")

        assert ScanStore(str(store_path)).data == {}

    def test_invalid_entry_returns_none(self, store_path):
        store_path.parent.mkdir(parents=True)
        store_path.write_text(json.dumps({"oversold": {"timestamp": "yesterday", "report": {}}}))

        assert ScanStore(str(store_path)).get(ScanMode.OVERSOLD) is None

    def test_clear_one_mode(self, store_path):
        store = ScanStore(str(store_path))
        store.save(report(ScanMode.OVERSOLD))
        store.save(report(ScanMode.MOMENTUM))

        store.clear(ScanMode.OVERSOLD)

        assert store.get(ScanMode.OVERSOLD) is None
        assert store.get(ScanMode.MOMENTUM) is not None

    def test_clear_all(self, store_path):
        store = ScanStore(str(store_path))
        store.save(report())
        store.clear()

        assert ScanStore(str(store_path)).data == {}
