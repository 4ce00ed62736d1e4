"""Tests for ticker validation"""

import pytest

from stoch_screener.validation import is_valid_symbol, sanitize_symbol, sanitize_symbols


class TestIsValidSymbol:
    """Test is_valid_symbol"""

    @pytest.mark.parametrize("symbol", ["BBCA", "TLKM", "GOTO", " ASII "])
    def test_valid(self, symbol):
        assert is_valid_symbol(symbol)

    @pytest.mark.parametrize("symbol", ["", None, "BBC", "BBCAX", "BBCA.JK", "bbca", "BBC1", "BB-A", 1234])
    def test_invalid(self, symbol):
        assert not is_valid_symbol(symbol)


class TestSanitizeSymbol:
    """Test sanitize_symbol"""

    def test_uppercases_and_strips(self):
        assert sanitize_symbol("  bbca ") == "BBCA"

    def test_strips_exchange_suffix(self):
        assert sanitize_symbol("tlkm.jk") == "TLKM"

    @pytest.mark.parametrize("symbol", ["", None, "BB", "BBCA1", "AAPL.US"])
    def test_invalid_raises(self, symbol):
        with pytest.raises(ValueError):
            sanitize_symbol(symbol)


class TestSanitizeSymbols:
    """Test sanitize_symbols"""

    def test_splits_valid_and_invalid(self):
        valid, invalid = sanitize_symbols(["BBCA", "xx", "tlkm.JK", "BAD123"])

        assert valid == ["BBCA", "TLKM"]
        assert invalid == ["xx", "BAD123"]

    def test_deduplicates_preserving_order(self):
        valid, invalid = sanitize_symbols(["TLKM", "bbca", "TLKM.JK", "BBCA"])

        assert valid == ["TLKM", "BBCA"]
        assert invalid == []

    def test_empty(self):
        assert sanitize_symbols([]) == ([], [])
