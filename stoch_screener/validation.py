"""Input validation utilities"""

import re

from .constants import SYMBOL_SUFFIX

_SYMBOL_PATTERN = re.compile(r"^[A-Z]{4}$")


def is_valid_symbol(symbol: str) -> bool:
    """
    Validate IDX ticker code

    Rules:
    - Exactly 4 uppercase letters
    - No exchange suffix, digits or special characters

    Examples:
        BBCA -> True
        TLKM -> True
        BBCA.JK -> False (suffix)
        BBC -> False (too short)
        BBCA1 -> False
    """
    if not symbol or not isinstance(symbol, str):
        return False
    return bool(_SYMBOL_PATTERN.match(symbol.strip()))


def sanitize_symbol(symbol: str) -> str:
    """
    Sanitize and normalize ticker code

    Uppercases, strips whitespace and a trailing exchange suffix.
    Returns cleaned symbol or raises ValueError if invalid
    """
    if not symbol or not isinstance(symbol, str):
        raise ValueError(f"Invalid symbol: {symbol}")

    symbol = symbol.strip().upper()
    if symbol.endswith(SYMBOL_SUFFIX.upper()):
        symbol = symbol[:-len(SYMBOL_SUFFIX)]

    if not is_valid_symbol(symbol):
        raise ValueError(f"Invalid ticker format: {symbol}")

    return symbol


def sanitize_symbols(symbols: list[str]) -> tuple[list[str], list[str]]:
    """
    Sanitize list of symbols, skip invalid ones and duplicates

    Returns:
        tuple of (valid_symbols, invalid_symbols)
    """
    valid = []
    invalid = []
    seen = set()

    for s in symbols:
        try:
            cleaned = sanitize_symbol(s)
        except ValueError:
            invalid.append(s)
            continue
        if cleaned not in seen:
            seen.add(cleaned)
            valid.append(cleaned)

    return valid, invalid
