"""Display formatting and user-input parsing for dashboard values."""

from __future__ import annotations

import re

from .models import DataSource

MISSING = "\u2014"

# Leading numeric prefix, the way a lenient float parser reads "12.5M" or "3abc".
_NUMBER_PREFIX = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")

_SUFFIXES = {"B": 1_000_000_000, "M": 1_000_000, "K": 1_000}

_SOURCE_LABELS: dict[str, str] = {
    "api": "Live",
    "manual": "Manual",
    "error": "Fetch failed",
    "loading": "Loading",
}

_SOURCE_TOOLTIPS: dict[str, str] = {
    "api": "Data from Finnhub API",
    "manual": "Manually entered value (reset to use the API value)",
    "error": "Failed to fetch from API. Retry to fetch again.",
    "loading": "Loading from Finnhub...",
}


def _trim(value: float, digits: int = 2) -> str:
    text = f"{value:,.{digits}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _leading_float(text: str) -> float | None:
    match = _NUMBER_PREFIX.match(text)
    if match is None:
        return None
    return float(match.group(0))


def format_usd(value: float | None, compact: bool = False) -> str:
    """$1,234 or, with compact=True, $1.5B / $250M for large values."""
    if value is None:
        return MISSING
    sign = "-" if value < 0 else ""
    magnitude = abs(value)
    if compact:
        for threshold, suffix in ((1e12, "T"), (1e9, "B"), (1e6, "M")):
            if magnitude >= threshold:
                return f"{sign}${_trim(magnitude / threshold)}{suffix}"
    return f"{sign}${magnitude:,.0f}"


def format_usd_price(value: float | None) -> str:
    if value is None:
        return MISSING
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_btc(value: float | None) -> str:
    if value is None:
        return MISSING
    return f"{value:,.2f}"


def format_ratio(value: float | None) -> str:
    if value is None:
        return MISSING
    return f"{value:.2f}"


def format_shares_outstanding(shares: float | None) -> str:
    """1.50B, 250.00M, 50.00K, or the plain number below 1,000."""
    if shares is None:
        return MISSING
    if shares >= 1_000_000_000:
        return f"{shares / 1_000_000_000:.2f}B"
    if shares >= 1_000_000:
        return f"{shares / 1_000_000:.2f}M"
    if shares >= 1_000:
        return f"{shares / 1_000:.2f}K"
    if float(shares).is_integer():
        return f"{int(shares):,}"
    return _trim(shares, 3)


def parse_shares_input(text: str | None) -> float | None:
    """Parse "1.5B", "250m", "50K" or "1,000,000". Blank, dash or garbage gives None."""
    if text is None:
        return None
    cleaned = text.strip().upper().replace(",", "")
    if not cleaned or cleaned == MISSING:
        return None

    multiplier = _SUFFIXES.get(cleaned[-1])
    if multiplier is not None:
        number = _leading_float(cleaned[:-1])
        return None if number is None else number * multiplier
    return _leading_float(cleaned)


def validate_shares_input(text: str | None) -> bool:
    """Blank is valid (clears the override); anything else must be a positive count."""
    if text is None or not text.strip():
        return True
    parsed = parse_shares_input(text)
    return parsed is not None and parsed > 0


def parse_numeric_input(text: str | None) -> float | None:
    """Parse an edited cell, ignoring commas and dollar signs."""
    if text is None or not text.strip():
        return None
    return _leading_float(text.strip().replace(",", "").replace("$", ""))


def source_label(source: DataSource) -> str:
    return _SOURCE_LABELS.get(source, "")


def source_tooltip(source: DataSource) -> str:
    return _SOURCE_TOOLTIPS.get(source, "")
