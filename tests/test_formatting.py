"""Tests for display formatting and input parsing."""

import pytest

from mnavdash.formatting import (
    MISSING,
    format_btc,
    format_ratio,
    format_shares_outstanding,
    format_usd,
    format_usd_price,
    parse_numeric_input,
    parse_shares_input,
    source_label,
    source_tooltip,
    validate_shares_input,
)


class TestFormatUsd:
    def test_plain(self):
        assert format_usd(1_234_567) == "$1,234,567"

    def test_compact(self):
        assert format_usd(1_500_000_000, compact=True) == "$1.5B"
        assert format_usd(250_000_000, compact=True) == "$250M"
        assert format_usd(2_000_000_000_000, compact=True) == "$2T"
        assert format_usd(999, compact=True) == "$999"

    def test_negative(self):
        assert format_usd(-2_500_000, compact=True) == "-$2.5M"

    def test_missing(self):
        assert format_usd(None) == MISSING
        assert format_usd_price(None) == MISSING
        assert format_btc(None) == MISSING
        assert format_ratio(None) == MISSING

    def test_price_and_ratio(self):
        assert format_usd_price(312.5) == "$312.50"
        assert format_ratio(7.9384) == "7.94"
        assert format_btc(471_107) == "471,107.00"


class TestFormatShares:
    @pytest.mark.parametrize(
        "shares,expected",
        [
            (1_500_000_000, "1.50B"),
            (250_000_000, "250.00M"),
            (50_000, "50.00K"),
            (500, "500"),
            (None, MISSING),
        ],
    )
    def test_format(self, shares, expected):
        assert format_shares_outstanding(shares) == expected


class TestParseShares:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("1.5B", 1_500_000_000),
            ("250m", 250_000_000),
            ("50K", 50_000),
            ("1,000,000", 1_000_000),
            ("  42  ", 42),
        ],
    )
    def test_parse(self, text, expected):
        assert parse_shares_input(text) == pytest.approx(expected)

    @pytest.mark.parametrize("text", [None, "", "   ", MISSING, "abc", "M"])
    def test_unparseable(self, text):
        assert parse_shares_input(text) is None

    def test_validate(self):
        assert validate_shares_input("") is True
        assert validate_shares_input("1.5B") is True
        assert validate_shares_input("0") is False
        assert validate_shares_input("-5M") is False
        assert validate_shares_input("lots") is False


class TestParseNumeric:
    def test_strips_commas_and_dollar(self):
        assert parse_numeric_input("$1,250.50") == 1250.5

    def test_blank(self):
        assert parse_numeric_input("  ") is None
        assert parse_numeric_input(None) is None

    def test_garbage(self):
        assert parse_numeric_input("n/a") is None


class TestSourceLabels:
    def test_every_source_labelled(self):
        for source in ("api", "manual", "error", "loading"):
            assert source_label(source)
            assert source_tooltip(source)

    def test_error_tooltip_mentions_retry(self):
        assert "Retry" in source_tooltip("error")
