"""
Field grammar tests.

Confidences are fixed per grammar; the quality gate depends on the exact
values, so they are asserted with ==.
"""
import pytest

from tradeline_engine.services.parsing import (
    parse_money,
    parse_month,
    parse_ownership,
    parse_status,
)
from tradeline_engine.services.parsing.grammar import (
    MONEY_CONFIDENCE,
    MONTH_ISO_CONFIDENCE,
    MONTH_NAME_CONFIDENCE,
    OWNERSHIP_CONFIDENCE,
    STATUS_CONFIDENCE,
)


class TestParseMoney:
    """Money amounts with optional $, separators and cents."""

    @pytest.mark.parametrize("text,expected", [
        ("$2,450", 2450),
        ("2450", 2450),
        ("$1,234.56", 1234.56),
        ("$ 12,345,678.90", 12345678.90),
        ("4500", 4500),
        ("$0", 0),
        ("Balance is $75.10 today", 75.10),
    ])
    def test_parses_amounts(self, text, expected):
        result = parse_money(text)
        assert result is not None
        assert result.value == pytest.approx(expected)
        assert result.confidence == MONEY_CONFIDENCE == 0.95

    def test_negative_amount_is_returned_signed(self):
        """Sign handling is left to the caller."""
        assert parse_money("-120").value == -120

    @pytest.mark.parametrize("text", ["", "n/a", "none reported", None])
    def test_no_digits_is_no_match(self, text):
        assert parse_money(text) is None


class TestParseMonth:
    """YYYY-MM / YYYY/MM and month-name dates."""

    def test_iso_month(self):
        result = parse_month("2024-01")
        assert result.value == "2024-01"
        assert result.confidence == MONTH_ISO_CONFIDENCE == 0.90

    def test_slash_month_normalized(self):
        assert parse_month("2024/03").value == "2024-03"

    @pytest.mark.parametrize("text,expected", [
        ("January 2024", "2024-01"),
        ("may 2020", "2020-05"),
        ("Sept 2023", "2023-09"),
        ("DEC 2019", "2019-12"),
    ])
    def test_month_name(self, text, expected):
        result = parse_month(text)
        assert result.value == expected
        assert result.confidence == MONTH_NAME_CONFIDENCE == 0.80

    @pytest.mark.parametrize("text", ["", "never", "2024", "Spring 2020"])
    def test_unparseable_is_no_match(self, text):
        assert parse_month(text) is None


class TestParseStatus:
    """Status keywords, lowercased with whitespace as underscores."""

    @pytest.mark.parametrize("text,expected", [
        ("Open", "open"),
        ("CLOSED", "closed"),
        ("Charge Off", "charge_off"),
        ("chargeoff", "chargeoff"),
        ("Current - pays as agreed", "current"),
        ("30 days late", "late"),
    ])
    def test_keywords(self, text, expected):
        result = parse_status(text)
        assert result.value == expected
        assert result.confidence == STATUS_CONFIDENCE == 0.80

    def test_unknown_status_is_no_match(self):
        assert parse_status("Pays as agreed") is None


class TestParseOwnership:
    """Responsibility keywords."""

    @pytest.mark.parametrize("text,expected", [
        ("Individual", "individual"),
        ("Joint Account", "joint"),
        ("Authorized User", "authorized_user"),
        ("BUSINESS", "business"),
    ])
    def test_keywords(self, text, expected):
        result = parse_ownership(text)
        assert result.value == expected
        assert result.confidence == OWNERSHIP_CONFIDENCE == 0.90

    def test_unknown_ownership_is_no_match(self):
        assert parse_ownership("Cosigner") is None
