import pytest

from contract_core.currency import (
    calculate_percentage,
    format_compact_currency,
    format_currency,
    format_large_number,
    is_approaching_ceiling,
    parse_currency,
    round_half_up,
    validate_financial_data,
)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("$3,714,230.41", 3714230.41),
        ("($1,000)", -1000.0),
        ("€ 2 500", 2500.0),
        ("1.234.56", 1234.56),
        (1500, 1500.0),
        (12.5, 12.5),
        (None, 0.0),
        ("", 0.0),
        ("N/A", 0.0),
        ("n/a", 0.0),
        (float("nan"), 0.0),
        ("abc", 0.0),
        ("-$250", -250.0),
    ],
)
def test_parse_currency(value, expected):
    assert parse_currency(value) == pytest.approx(expected)


def test_format_currency():
    assert format_currency(1234.5) == "$1,234.50"
    assert format_currency(-1234.5) == "-$1,234.50"
    assert format_currency(1234.5, 0) == "$1,234"
    assert format_currency("oops") == "$0.00"


def test_compact_and_large_number_labels():
    assert format_compact_currency(1_500_000_000) == "$1.5B"
    assert format_compact_currency(3_400_000) == "$3.4M"
    assert format_compact_currency(5_600) == "$5.6K"
    assert format_compact_currency(12) == "$12"
    assert format_large_number(-2_500_000) == "-2.5M"
    assert format_large_number(999) == "999.0"
    assert format_large_number(None) == "0"


def test_percentages():
    assert calculate_percentage(1, 3) == 33.33
    assert calculate_percentage(5, 0) == 0.0
    assert round_half_up(2.5) == 3.0
    assert round_half_up(None) is None


def test_approaching_ceiling():
    assert is_approaching_ceiling("$90,000", "$100,000")
    assert not is_approaching_ceiling(89_000, 100_000)
    assert not is_approaching_ceiling(10, 0)


def test_validate_financial_data():
    ok = validate_financial_data("$1,000,000", "$500,000", "$250,000")
    assert ok == {"is_valid": True, "errors": [], "warnings": []}

    bad = validate_financial_data("($5,000)", 100, None)
    assert not bad["is_valid"]
    assert "Ceiling value cannot be negative" in bad["errors"]

    warn = validate_financial_data(100, 200, -5)
    assert warn["is_valid"]
    assert "Award value exceeds ceiling value" in warn["warnings"]
    assert "Remaining budget is negative (overrun detected)" in warn["warnings"]

    huge = validate_financial_data(2_000_000_000, 0)
    assert huge["warnings"] == ["Ceiling value is unusually large"]
