"""
tests/test_field_parsers.py

Pure-Python tests for the CSV token parsers.
"""

from __future__ import annotations

from datetime import date

import pytest

from app.validators.field_parsers import parse_date, parse_numeric_value, parse_time


class TestParseNumericValue:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("2,6", 2.6),
            ("2.6", 2.6),
            ("13,6", 13.6),
            ("1360", 1360.0),
            ("-1,5", -1.5),
            ("  48,9 ", 48.9),
            ("12abc", 12.0),
            ("0", 0.0),
        ],
    )
    def test_parses_values(self, raw: str, expected: float) -> None:
        assert parse_numeric_value(raw) == pytest.approx(expected)

    @pytest.mark.parametrize("raw", [None, "", "   ", "-200", " -200 ", "abc", "nan", "inf", ","])
    def test_absent_values_return_none(self, raw: str | None) -> None:
        assert parse_numeric_value(raw) is None

    def test_sentinel_with_decimal_comma_is_a_value(self) -> None:
        # Only the exact sentinel token marks a gap.
        assert parse_numeric_value("-200,5") == pytest.approx(-200.5)

    def test_only_first_comma_is_replaced(self) -> None:
        assert parse_numeric_value("1,2,3") == pytest.approx(1.2)

    def test_overflow_is_absent(self) -> None:
        assert parse_numeric_value("1e999") is None


class TestParseDate:
    def test_valid_date(self) -> None:
        assert parse_date("10/03/2004") == date(2004, 3, 10)

    def test_single_digit_components(self) -> None:
        assert parse_date("1/2/2005") == date(2005, 2, 1)

    @pytest.mark.parametrize(
        "raw",
        [None, "", "  ", "31/02/2004", "2004-03-10", "10/03", "10/03/2004/1", "aa/03/2004", "10//2004"],
    )
    def test_invalid_dates_return_none(self, raw: str | None) -> None:
        assert parse_date(raw) is None

    def test_leap_day(self) -> None:
        assert parse_date("29/02/2004") == date(2004, 2, 29)
        assert parse_date("29/02/2005") is None


class TestParseTime:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("18.00.00", "18:00:00"),
            ("00.00.00", "00:00:00"),
            ("23.59.59", "23:59:59"),
            ("9.00.00", "09:00:00"),
        ],
    )
    def test_valid_times(self, raw: str, expected: str) -> None:
        assert parse_time(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "24.00.00", "18.60.00", "18.00", "18:00", "aa.bb.cc", "18.00.00.00"])
    def test_invalid_times_return_none(self, raw: str | None) -> None:
        assert parse_time(raw) is None

    def test_colon_separated_input_is_accepted(self) -> None:
        assert parse_time("18:00:00") == "18:00:00"
