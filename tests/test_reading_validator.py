from __future__ import annotations

import unittest
from datetime import date

from app.domain.air_quality import MEASUREMENT_FIELDS
from app.validators.reading_validator import (
    DATE_ERROR_MESSAGE,
    TIME_ERROR_MESSAGE,
    ReadingRowValidator,
)


def _row(**overrides: str | None) -> dict[str, str | None]:
    row: dict[str, str | None] = {
        "Date": "10/03/2004",
        "Time": "18.00.00",
        "CO(GT)": "2,6",
        "PT08.S1(CO)": "1360",
        "NMHC(GT)": "150",
        "C6H6(GT)": "11,9",
        "PT08.S2(NMHC)": "1046",
        "NOx(GT)": "166",
        "PT08.S3(NOx)": "1056",
        "NO2(GT)": "113",
        "PT08.S4(NO2)": "1692",
        "PT08.S5(O3)": "1268",
        "T": "13,6",
        "RH": "48,9",
        "AH": "0,7578",
    }
    row.update(overrides)
    return row


class TestReadingRowValidator(unittest.TestCase):
    def setUp(self) -> None:
        self.validator = ReadingRowValidator()

    def test_valid_row_builds_reading(self) -> None:
        result = self.validator.validate_row(_row(), 2)

        self.assertTrue(result.is_valid)
        self.assertEqual(result.errors, ())
        self.assertEqual(result.row_index, 2)
        assert result.reading is not None
        self.assertEqual(result.reading.date, date(2004, 3, 10))
        self.assertEqual(result.reading.time, "18:00:00")
        self.assertAlmostEqual(result.reading.co, 2.6)
        self.assertAlmostEqual(result.reading.temperature, 13.6)
        self.assertAlmostEqual(result.reading.absolute_humidity, 0.7578)

    def test_missing_measurements_do_not_invalidate(self) -> None:
        overrides = {m.header: "-200" for m in MEASUREMENT_FIELDS}
        result = self.validator.validate_row(_row(**overrides), 5)

        self.assertTrue(result.is_valid)
        assert result.reading is not None
        self.assertTrue(all(value is None for value in result.reading.measurements().values()))

    def test_invalid_date_is_reported(self) -> None:
        result = self.validator.validate_row(_row(Date="31/02/2004"), 3)

        self.assertFalse(result.is_valid)
        self.assertEqual(result.errors, (DATE_ERROR_MESSAGE,))
        self.assertIsNone(result.reading)

    def test_invalid_time_is_reported(self) -> None:
        result = self.validator.validate_row(_row(Time="25.00.00"), 3)

        self.assertFalse(result.is_valid)
        self.assertEqual(result.errors, (TIME_ERROR_MESSAGE,))

    def test_date_error_precedes_time_error(self) -> None:
        result = self.validator.validate_row(_row(Date="", Time=""), 4)

        self.assertEqual(result.errors, (DATE_ERROR_MESSAGE, TIME_ERROR_MESSAGE))

    def test_separator_only_row_is_invalid(self) -> None:
        blank = {key: "" for key in _row()}
        result = self.validator.validate_row(blank, 9)

        self.assertFalse(result.is_valid)
        self.assertEqual(len(result.errors), 2)

    def test_short_row_values_are_treated_as_missing(self) -> None:
        result = self.validator.validate_row(_row(T=None, RH=None, AH=None), 6)

        self.assertTrue(result.is_valid)
        assert result.reading is not None
        self.assertIsNone(result.reading.temperature)

    def test_original_row_is_kept_verbatim(self) -> None:
        raw = _row(Date="bad")
        result = self.validator.validate_row(raw, 2)

        self.assertEqual(result.original_row["Date"], "bad")
        self.assertEqual(result.original_row["CO(GT)"], "2,6")
