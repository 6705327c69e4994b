"""Tests for CPR number decoding."""

import sys
from datetime import date
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from national_id import (
    NationalIdDecodeError,
    age_on,
    birth_date_from_digits,
    decode_national_id,
    resolve_century,
)


class TestResolveCentury:
    def test_36_is_2036(self):
        assert resolve_century(36) == 2036

    def test_37_is_1937(self):
        assert resolve_century(37) == 1937

    def test_bounds(self):
        assert resolve_century(0) == 2000
        assert resolve_century(99) == 1999

    def test_out_of_range_raises(self):
        with pytest.raises(NationalIdDecodeError):
            resolve_century(100)


class TestBirthDateFromDigits:
    def test_valid_digits(self):
        assert birth_date_from_digits("0101901234") == date(1990, 1, 1)

    def test_wrong_digit_count(self):
        with pytest.raises(NationalIdDecodeError, match="10 CPR digits"):
            birth_date_from_digits("010190123")

    def test_leap_day_in_leap_year(self):
        assert birth_date_from_digits("2902001234") == date(2000, 2, 29)

    def test_leap_day_outside_leap_year(self):
        with pytest.raises(NationalIdDecodeError):
            birth_date_from_digits("2902011234")


class TestAgeOn:
    def test_birthday_passed(self):
        assert age_on(date(1990, 1, 1), date(2024, 6, 1)) == 34

    def test_birthday_not_yet(self):
        assert age_on(date(1990, 6, 15), date(2024, 6, 1)) == 33

    def test_on_birthday(self):
        assert age_on(date(1990, 6, 1), date(2024, 6, 1)) == 34


class TestDecodeNationalId:
    def test_known_code(self, today: date):
        info = decode_national_id("010190-1234", today)
        assert info is not None
        assert info.date_of_birth == "01.01.1990"
        assert info.age == "34"
        # Tenth digit 4 is even
        assert info.gender == "Female"

    def test_odd_last_digit_is_male(self, today: date):
        info = decode_national_id("010190-1233", today)
        assert info is not None
        assert info.gender == "Male"

    def test_without_hyphen(self, today: date):
        info = decode_national_id("1203852345", today)
        assert info is not None
        assert info.date_of_birth == "12.03.1985"
        assert info.age == "39"
        assert info.gender == "Male"

    def test_year_36_is_2030s(self, today: date):
        info = decode_national_id("010136-1234", today)
        assert info is not None
        assert info.date_of_birth == "01.01.2036"

    def test_year_37_is_1930s(self, today: date):
        info = decode_national_id("010137-1234", today)
        assert info is not None
        assert info.date_of_birth == "01.01.1937"
        assert info.age == "87"

    def test_nine_digits_returns_none(self, today: date):
        assert decode_national_id("010190-123", today) is None

    def test_day_31_in_30_day_month_returns_none(self, today: date):
        assert decode_national_id("310490-1234", today) is None

    def test_month_13_returns_none(self, today: date):
        assert decode_national_id("011390-1234", today) is None

    def test_day_zero_returns_none(self, today: date):
        assert decode_national_id("000190-1234", today) is None

    def test_empty_returns_none(self, today: date):
        assert decode_national_id("", today) is None

    def test_defaults_to_current_date(self):
        info = decode_national_id("010190-1234")
        assert info is not None
        assert int(info.age) >= 34
