"""Danish CPR number decoding: birth date, age and gender.

A CPR number is ``DDMMYY-SSSS``. The tenth digit encodes gender
(odd = male, even = female). Two-digit years 00-36 belong to the 2000s,
37-99 to the 1900s.
"""

import logging
import re
from datetime import date

from pydantic import BaseModel

logger = logging.getLogger(__name__)

CENTURY_PIVOT = 36
NON_DIGITS = re.compile(r"\D")


class NationalIdInfo(BaseModel):
    date_of_birth: str
    age: str
    gender: str

    model_config = {"frozen": True}


class NationalIdDecodeError(ValueError):
    """CPR digits do not form a valid birth date."""


def resolve_century(two_digit_year: int) -> int:
    """Map a two-digit CPR year to a full year."""
    if not 0 <= two_digit_year <= 99:
        raise NationalIdDecodeError(f"Invalid year in CPR: {two_digit_year}")
    if two_digit_year <= CENTURY_PIVOT:
        return 2000 + two_digit_year
    return 1900 + two_digit_year


def birth_date_from_digits(digits: str) -> date:
    """Build the birth date from the first six of ten CPR digits.

    Raises NationalIdDecodeError for a wrong digit count or an impossible
    calendar date (31st of a 30-day month, 29 February outside leap years).
    """
    if len(digits) != 10 or not digits.isdigit():
        raise NationalIdDecodeError(f"Expected 10 CPR digits, got {len(digits)}")

    day = int(digits[0:2])
    month = int(digits[2:4])
    year = resolve_century(int(digits[4:6]))

    try:
        return date(year, month, day)
    except ValueError as e:
        raise NationalIdDecodeError(f"Invalid birth date in CPR: {e}") from e


def age_on(birth: date, today: date) -> int:
    """Whole years between birth and today."""
    age = today.year - birth.year
    if (today.month, today.day) < (birth.month, birth.day):
        age -= 1
    return age


def gender_from_digits(digits: str) -> str:
    return "Male" if int(digits[9]) % 2 == 1 else "Female"


def decode_national_id(code: str, today: date | None = None) -> NationalIdInfo | None:
    """Decode a CPR number into birth date, age and gender.

    Returns None when the code cannot be decoded; never raises.
    """
    if not code:
        return None

    digits = NON_DIGITS.sub("", code)
    try:
        birth = birth_date_from_digits(digits)
    except NationalIdDecodeError as e:
        # GDPR: never log the CPR digits themselves
        logger.debug("CPR decode failed: %s", e)
        return None

    today = today or date.today()
    return NationalIdInfo(
        date_of_birth=birth.strftime("%d.%m.%Y"),
        age=str(age_on(birth, today)),
        gender=gender_from_digits(digits),
    )
