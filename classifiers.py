"""Line classifiers for OCR text from Danish health cards.

Every predicate is a pure function of the line text and a ``Lexicon``.
Where a line could satisfy more than one class, exclusions are checked
first: an address, header or clinic line is never a person name.
"""

import re

from lexicon import DEFAULT_LEXICON, Lexicon, contains_any

NATIONAL_ID_PATTERN = re.compile(r"\d{6}-\d{4}")
DATE_PATTERN = re.compile(r"\d{2}\.\d{2}\.\d{4}")
POSTAL_CITY_PATTERN = re.compile(r"^\d{4}\s[A-ZÆØÅ]")
PHONE_PATTERN = re.compile(r"\d{2} \d{2} \d{2} \d{2}")
ADDRESS_NUMBER_PATTERN = re.compile(r",\s*\d")
DIGIT_PATTERN = re.compile(r"\d")

# A short upper-case token trailing the digit groups, e.g. "12 34 56 78 AB"
TRAILING_ABBREVIATION = re.compile(r"\d{2} \d{2} \d{2} \d{2}\s+[A-ZÆØÅ]{1,3}\.?$")


def is_national_id_line(line: str) -> bool:
    return bool(NATIONAL_ID_PATTERN.search(line))


def is_header_line(line: str, lexicon: Lexicon = DEFAULT_LEXICON) -> bool:
    return contains_any(line, lexicon.header_tokens)


def is_date_line(line: str, lexicon: Lexicon = DEFAULT_LEXICON) -> bool:
    return bool(DATE_PATTERN.search(line)) or contains_any(line, lexicon.valid_from_labels)


def is_postal_city(line: str) -> bool:
    return bool(POSTAL_CITY_PATTERN.match(line))


def is_clinic_name(line: str, lexicon: Lexicon = DEFAULT_LEXICON) -> bool:
    return contains_any(line, lexicon.clinic_tokens)


def is_address(line: str, lexicon: Lexicon = DEFAULT_LEXICON) -> bool:
    """Street-type token or ", <digit>", and not a header, date or ID line."""
    if not line:
        return False
    looks_like_address = (
        contains_any(line, lexicon.street_tokens)
        or bool(ADDRESS_NUMBER_PATTERN.search(line))
    )
    return (
        looks_like_address
        and not is_header_line(line, lexicon)
        and not is_date_line(line, lexicon)
        and not is_national_id_line(line)
    )


def is_mixed_case_name(line: str) -> bool:
    """Every space-separated token is a capital followed by another letter."""
    if " " not in line:
        return False
    words = line.split()
    return all(len(word) >= 2 and word[0].isupper() and word[1].isalpha() for word in words)


def is_person_name(line: str, lexicon: Lexicon = DEFAULT_LEXICON) -> bool:
    """Holder or doctor name, e.g. "ANNA JENSEN" or "Birka Synnove Abildgaard"."""
    if not line or not line.strip():
        return False
    stripped = line.strip()
    if len(stripped) < 3:
        return False
    if DIGIT_PATTERN.search(stripped):
        return False
    if " " not in stripped:
        return False

    if (
        is_header_line(stripped, lexicon)
        or is_clinic_name(stripped, lexicon)
        or is_address(stripped, lexicon)
    ):
        return False

    return stripped == stripped.upper() or is_mixed_case_name(stripped)


def clean_phone(line: str, lexicon: Lexicon = DEFAULT_LEXICON) -> str:
    """Strip phone label tokens from a line."""
    for label in lexicon.phone_labels:
        line = line.replace(label, "")
    return line.strip()


def has_phone_label(line: str, lexicon: Lexicon = DEFAULT_LEXICON) -> bool:
    return any(label in line for label in lexicon.phone_labels)


def is_phone_line(line: str, lexicon: Lexicon = DEFAULT_LEXICON) -> bool:
    """Labelled phone line, or a bare "DD DD DD DD" group not tied to other data."""
    if has_phone_label(line, lexicon):
        return bool(PHONE_PATTERN.search(clean_phone(line, lexicon)))
    if not PHONE_PATTERN.search(line):
        return False
    if is_national_id_line(line) or TRAILING_ABBREVIATION.search(line.strip()):
        return False
    return True
