"""Map OCR text lines from a Danish health card to a HealthCardRecord.

Three stages run over the same line list:
1. Pattern scan: fields found by content alone (CPR, region, municipality,
   valid-from date, postal/city, phone).
2. Context scan: holder below the CPR line, clinic/doctor above it, and a
   whole-card fallback for the holder name.
3. Derived fields: birth date, age and gender from the CPR number; name and
   postal/city splits.

Each call owns its own builder. There is no module-level mutable state, so
the mapper can be called concurrently.
"""

import logging
import re
from collections.abc import Sequence
from datetime import date

from classifiers import (
    DATE_PATTERN,
    NATIONAL_ID_PATTERN,
    clean_phone,
    has_phone_label,
    is_address,
    is_clinic_name,
    is_date_line,
    is_header_line,
    is_person_name,
    is_phone_line,
    is_postal_city,
)
from lexicon import DEFAULT_LEXICON, Lexicon, contains_any
from models import RECORD_FIELDS, HealthCardRecord
from national_id import decode_national_id

logger = logging.getLogger(__name__)

POSTAL_CITY_SPLIT = re.compile(r"^(\d{4})\s+(.+)$")


class _RecordBuilder:
    """Per-call accumulator; frozen into a HealthCardRecord at the end."""

    def __init__(self):
        self.fields: dict[str, str] = {name: "" for name in RECORD_FIELDS}
        self.anchor: int | None = None

    def __getitem__(self, key: str) -> str:
        return self.fields[key]

    def __setitem__(self, key: str, value: str):
        if key not in self.fields:
            raise KeyError(key)
        self.fields[key] = value

    def set_once(self, key: str, value: str | None):
        """Set a field unless it already holds a value."""
        if value and not self.fields[key]:
            self.fields[key] = value

    def build(self) -> HealthCardRecord:
        return HealthCardRecord(**self.fields)


def map_lines(
    lines: Sequence[str],
    lexicon: Lexicon | None = None,
    today: date | None = None,
) -> HealthCardRecord:
    """Map OCR lines (top-to-bottom reading order) to a HealthCardRecord.

    Unfound fields are left empty; this never fails on card content. Raises
    TypeError when ``lines`` is not a sequence of strings.
    """
    text_lines = _normalize_lines(lines)
    lexicon = lexicon or DEFAULT_LEXICON

    record = _RecordBuilder()
    _scan_patterns(text_lines, record, lexicon)
    _scan_context(text_lines, record, lexicon)
    _derive_fields(record, today)

    found = sorted(name for name, value in record.fields.items() if value)
    logger.debug("Mapped %d lines, found fields: %s", len(text_lines), ", ".join(found))
    return record.build()


def _normalize_lines(lines: Sequence[str]) -> list[str]:
    if lines is None:
        raise TypeError("lines must be a sequence of strings, got None")
    if isinstance(lines, (str, bytes)):
        raise TypeError("lines must be a sequence of strings, not a single string")

    text_lines = []
    for line in lines:
        if not isinstance(line, str):
            raise TypeError(f"lines must contain only strings, got {type(line).__name__}")
        stripped = line.strip()
        if stripped:
            text_lines.append(stripped)
    return text_lines


# ---------------------------------------------------------------------------
# Stage 1: pattern scan
# ---------------------------------------------------------------------------


def _first(lines: list[str], predicate) -> str:
    return next((line for line in lines if predicate(line)), "")


def _scan_patterns(lines: list[str], record: _RecordBuilder, lexicon: Lexicon):
    for index, line in enumerate(lines):
        if NATIONAL_ID_PATTERN.search(line):
            record["national_id"] = line.split("*")[0].strip()
            record.anchor = index
            break

    record["region"] = _first(
        lines,
        lambda t: "region" in t.casefold() or contains_any(t, lexicon.region_names),
    )
    record["municipality"] = _first(lines, lambda t: "kommune" in t.casefold())
    record["valid_from"] = _first(lines, lambda t: bool(DATE_PATTERN.search(t)))
    record["holder_postal_city"] = _first(lines, is_postal_city)
    record["doctor_phone"] = _find_phone(lines, lexicon)


def _find_phone(lines: list[str], lexicon: Lexicon) -> str:
    """First labelled phone line wins; a bare digit-group line is the fallback."""
    candidates = [line for line in lines if is_phone_line(line, lexicon)]
    labelled = [line for line in candidates if has_phone_label(line, lexicon)]
    chosen = labelled[0] if labelled else (candidates[0] if candidates else "")
    return clean_phone(chosen, lexicon) if chosen else ""


# ---------------------------------------------------------------------------
# Stage 2: context scan around the CPR line
# ---------------------------------------------------------------------------


def _scan_context(lines: list[str], record: _RecordBuilder, lexicon: Lexicon):
    if record.anchor is None:
        return

    _find_holder(lines, record.anchor, record, lexicon)
    _find_issuer(lines, record.anchor, record, lexicon)

    if not record["holder_name"]:
        _find_holder_anywhere(lines, record, lexicon)


def _find_holder(lines: list[str], anchor: int, record: _RecordBuilder, lexicon: Lexicon):
    """The holder's name is the first person name below the CPR line."""
    for i in range(anchor + 1, len(lines)):
        line = lines[i]
        if is_header_line(line, lexicon) or is_date_line(line, lexicon):
            continue
        if not is_person_name(line, lexicon):
            continue

        record.set_once("holder_name", line)
        if i + 1 < len(lines) and is_address(lines[i + 1], lexicon):
            record.set_once("holder_address", lines[i + 1])
            if i + 2 < len(lines) and is_postal_city(lines[i + 2]):
                # Overrides the pattern-scan postal/city
                record["holder_postal_city"] = lines[i + 2]
        return


def _find_issuer(lines: list[str], anchor: int, record: _RecordBuilder, lexicon: Lexicon):
    """The clinic or doctor is printed above the CPR line."""
    for i in range(anchor - 1, -1, -1):
        line = lines[i]
        if is_header_line(line, lexicon):
            continue

        if is_clinic_name(line, lexicon) or is_person_name(line, lexicon):
            record.set_once("doctor_name", line)
            if i + 1 < len(lines) and is_address(lines[i + 1], lexicon):
                record.set_once("doctor_address", lines[i + 1])
            return


def _find_holder_anywhere(lines: list[str], record: _RecordBuilder, lexicon: Lexicon):
    for i, line in enumerate(lines):
        if is_person_name(line, lexicon) and not is_clinic_name(line, lexicon):
            record.set_once("holder_name", line)
            if i + 1 < len(lines) and is_address(lines[i + 1], lexicon):
                record.set_once("holder_address", lines[i + 1])
            return


# ---------------------------------------------------------------------------
# Stage 3: derived fields
# ---------------------------------------------------------------------------


def _derive_fields(record: _RecordBuilder, today: date | None):
    info = decode_national_id(record["national_id"], today)
    if info is not None:
        record["date_of_birth"] = info.date_of_birth
        record["age"] = info.age
        record["gender"] = info.gender

    first_name, surname = split_name(record["holder_name"])
    record["holder_first_name"] = first_name
    record["holder_surname"] = surname

    postal_code, city = split_postal_city(record["holder_postal_city"])
    record["postal_code"] = postal_code
    record["city"] = city


def split_name(full_name: str) -> tuple[str, str]:
    """Split "Anna Maria Jensen" into ("Anna Maria", "Jensen")."""
    tokens = full_name.split()
    if not tokens:
        return "", ""
    if len(tokens) == 1:
        return tokens[0], ""
    return " ".join(tokens[:-1]), tokens[-1]


def split_postal_city(postal_city: str) -> tuple[str, str]:
    """Split "2300 København S" into ("2300", "København S")."""
    match = POSTAL_CITY_SPLIT.match(postal_city.strip())
    if not match:
        return "", ""
    return match.group(1), match.group(2).strip()
