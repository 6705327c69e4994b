"""Shared test fixtures for the health-card extraction tests."""

import sys
from datetime import date
from pathlib import Path

import fitz
import pytest

# Add parent directory to path so we can import the modules
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def today() -> date:
    """Fixed reference date for age calculations."""
    return date(2024, 6, 1)


@pytest.fixture
def card_lines() -> list[str]:
    """OCR lines of a yellow health card: clinic above the CPR, holder below."""
    return [
        "SUNDHEDSKORT",
        "Region Hovedstaden",
        "Valby Lægehus",
        "Valby Langgade 12, 1",
        "Tlf. 36 30 12 34",
        "010190-1234",
        "ANNA MARIA JENSEN",
        "Toftegårds Allé 5, 2. th",
        "2500 Valby",
        "Københavns Kommune",
        "Gyldig fra 01.02.2020",
    ]


@pytest.fixture
def anchored_lines() -> list[str]:
    """Minimal clinic / address / CPR / name / address / postal-city layout."""
    return [
        "Nørrebro Medical Center",
        "Nørrebrogade 44",
        "120385-2345",
        "Peter Hansen",
        "Jagtvej 10",
        "2200 København N",
    ]


@pytest.fixture
def text_pdf_bytes() -> bytes:
    """A one-page PDF with a text layer."""
    doc = fitz.open()
    page = doc.new_page()
    for y, text in enumerate(["SUNDHEDSKORT", "010190-1234", "PETER HANSEN", "Jagtvej 10"]):
        page.insert_text((72, 72 + y * 40), text)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def blank_pdf_bytes() -> bytes:
    """A one-page PDF without any text (like a scanned card)."""
    doc = fitz.open()
    doc.new_page()
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def sample_image_bytes() -> bytes:
    """Opaque image bytes; the OCR service is always mocked."""
    return b"\xff\xd8\xff\xe0fake-jpeg-data"
