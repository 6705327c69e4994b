"""Extraction orchestrator: get text lines for a document, then map them.

Images go straight to the OCR service. PDFs are read from their text layer
first; a PDF without text is converted to an image and OCR'd.
"""

import logging
import time

from lexicon import Lexicon
from mapper import map_lines
from models import ExtractionResponse, HealthCardRecord
from ocr_client import OCRClient, OCRServiceError, OCRServiceUnavailable
from pdf_service import (
    PdfConversionError,
    PdfConverter,
    PdfExtractionError,
    extract_pdf_lines,
    is_pdf,
)

logger = logging.getLogger(__name__)

SOURCE_OCR = "ocr"
SOURCE_PDF_TEXT = "pdf_text"
SOURCE_PDF_CONVERTED = "pdf_via_convertapi"


class OCRNotConfigured(Exception):
    """The document needs OCR but no OCR service is configured."""


def extract_document(
    data: bytes,
    filename: str | None,
    content_type: str | None,
    ocr_client: OCRClient | None,
    converter: PdfConverter | None = None,
    lexicon: Lexicon | None = None,
) -> ExtractionResponse:
    """Run the pipeline: lines (OCR or PDF text) -> field mapper.

    Collaborator failures become warnings on an empty record. Raises
    OCRNotConfigured only when OCR is required and ``ocr_client`` is None.
    """
    start = time.monotonic()
    file_type = "pdf" if is_pdf(filename, content_type) else "image"
    warnings: list[str] = []

    if file_type == "pdf":
        lines, source = _lines_from_pdf(data, filename, ocr_client, converter, warnings)
    else:
        source = SOURCE_OCR
        lines = _lines_from_ocr(data, _require_ocr(ocr_client), warnings)

    if lines is None:
        return _response([], HealthCardRecord(), file_type, source, warnings, start,
                         message="Processing failed.")

    record = map_lines(lines, lexicon)
    if not record.national_id:
        warnings.append("No CPR number found; birth date, age and gender are unavailable.")

    # GDPR: log counts only, never card content
    logger.info(
        "Extraction done: type=%s source=%s lines=%d fields=%d",
        file_type, source, len(lines),
        sum(1 for value in record.model_dump().values() if value),
    )
    return _response(lines, record, file_type, source, warnings, start,
                     message="Processing completed successfully.")


def _require_ocr(ocr_client: OCRClient | None) -> OCRClient:
    if ocr_client is None:
        raise OCRNotConfigured("OCR is not available - no OCR service configured")
    return ocr_client


def _lines_from_pdf(
    data: bytes,
    filename: str | None,
    ocr_client: OCRClient | None,
    converter: PdfConverter | None,
    warnings: list[str],
) -> tuple[list[str] | None, str]:
    try:
        lines = extract_pdf_lines(data)
    except PdfExtractionError as e:
        logger.error("PDF text extraction failed: %s", e)
        warnings.append(f"PDF could not be read: {e}")
        return None, SOURCE_PDF_TEXT

    if lines:
        return lines, SOURCE_PDF_TEXT

    logger.info("PDF has no text layer, converting first page to an image")
    ocr = _require_ocr(ocr_client)
    if converter is None or not converter.configured:
        warnings.append("PDF has no text layer and PDF conversion is not configured.")
        return None, SOURCE_PDF_CONVERTED

    try:
        image_bytes = converter.convert_first_page(data, filename or "document.pdf")
    except PdfConversionError as e:
        logger.error("PDF conversion failed: %s", e)
        warnings.append(f"PDF to image conversion failed: {e}")
        return None, SOURCE_PDF_CONVERTED

    return _lines_from_ocr(image_bytes, ocr, warnings), SOURCE_PDF_CONVERTED


def _lines_from_ocr(data: bytes, ocr_client: OCRClient, warnings: list[str]) -> list[str] | None:
    try:
        lines = ocr_client.detect_lines(data)
    except OCRServiceUnavailable as e:
        logger.error("OCR service unavailable after retries: %s", e)
        warnings.append(f"OCR service unavailable: {e}")
        return None
    except OCRServiceError as e:
        logger.error("OCR service error: %s", e)
        warnings.append(f"OCR failed: {e}")
        return None

    if not lines:
        warnings.append(
            "No text was recognized on the document. "
            "The image may be unclear or not a health card."
        )
    return lines


def _response(
    lines: list[str],
    record: HealthCardRecord,
    file_type: str,
    source: str,
    warnings: list[str],
    start: float,
    message: str,
) -> ExtractionResponse:
    return ExtractionResponse(
        raw_text="\n".join(lines),
        structured_data=record,
        message=message,
        file_type=file_type,
        source=source,
        warnings=warnings,
        processing_time_ms=int((time.monotonic() - start) * 1000),
    )
