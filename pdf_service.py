"""PDF handling: embedded text extraction and ConvertAPI page conversion.

Text-layer PDFs are read directly with PyMuPDF and yield the same line
shape as the OCR service. Scanned PDFs are converted to an image through
ConvertAPI and then go through OCR like any other image.
"""

import base64
import logging
from pathlib import PurePath

import fitz
import httpx

from config import settings

logger = logging.getLogger(__name__)

PDF_EXTENSIONS = {".pdf"}
PDF_CONTENT_TYPES = {"application/pdf"}

# PyMuPDF block type for text (1 = image)
TEXT_BLOCK = 0


class PdfExtractionError(Exception):
    """The PDF could not be opened or read."""


class PdfConversionError(Exception):
    """ConvertAPI did not return an image for the PDF."""


def is_pdf(filename: str | None, content_type: str | None) -> bool:
    """Detect PDFs by file extension or content type."""
    extension = PurePath(filename or "").suffix.lower()
    return extension in PDF_EXTENSIONS or (content_type or "").lower() in PDF_CONTENT_TYPES


def extract_pdf_lines(pdf_bytes: bytes) -> list[str]:
    """Return the PDF's embedded text as lines in reading order.

    Blocks are ordered top-to-bottom then left-to-right on each page.
    An image-only PDF returns an empty list.
    """
    try:
        doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    except (RuntimeError, ValueError) as e:
        raise PdfExtractionError(f"Cannot open PDF: {e}") from e

    lines: list[str] = []
    try:
        for page in doc:
            blocks = page.get_text("blocks")
            for block in sorted(blocks, key=lambda b: (b[1], b[0])):
                if block[6] != TEXT_BLOCK:
                    continue
                lines.extend(line.strip() for line in block[4].splitlines() if line.strip())
    finally:
        doc.close()

    logger.info("PDF text layer: %d lines", len(lines))
    return lines


class PdfConverter:
    """ConvertAPI client that renders the first PDF page as an image.

    Single attempt per request; conversion errors surface to the caller.
    """

    def __init__(
        self,
        base_url: str | None = None,
        secret: str | None = None,
        timeout: int | None = None,
    ):
        self._secret = secret if secret is not None else settings.CONVERT_API_SECRET
        self._client = httpx.Client(
            base_url=(base_url or settings.CONVERT_API_URL).rstrip("/"),
            timeout=float(timeout if timeout is not None else settings.CONVERT_API_TIMEOUT),
        )

    @property
    def configured(self) -> bool:
        return bool(self._secret)

    def close(self):
        self._client.close()

    def convert_first_page(self, pdf_bytes: bytes, filename: str, fmt: str = "jpg") -> bytes:
        """Convert a PDF to an image and return the first page's bytes."""
        if not self.configured:
            raise PdfConversionError("ConvertAPI secret is not configured")

        logger.info("Converting PDF to %s using ConvertAPI (%d bytes)", fmt.upper(), len(pdf_bytes))
        try:
            resp = self._client.post(
                f"/convert/pdf/to/{fmt}",
                params={"secret": self._secret},
                files={"File": (filename or "document.pdf", pdf_bytes, "application/pdf")},
            )
        except httpx.HTTPError as e:
            logger.error("ConvertAPI request failed: %s", e)
            raise PdfConversionError(f"PDF to image conversion failed: {e}") from e

        if resp.status_code != 200:
            logger.error("ConvertAPI HTTP error %d", resp.status_code)
            raise PdfConversionError(f"ConvertAPI HTTP error: {resp.status_code} - {resp.text[:200]}")

        try:
            data = resp.json()
        except ValueError as e:
            raise PdfConversionError(f"ConvertAPI returned invalid JSON: {e}") from e

        image_bytes = image_from_response(data)
        logger.info("PDF converted to %s, size: %d bytes", fmt.upper(), len(image_bytes))
        return image_bytes

    def is_api_key_valid(self) -> bool:
        """Check the ConvertAPI secret against the user endpoint. Never raises."""
        if not self.configured:
            return False
        try:
            resp = self._client.get("/user", params={"secret": self._secret})
        except httpx.HTTPError as e:
            logger.warning("ConvertAPI key validation failed: %s", e)
            return False

        if resp.status_code != 200:
            logger.warning("ConvertAPI key validation failed: HTTP %d", resp.status_code)
            return False
        return True


def image_from_response(data: dict) -> bytes:
    """Decode the first ``Files[].FileData`` payload of a ConvertAPI response."""
    for file in data.get("Files") or []:
        file_data = file.get("FileData") if isinstance(file, dict) else None
        if isinstance(file_data, str) and file_data:
            try:
                return base64.b64decode(file_data, validate=True)
            except ValueError as e:
                raise PdfConversionError(f"ConvertAPI returned invalid image data: {e}") from e

    if "Code" in data and "Message" in data:
        raise PdfConversionError(f"ConvertAPI error {data['Code']}: {data['Message']}")

    raise PdfConversionError("No image data found in ConvertAPI response")
