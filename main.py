"""FastAPI service for Danish health-card field extraction.

Accepts a card image or PDF, gets its text lines (OCR service or PDF text
layer) and maps them to structured holder/doctor fields.
GDPR: no card content is logged or written to disk; uploads are processed in-memory only.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, File, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import build_lexicon, settings
from extraction import OCRNotConfigured, extract_document
from mapper import map_lines
from models import ExtractionResponse, HealthCardRecord, MapRequest
from ocr_client import OCRClient
from pdf_service import PdfConverter

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

_ocr_client: OCRClient | None = None
_converter: PdfConverter | None = None
_lexicon = build_lexicon(settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize the OCR client and PDF converter on startup if configured."""
    global _ocr_client, _converter

    if not settings.OCR_SERVICE_URL:
        logger.info("OCR service not configured (OCR_SERVICE_URL is empty), image extraction disabled")
    else:
        logger.info("Connecting to OCR service at %s", settings.OCR_SERVICE_URL)
        _ocr_client = OCRClient()

    _converter = PdfConverter()
    if not _converter.configured:
        logger.info("ConvertAPI not configured, scanned PDFs cannot be converted")

    yield

    if _ocr_client is not None:
        _ocr_client.close()
        _ocr_client = None
    _converter.close()
    _converter = None


app = FastAPI(title="Health Card Extraction", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.post("/extract", response_model=ExtractionResponse)
async def extract(file: UploadFile = File(...)):
    """Extract structured fields from a health-card image or PDF."""
    data = await file.read()

    if not data:
        return JSONResponse(
            status_code=400,
            content={"detail": "No file uploaded."},
        )

    # GDPR: log byte count only, never file content
    logger.info(
        "Processing extraction: content_type=%s size=%d bytes",
        file.content_type,
        len(data),
    )

    try:
        return extract_document(
            data,
            file.filename,
            file.content_type,
            _ocr_client,
            _converter,
            _lexicon,
        )
    except OCRNotConfigured as e:
        return JSONResponse(status_code=503, content={"detail": str(e)})


@app.post("/map", response_model=HealthCardRecord)
async def map_text_lines(request: MapRequest):
    """Map already-recognized text lines to structured fields."""
    return map_lines(request.lines, _lexicon)


@app.get("/health")
async def health():
    """Return service status, OCR availability, ConvertAPI key validity and UTC time."""
    base = {
        "status": "healthy",
        "ocr_available": _ocr_client is not None,
        "convert_api": "unconfigured",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    if _ocr_client is not None:
        base["ocr_health"] = _ocr_client.health()

    if _converter is not None and _converter.configured:
        base["convert_api"] = "connected" if _converter.is_api_key_valid() else "unavailable"

    return base


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
