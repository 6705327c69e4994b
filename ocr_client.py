"""HTTP client for the OCR service that reads text lines off card images.

Uses httpx with configurable timeouts and tenacity for retry with
exponential backoff on 503 and connection errors.
"""

import base64
import logging

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from config import settings

logger = logging.getLogger(__name__)


class OCRServiceUnavailable(Exception):
    """OCR service is temporarily unavailable (retryable: 503, connection error)."""


class OCRServiceError(Exception):
    """OCR service returned a non-retryable error or an unreadable response."""


def lines_from_response(data: dict) -> list[str]:
    """Pull text lines in reading order out of an OCR response.

    Accepts ``{"lines": [...]}`` or Textract-style
    ``{"Blocks": [{"BlockType": "LINE", "Text": ...}]}``.
    """
    if "lines" in data:
        raw = data["lines"]
        if not isinstance(raw, list):
            raise OCRServiceError("OCR response 'lines' is not a list")
    elif "Blocks" in data:
        blocks = data["Blocks"]
        if not isinstance(blocks, list):
            raise OCRServiceError("OCR response 'Blocks' is not a list")
        raw = [
            block.get("Text")
            for block in blocks
            if isinstance(block, dict) and block.get("BlockType") == "LINE"
        ]
    else:
        raise OCRServiceError("OCR response has neither 'lines' nor 'Blocks'")

    return [line for line in raw if isinstance(line, str) and line.strip()]


class OCRClient:
    """HTTP client for the OCR service with retry and backoff."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: int | None = None,
        connect_timeout: int | None = None,
        retry_attempts: int | None = None,
        retry_delay: float | None = None,
        retry_backoff: float | None = None,
    ):
        self._retry_attempts = retry_attempts if retry_attempts is not None else settings.OCR_RETRY_ATTEMPTS
        self._retry_delay = retry_delay if retry_delay is not None else settings.OCR_RETRY_DELAY
        self._retry_backoff = retry_backoff if retry_backoff is not None else settings.OCR_RETRY_BACKOFF

        read_timeout = timeout if timeout is not None else settings.OCR_TIMEOUT_SECONDS
        conn_timeout = connect_timeout if connect_timeout is not None else settings.OCR_CONNECT_TIMEOUT

        self._client = httpx.Client(
            base_url=(base_url or settings.OCR_SERVICE_URL).rstrip("/"),
            timeout=httpx.Timeout(float(read_timeout), connect=float(conn_timeout)),
        )

    def close(self):
        self._client.close()

    def detect_lines(self, document_bytes: bytes) -> list[str]:
        """Send an image to the OCR service and return its text lines.

        Raises OCRServiceUnavailable (retryable) or OCRServiceError (non-retryable).
        """
        payload = {"document_b64": base64.b64encode(document_bytes).decode()}
        data = self._detect_with_retry(payload)
        return lines_from_response(data)

    def _detect_with_retry(self, payload: dict) -> dict:
        @retry(
            retry=retry_if_exception_type(OCRServiceUnavailable),
            stop=stop_after_attempt(self._retry_attempts),
            wait=wait_exponential(multiplier=self._retry_delay, exp_base=self._retry_backoff),
            reraise=True,
            before_sleep=lambda state: logger.warning(
                "OCR service unavailable, retrying in %.1fs (attempt %d/%d)",
                state.next_action.sleep,  # type: ignore[union-attr]
                state.attempt_number,
                self._retry_attempts,
            ),
        )
        def _do_detect() -> dict:
            return self._send_detect(payload)

        return _do_detect()

    def _send_detect(self, payload: dict) -> dict:
        """Send a single OCR request."""
        try:
            resp = self._client.post("/ocr", json=payload)
        except (httpx.ConnectError, httpx.ConnectTimeout) as e:
            logger.warning("OCR service connection failed: %s", e)
            raise OCRServiceUnavailable(f"Cannot connect to OCR service: {e}") from e
        except httpx.ReadTimeout as e:
            logger.warning("OCR service read timeout: %s", e)
            raise OCRServiceUnavailable(f"OCR service read timeout: {e}") from e
        except httpx.HTTPError as e:
            logger.error("OCR service HTTP error: %s", e)
            raise OCRServiceError(f"OCR service HTTP error: {e}") from e

        if resp.status_code == 503:
            detail = _detail(resp, "Service unavailable")
            logger.warning("OCR service returned 503: %s", detail)
            raise OCRServiceUnavailable(detail)

        if resp.status_code != 200:
            detail = _detail(resp, f"HTTP {resp.status_code}")
            logger.error("OCR service error %d: %s", resp.status_code, detail)
            raise OCRServiceError(detail)

        try:
            data = resp.json()
        except ValueError as e:
            raise OCRServiceError(f"OCR service returned invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise OCRServiceError("OCR service returned a non-object JSON body")
        return data

    def health(self) -> dict:
        """Check OCR service health. Returns a status dict, never raises."""
        try:
            resp = self._client.get("/health", timeout=10.0)
            return resp.json()
        except Exception as e:
            logger.warning("OCR health check failed: %s", e)
            return {"status": "unreachable", "error": str(e)}


def _detail(resp: httpx.Response, default: str) -> str:
    try:
        return resp.json().get("detail", default)
    except (ValueError, AttributeError):
        return default
