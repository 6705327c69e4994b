"""Tests for the HTTP endpoints."""

import sys
from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).parent.parent))

import main


@pytest.fixture
def client():
    """Test client without lifespan; collaborators are patched per test."""
    return TestClient(main.app)


class TestExtractEndpoint:
    def test_empty_upload_rejected(self, client: TestClient):
        resp = client.post("/extract", files={"file": ("card.jpg", b"", "image/jpeg")})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "No file uploaded."

    def test_image_without_ocr_service(self, client: TestClient, sample_image_bytes: bytes):
        with patch.object(main, "_ocr_client", None):
            resp = client.post("/extract", files={"file": ("card.jpg", sample_image_bytes, "image/jpeg")})
        assert resp.status_code == 503
        assert "OCR" in resp.json()["detail"]

    def test_image_extraction(self, client: TestClient, sample_image_bytes: bytes, card_lines: list[str]):
        ocr = MagicMock()
        ocr.detect_lines.return_value = card_lines

        with patch.object(main, "_ocr_client", ocr):
            resp = client.post("/extract", files={"file": ("card.jpg", sample_image_bytes, "image/jpeg")})

        assert resp.status_code == 200
        body = resp.json()
        assert body["file_type"] == "image"
        assert body["source"] == "ocr"
        assert len(body["structured_data"]) == 17
        assert body["structured_data"]["national_id"] == "010190-1234"
        assert body["structured_data"]["doctor_name"] == "Valby Lægehus"

    def test_pdf_text_layer(self, client: TestClient, text_pdf_bytes: bytes):
        with patch.object(main, "_ocr_client", None):
            resp = client.post("/extract", files={"file": ("card.pdf", text_pdf_bytes, "application/pdf")})

        assert resp.status_code == 200
        body = resp.json()
        assert body["file_type"] == "pdf"
        assert body["structured_data"]["holder_name"] == "PETER HANSEN"


class TestMapEndpoint:
    def test_map_lines(self, client: TestClient, anchored_lines: list[str]):
        resp = client.post("/map", json={"lines": anchored_lines})
        assert resp.status_code == 200
        body = resp.json()
        assert len(body) == 17
        assert body["holder_name"] == "Peter Hansen"
        assert body["doctor_name"] == "Nørrebro Medical Center"
        assert body["postal_code"] == "2200"

    def test_missing_lines_rejected(self, client: TestClient):
        resp = client.post("/map", json={})
        assert resp.status_code == 422


class TestHealthEndpoint:
    def test_health_without_collaborators(self, client: TestClient):
        with patch.object(main, "_ocr_client", None), patch.object(main, "_converter", None):
            resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "healthy"
        assert body["ocr_available"] is False
        assert body["convert_api"] == "unconfigured"

    def test_health_reports_utc_timestamp(self, client: TestClient):
        with patch.object(main, "_ocr_client", None), patch.object(main, "_converter", None):
            body = client.get("/health").json()
        stamp = datetime.fromisoformat(body["timestamp"])
        assert stamp.utcoffset() == timedelta(0)

    def test_health_with_collaborators(self, client: TestClient):
        ocr = MagicMock()
        ocr.health.return_value = {"status": "healthy"}
        converter = MagicMock()
        converter.configured = True
        converter.is_api_key_valid.return_value = False

        with patch.object(main, "_ocr_client", ocr), patch.object(main, "_converter", converter):
            resp = client.get("/health")

        body = resp.json()
        assert body["ocr_available"] is True
        assert body["ocr_health"] == {"status": "healthy"}
        assert body["convert_api"] == "unavailable"
