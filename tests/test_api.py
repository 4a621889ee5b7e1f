"""Tests for the HTTP boundary."""

import io
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from invoice_extract.api import create_app
from invoice_extract.core.exceptions import TransportError
from invoice_extract.core.rate_limit import FixedWindowRateLimiter

PDF_BYTES = b"%PDF-1.4 minimal"


def _upload(name="invoice.pdf", content=PDF_BYTES, media_type="application/pdf"):
    return {"file": (name, io.BytesIO(content), media_type)}


@pytest.fixture
def extractor(mock_responses):
    return AsyncMock(return_value=mock_responses["json_only"])


@pytest.fixture
def client(settings, extractor):
    return TestClient(create_app(settings=settings, extractor=extractor))


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_extract_success(client, extractor):
    r = client.post("/api/extract", files=_upload("acme.pdf"))

    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert isinstance(body["processing_time_ms"], int)
    assert body["data"]["vendor_name"] == "Acme Supplies Inc."
    assert body["data"]["_filename"] == "acme.pdf"
    assert len(body["data"]["line_items"]) == 2

    request = extractor.await_args.args[0]
    assert request.document_name == "acme.pdf"
    assert request.document_bytes() == PDF_BYTES


def test_extract_missing_file(client, extractor):
    r = client.post("/api/extract")

    assert r.status_code == 400
    assert r.json() == {"error": "No file provided"}
    extractor.assert_not_called()


def test_extract_rejects_non_pdf(client, extractor):
    r = client.post("/api/extract", files=_upload("notes.txt", b"hello", "text/plain"))

    assert r.status_code == 400
    assert r.json() == {"error": "Only PDF files are allowed"}
    extractor.assert_not_called()


def test_extract_rejects_oversized(settings, extractor):
    settings.max_file_size_bytes = 4
    client = TestClient(create_app(settings=settings, extractor=extractor))

    r = client.post("/api/extract", files=_upload())

    assert r.status_code == 400
    assert r.json()["error"].startswith("File size exceeds")
    extractor.assert_not_called()


@pytest.mark.parametrize("reply_key, message", [
    ("no_json", "Failed to extract structured data from invoice"),
    ("malformed", "Failed to parse extracted data"),
])
def test_extract_payload_errors(settings, mock_responses, reply_key, message):
    extractor = AsyncMock(return_value=mock_responses[reply_key])
    client = TestClient(create_app(settings=settings, extractor=extractor))

    r = client.post("/api/extract", files=_upload())

    assert r.status_code == 500
    assert r.json() == {"error": message}


def test_extract_transport_error(settings):
    extractor = AsyncMock(side_effect=TransportError("invoice.pdf", "timed out"))
    client = TestClient(create_app(settings=settings, extractor=extractor))

    r = client.post("/api/extract", files=_upload())

    assert r.status_code == 500
    body = r.json()
    assert body["error"] == "Failed to process invoice"
    assert "timed out" in body["details"]


def test_extract_unexpected_extractor_error(settings):
    extractor = AsyncMock(side_effect=ConnectionError("reset by peer"))
    client = TestClient(create_app(settings=settings, extractor=extractor))

    r = client.post("/api/extract", files=_upload())

    assert r.status_code == 500
    body = r.json()
    assert body["error"] == "Failed to process invoice"
    assert "ConnectionError" in body["details"]


def test_extract_misconfigured_vertex(settings):
    settings.use_vertex_ai = True
    client = TestClient(create_app(settings=settings))

    r = client.post("/api/extract", files=_upload())

    assert r.status_code == 500
    body = r.json()
    assert body["error"] == "Failed to process invoice"
    assert "google_cloud_project" in body["details"]


def test_rate_limit_per_client(settings, extractor):
    limiter = FixedWindowRateLimiter(max_requests=2)
    client = TestClient(create_app(settings=settings, extractor=extractor, rate_limiter=limiter))
    headers = {"x-forwarded-for": "203.0.113.7"}

    statuses = [client.post("/api/extract", files=_upload(), headers=headers).status_code for _ in range(3)]

    assert statuses == [200, 200, 429]
    r = client.post("/api/extract", files=_upload(), headers=headers)
    assert r.json() == {"error": "Rate limit exceeded. Maximum 2 requests per hour."}

    other = client.post("/api/extract", files=_upload(), headers={"x-forwarded-for": "198.51.100.2"})
    assert other.status_code == 200
    assert extractor.await_count == 3


def test_export_csv(client, sample_invoice):
    payload = [sample_invoice.model_dump(by_alias=True)]

    r = client.post("/api/export", json=payload)

    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    assert 'filename="invoices-' in r.headers["content-disposition"]
    assert r.headers["content-disposition"].endswith('-1-items.csv"')
    lines = r.text.split("\n")
    assert lines[0].startswith("Vendor,Invoice Number")
    assert lines[1].startswith('"Acme","INV-1"')
