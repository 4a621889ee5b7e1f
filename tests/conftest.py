"""Shared fixtures for invoice extraction tests."""

import json
from pathlib import Path

import pytest

from invoice_extract.config import Settings
from invoice_extract.core.models import InvoiceRecord, LineItem, RawDocument

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def mock_responses():
    """Canned model replies keyed by scenario."""
    with open(FIXTURES_DIR / "mock_responses.json", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def make_document():
    """Factory for in-memory PDF documents."""
    def _make(name: str = "invoice.pdf", content: bytes = b"%PDF-1.4 minimal",
              media_type: str = "application/pdf", size: int | None = None) -> RawDocument:
        return RawDocument(
            content=content,
            media_type=media_type,
            size=len(content) if size is None else size,
            name=name,
        )
    return _make


@pytest.fixture
def settings(tmp_path):
    """Settings that never reach real Google endpoints."""
    return Settings(
        gemini_api_key="test-key",
        responses_directory=tmp_path / "json_responses",
        output_directory=tmp_path / "output",
        logs_directory=tmp_path / "logs",
    )


@pytest.fixture
def sample_invoice():
    """Invoice with two line items and consistent totals."""
    return InvoiceRecord(
        vendor_name="Acme",
        invoice_number="INV-1",
        invoice_date="2024-01-15",
        subtotal=25.5,
        tax_amount=2.5,
        total_amount=28.0,
        line_items=[
            LineItem(description="Widget", quantity=2, unit_price=10, line_total=20),
            LineItem(description="Gadget", quantity=1, unit_price=5.5, line_total=5.5),
        ],
    )
