"""Canonical data models for invoice extraction."""
import base64
import math
import mimetypes
import re
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

PDF_MEDIA_TYPE = "application/pdf"

# Top-level InvoiceRecord fields that hold text.
TEXT_FIELDS = (
    "invoice_number",
    "vendor_name",
    "vendor_address",
    "vendor_email",
    "vendor_phone",
    "invoice_date",
    "due_date",
    "purchase_order_number",
)

AMOUNT_FIELDS = ("subtotal", "tax_amount", "total_amount")

LINE_ITEM_NUMERIC_FIELDS = ("quantity", "unit_price", "line_total")

_NON_NUMERIC_RE = re.compile(r"[^0-9,.\-]+")
_DECIMAL_COMMA_RE = re.compile(r",\d{1,2}$")


def _finite(number: float) -> Optional[float]:
    return number if math.isfinite(number) else None


def parse_amount(value: object) -> Optional[float]:
    """Parse an amount the model may have rendered as text.

    Currency symbols and thousands separators are dropped. A lone comma
    followed by one or two digits is a decimal comma (``12,50``); otherwise
    commas group thousands (``1,234``). Returns None when nothing numeric is
    left or the value is not finite.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return _finite(float(value))
        except OverflowError:
            return None
    text = _NON_NUMERIC_RE.sub("", str(value).strip())
    if not text:
        return None
    if "," in text and "." in text:
        if text.rfind(",") > text.rfind("."):
            # 1.234,56 -> 1234.56
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif text.count(",") == 1 and _DECIMAL_COMMA_RE.search(text):
        text = text.replace(",", ".")
    elif "," in text:
        text = text.replace(",", "")
    try:
        return _finite(float(text))
    except ValueError:
        return None


class RawDocument(BaseModel):
    """An uploaded document, consumed once by the request builder."""

    model_config = ConfigDict(frozen=True)

    content: bytes = Field(..., description="Document bytes")
    media_type: str = Field(..., description="Declared MIME type")
    size: int = Field(..., ge=0, description="Declared size in bytes")
    name: str = Field(..., description="Display name used for reporting")

    @classmethod
    def from_path(cls, path: Path | str) -> "RawDocument":
        """Read a document from disk, declaring its real size."""
        path = Path(path)
        content = path.read_bytes()
        media_type, _ = mimetypes.guess_type(path.name)
        return cls(
            content=content,
            media_type=media_type or "application/octet-stream",
            size=len(content),
            name=path.name,
        )


class ExtractionRequest(BaseModel):
    """One document plus the fixed instruction, ready for the model."""

    document_name: str = Field(..., description="Display name of the source document")
    media_type: str = Field(default=PDF_MEDIA_TYPE)
    data: str = Field(..., description="Base64 encoded document")
    instruction: str = Field(..., description="Fixed extraction instruction")
    prompt_version: str = Field(..., description="Version of the instruction template")

    def document_bytes(self) -> bytes:
        return base64.b64decode(self.data)


class LineItem(BaseModel):
    """One purchased product or service row."""

    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")

    description: Optional[str] = None
    quantity: Optional[float] = Field(default=1.0, description="Defaults to 1 when not shown")
    unit_price: Optional[float] = None
    line_total: Optional[float] = None

    @field_validator("quantity", mode="before")
    @classmethod
    def default_quantity(cls, v):
        """Missing or unreadable quantity means one unit."""
        parsed = parse_amount(v)
        return 1.0 if parsed is None else parsed

    @field_validator("unit_price", "line_total", mode="before")
    @classmethod
    def parse_amounts(cls, v):
        return parse_amount(v)


class InvoiceRecord(BaseModel):
    """Normalized invoice as extracted from one document."""

    model_config = ConfigDict(
        coerce_numbers_to_str=True,
        populate_by_name=True,
        extra="ignore",
    )

    invoice_number: Optional[str] = Field(None, description="Invoice/bill number")

    vendor_name: Optional[str] = Field(None, description="Company or person billing")
    vendor_address: Optional[str] = None
    vendor_email: Optional[str] = None
    vendor_phone: Optional[str] = None

    invoice_date: Optional[str] = Field(None, description="Invoice issue date (YYYY-MM-DD)")
    due_date: Optional[str] = Field(None, description="Payment due date (YYYY-MM-DD)")
    purchase_order_number: Optional[str] = None

    subtotal: Optional[float] = Field(None, description="Amount before tax")
    tax_amount: Optional[float] = Field(None, description="Sales tax, VAT, etc")
    total_amount: Optional[float] = Field(None, description="Final amount due")

    line_items: List[LineItem] = Field(default_factory=list)

    source_filename: Optional[str] = Field(
        None,
        alias="_filename",
        description="Originating document, attached by the batch orchestrator",
    )

    @field_validator("subtotal", "tax_amount", "total_amount", mode="before")
    @classmethod
    def parse_amounts(cls, v):
        return parse_amount(v)

    @field_validator("line_items", mode="before")
    @classmethod
    def null_line_items(cls, v):
        """Treat a null line item list as empty."""
        return [] if v is None else v


class BatchResult(BaseModel):
    """Outcome of one batch: ordered successes and failed document names."""

    successes: List[InvoiceRecord] = Field(default_factory=list)
    failures: List[str] = Field(default_factory=list)

    @property
    def failure_summary(self) -> Optional[str]:
        """Single user-facing message naming every failed document."""
        if not self.failures:
            return None
        return f"Failed to process: {', '.join(self.failures)}"
