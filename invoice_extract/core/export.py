"""
CSV export of ledger invoices.

One row per line item; an invoice without items gets a single "No line items"
row. Subtotal, tax and total appear only on an invoice's first row; later
rows of the same invoice leave those columns blank.
"""

import csv
import io
import logging
import math
from collections.abc import Iterable, Sequence
from datetime import date
from pathlib import Path
from typing import Any, List, Optional

from .models import InvoiceRecord

logger = logging.getLogger(__name__)

CSV_HEADERS = [
    "Vendor", "Invoice Number", "Invoice Date", "Due Date", "PO Number",
    "Description", "Quantity", "Unit Price", "Line Total",
    "Subtotal", "Tax", "Total",
]

NO_LINE_ITEMS_DESCRIPTION = "No line items"


def _text(value: Optional[str]) -> str:
    return value or ""


def _number(value: Any) -> int | float:
    """Absent or zero amounts render as 0, whole amounts without a decimal part."""
    if not value:
        return 0
    number = float(value)
    if not math.isfinite(number):
        return 0
    return int(number) if number.is_integer() else number


def _invoice_columns(invoice: InvoiceRecord) -> List[str]:
    return [
        _text(invoice.vendor_name),
        _text(invoice.invoice_number),
        _text(invoice.invoice_date),
        _text(invoice.due_date),
        _text(invoice.purchase_order_number),
    ]


def _total_columns(invoice: InvoiceRecord) -> List[int | float]:
    return [
        _number(invoice.subtotal),
        _number(invoice.tax_amount),
        _number(invoice.total_amount),
    ]


def build_rows(invoices: Iterable[InvoiceRecord]) -> List[List[Any]]:
    """Flatten invoices into data rows (header not included).

    Text columns are str, amounts are int/float and blank cells are None.
    """
    rows: List[List[Any]] = []
    for invoice in invoices:
        if invoice.line_items:
            for index, item in enumerate(invoice.line_items):
                row = _invoice_columns(invoice) + [
                    _text(item.description),
                    _number(item.quantity),
                    _number(item.unit_price),
                    _number(item.line_total),
                ]
                row += _total_columns(invoice) if index == 0 else [None, None, None]
                rows.append(row)
        else:
            rows.append(
                _invoice_columns(invoice)
                + [NO_LINE_ITEMS_DESCRIPTION, None, None, None]
                + _total_columns(invoice)
            )
    return rows


def export_csv(invoices: Sequence[InvoiceRecord]) -> str:
    """Render invoices as CSV text.

    The header is written bare; in data rows every text cell is quoted,
    numbers are not, and blank cells are left empty.
    """
    buffer = io.StringIO(newline="")
    csv.writer(buffer, lineterminator="\n").writerow(CSV_HEADERS)

    writer = csv.writer(buffer, quoting=csv.QUOTE_STRINGS, lineterminator="\n")
    rows = build_rows(invoices)
    writer.writerows(rows)

    logger.debug(f"[EXPORT] {len(invoices)} invoice(s) rendered as {len(rows)} row(s)")
    return buffer.getvalue()


def export_bytes(invoices: Sequence[InvoiceRecord]) -> bytes:
    return export_csv(invoices).encode("utf-8")


def export_filename(invoice_count: int, on: Optional[date] = None) -> str:
    """Download name, counting invoices rather than rows."""
    on = on or date.today()
    return f"invoices-{on.isoformat()}-{invoice_count}-items.csv"


def write_export(invoices: Sequence[InvoiceRecord], output_dir: Path | str, on: Optional[date] = None) -> Path:
    """Write the CSV export into ``output_dir`` and return its path."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    output_path = output_dir / export_filename(len(invoices), on)
    output_path.write_bytes(export_bytes(invoices))

    logger.info(f"[EXPORT] Saved {len(invoices)} invoice(s) to {output_path}")
    return output_path
