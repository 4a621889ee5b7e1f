"""In-memory, editable collection of extracted invoices.

The ledger keeps each invoice's amounts consistent while a user corrects it:

* editing a line item's quantity or unit price recomputes its line total;
* any line item change recomputes subtotal as the sum of line totals and
  total as subtotal plus tax;
* editing tax recomputes total.

Direct edits of ``subtotal`` or ``total_amount`` are user overrides: they are
stored verbatim and kept until the next line item edit. A tax edit recomputes
total from the stored subtotal.

Mutations never raise. Bad indices are ignored and malformed numbers count
as 0.
"""

import logging
import math
from collections.abc import Iterable, Iterator
from typing import Any, List, Optional

from .exceptions import OutOfRange
from .models import AMOUNT_FIELDS, LINE_ITEM_NUMERIC_FIELDS, TEXT_FIELDS, InvoiceRecord, LineItem

logger = logging.getLogger(__name__)


def coerce_number(value: Any) -> float:
    """Read an edited value as a number, falling back to 0."""
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _coerce_text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


class InvoiceLedger:
    """Ordered invoices for one session."""

    def __init__(self, invoices: Optional[Iterable[InvoiceRecord]] = None):
        self._invoices: List[InvoiceRecord] = list(invoices or [])

    def __len__(self) -> int:
        return len(self._invoices)

    def __iter__(self) -> Iterator[InvoiceRecord]:
        return iter(self._invoices)

    def __getitem__(self, index: int) -> InvoiceRecord:
        return self._invoices[index]

    @property
    def invoices(self) -> List[InvoiceRecord]:
        return list(self._invoices)

    @property
    def grand_total(self) -> float:
        """Sum of every invoice's total, missing totals counted as 0."""
        return sum(invoice.total_amount or 0 for invoice in self._invoices)

    def replace(self, invoices: Iterable[InvoiceRecord]) -> None:
        """Swap in a new batch of invoices."""
        self._invoices = list(invoices)

    def reset(self) -> None:
        self._invoices = []

    def update_field(self, invoice_index: int, field_name: str, value: Any) -> None:
        """Overwrite one top-level field.

        Only a ``tax_amount`` edit recomputes ``total_amount``; edits to
        ``subtotal`` and ``total_amount`` are kept as user overrides.
        """
        try:
            invoice = self._get_invoice(invoice_index)
        except OutOfRange as exc:
            logger.debug(f"[LEDGER] update_field ignored: {exc}")
            return

        if field_name in AMOUNT_FIELDS:
            setattr(invoice, field_name, coerce_number(value))
            if field_name == "tax_amount":
                invoice.total_amount = coerce_number(invoice.subtotal) + invoice.tax_amount
        elif field_name in TEXT_FIELDS:
            setattr(invoice, field_name, _coerce_text(value))
        else:
            logger.warning(f"[LEDGER] update_field ignored: '{field_name}' is not an editable invoice field")

    def update_line_item_field(self, invoice_index: int, item_index: int, field_name: str, value: Any) -> None:
        """Overwrite one line item field and re-establish the invoice totals.

        Editing quantity or unit price recomputes that item's line total.
        Editing the line total directly leaves quantity and unit price alone.
        """
        try:
            invoice = self._get_invoice(invoice_index)
            item = self._get_line_item(invoice, item_index)
        except OutOfRange as exc:
            logger.debug(f"[LEDGER] update_line_item_field ignored: {exc}")
            return

        if field_name in LINE_ITEM_NUMERIC_FIELDS:
            setattr(item, field_name, coerce_number(value))
            if field_name in ("quantity", "unit_price"):
                item.line_total = coerce_number(item.quantity) * coerce_number(item.unit_price)
        elif field_name == "description":
            item.description = _coerce_text(value)
        else:
            logger.warning(f"[LEDGER] update_line_item_field ignored: '{field_name}' is not a line item field")
            return

        self._recalculate(invoice)

    def add_line_item(self, invoice_index: int) -> None:
        """Append a zero-valued placeholder item."""
        try:
            invoice = self._get_invoice(invoice_index)
        except OutOfRange as exc:
            logger.debug(f"[LEDGER] add_line_item ignored: {exc}")
            return

        invoice.line_items.append(
            LineItem(description="New Item", quantity=1, unit_price=0, line_total=0)
        )
        self._recalculate(invoice)

    def delete_line_item(self, invoice_index: int, item_index: int) -> None:
        """Remove the item at ``item_index``."""
        try:
            invoice = self._get_invoice(invoice_index)
            self._get_line_item(invoice, item_index)
        except OutOfRange as exc:
            logger.debug(f"[LEDGER] delete_line_item ignored: {exc}")
            return

        del invoice.line_items[item_index]
        self._recalculate(invoice)

    def _get_invoice(self, invoice_index: int) -> InvoiceRecord:
        # Negative indices are rejected rather than counted from the end.
        if not 0 <= invoice_index < len(self._invoices):
            raise OutOfRange("invoice", invoice_index, len(self._invoices))
        return self._invoices[invoice_index]

    @staticmethod
    def _get_line_item(invoice: InvoiceRecord, item_index: int) -> LineItem:
        if not 0 <= item_index < len(invoice.line_items):
            raise OutOfRange("line_item", item_index, len(invoice.line_items))
        return invoice.line_items[item_index]

    @staticmethod
    def _recalculate(invoice: InvoiceRecord) -> None:
        invoice.subtotal = sum((coerce_number(item.line_total) for item in invoice.line_items), 0.0)
        invoice.total_amount = invoice.subtotal + coerce_number(invoice.tax_amount)
