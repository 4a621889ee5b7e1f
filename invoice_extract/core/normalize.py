"""
Normalization of free-text model replies into InvoiceRecord.

The model is told to answer with JSON only, but replies sometimes wrap the
object in explanatory prose. The payload is taken from the first ``{`` to the
last ``}``. That greedy span can merge two JSON-looking fragments if the model
quotes example JSON before the real answer; such replies end up as
MalformedPayload rather than being silently repaired.
"""

import json
import logging
import re
from typing import Any

from pydantic import ValidationError as SchemaError

from .exceptions import MalformedPayload, NoStructuredPayload
from .models import InvoiceRecord

logger = logging.getLogger(__name__)

_MARKUP_RE = re.compile(r"<[^>]*>")


def strip_markup(value: Any) -> Any:
    """Remove tag-like ``<...>`` substrings from strings and trim them.

    Non-string values pass through untouched. This is not HTML entity
    decoding; it only keeps markup out of values that may be rendered later.
    """
    if isinstance(value, str):
        return _MARKUP_RE.sub("", value).strip()
    return value


def locate_json_payload(response_text: str) -> str:
    """Return the substring from the first ``{`` to the last ``}``.

    Raises:
        NoStructuredPayload: If the reply has no such span
    """
    json_start = response_text.find("{")
    json_end = response_text.rfind("}") + 1

    if json_start == -1 or json_end <= json_start:
        raise NoStructuredPayload(response_text)

    return response_text[json_start:json_end]


def sanitize_payload(payload: dict[str, Any]) -> dict[str, Any]:
    """Strip markup from top-level strings and line item descriptions."""
    sanitized = {key: strip_markup(value) for key, value in payload.items()}

    line_items = sanitized.get("line_items")
    if isinstance(line_items, list):
        sanitized["line_items"] = [
            {**item, "description": strip_markup(item.get("description"))}
            if isinstance(item, dict) else item
            for item in line_items
        ]

    return sanitized


def normalize_response(response_text: str) -> InvoiceRecord:
    """Turn one model reply into an InvoiceRecord.

    All or nothing: either a complete record is returned or an error is
    raised. Fields the model left out stay None; only line item quantity
    has a default.

    Raises:
        NoStructuredPayload: If the reply contains no ``{...}`` span
        MalformedPayload: If the span is not a JSON object of the invoice shape
    """
    json_str = locate_json_payload(response_text)

    try:
        payload = json.loads(json_str)
    except (ValueError, RecursionError) as json_error:
        # JSONDecodeError, oversized integer literals and runaway nesting
        logger.warning(f"[NORMALIZE] JSON decode failed: {str(json_error)[:150]}")
        raise MalformedPayload(response_text, json_error) from json_error

    # The source filename is attached by the orchestrator, never taken from the model.
    payload.pop("_filename", None)
    payload.pop("source_filename", None)

    try:
        record = InvoiceRecord.model_validate(sanitize_payload(payload))
    except SchemaError as schema_error:
        logger.warning(f"[NORMALIZE] Payload does not match invoice schema: {schema_error.error_count()} error(s)")
        raise MalformedPayload(response_text, schema_error) from schema_error

    logger.debug(
        f"[NORMALIZE] Parsed invoice {record.invoice_number!r} from {record.vendor_name!r} "
        f"with {len(record.line_items)} line item(s)"
    )
    return record
