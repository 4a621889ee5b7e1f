"""Tests for model reply normalization."""

import pytest

from invoice_extract.core.exceptions import MalformedPayload, NoStructuredPayload
from invoice_extract.core.normalize import (
    locate_json_payload,
    normalize_response,
    sanitize_payload,
    strip_markup,
)


class TestStripMarkup:
    def test_removes_tags_and_trims(self):
        assert strip_markup("  <b>INV-1</b> ") == "INV-1"

    def test_leaves_entities_alone(self):
        assert strip_markup("Smith &amp; Sons") == "Smith &amp; Sons"

    def test_non_strings_pass_through(self):
        assert strip_markup(12.5) == 12.5
        assert strip_markup(None) is None


class TestLocateJsonPayload:
    def test_first_open_to_last_close(self):
        text = 'prefix {"a": {"b": 1}} suffix'
        assert locate_json_payload(text) == '{"a": {"b": 1}}'

    def test_greedy_span_merges_fragments(self):
        text = 'Example: {"x": 1} Answer: {"y": 2}'
        assert locate_json_payload(text) == '{"x": 1} Answer: {"y": 2}'

    @pytest.mark.parametrize("text", ["no braces here", "only { open", "} before {"])
    def test_no_span(self, text):
        with pytest.raises(NoStructuredPayload):
            locate_json_payload(text)


class TestNormalizeResponse:
    """Test normalize_response end to end."""

    def test_json_only_reply(self, mock_responses):
        record = normalize_response(mock_responses["json_only"])

        assert record.vendor_name == "Acme Supplies Inc."
        assert record.invoice_number == "INV-2024-001"
        assert record.due_date == "2024-02-14"
        assert record.purchase_order_number == "PO-778"
        assert record.total_amount == 129.6
        assert [item.description for item in record.line_items] == ["Printer paper (box)", "Toner"]
        assert record.line_items[0].quantity == 4
        assert record.source_filename is None

    def test_prose_around_payload_and_markup(self, mock_responses):
        record = normalize_response(mock_responses["with_prose"])

        assert record.vendor_name == "Globex Corp"
        assert record.invoice_number == "G-17"
        assert record.line_items[0].description == "alert(1)Consulting"
        assert record.line_items[0].quantity == 1.0

    def test_tag_stripped_from_invoice_number(self):
        record = normalize_response(
            'Here is the data: {"vendor_name":"Acme","invoice_number":"<b>INV-1</b>","invoice_date":"2024-01-01"}'
        )
        assert record.invoice_number == "INV-1"
        assert record.vendor_name == "Acme"

    def test_missing_fields_pass_through_as_none(self, mock_responses):
        record = normalize_response(mock_responses["missing_fields"])

        assert record.vendor_name == "Initech"
        assert record.invoice_number is None
        assert record.subtotal is None
        assert record.tax_amount is None
        assert record.line_items == []

    def test_no_structured_payload(self, mock_responses):
        with pytest.raises(NoStructuredPayload) as exc_info:
            normalize_response(mock_responses["no_json"])
        assert exc_info.value.response_text == mock_responses["no_json"]

    def test_malformed_payload(self, mock_responses):
        with pytest.raises(MalformedPayload):
            normalize_response(mock_responses["malformed"])

    def test_bare_malformed_object(self):
        with pytest.raises(MalformedPayload) as exc_info:
            normalize_response('{"a":}')
        assert exc_info.value.parsing_error is not None

    def test_line_items_not_objects(self):
        with pytest.raises(MalformedPayload):
            normalize_response('{"vendor_name": "Acme", "line_items": ["Widget", "Gadget"]}')

    def test_model_cannot_set_filename(self):
        record = normalize_response('{"vendor_name": "Acme", "_filename": "evil.pdf"}')
        assert record.source_filename is None

    def test_oversized_integer_is_malformed(self):
        with pytest.raises(MalformedPayload) as exc_info:
            normalize_response('{"subtotal": ' + "1" * 5000 + "}")
        assert isinstance(exc_info.value.parsing_error, ValueError)

    def test_deep_nesting_is_malformed(self):
        depth = 100_000
        with pytest.raises(MalformedPayload) as exc_info:
            normalize_response('{"x": ' + "[" * depth + "]" * depth + "}")
        assert isinstance(exc_info.value.parsing_error, RecursionError)

    def test_non_finite_amounts_dropped(self):
        record = normalize_response(
            '{"vendor_name": "A", "subtotal": NaN, "tax_amount": Infinity, "total_amount": 1e400,'
            ' "line_items": [{"description": "X", "quantity": NaN, "unit_price": -Infinity}]}'
        )

        assert record.subtotal is None
        assert record.tax_amount is None
        assert record.total_amount is None
        assert record.line_items[0].quantity == 1.0
        assert record.line_items[0].unit_price is None


class TestSanitizePayload:
    def test_only_descriptions_inside_line_items(self):
        payload = {
            "vendor_name": "<p>Acme</p>",
            "subtotal": 10,
            "line_items": [{"description": "<em>Widget</em>", "unit_price": 10}, "junk"],
        }
        sanitized = sanitize_payload(payload)

        assert sanitized["vendor_name"] == "Acme"
        assert sanitized["subtotal"] == 10
        assert sanitized["line_items"][0] == {"description": "Widget", "unit_price": 10}
        assert sanitized["line_items"][1] == "junk"
