"""Exception hierarchy for invoice extraction."""

from typing import Any, Optional


class InvoiceExtractError(Exception):
    """Base exception for all invoice extraction errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(InvoiceExtractError):
    """Raised when a batch violates the count, type or size constraints.

    Always raised before any document is sent to the extraction model.
    """

    def __init__(
        self,
        message: str,
        document_name: Optional[str] = None,
        rule: str = "batch",
    ) -> None:
        self.document_name = document_name
        self.rule = rule

        details: dict[str, Any] = {"rule": rule}
        if document_name is not None:
            details["document_name"] = document_name

        super().__init__(message, details)


class TransportError(InvoiceExtractError):
    """Raised when the call to the extraction model does not complete."""

    def __init__(
        self,
        document_name: str,
        message: str,
        original_error: Optional[Exception] = None,
        model_used: Optional[str] = None,
    ) -> None:
        self.document_name = document_name
        self.original_error = original_error
        self.model_used = model_used

        full_message = f"Extraction call failed for {document_name}: {message}"
        if model_used:
            full_message += f" (Model: {model_used})"
        if original_error:
            full_message += f" (Original error: {original_error})"

        details = {"document_name": document_name}
        if model_used:
            details["model_used"] = model_used

        super().__init__(full_message, details)


class PayloadError(InvoiceExtractError):
    """Base class for replies that cannot be read as an invoice."""

    def __init__(self, message: str, response_text: str) -> None:
        self.response_text = response_text
        super().__init__(message, {"response_preview": response_text[:100]})


class NoStructuredPayload(PayloadError):
    """Raised when the reply contains no ``{...}`` span at all."""

    def __init__(self, response_text: str) -> None:
        super().__init__(
            f"No JSON object found in response: {response_text[:100]}...",
            response_text,
        )


class MalformedPayload(PayloadError):
    """Raised when the ``{...}`` span is not valid JSON or not an invoice object."""

    def __init__(self, response_text: str, parsing_error: Optional[Exception] = None) -> None:
        self.parsing_error = parsing_error
        message = "Unable to parse JSON payload"
        if parsing_error:
            message += f" (Original error: {parsing_error})"
        super().__init__(message, response_text)


class OutOfRange(InvoiceExtractError):
    """Raised inside the ledger when an index does not exist."""

    def __init__(self, collection: str, index: int, size: int) -> None:
        self.collection = collection
        self.index = index
        self.size = size
        super().__init__(
            f"{collection} index {index} out of range (size {size})",
            {"collection": collection, "index": index, "size": size},
        )


class ConfigurationError(InvoiceExtractError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, setting_name: str, issue: str) -> None:
        message = f"Configuration error for '{setting_name}': {issue}"
        super().__init__(message, {"setting_name": setting_name, "issue": issue})
        self.setting_name = setting_name
        self.issue = issue


__all__ = [
    "InvoiceExtractError",
    "ValidationError",
    "TransportError",
    "PayloadError",
    "NoStructuredPayload",
    "MalformedPayload",
    "OutOfRange",
    "ConfigurationError",
]
