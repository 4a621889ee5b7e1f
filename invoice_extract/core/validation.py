"""Pre-flight checks for uploaded documents.

Everything here runs before any extraction call is made.
"""

import logging
from collections.abc import Sequence

from .exceptions import ValidationError
from .models import PDF_MEDIA_TYPE, RawDocument

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 50
MAX_FILE_SIZE_BYTES = 10 * 1024 * 1024


def validate_document(document: RawDocument, max_file_size_bytes: int = MAX_FILE_SIZE_BYTES) -> None:
    """Check one document's declared type and size.

    Raises:
        ValidationError: If the document is not a PDF or is too large
    """
    if document.media_type != PDF_MEDIA_TYPE:
        raise ValidationError(
            f'File "{document.name}" is not a PDF',
            document_name=document.name,
            rule="media_type",
        )

    if document.size > max_file_size_bytes:
        max_size_mb = max_file_size_bytes / (1024 * 1024)
        raise ValidationError(
            f'File "{document.name}" exceeds {max_size_mb:g}MB limit',
            document_name=document.name,
            rule="file_size",
        )


def validate_batch(
    documents: Sequence[RawDocument],
    max_batch_size: int = MAX_BATCH_SIZE,
    max_file_size_bytes: int = MAX_FILE_SIZE_BYTES,
) -> None:
    """Check batch size and every document in it.

    Raises:
        ValidationError: On the first violation found; nothing should be sent
    """
    if len(documents) > max_batch_size:
        raise ValidationError(f"Maximum {max_batch_size} invoices at a time", rule="batch_size")

    if len(documents) == 0:
        raise ValidationError("Please select at least one file", rule="batch_size")

    for document in documents:
        validate_document(document, max_file_size_bytes)

    logger.debug(f"[VALIDATE] Batch of {len(documents)} document(s) accepted")
