"""Sequential batch processing of uploaded invoices."""

import asyncio
import logging
from collections.abc import Sequence
from typing import Optional

from tqdm import tqdm

from .exceptions import InvoiceExtractError, TransportError
from .extraction import Extractor, build_extraction_request
from .models import BatchResult, InvoiceRecord, RawDocument
from .normalize import normalize_response
from .validation import MAX_BATCH_SIZE, MAX_FILE_SIZE_BYTES, validate_batch

logger = logging.getLogger(__name__)

INTER_DOCUMENT_DELAY_SECONDS = 0.5


async def extract_document(document: RawDocument, extractor: Extractor) -> InvoiceRecord:
    """Run one document through request building, the model call and normalization."""
    request = build_extraction_request(document)
    try:
        response_text = await extractor(request)
    except InvoiceExtractError:
        raise
    except Exception as exc:
        raise TransportError(
            document.name,
            f"Extractor failed: {type(exc).__name__}",
            original_error=exc,
        ) from exc
    record = normalize_response(response_text)
    record.source_filename = document.name
    return record


async def process_batch(
    documents: Sequence[RawDocument],
    extractor: Extractor,
    *,
    delay_seconds: float = INTER_DOCUMENT_DELAY_SECONDS,
    max_batch_size: int = MAX_BATCH_SIZE,
    max_file_size_bytes: int = MAX_FILE_SIZE_BYTES,
    show_progress: bool = False,
    cancel_event: Optional[asyncio.Event] = None,
) -> BatchResult:
    """Extract every document in order, one at a time.

    The whole batch is validated first; a ValidationError propagates before
    any document is sent. After that, a failure on one document is recorded
    by name and the batch moves on. Documents are never in flight
    concurrently, and ``delay_seconds`` separates consecutive calls to stay
    under the model's rate limit.

    Args:
        documents: Documents in the order they were uploaded
        extractor: Async callable returning the model's raw reply
        delay_seconds: Pause between two documents (not after the last)
        max_batch_size: Upper bound on the number of documents
        max_file_size_bytes: Upper bound on each document's size
        show_progress: Display a tqdm progress bar
        cancel_event: When set, no further document is started

    Returns:
        BatchResult with successes in input order and failed document names

    Raises:
        ValidationError: If the batch or any document violates the limits
    """
    validate_batch(documents, max_batch_size, max_file_size_bytes)

    result = BatchResult()
    total = len(documents)
    logger.info(f"[BATCH] Processing {total} invoice(s)...")

    with tqdm(total=total, desc="Extracting invoices", unit="file", disable=not show_progress) as pbar:
        for index, document in enumerate(documents):
            if cancel_event is not None and cancel_event.is_set():
                logger.warning(f"[BATCH] Cancelled before {document.name} ({index} of {total} processed)")
                break

            logger.info(f"[BATCH] Processing {index + 1} of {total}: {document.name}")
            try:
                record = await extract_document(document, extractor)
            except InvoiceExtractError as exc:
                logger.error(f"[BATCH] {document.name} - Failed: {str(exc)[:150]}")
                result.failures.append(document.name)
            else:
                logger.info(f"[BATCH] {document.name} - Processed")
                result.successes.append(record)

            pbar.update(1)

            if index < total - 1:
                await asyncio.sleep(delay_seconds)

    logger.info(f"[BATCH] Successfully processed {len(result.successes)} of {total} invoice(s)")
    if result.failure_summary:
        logger.warning(f"[BATCH] {result.failure_summary}")

    return result
