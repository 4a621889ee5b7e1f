"""
HTTP boundary for invoice extraction.

Stateless: each request extracts or exports and nothing is kept server-side.
Run with ``uvicorn --factory invoice_extract.api:create_app``.
"""

import logging
import time
from typing import List, Optional

from fastapi import FastAPI, File, Request, UploadFile, status
from fastapi.responses import JSONResponse, Response

from .config import Settings, get_settings
from .core.batch import extract_document
from .core.exceptions import (
    ConfigurationError,
    MalformedPayload,
    NoStructuredPayload,
    TransportError,
    ValidationError,
)
from .core.export import export_bytes, export_filename
from .core.extraction import Extractor, GeminiExtractor
from .core.models import InvoiceRecord, RawDocument
from .core.rate_limit import FixedWindowRateLimiter
from .core.validation import validate_document

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


def _client_id(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded
    if request.client:
        return request.client.host
    return "unknown"


def create_app(
    settings: Optional[Settings] = None,
    extractor: Optional[Extractor] = None,
    rate_limiter: Optional[FixedWindowRateLimiter] = None,
) -> FastAPI:
    """Build the FastAPI application.

    Settings come from the environment unless given. The Gemini extractor
    is created on first use so the app can start without reaching Google.
    """
    settings = settings or get_settings()
    rate_limiter = rate_limiter or FixedWindowRateLimiter(
        max_requests=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
        max_clients=settings.rate_limit_max_clients,
    )

    app = FastAPI(title="Invoice Extract")
    app.state.extractor = extractor

    def get_extractor() -> Extractor:
        if app.state.extractor is None:
            app.state.extractor = GeminiExtractor(settings)
        return app.state.extractor

    @app.get("/health")
    async def health_check():
        return {"status": "ok"}

    @app.post("/api/extract")
    async def extract(request: Request, file: UploadFile | None = File(None)):
        """Extract one invoice PDF into a structured record."""
        if not rate_limiter.allow(_client_id(request)):
            return _error(
                status.HTTP_429_TOO_MANY_REQUESTS,
                f"Rate limit exceeded. Maximum {rate_limiter.max_requests} requests per hour.",
            )

        if file is None:
            return _error(status.HTTP_400_BAD_REQUEST, "No file provided")

        content = await file.read()
        document = RawDocument(
            content=content,
            media_type=file.content_type or "application/octet-stream",
            size=len(content),
            name=file.filename or "upload.pdf",
        )

        try:
            validate_document(document, settings.max_file_size_bytes)
        except ValidationError as exc:
            message = "Only PDF files are allowed" if exc.rule == "media_type" else (
                f"File size exceeds {settings.max_file_size_bytes / (1024 * 1024):g}MB limit"
            )
            return _error(status.HTTP_400_BAD_REQUEST, message)

        logger.info(f"[API] Processing: {document.name} ({document.size} bytes)")
        start_time = time.perf_counter()

        try:
            extractor = get_extractor()
        except ConfigurationError as exc:
            logger.error(f"[API] Extractor unavailable: {exc.message}")
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to process invoice", details=exc.message)

        try:
            record = await extract_document(document, extractor)
        except NoStructuredPayload:
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to extract structured data from invoice")
        except MalformedPayload:
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to parse extracted data")
        except TransportError as exc:
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to process invoice", details=exc.message)

        processing_time_ms = int((time.perf_counter() - start_time) * 1000)
        logger.info(f"[API] {document.name} - Extracted in {processing_time_ms}ms")

        return {
            "success": True,
            "data": record.model_dump(by_alias=True),
            "processing_time_ms": processing_time_ms,
        }

    @app.post("/api/export")
    async def export(invoices: List[InvoiceRecord]):
        """Render edited invoices as a downloadable CSV file."""
        filename = export_filename(len(invoices))
        return Response(
            content=export_bytes(invoices),
            media_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    return app
