"""Request building and the Gemini call for invoice extraction."""

import base64
import logging
import time
from pathlib import Path
from typing import Awaitable, Callable, Optional

from google import genai
from google.genai import types

from ..config import Settings
from ..prompts import (
    EXTRACTION_USER_MESSAGE,
    INVOICE_EXTRACTION_PROMPT,
    INVOICE_EXTRACTION_PROMPT_VERSION,
)
from .exceptions import ConfigurationError, TransportError
from .models import ExtractionRequest, RawDocument

logger = logging.getLogger(__name__)

# Anything that turns a request into the model's raw text reply.
Extractor = Callable[[ExtractionRequest], Awaitable[str]]


def build_extraction_request(document: RawDocument) -> ExtractionRequest:
    """Package one document with the fixed extraction instruction.

    Type and size limits are the validator's job and are not rechecked here.
    """
    return ExtractionRequest(
        document_name=document.name,
        media_type=document.media_type,
        data=base64.b64encode(document.content).decode("ascii"),
        instruction=INVOICE_EXTRACTION_PROMPT,
        prompt_version=INVOICE_EXTRACTION_PROMPT_VERSION,
    )


class GeminiExtractor:
    """Sends extraction requests to Gemini and returns the reply text.

    Every failure to get a reply, whatever the SDK raised, surfaces as
    TransportError so callers only deal with one error type per call.
    """

    def __init__(self, settings: Settings, client: Optional["genai.Client"] = None):
        if settings.use_vertex_ai and "not-set" in (settings.google_cloud_project, settings.google_cloud_location):
            raise ConfigurationError(
                "google_cloud_project",
                "GOOGLE_CLOUD_PROJECT and GOOGLE_CLOUD_LOCATION are required with Vertex AI",
            )
        self.settings = settings
        self.client = client or genai.Client(**settings.api_client_kwargs)

    async def __call__(self, request: ExtractionRequest) -> str:
        config = types.GenerateContentConfig(
            system_instruction=request.instruction,
            max_output_tokens=self.settings.max_output_tokens,
        )
        contents = [
            types.Part.from_bytes(
                data=request.document_bytes(),
                mime_type=request.media_type,
            ),
            EXTRACTION_USER_MESSAGE,
        ]

        logger.info(f"[EXTRACT] {request.document_name} - Sending to {self.settings.extraction_model}")
        start_time = time.perf_counter()

        try:
            response = await self.client.aio.models.generate_content(
                model=self.settings.extraction_model,
                contents=contents,
                config=config,
            )
            response_text = response.text
        except Exception as exc:
            logger.error(f"[EXTRACT] {request.document_name} - Call failed: {str(exc)[:150]}")
            raise TransportError(
                request.document_name,
                "Gemini request failed",
                original_error=exc,
                model_used=self.settings.extraction_model,
            ) from exc

        elapsed_ms = int((time.perf_counter() - start_time) * 1000)

        if not response_text:
            raise TransportError(
                request.document_name,
                "Gemini returned no text",
                model_used=self.settings.extraction_model,
            )

        logger.info(f"[EXTRACT] {request.document_name} - Gemini responded in {elapsed_ms}ms")

        if self.settings.debug_responses:
            self._save_response(request.document_name, response_text)

        return response_text

    def _save_response(self, document_name: str, response_text: str) -> None:
        folder = Path(self.settings.responses_directory)
        folder.mkdir(parents=True, exist_ok=True)
        response_path = folder / f"{Path(document_name).stem}_response.txt"
        response_path.write_text(response_text, encoding="utf-8")
        logger.debug(f"[EXTRACT] {document_name} - Reply saved to {response_path}")
