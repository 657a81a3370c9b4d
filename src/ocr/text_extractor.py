"""Staged text extraction with local OCR, remote OCR and fallbacks.

Stages run in order and the first non-empty text wins:

1. local Tesseract (PDF pages rendered, optionally page 1 only);
2. the remote OCR API, for image content only;
3. a fallback that decodes text content, reads a PDF's embedded text
   layer, or renders PDF pages and sends them to the remote API.

Stage failures are logged and swallowed. ``TextExtractionError`` is
raised only when every attempted stage raised.
"""

import io
from collections.abc import Callable

from PIL import Image

from src.utils.config import AppConfig
from src.utils.logger import get_logger

from .image_payload import fit_payload
from .pdf_handler import PDFHandler
from .remote_client import RemoteOCRClient
from .tesseract_engine import TesseractEngine

logger = get_logger(__name__)

PDF_CONTENT_TYPE = "application/pdf"
ROTA_HINT = "rota"


class TextExtractionError(RuntimeError):
    """Raised when no extraction stage could read the input."""


def is_pdf(content: bytes, content_type: str | None) -> bool:
    """Return whether the content is a PDF by MIME type or magic bytes."""
    return content_type == PDF_CONTENT_TYPE or content[:4] == b"%PDF"


class TextExtractor:
    """Best-effort plain-text extraction over several OCR backends.

    Args:
        config: Application configuration.
        engine: Local OCR engine. Built from config when omitted.
        remote_client: Remote OCR client. Built from config when omitted.
        pdf_handler: PDF renderer. Built from config when omitted.
    """

    def __init__(
        self,
        config: AppConfig,
        engine: TesseractEngine | None = None,
        remote_client: RemoteOCRClient | None = None,
        pdf_handler: PDFHandler | None = None,
    ) -> None:
        self.config = config
        self.engine = engine or TesseractEngine(
            tesseract_cmd=config.ocr.tesseract_cmd,
            default_lang=config.ocr.default_lang,
            oem=config.ocr.oem,
        )
        self.remote_client = remote_client or RemoteOCRClient(config.remote_ocr)
        self.pdf_handler = pdf_handler or PDFHandler(dpi=config.ocr.pdf_dpi)

    def extract_text(
        self,
        content: bytes,
        content_type: str,
        document_type: str | None = None,
        first_page_only: bool = False,
        filename: str = "document",
    ) -> str:
        """Extract plain text from a file.

        Args:
            content: Raw file bytes.
            content_type: Declared MIME type.
            document_type: Category hint; ``"rota"`` selects the table
                segmentation mode and character whitelist.
            first_page_only: Only render and read page 1 of a PDF.
            filename: Display name used in logs and uploads.

        Returns:
            The first non-empty text found, stripped, or ``""`` when every
            stage ran but found nothing.

        Raises:
            TextExtractionError: If every attempted stage raised.
        """
        content_type = content_type or "application/octet-stream"
        logger.info(
            "Extracting text from %s (%s, hint=%s, first_page_only=%s)",
            filename,
            content_type,
            document_type,
            first_page_only,
        )

        stages: list[tuple[str, Callable[[], str]]] = []
        if self.config.ocr.enabled and self.engine.is_available():
            stages.append(
                (
                    "local",
                    lambda: self._local_ocr(
                        content, content_type, document_type, first_page_only
                    ),
                )
            )
        if self.remote_client.is_configured and content_type.startswith("image/"):
            stages.append(
                (
                    "remote",
                    lambda: self.remote_client.recognize(content, filename, content_type),
                )
            )
        stages.append(
            (
                "fallback",
                lambda: self._fallback(content, content_type, first_page_only, filename),
            )
        )

        failures: list[str] = []
        for name, stage in stages:
            try:
                text = stage()
            except Exception as exc:
                logger.warning("Text extraction stage %s failed: %s", name, exc)
                failures.append(f"{name}: {exc}")
                continue

            if text and text.strip():
                logger.info("Stage %s produced %d characters", name, len(text.strip()))
                logger.debug("Extracted text from %s:\n%s", filename, text)
                return text.strip()
            logger.info("Stage %s produced no text", name)

        if len(failures) == len(stages):
            raise TextExtractionError(
                f"All extraction stages failed for {filename}: " + "; ".join(failures)
            )

        logger.warning("No text found in %s", filename)
        return ""

    def _local_ocr(
        self,
        content: bytes,
        content_type: str,
        document_type: str | None,
        first_page_only: bool,
    ) -> str:
        if document_type == ROTA_HINT:
            psm, whitelist = self.config.ocr.rota_psm, self.config.ocr.rota_whitelist
        else:
            psm, whitelist = self.config.ocr.psm, None

        if is_pdf(content, content_type):
            pages = self.pdf_handler.pdf_to_images(
                content, first_page_only=first_page_only, dpi=self.config.ocr.pdf_dpi
            )
        else:
            pages = [Image.open(io.BytesIO(content))]

        texts = [
            self.engine.extract_text(page, psm=psm, whitelist=whitelist)
            for page in pages
        ]
        return "\n\n".join(t.strip() for t in texts if t.strip())

    def _fallback(
        self,
        content: bytes,
        content_type: str,
        first_page_only: bool,
        filename: str,
    ) -> str:
        if content_type.startswith("text/"):
            return content.decode("utf-8", errors="replace")

        if not is_pdf(content, content_type):
            raise ValueError(f"No text layer available in {content_type} content")

        remote = self.config.remote_ocr
        embedded = self.pdf_handler.extract_embedded_text(content, first_page_only)
        if len(embedded.strip()) > remote.embedded_text_min_chars:
            return embedded
        if not self.remote_client.is_configured:
            return embedded

        logger.info("Embedded text too short, rendering %s for remote OCR", filename)
        pages = self.pdf_handler.pdf_to_images(
            content, first_page_only=first_page_only, dpi=remote.render_dpi
        )
        texts: list[str] = []
        for number, page in enumerate(pages, 1):
            payload = fit_payload(page, remote.max_payload_bytes)
            text = self.remote_client.recognize(
                payload,
                filename=f"page_{number}.jpg",
                content_type="image/jpeg",
                prefer_base64=True,
            )
            if text.strip():
                texts.append(text.strip())
        return "\n\n".join(texts)
