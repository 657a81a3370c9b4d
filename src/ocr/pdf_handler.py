"""PDF rendering and embedded-text extraction.

Renders PDF pages to images for OCR (optionally only the first page)
and reads the embedded text layer of born-digital PDFs.
"""

import io
from pathlib import Path

import pdfplumber
from pdf2image import convert_from_bytes, convert_from_path
from PIL import Image

from src.utils.logger import get_logger

logger = get_logger(__name__)


class PDFHandler:
    """Handles PDF to image conversion and text-layer reading.

    Args:
        dpi: Default resolution for PDF rendering. Higher values produce
            better OCR results but use more memory.
    """

    def __init__(self, dpi: int = 300) -> None:
        self.dpi = dpi

    def pdf_to_images(
        self,
        pdf_source: Path | bytes,
        first_page_only: bool = False,
        dpi: int | None = None,
    ) -> list[Image.Image]:
        """Convert a PDF to a list of page images.

        Args:
            pdf_source: Path to a PDF file or raw PDF bytes.
            first_page_only: Render only page 1.
            dpi: Resolution override for this call.

        Returns:
            Page images in RGB mode.

        Raises:
            FileNotFoundError: If a path is given and the file does not exist.
            RuntimeError: If PDF conversion fails or yields no pages.
        """
        dpi = dpi or self.dpi
        kwargs: dict[str, int] = {"dpi": dpi}
        if first_page_only:
            kwargs.update(first_page=1, last_page=1)

        try:
            if isinstance(pdf_source, str | Path):
                path = Path(pdf_source)
                if not path.exists():
                    raise FileNotFoundError(f"PDF file not found: {path}")
                images = convert_from_path(str(path), **kwargs)
            else:
                images = convert_from_bytes(pdf_source, **kwargs)
        except FileNotFoundError:
            raise
        except Exception as exc:
            raise RuntimeError(f"PDF conversion failed: {exc}") from exc

        if not images:
            raise RuntimeError("PDF conversion failed: document has no pages")

        logger.info("Converted PDF to %d images at %d DPI", len(images), dpi)
        return [img.convert("RGB") for img in images]

    def extract_embedded_text(
        self, pdf_source: Path | bytes, first_page_only: bool = False
    ) -> str:
        """Read the embedded text layer of a PDF.

        Scanned PDFs usually have no text layer and yield an empty string.

        Args:
            pdf_source: Path to a PDF file or raw PDF bytes.
            first_page_only: Read only page 1.

        Returns:
            Page texts joined by newlines.

        Raises:
            RuntimeError: If the PDF cannot be opened.
        """
        source = io.BytesIO(pdf_source) if isinstance(pdf_source, bytes) else pdf_source
        try:
            with pdfplumber.open(source) as pdf:
                pages = pdf.pages[:1] if first_page_only else pdf.pages
                texts = [page.extract_text() or "" for page in pages]
        except Exception as exc:
            raise RuntimeError(f"PDF text extraction failed: {exc}") from exc

        text = "\n".join(texts)
        logger.info("Read %d embedded characters from %d pages", len(text), len(texts))
        return text
