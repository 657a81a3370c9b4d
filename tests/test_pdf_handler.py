"""Tests for PDF rendering and embedded-text reading."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import numpy as np
import pytest
from PIL import Image

from src.ocr.pdf_handler import PDFHandler


def _mock_pil_image(width: int = 300, height: int = 200) -> Image.Image:
    """Create a small PIL image."""
    return Image.fromarray(np.zeros((height, width, 3), dtype=np.uint8))


def _mock_page(text: str | None) -> MagicMock:
    page = MagicMock()
    page.extract_text.return_value = text
    return page


class TestPDFRendering:
    """Tests for PDFHandler.pdf_to_images."""

    def test_init_default_dpi(self) -> None:
        assert PDFHandler().dpi == 300

    @patch("src.ocr.pdf_handler.convert_from_path")
    def test_from_path(self, mock_convert: MagicMock) -> None:
        mock_convert.return_value = [_mock_pil_image(), _mock_pil_image()]
        handler = PDFHandler(dpi=200)

        with patch.object(Path, "exists", return_value=True):
            images = handler.pdf_to_images(Path("/fake/doc.pdf"))

        assert len(images) == 2
        assert all(img.mode == "RGB" for img in images)
        mock_convert.assert_called_once_with("/fake/doc.pdf", dpi=200)

    @patch("src.ocr.pdf_handler.convert_from_bytes")
    def test_first_page_only(self, mock_convert: MagicMock) -> None:
        mock_convert.return_value = [_mock_pil_image()]
        PDFHandler().pdf_to_images(b"%PDF-1.4", first_page_only=True)
        mock_convert.assert_called_once_with(b"%PDF-1.4", dpi=300, first_page=1, last_page=1)

    @patch("src.ocr.pdf_handler.convert_from_bytes")
    def test_dpi_override(self, mock_convert: MagicMock) -> None:
        mock_convert.return_value = [_mock_pil_image()]
        PDFHandler().pdf_to_images(b"%PDF-1.4", dpi=200)
        assert mock_convert.call_args.kwargs["dpi"] == 200

    def test_missing_file(self) -> None:
        with pytest.raises(FileNotFoundError):
            PDFHandler().pdf_to_images(Path("/nonexistent/file.pdf"))

    @patch("src.ocr.pdf_handler.convert_from_bytes")
    def test_conversion_error(self, mock_convert: MagicMock) -> None:
        mock_convert.side_effect = Exception("poppler missing")
        with pytest.raises(RuntimeError, match="PDF conversion failed"):
            PDFHandler().pdf_to_images(b"%PDF-1.4")

    @patch("src.ocr.pdf_handler.convert_from_bytes")
    def test_no_pages(self, mock_convert: MagicMock) -> None:
        mock_convert.return_value = []
        with pytest.raises(RuntimeError, match="no pages"):
            PDFHandler().pdf_to_images(b"%PDF-1.4")


class TestEmbeddedText:
    """Tests for PDFHandler.extract_embedded_text."""

    @patch("src.ocr.pdf_handler.pdfplumber")
    def test_all_pages(self, mock_plumber: MagicMock) -> None:
        pdf = mock_plumber.open.return_value.__enter__.return_value
        pdf.pages = [_mock_page("Page one"), _mock_page(None)]
        assert PDFHandler().extract_embedded_text(b"%PDF-1.4") == "Page one\n"

    @patch("src.ocr.pdf_handler.pdfplumber")
    def test_first_page_only(self, mock_plumber: MagicMock) -> None:
        pdf = mock_plumber.open.return_value.__enter__.return_value
        second = _mock_page("Page two")
        pdf.pages = [_mock_page("Page one"), second]

        text = PDFHandler().extract_embedded_text(b"%PDF-1.4", first_page_only=True)

        assert text == "Page one"
        second.extract_text.assert_not_called()

    @patch("src.ocr.pdf_handler.pdfplumber")
    def test_open_failure(self, mock_plumber: MagicMock) -> None:
        mock_plumber.open.side_effect = Exception("broken xref")
        with pytest.raises(RuntimeError, match="text extraction failed"):
            PDFHandler().extract_embedded_text(b"garbage")
