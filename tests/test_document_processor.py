"""Tests for the document upload pipeline."""

from datetime import date
from pathlib import Path
from unittest.mock import MagicMock

import numpy as np
import pytest

from src.extraction.document_classifier import DocumentTypeValidator
from src.extraction.field_extractor import FieldExtractor
from src.extraction.rules import DocumentCategory, FieldName
from src.ocr.document_processor import DocumentProcessor, DocumentResult, sniff_content_type
from src.utils.config import AppConfig, PreprocessingConfig

PASSPORT_TEXT = "PASSPORT\nPassport No: AB1234567\nDate of Birth: 15 MAR 1990"


def _make_processor(
    text: str = PASSPORT_TEXT, config: AppConfig | None = None
) -> tuple[DocumentProcessor, MagicMock]:
    extractor = MagicMock()
    extractor.extract_text.return_value = text
    processor = DocumentProcessor(
        config or AppConfig(),
        text_extractor=extractor,
        field_extractor=FieldExtractor(today=lambda: date(2025, 6, 1)),
        validator=DocumentTypeValidator(Path("/nonexistent/types.yaml")),
    )
    return processor, extractor


class TestSniffContentType:
    """Tests for MIME type detection."""

    @pytest.mark.parametrize(
        ("content", "expected"),
        [
            (b"%PDF-1.4", "application/pdf"),
            (b"\x89PNG\r\n", "image/png"),
            (b"\xff\xd8\xff", "image/jpeg"),
            (b"II*\x00", "image/tiff"),
        ],
    )
    def test_magic(self, content: bytes, expected: str) -> None:
        assert sniff_content_type(content) == expected

    def test_filename_fallback(self) -> None:
        assert sniff_content_type(b"Name: X", "notes.txt") == "text/plain"

    def test_unknown(self) -> None:
        assert sniff_content_type(b"???") == "application/octet-stream"


class TestDocumentProcessor:
    """Tests for the DocumentProcessor class."""

    def test_process_bytes(self, png_bytes: bytes) -> None:
        processor, extractor = _make_processor()

        result = processor.process(png_bytes, "passport", filename="scan.png")

        assert isinstance(result, DocumentResult)
        assert result.source_file == "scan.png"
        assert result.category == DocumentCategory.PASSPORT
        assert result.type_valid
        assert result.fields[FieldName.DOCUMENT_NUMBER] == "AB1234567"
        extractor.extract_text.assert_called_once_with(
            png_bytes,
            "image/png",
            document_type=DocumentCategory.PASSPORT,
            first_page_only=False,
            filename="scan.png",
        )

    def test_contract_reads_first_page_only(self) -> None:
        processor, extractor = _make_processor("EMPLOYMENT CONTRACT")
        processor.process(b"%PDF-1.4", "contract")
        assert extractor.extract_text.call_args.kwargs["first_page_only"] is True

    def test_first_page_override(self) -> None:
        processor, extractor = _make_processor("EMPLOYMENT CONTRACT")
        processor.process(b"%PDF-1.4", "contract", first_page_only=False)
        assert extractor.extract_text.call_args.kwargs["first_page_only"] is False

    def test_process_path(self, tmp_path: Path) -> None:
        path = tmp_path / "visa.txt"
        path.write_text("VISA permission to work")
        processor, extractor = _make_processor("VISA permission to work")

        result = processor.process(path, DocumentCategory.VISA)

        assert result.source_file == "visa.txt"
        assert extractor.extract_text.call_args.args[1] == "text/plain"

    def test_type_check_failure_still_extracts(self) -> None:
        processor, _ = _make_processor("Date of Birth: 15 MAR 1990")
        result = processor.process(b"x", "contract")
        assert not result.type_valid

    def test_unknown_category(self) -> None:
        processor, _ = _make_processor()
        with pytest.raises(ValueError):
            processor.process(b"x", "invoice")

    def test_serializable_fields(self, png_bytes: bytes) -> None:
        processor, _ = _make_processor()
        fields = processor.process(png_bytes, "passport").serializable_fields()
        assert fields["dateOfBirth"] == "1990-03-15"
        assert fields["documentNumber"] == "AB1234567"

    def test_preprocessing_for_documents(self, png_bytes: bytes) -> None:
        config = AppConfig(preprocessing=PreprocessingConfig(apply_to_documents=True))
        processor, extractor = _make_processor(config=config)
        processor.preprocessor = MagicMock()
        processor.preprocessor.process.return_value = np.full((10, 10), 255, dtype=np.uint8)

        processor.process(png_bytes, "passport")

        processor.preprocessor.process.assert_called_once()
        assert extractor.extract_text.call_args.args[1] == "image/png"
        assert extractor.extract_text.call_args.args[0] != png_bytes

    def test_generic_content_type_sniffed(self, png_bytes: bytes) -> None:
        processor, extractor = _make_processor()
        processor.process(
            png_bytes,
            "passport",
            filename="upload",
            content_type="application/octet-stream",
        )
        assert extractor.extract_text.call_args.args[1] == "image/png"

    def test_declared_content_type_kept(self) -> None:
        processor, extractor = _make_processor()
        processor.process(b"Passport No: AB1234567", "passport", content_type="text/plain")
        assert extractor.extract_text.call_args.args[1] == "text/plain"
