"""Document upload pipeline.

Combines text extraction, the document type check and field extraction
into a single processing interface for passports, visas and contracts.
"""

import mimetypes
from dataclasses import dataclass, field
from pathlib import Path

from src.extraction.document_classifier import DocumentTypeValidator
from src.extraction.field_extractor import ExtractedFields, FieldExtractor
from src.extraction.rules import DocumentCategory
from src.preprocessing.pipeline import ImagePreprocessor, decode_image, encode_png
from src.utils.config import AppConfig
from src.utils.logger import get_logger

from .text_extractor import PDF_CONTENT_TYPE, TextExtractor

logger = get_logger(__name__)

GENERIC_CONTENT_TYPE = "application/octet-stream"

_MAGIC = [
    (b"%PDF", PDF_CONTENT_TYPE),
    (b"\x89PNG", "image/png"),
    (b"\xff\xd8", "image/jpeg"),
    (b"II*\x00", "image/tiff"),
    (b"MM\x00*", "image/tiff"),
]


@dataclass
class DocumentResult:
    """Complete processing results for a document."""

    source_file: str
    category: DocumentCategory
    text: str
    fields: ExtractedFields = field(default_factory=dict)
    type_valid: bool = True

    def serializable_fields(self) -> dict[str, str]:
        """Field map with dates rendered as ISO strings."""
        return {
            str(k): v.isoformat() if hasattr(v, "isoformat") else str(v)
            for k, v in self.fields.items()
        }


def sniff_content_type(content: bytes, filename: str = "") -> str:
    """Guess a MIME type from magic bytes, then from the file name."""
    for magic, content_type in _MAGIC:
        if content.startswith(magic):
            return content_type
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or GENERIC_CONTENT_TYPE


class DocumentProcessor:
    """End-to-end document processing pipeline.

    Args:
        config: Application configuration object.
        text_extractor: OCR cascade, built from config when omitted.
        field_extractor: Field extractor, built from config when omitted.
        validator: Document type checker, built from config when omitted.
    """

    def __init__(
        self,
        config: AppConfig,
        text_extractor: TextExtractor | None = None,
        field_extractor: FieldExtractor | None = None,
        validator: DocumentTypeValidator | None = None,
    ) -> None:
        self.config = config
        self.text_extractor = text_extractor or TextExtractor(config)
        self.field_extractor = field_extractor or FieldExtractor(config.extraction)
        self.validator = validator or DocumentTypeValidator(
            Path(config.extraction.document_types_path)
        )
        self.preprocessor = ImagePreprocessor(config.preprocessing)

    def process(
        self,
        source: Path | bytes,
        category: DocumentCategory | str,
        filename: str | None = None,
        content_type: str | None = None,
        first_page_only: bool | None = None,
    ) -> DocumentResult:
        """Process a document from file path or bytes.

        Args:
            source: Path to a document file, or raw file bytes.
            category: Declared document category.
            filename: Display name for the source document.
            content_type: Declared MIME type; sniffed when omitted.
            first_page_only: Only read page 1 of a PDF. Defaults to True
                for contracts.

        Returns:
            Extracted text, fields and the type check outcome.

        Raises:
            ValueError: If the category is unknown.
            TextExtractionError: If no extraction stage could read the file.
        """
        category = DocumentCategory(category)
        if isinstance(source, bytes):
            content = source
            filename = filename or "document"
        else:
            path = Path(source)
            content = path.read_bytes()
            filename = filename or path.name

        if not content_type or content_type == GENERIC_CONTENT_TYPE:
            content_type = sniff_content_type(content, filename)
        if first_page_only is None:
            first_page_only = category == DocumentCategory.CONTRACT

        logger.info("Processing %s document: %s", category, filename)
        if self.config.preprocessing.apply_to_documents and content_type.startswith("image/"):
            content = encode_png(self.preprocessor.process(decode_image(content)))
            content_type = "image/png"

        text = self.text_extractor.extract_text(
            content,
            content_type,
            document_type=category,
            first_page_only=first_page_only,
            filename=filename,
        )
        type_valid = self.validator.looks_like(text, category)
        fields = self.field_extractor.extract(text, category)

        logger.info(
            "Processed %s: %d fields, type check %s",
            filename,
            len(fields),
            "passed" if type_valid else "failed",
        )
        return DocumentResult(
            source_file=filename,
            category=category,
            text=text,
            fields=fields,
            type_valid=type_valid,
        )
