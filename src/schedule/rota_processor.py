"""Rota upload flow from raw file bytes to schedule entries.

Spreadsheets take the deterministic cell-reading path. Images and PDFs
are cleaned, recognized with the rota OCR settings, and parsed as text.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum

from src.ocr.text_extractor import ROTA_HINT, TextExtractor, is_pdf
from src.preprocessing.pipeline import ImagePreprocessor, decode_image, encode_png
from src.utils.config import AppConfig
from src.utils.logger import get_logger

from .matchers import Directory
from .metadata import parse_metadata
from .models import RotaMetadata, ScheduleEntry
from .parser import ScheduleParser
from .spreadsheet import is_spreadsheet, read_spreadsheet

logger = get_logger(__name__)


class UploadStage(StrEnum):
    RECEIVED = "received"
    PREPROCESSED = "preprocessed"
    TEXT_EXTRACTED = "text_extracted"
    METADATA_PARSED = "metadata_parsed"
    ROWS_CLASSIFIED = "rows_classified"
    ENTRIES_BUILT = "entries_built"
    PERSISTED = "persisted"


@dataclass
class RotaResult:
    """Outcome of one rota upload."""

    source_file: str
    source: str
    metadata: RotaMetadata
    entries: list[ScheduleEntry] = field(default_factory=list)
    text: str = ""
    stage: UploadStage = UploadStage.RECEIVED
    stages: list[UploadStage] = field(default_factory=list)

    def advance(self, stage: UploadStage) -> None:
        self.stage = stage
        self.stages.append(stage)
        logger.debug("%s: %s", self.source_file, stage)


class RotaProcessor:
    """Turns an uploaded rota file into schedule entries.

    Empty or partial results are returned rather than raised; only a
    total text extraction failure raises.

    Args:
        config: Application configuration.
        text_extractor: OCR cascade, built from config when omitted.
        preprocessor: Image cleaner, built from config when omitted.
        parser: Schedule parser, built from config when omitted.
        persist: Optional callback storing a finished result.
        today: Reference date for header year inference.
    """

    def __init__(
        self,
        config: AppConfig,
        text_extractor: TextExtractor | None = None,
        preprocessor: ImagePreprocessor | None = None,
        parser: ScheduleParser | None = None,
        persist: Callable[["RotaResult"], None] | None = None,
        today: date | None = None,
    ) -> None:
        self.config = config
        self.text_extractor = text_extractor or TextExtractor(config)
        self.preprocessor = preprocessor or ImagePreprocessor(config.preprocessing)
        self.today = today
        self.parser = parser or ScheduleParser(config.schedule, today=today)
        self.persist = persist

    def process(
        self,
        content: bytes,
        content_type: str | None,
        directory: Directory,
        filename: str = "rota",
    ) -> RotaResult:
        """Parse an uploaded rota.

        Args:
            content: Raw file bytes.
            content_type: Declared MIME type, may be empty.
            directory: Known employees to match rows against.
            filename: Display name for logs and the result.

        Returns:
            The result with metadata, entries and the last stage reached.

        Raises:
            TextExtractionError: If every OCR stage failed.
        """
        logger.info("Processing rota %s (%s)", filename, content_type)
        if is_spreadsheet(content, content_type):
            result = self._process_spreadsheet(content, directory, filename)
        else:
            result = self._process_scan(content, content_type, directory, filename)

        if self.persist is not None:
            self.persist(result)
            result.advance(UploadStage.PERSISTED)
        return result

    def _process_spreadsheet(
        self, content: bytes, directory: Directory, filename: str
    ) -> RotaResult:
        sheet = read_spreadsheet(content, self.config.schedule, self.today)
        result = RotaResult(filename, "spreadsheet", sheet.metadata)
        result.advance(UploadStage.RECEIVED)
        result.advance(UploadStage.METADATA_PARSED)
        result.advance(UploadStage.ROWS_CLASSIFIED)
        result.entries = self.parser.parse_rows(
            sheet.employee_rows, directory, sheet.metadata, sheet.column_dates
        )
        result.advance(UploadStage.ENTRIES_BUILT)
        return result

    def _process_scan(
        self,
        content: bytes,
        content_type: str | None,
        directory: Directory,
        filename: str,
    ) -> RotaResult:
        stages = [UploadStage.RECEIVED]
        payload, payload_type = content, content_type or "application/octet-stream"
        if is_pdf(content, content_type):
            payload_type = "application/pdf"
        elif not payload_type.startswith("text/"):
            try:
                image = self.preprocessor.process(decode_image(content))
                payload, payload_type = encode_png(image), "image/png"
                stages.append(UploadStage.PREPROCESSED)
            except Exception as exc:
                logger.warning(
                    "Preprocessing %s failed, using original content: %s", filename, exc
                )

        text = self.text_extractor.extract_text(
            payload, payload_type, document_type=ROTA_HINT, filename=filename
        )
        stages.append(UploadStage.TEXT_EXTRACTED)

        metadata = parse_metadata(text, self.config.schedule, self.today)
        result = RotaResult(filename, "ocr", metadata, text=text)
        for stage in stages:
            result.advance(stage)
        result.advance(UploadStage.METADATA_PARSED)
        result.advance(UploadStage.ROWS_CLASSIFIED)
        result.entries = self.parser.parse_text(text, directory, metadata)
        result.advance(UploadStage.ENTRIES_BUILT)
        return result
