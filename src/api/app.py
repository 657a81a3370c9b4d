"""FastAPI application for the document and rota extraction API.

Provides REST endpoints for identity document extraction, rota parsing,
document type listing, and health checks.
"""

import datetime
import json
import shutil
import time
import uuid
from typing import Annotated

from fastapi import FastAPI, File, Form, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from src.extraction.rules import DocumentCategory, FieldName
from src.ocr.document_processor import DocumentProcessor
from src.ocr.remote_client import RemoteOCRClient
from src.ocr.text_extractor import TextExtractionError
from src.schedule.models import EmployeeDirectoryEntry
from src.schedule.preview import build_preview
from src.schedule.rota_processor import RotaProcessor
from src.utils.config import load_config
from src.utils.logger import get_logger

from .schemas import (
    DayScheduleResponse,
    DocumentTypeInfo,
    DocumentTypesResponse,
    EmployeeRequest,
    EmployeeScheduleResponse,
    ExtractionResponse,
    HealthResponse,
    RotaResponse,
)

logger = get_logger(__name__)

VERSION = "1.0.0"

app = FastAPI(
    title="Document & Schedule Extraction API",
    description="Extract typed fields from passports, visas and contracts, "
    "and schedules from work rotas",
    version=VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _get_components() -> tuple[DocumentProcessor, RotaProcessor]:
    """Initialize and return shared processing components.

    Returns:
        Tuple of (document_processor, rota_processor).
    """
    config = load_config()
    return DocumentProcessor(config), RotaProcessor(config)


_DOCUMENT_CONTENT_TYPES = {
    "image/png",
    "image/jpeg",
    "image/tiff",
    "application/pdf",
    "text/plain",
    "application/octet-stream",
}

_ROTA_CONTENT_TYPES = _DOCUMENT_CONTENT_TYPES | {
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}

_DOCUMENT_TYPES = [
    DocumentTypeInfo(
        name=DocumentCategory.PASSPORT,
        description="Passport data page",
        supported_fields=[
            FieldName.DOCUMENT_NUMBER,
            FieldName.FULL_NAME,
            FieldName.NATIONALITY,
            FieldName.ISSUING_COUNTRY,
            FieldName.DATE_OF_BIRTH,
            FieldName.ISSUE_DATE,
            FieldName.EXPIRY_DATE,
        ],
    ),
    DocumentTypeInfo(
        name=DocumentCategory.VISA,
        description="Visa or right-to-work share code check",
        supported_fields=[
            FieldName.FULL_NAME,
            FieldName.EXPIRY_DATE,
            FieldName.COMPANY_NAME,
            FieldName.DATE_OF_CHECK,
            FieldName.REFERENCE_NUMBER,
            FieldName.DOCUMENT_NUMBER,
            FieldName.ISSUING_COUNTRY,
            FieldName.NATIONALITY,
            FieldName.ISSUE_DATE,
        ],
    ),
    DocumentTypeInfo(
        name=DocumentCategory.CONTRACT,
        description="Employment contract, first page",
        supported_fields=[
            FieldName.CONTRACT_DATE,
            FieldName.ISSUE_DATE,
            FieldName.PLACE_OF_WORK,
            FieldName.CONTRACT_BETWEEN,
            FieldName.JOB_TITLE,
            FieldName.FULL_NAME,
        ],
    ),
]


def _check_content_type(content_type: str | None, allowed: set[str]) -> None:
    if content_type and content_type not in allowed:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type: {content_type}",
        )


def _clock(value: datetime.time | None) -> str | None:
    return value.strftime("%H:%M") if value else None


def _parse_employees(raw: str) -> list[EmployeeDirectoryEntry]:
    """Decode the JSON employee list sent with a rota upload."""
    try:
        data = json.loads(raw)
        if not isinstance(data, list):
            raise ValueError("expected a JSON list")
        items = [EmployeeRequest.model_validate(item) for item in data]
    except (ValueError, TypeError) as exc:
        raise HTTPException(
            status_code=400, detail=f"Invalid employees list: {exc}"
        ) from exc
    return [EmployeeDirectoryEntry(e.employee_id, e.full_name) for e in items]


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return system health status."""
    config = load_config()
    return HealthResponse(
        status="healthy",
        version=VERSION,
        tesseract_available=shutil.which(config.ocr.tesseract_cmd or "tesseract")
        is not None,
        remote_ocr_configured=RemoteOCRClient(config.remote_ocr).is_configured,
    )


@app.get("/document-types", response_model=DocumentTypesResponse)
async def list_document_types() -> DocumentTypesResponse:
    """List supported document categories and their fields."""
    return DocumentTypesResponse(document_types=_DOCUMENT_TYPES)


@app.post("/documents/extract", response_model=ExtractionResponse)
async def extract_document(
    file: Annotated[UploadFile, File(...)],
    category: Annotated[DocumentCategory, Query()],
    first_page_only: Annotated[bool | None, Query()] = None,
) -> ExtractionResponse:
    """Extract typed fields from an uploaded identity or contract document.

    Args:
        file: Uploaded document file (PNG, JPEG, TIFF, PDF or text).
        category: Declared document category.
        first_page_only: Only read page 1 of a PDF; defaults to True for
            contracts.

    Returns:
        Extracted fields, the recognized text and the type check outcome.
    """
    start_time = time.time()
    _check_content_type(file.content_type, _DOCUMENT_CONTENT_TYPES)

    try:
        doc_processor, _ = _get_components()
        content = await file.read()
        result = doc_processor.process(
            content,
            category,
            filename=file.filename or "document",
            content_type=file.content_type,
            first_page_only=first_page_only,
        )
    except TextExtractionError as exc:
        logger.error("Text extraction failed: %s", exc)
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except Exception as exc:
        logger.error("Extraction failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    return ExtractionResponse(
        success=True,
        document_id=str(uuid.uuid4()),
        category=result.category,
        fields=result.serializable_fields(),
        type_valid=result.type_valid,
        raw_text=result.text,
        processing_time_ms=(time.time() - start_time) * 1000,
    )


@app.post("/rotas/parse", response_model=RotaResponse)
async def parse_rota(
    file: Annotated[UploadFile, File(...)],
    employees: Annotated[str, Form()],
) -> RotaResponse:
    """Parse an uploaded rota into per-employee schedules.

    Args:
        file: Rota image, PDF or ``.xlsx`` spreadsheet.
        employees: JSON list of ``{"employee_id", "full_name"}`` objects.

    Returns:
        The rota header facts and a per-employee schedule preview.
    """
    start_time = time.time()
    _check_content_type(file.content_type, _ROTA_CONTENT_TYPES)
    directory = _parse_employees(employees)

    try:
        _, rota_processor = _get_components()
        content = await file.read()
        result = rota_processor.process(
            content, file.content_type, directory, file.filename or "rota"
        )
    except TextExtractionError as exc:
        logger.error("Rota text extraction failed: %s", exc)
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except Exception as exc:
        logger.error("Rota parsing failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    preview = build_preview(result.metadata, result.entries)
    return RotaResponse(
        success=True,
        source_file=result.source_file,
        source=result.source,
        stage=result.stage,
        site_name=preview.site_name,
        department=preview.department,
        start_date=preview.start_date,
        end_date=preview.end_date,
        total_schedules=preview.total_schedules,
        total_employees=preview.total_employees,
        employee_schedules=[
            EmployeeScheduleResponse(
                employee_id=emp.employee_id,
                employee_name=emp.employee_name,
                total_days=emp.total_days,
                work_days=emp.work_days,
                off_days=emp.off_days,
                schedules=[
                    DayScheduleResponse(
                        date=day.schedule_date,
                        day_of_week=day.day_of_week,
                        duty=day.duty,
                        start_time=_clock(day.start_time),
                        end_time=_clock(day.end_time),
                        is_off_day=day.is_off_day,
                    )
                    for day in emp.days
                ],
            )
            for emp in preview.employees
        ],
        processing_time_ms=(time.time() - start_time) * 1000,
    )
