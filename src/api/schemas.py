"""Pydantic request/response schemas for the FastAPI endpoints."""

import datetime

from pydantic import BaseModel


class ExtractionResponse(BaseModel):
    """Response schema for a document extraction request."""

    success: bool
    document_id: str
    category: str
    fields: dict[str, str]
    type_valid: bool
    raw_text: str
    processing_time_ms: float


class DocumentTypeInfo(BaseModel):
    """Information about a supported document category."""

    name: str
    description: str
    supported_fields: list[str]


class DocumentTypesResponse(BaseModel):
    """Response schema listing supported document categories."""

    document_types: list[DocumentTypeInfo]


class EmployeeRequest(BaseModel):
    """A directory employee sent alongside a rota upload."""

    employee_id: str
    full_name: str


class DayScheduleResponse(BaseModel):
    """One day of an employee's parsed rota."""

    date: datetime.date
    day_of_week: str
    duty: str
    start_time: str | None = None
    end_time: str | None = None
    is_off_day: bool


class EmployeeScheduleResponse(BaseModel):
    """Parsed rota days of one employee with totals."""

    employee_id: str
    employee_name: str
    total_days: int
    work_days: int
    off_days: int
    schedules: list[DayScheduleResponse]


class RotaResponse(BaseModel):
    """Response schema for a rota upload."""

    success: bool
    source_file: str
    source: str
    stage: str
    site_name: str
    department: str
    start_date: datetime.date | None = None
    end_date: datetime.date | None = None
    total_schedules: int
    total_employees: int
    employee_schedules: list[EmployeeScheduleResponse]
    processing_time_ms: float


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    tesseract_available: bool
    remote_ocr_configured: bool
