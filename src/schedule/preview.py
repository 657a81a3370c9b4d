"""Per-employee summary of a parsed rota for upload review."""

from dataclasses import dataclass, field
from datetime import date

from src.utils.logger import get_logger

from .models import RotaMetadata, ScheduleEntry

logger = get_logger(__name__)


@dataclass
class EmployeeSchedulePreview:
    employee_id: str
    employee_name: str
    total_days: int = 0
    work_days: int = 0
    off_days: int = 0
    days: list[ScheduleEntry] = field(default_factory=list)


@dataclass
class RotaPreview:
    site_name: str
    department: str
    start_date: date | None
    end_date: date | None
    total_schedules: int = 0
    total_employees: int = 0
    employees: list[EmployeeSchedulePreview] = field(default_factory=list)


def build_preview(metadata: RotaMetadata, entries: list[ScheduleEntry]) -> RotaPreview:
    """Group schedule entries per employee with work and off day totals.

    Args:
        metadata: Header facts of the rota.
        entries: Parsed schedule entries.

    Returns:
        The preview, employees in order of first appearance.
    """
    grouped: dict[str, EmployeeSchedulePreview] = {}
    for entry in entries:
        preview = grouped.get(entry.employee_id)
        if preview is None:
            preview = EmployeeSchedulePreview(entry.employee_id, entry.employee_name)
            grouped[entry.employee_id] = preview
        preview.days.append(entry)
        preview.total_days += 1
        if entry.is_off_day:
            preview.off_days += 1
        else:
            preview.work_days += 1

    logger.info("Preview: %d schedules for %d employees", len(entries), len(grouped))
    return RotaPreview(
        site_name=metadata.site_name,
        department=metadata.department,
        start_date=metadata.start_date,
        end_date=metadata.end_date,
        total_schedules=len(entries),
        total_employees=len(grouped),
        employees=list(grouped.values()),
    )
