"""Data model for parsed work rotas."""

from dataclasses import dataclass
from datetime import date, time, timedelta

WEEKDAYS = (
    "MONDAY",
    "TUESDAY",
    "WEDNESDAY",
    "THURSDAY",
    "FRIDAY",
    "SATURDAY",
    "SUNDAY",
)

UNKNOWN_SITE = "Unknown Site"
UNKNOWN_DEPARTMENT = "Unknown Department"


def weekday_label(day: date) -> str:
    """Return the upper-case English weekday name of a date."""
    return WEEKDAYS[day.weekday()]


@dataclass(frozen=True)
class EmployeeDirectoryEntry:
    """A known employee, supplied read-only for name matching."""

    employee_id: str
    full_name: str


@dataclass
class ScheduleEntry:
    """One employee's duty on one day of a rota.

    Off days carry no times. A parsed range carries both times, and the
    end may be earlier than the start for overnight shifts.
    """

    employee_id: str
    employee_name: str
    schedule_date: date
    day_of_week: str
    duty: str
    start_time: time | None = None
    end_time: time | None = None
    is_off_day: bool = False

    def to_dict(self) -> dict[str, object]:
        return {
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "schedule_date": self.schedule_date.isoformat(),
            "day_of_week": self.day_of_week,
            "duty": self.duty,
            "start_time": self.start_time.strftime("%H:%M") if self.start_time else None,
            "end_time": self.end_time.strftime("%H:%M") if self.end_time else None,
            "is_off_day": self.is_off_day,
        }


@dataclass
class RotaMetadata:
    """Header facts shared by every entry of one rota sheet."""

    site_name: str = UNKNOWN_SITE
    department: str = UNKNOWN_DEPARTMENT
    start_date: date | None = None
    end_date: date | None = None

    @property
    def dates(self) -> list[date]:
        """Every day from start to end inclusive, empty when unknown."""
        if self.start_date is None or self.end_date is None:
            return []
        days = (self.end_date - self.start_date).days
        return [self.start_date + timedelta(days=i) for i in range(days + 1)]
