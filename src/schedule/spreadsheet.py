"""Reading rota timesheets from ``.xlsx`` workbooks.

The expected layout is the one the timesheet template produces: the
site and department banner in the first cell, weekday names and
``DD-Mon`` dates in the next rows, a unit label row, then one row per
employee with the name in the first column.
"""

import io
import re
from dataclasses import dataclass, field
from datetime import date, datetime, time

from openpyxl import load_workbook

from src.extraction.dates import month_number
from src.utils.config import ScheduleConfig
from src.utils.logger import get_logger

from .models import RotaMetadata

logger = get_logger(__name__)

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
ZIP_MAGIC = b"PK\x03\x04"

DATE_ROW_SEARCH = 4

_DAY_MON = re.compile(
    r"(\d{1,2})-(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)", re.IGNORECASE
)


@dataclass
class SpreadsheetRota:
    """A workbook split into header facts, column dates and employee rows."""

    metadata: RotaMetadata
    column_dates: list[date | None] = field(default_factory=list)
    employee_rows: list[list[str]] = field(default_factory=list)


def is_spreadsheet(content: bytes, content_type: str | None = None) -> bool:
    """Return True for ``.xlsx`` uploads, judged by MIME type or zip magic."""
    if content_type == XLSX_CONTENT_TYPE:
        return True
    return content[:4] == ZIP_MAGIC


def load_rows(content: bytes) -> list[list[object]]:
    """Read the cell values of the first worksheet.

    Args:
        content: Raw ``.xlsx`` bytes.

    Returns:
        One list of raw cell values per row.

    Raises:
        ValueError: If the workbook cannot be read.
    """
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except Exception as e:
        raise ValueError(f"Cannot read spreadsheet: {e}") from e
    try:
        sheet = workbook.worksheets[0]
        return [list(row) for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def cell_text(value: object) -> str:
    """Render a cell value the way duty parsing expects it.

    Time cells keep seconds so ``08:18`` reads as the ``08:18:00``
    check-in/check-out code. Whole numbers drop their decimal part.
    """
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, time):
        return value.strftime("%H:%M:%S")
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def parse_date_cell(value: object, year: int) -> date | None:
    """Read a header date cell as a date in the given year."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    match = _DAY_MON.search(str(value or ""))
    if not match:
        return None
    month = month_number(match.group(2))
    try:
        return date(year, month, int(match.group(1)))
    except (TypeError, ValueError):
        logger.debug("Skipping invalid header date %s", value)
        return None


def parse_banner(text: str, config: ScheduleConfig | None = None) -> tuple[str, str] | None:
    """Split ``<SITE> HOTEL TIMESHEET <DEPARTMENT>`` into site and department."""
    config = config or ScheduleConfig()
    upper = text.upper()
    anchor, suffix = config.header_anchor.upper(), config.site_suffix.upper()
    if anchor not in upper or suffix not in upper:
        return None
    index = upper.index(anchor)
    site = re.sub(re.escape(suffix), "", text[:index], flags=re.IGNORECASE).strip()
    department = text[index + len(anchor) :].strip()
    return site, department


def _find_date_row(rows: list[list[object]], year: int) -> int:
    best, best_count = 1, 0
    for index, row in enumerate(rows[:DATE_ROW_SEARCH]):
        count = sum(1 for cell in row[1:] if parse_date_cell(cell, year) is not None)
        if count > best_count:
            best, best_count = index, count
    return best


def read_spreadsheet(
    content: bytes,
    config: ScheduleConfig | None = None,
    today: date | None = None,
) -> SpreadsheetRota:
    """Parse an ``.xlsx`` rota into metadata, column dates and employee rows.

    Args:
        content: Raw workbook bytes.
        config: Schedule settings with the banner anchors.
        today: Supplies the year of ``DD-Mon`` header dates.

    Returns:
        The split workbook. Dates are empty when no header date was read.
    """
    year = (today or date.today()).year
    rows = load_rows(content)
    metadata = RotaMetadata()
    if not rows:
        logger.warning("Spreadsheet has no rows")
        return SpreadsheetRota(metadata=metadata)

    banner = parse_banner(cell_text(rows[0][0]) if rows[0] else "", config)
    if banner:
        site, department = banner
        metadata.site_name = site or metadata.site_name
        metadata.department = department or metadata.department
        logger.info("Spreadsheet banner: %s / %s", metadata.site_name, metadata.department)

    date_row = _find_date_row(rows, year)
    column_dates = (
        [parse_date_cell(cell, year) for cell in rows[date_row][1:]]
        if date_row < len(rows)
        else []
    )
    found = [d for d in column_dates if d is not None]
    if found:
        metadata.start_date, metadata.end_date = min(found), max(found)
    else:
        logger.warning("No header dates found in spreadsheet")

    employee_rows = [[cell_text(cell) for cell in row] for row in rows[date_row + 2 :]]
    return SpreadsheetRota(metadata, column_dates, employee_rows)
