"""Rota header parsing: site, department and the covered date range."""

import calendar
import re
from datetime import date, timedelta

from src.extraction.dates import month_number
from src.utils.config import ScheduleConfig
from src.utils.logger import get_logger

from .models import UNKNOWN_DEPARTMENT, UNKNOWN_SITE, RotaMetadata

logger = get_logger(__name__)

_MON = r"(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)"

# (pattern, day group, month group), tried in order until one matches.
DATE_PATTERNS: list[tuple[re.Pattern[str], int, int]] = [
    (re.compile(rf"(\d{{1,2}})-{_MON}", re.IGNORECASE), 1, 2),
    (re.compile(rf"(\d{{1,2}})/{_MON}", re.IGNORECASE), 1, 2),
    (re.compile(rf"\b{_MON}\s+(\d{{1,2}})\b", re.IGNORECASE), 2, 1),
    (re.compile(rf"(\d{{1,2}})\s*[-/]?\s*{_MON}", re.IGNORECASE), 1, 2),
]


def months_before(day: date, months: int) -> date:
    """Shift a date back by whole months, clamping to the month's last day."""
    index = day.year * 12 + day.month - 1 - months
    year, month = divmod(index, 12)
    month += 1
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last))


def _to_dates(pairs: list[tuple[int, int]], year: int) -> list[date]:
    dates: set[date] = set()
    for day, month in pairs:
        try:
            dates.add(date(year, month, day))
        except ValueError:
            logger.debug("Skipping invalid rota date %d/%d/%d", day, month, year)
    return sorted(dates)


def find_day_month_pairs(text: str) -> list[tuple[int, int]]:
    """Return (day, month) pairs from the first date pattern that matches."""
    for pattern, day_group, month_group in DATE_PATTERNS:
        pairs = []
        for match in pattern.finditer(text):
            month = month_number(match.group(month_group))
            if month is not None:
                pairs.append((int(match.group(day_group)), month))
        if pairs:
            return pairs
    return []


def parse_metadata(
    text: str,
    config: ScheduleConfig | None = None,
    today: date | None = None,
) -> RotaMetadata:
    """Read the header facts of an OCR'd rota.

    Args:
        text: Full rota text.
        config: Schedule settings with the header anchors.
        today: Reference date for the year inference.

    Returns:
        Metadata with a date range that is never empty.
    """
    config = config or ScheduleConfig()
    today = today or date.today()
    metadata = RotaMetadata()

    anchor = re.escape(config.header_anchor)
    suffix = re.escape(config.site_suffix)
    site = re.search(rf"([A-Za-z ]+?)\s+{suffix}\s+{anchor}", text, re.IGNORECASE)
    if site and site.group(1).strip():
        metadata.site_name = site.group(1).strip()
    department = re.search(rf"{anchor}[ \t]+([A-Za-z &]+)", text, re.IGNORECASE)
    if department and department.group(1).strip():
        metadata.department = department.group(1).strip()

    pairs = find_day_month_pairs(text)
    dates = _to_dates(pairs, today.year)
    if dates and dates[0] < months_before(today, config.next_year_after_months):
        logger.info("Rota dates are in the past, assuming %d", today.year + 1)
        dates = _to_dates(pairs, today.year + 1)

    if dates:
        metadata.start_date, metadata.end_date = dates[0], dates[-1]
    else:
        logger.warning(
            "No dates found in rota header, using %d days from %s",
            config.fallback_days,
            today,
        )
        metadata.start_date = today
        metadata.end_date = today + timedelta(days=config.fallback_days - 1)

    if metadata.site_name == UNKNOWN_SITE or metadata.department == UNKNOWN_DEPARTMENT:
        logger.debug("Rota header incomplete: %s / %s", metadata.site_name, metadata.department)
    logger.info(
        "Rota metadata: %s, %s, %s to %s",
        metadata.site_name,
        metadata.department,
        metadata.start_date,
        metadata.end_date,
    )
    return metadata
