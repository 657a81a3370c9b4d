"""Date string normalization for OCR text.

Handles mixed separators, two-digit years, month names in any case,
ISO and compact numeric forms. Numeric dates are read day-first.
"""

import re
from datetime import date

from src.utils.logger import get_logger

logger = get_logger(__name__)

TWO_DIGIT_YEAR_PIVOT = 50
MIN_YEAR = 1900
MAX_YEAR = 2199

MONTHS: dict[str, int] = {
    "january": 1,
    "february": 2,
    "march": 3,
    "april": 4,
    "may": 5,
    "june": 6,
    "july": 7,
    "august": 8,
    "september": 9,
    "october": 10,
    "november": 11,
    "december": 12,
}

# Date-looking tokens in free text, used to collect dates near an anchor.
DATE_TOKEN = (
    r"\d{1,2}\s*[-/.\s]\s*[A-Za-z]{3,9}\.?\s*[-/.\s]\s*\d{2,4}"
    r"|\d{4}-\d{1,2}-\d{1,2}"
    r"|\d{1,2}[-/.]\d{1,2}[-/.]\d{2,4}"
)
DATE_TOKEN_RE = re.compile(DATE_TOKEN)

_DAY_MONTH_NAME = re.compile(
    r"(\d{1,2})\s*[-/.\s]?\s*([A-Za-z]{3,9})\.?\s*[-/.\s,]?\s*(\d{2,4})"
)
_MONTH_NAME_DAY = re.compile(r"([A-Za-z]{3,9})\.?\s+(\d{1,2}),?\s+(\d{2,4})")
_ISO = re.compile(r"(\d{4})[-/.](\d{1,2})[-/.](\d{1,2})")
_NUMERIC = re.compile(r"(\d{1,2})\s*[-/.\s]\s*(\d{1,2})\s*[-/.\s]\s*(\d{2,4})")
_COMPACT = re.compile(r"\d{6}|\d{8}")


def month_number(token: str) -> int | None:
    """Resolve a month name or abbreviation (any case) to its number.

    Args:
        token: Month text such as ``"DEC"``, ``"Sept"`` or ``"june"``.

    Returns:
        Month number 1-12, or ``None`` when the token is not a month.
    """
    token = token.lower().rstrip(".")
    if len(token) < 3:
        return None
    if token == "sept":
        return 9
    for name, number in MONTHS.items():
        if name.startswith(token):
            return number
    return None


def expand_year(year: int, digits: int) -> int:
    """Expand a two-digit year using the pivot (``<50`` is 2000s)."""
    if digits != 2:
        return year
    return 2000 + year if year < TWO_DIGIT_YEAR_PIVOT else 1900 + year


def _build(year: int, month: int, day: int) -> date | None:
    if not MIN_YEAR <= year <= MAX_YEAR:
        return None
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _parse_compact(value: str) -> date | None:
    if len(value) == 8:
        parsed = _build(int(value[:4]), int(value[4:6]), int(value[6:]))
        if parsed is not None:
            return parsed
        return _build(int(value[4:]), int(value[2:4]), int(value[:2]))
    return _build(expand_year(int(value[4:]), 2), int(value[2:4]), int(value[:2]))


def parse_date(value: str | None) -> date | None:
    """Parse a date string found in OCR text.

    Supported shapes include ``03 DEC 2024``, ``3-Dec-24``,
    ``December 3, 2024``, ``03/12/2024``, ``03.12.24``, ``2024-12-03``
    and ``20241203``. A day-first numeric date whose month is above 12
    is retried month-first.

    Args:
        value: Raw date text.

    Returns:
        The parsed date, or ``None`` if the text is not a valid date.
    """
    if not value:
        return None
    text = re.sub(r"\s+", " ", value.strip()).strip(" ,;:")
    if not text:
        return None

    match = _DAY_MONTH_NAME.fullmatch(text)
    if match:
        month = month_number(match.group(2))
        if month is None:
            return None
        year_text = match.group(3)
        return _build(expand_year(int(year_text), len(year_text)), month, int(match.group(1)))

    match = _MONTH_NAME_DAY.fullmatch(text)
    if match:
        month = month_number(match.group(1))
        if month is None:
            return None
        year_text = match.group(3)
        return _build(expand_year(int(year_text), len(year_text)), month, int(match.group(2)))

    match = _ISO.fullmatch(text)
    if match:
        return _build(int(match.group(1)), int(match.group(2)), int(match.group(3)))

    match = _NUMERIC.fullmatch(text)
    if match:
        day, month = int(match.group(1)), int(match.group(2))
        year_text = match.group(3)
        if len(year_text) == 3:
            return None
        if month > 12 >= day:
            day, month = month, day
        return _build(expand_year(int(year_text), len(year_text)), month, day)

    if _COMPACT.fullmatch(text):
        return _parse_compact(text)

    logger.debug("Unrecognized date string: %r", value)
    return None


def find_dates(text: str) -> list[date]:
    """Parse every date-looking token in a text span, in order."""
    found: list[date] = []
    for match in DATE_TOKEN_RE.finditer(text):
        parsed = parse_date(match.group(0))
        if parsed is not None:
            found.append(parsed)
    return found
