"""Shift token extraction and duty interpretation."""

import re
from dataclasses import dataclass
from datetime import time

from src.utils.logger import get_logger

logger = get_logger(__name__)

OFF_DAY_KEYWORDS = {"off", "holiday", "leave", "set-ups", "set-up", "setups", "setup"}

_COMPRESSED = r"\b\d{2}:\d{2}:\d{2}\b"
_RANGE = r"\b\d{1,2}:\d{2}\s*-\s*\d{1,2}:\d{2}\b"
_KEYWORD = r"\b(?:set-?ups?|off|holiday|leave)\b"

SHIFT_TOKEN = re.compile(rf"{_COMPRESSED}|{_RANGE}|{_KEYWORD}", re.IGNORECASE)
_COMPRESSED_RE = re.compile(r"^(\d{2}):(\d{2}):(\d{2})$")
_RANGE_RE = re.compile(r"^(\d{1,2}):(\d{2})\s*-\s*(\d{1,2}):(\d{2})$")
TIME_LIKE = re.compile(r"\d{1,2}[:.]\d{2}")


@dataclass
class DutyInfo:
    """A duty cell resolved into display text, times and off-day flag."""

    duty: str
    start_time: time | None = None
    end_time: time | None = None
    is_off_day: bool = False


def _clock(hour: str, minute: str = "00") -> time | None:
    h, m = int(hour), int(minute)
    if 0 <= h <= 23 and 0 <= m <= 59:
        return time(h, m)
    return None


def normalize_token(token: str) -> str:
    """Canonical text of a shift token.

    A compressed ``HH:HH:HH`` code becomes an ``HH:00-HH:00`` range built
    from its first two fields, ranges are zero padded, keywords are kept.
    """
    token = token.strip()
    compressed = _COMPRESSED_RE.match(token)
    if compressed:
        start, end = compressed.group(1), compressed.group(2)
        if int(start) <= 23 and int(end) <= 23:
            return f"{start}:00-{end}:00"
        return token
    ranged = _RANGE_RE.match(token)
    if ranged:
        h1, m1, h2, m2 = ranged.groups()
        return f"{int(h1):02d}:{m1}-{int(h2):02d}:{m2}"
    return token


def name_end(line: str, full_name: str) -> int:
    """Index just past the employee name in a rota row.

    Tries the whole name first, then the furthest first occurrence of any
    name word of three or more letters. Returns 0 when neither is found.
    """
    words = full_name.lower().split()
    if not words:
        return 0
    whole = re.search(r"\s+".join(re.escape(w) for w in words), line, re.IGNORECASE)
    if whole:
        return whole.end()

    end = 0
    for word in words:
        if len(word) < 3:
            continue
        found = re.search(rf"\b{re.escape(word)}\b", line, re.IGNORECASE)
        if found:
            end = max(end, found.end())
    return end


def extract_duty_tokens(line: str, name: str | None = None) -> list[str]:
    """Return the shift tokens of a rota row in order of appearance.

    Args:
        line: One employee row of rota text.
        name: Matched employee name. Only text after it is scanned, so a
            name such as "Holiday" is not read as a shift.

    Returns:
        Normalized duty strings such as ``"08:00-16:00"`` or ``"OFF"``.
    """
    if name:
        line = line[name_end(line, name) :]
    return [normalize_token(m.group(0)) for m in SHIFT_TOKEN.finditer(line)]


def interpret_duty(raw: str) -> DutyInfo:
    """Resolve a duty string into times and an off-day flag.

    Args:
        raw: Duty text from a shift token or spreadsheet cell.

    Returns:
        Off-day keywords carry no times, ranges carry both times, and
        anything else is kept as free text on a working day.
    """
    duty = normalize_token(raw or "")
    if duty.lower() in OFF_DAY_KEYWORDS:
        return DutyInfo(duty=duty, is_off_day=True)

    ranged = _RANGE_RE.match(duty)
    if ranged:
        h1, m1, h2, m2 = ranged.groups()
        start, end = _clock(h1, m1), _clock(h2, m2)
        if start is not None and end is not None:
            return DutyInfo(duty=duty, start_time=start, end_time=end)
        logger.debug("Duty range out of bounds: %s", duty)

    return DutyInfo(duty=duty)
