"""Separation of rota header and noise rows from employee rows."""

import re

from src.utils.config import ScheduleConfig

_WEEKDAY = re.compile(
    r"\b(mon|tue|tues|wed|thu|thur|thurs|fri|sat|sun)(day)?\b|"
    r"\b(monday|tuesday|wednesday|thursday|friday|saturday|sunday)\b"
)
_DAY_MONTH = re.compile(r"\d{1,2}[-/](jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)")
_UNIT = re.compile(r"\bunit\b")


class RowClassifier:
    """Decides whether a line of rota text is a header or noise row.

    Args:
        config: Schedule settings with the banner phrases and thresholds.
    """

    def __init__(self, config: ScheduleConfig | None = None) -> None:
        self.config = config or ScheduleConfig()
        label = re.escape(self.config.unit_label.lower()).replace(r"\-", "-?")
        self._unit_label = re.compile(label)

    def is_header(self, line: str) -> bool:
        """Return True when the line should not be read as an employee row.

        Args:
            line: One line of rota text.

        Returns:
            True for weekday or date headers, banners, unit label rows and
            OCR noise.
        """
        lower = line.lower()

        if _WEEKDAY.search(lower) or _DAY_MONTH.search(lower):
            return True
        if len(self._unit_label.findall(lower)) >= self.config.unit_label_repeats:
            return True
        if any(phrase.lower() in lower for phrase in self.config.banner_phrases):
            return True
        if _UNIT.search(lower):
            return True

        alnum = sum(1 for ch in lower if ch.isalnum())
        if alnum < self.config.min_alnum_chars:
            return True

        special = sum(1 for ch in lower if not ch.isalnum() and not ch.isspace())
        if lower and special / len(lower) > self.config.max_special_ratio:
            return True

        words = lower.split()
        if len(words) > 5:
            single = sum(1 for w in words if len(w) == 1 and not w.isdigit())
            if single > len(words) / 2:
                return True
        return False
