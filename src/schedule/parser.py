"""Rota parsing into per-employee, per-day schedule entries.

Two input shapes are supported: OCR text, where each employee row is a
line of free text, and spreadsheet rows, where the sheet layout already
separates names, dates and duty cells.
"""

from collections.abc import Sequence
from datetime import date

from src.utils.config import ScheduleConfig
from src.utils.logger import get_logger

from .matchers import Directory, NameResolver
from .metadata import parse_metadata
from .models import RotaMetadata, ScheduleEntry, weekday_label
from .row_classifier import RowClassifier
from .shifts import TIME_LIKE, extract_duty_tokens, interpret_duty

logger = get_logger(__name__)

Rows = Sequence[Sequence[str]]


class ScheduleParser:
    """Builds schedule entries from OCR text or spreadsheet rows.

    Args:
        config: Schedule settings.
        resolver: Employee name resolver, built from config when omitted.
        today: Reference date for year inference in headers.
    """

    def __init__(
        self,
        config: ScheduleConfig | None = None,
        resolver: NameResolver | None = None,
        today: date | None = None,
    ) -> None:
        self.config = config or ScheduleConfig()
        self.resolver = resolver or NameResolver.from_config(self.config)
        self.classifier = RowClassifier(self.config)
        self.today = today

    def parse(
        self,
        source: str | Rows,
        directory: Directory,
        metadata: RotaMetadata | None = None,
    ) -> list[ScheduleEntry]:
        """Parse a rota from text or rows.

        Args:
            source: OCR text or spreadsheet rows (name first, then duties).
            directory: Known employees.
            metadata: Header facts; parsed from the text when omitted.

        Returns:
            Schedule entries, possibly empty.
        """
        if isinstance(source, str):
            return self.parse_text(source, directory, metadata)
        if metadata is None:
            raise ValueError("Spreadsheet rows need metadata with a date range")
        return self.parse_rows(source, directory, metadata)

    def parse_text(
        self,
        text: str,
        directory: Directory,
        metadata: RotaMetadata | None = None,
    ) -> list[ScheduleEntry]:
        """Parse OCR text of a rota.

        Header and noise rows are skipped. Each remaining row is matched to
        an employee and its shift tokens are paired with the rota dates in
        order.

        Args:
            text: Recognized rota text.
            directory: Known employees.
            metadata: Header facts; parsed from the text when omitted.

        Returns:
            Schedule entries, possibly empty.
        """
        metadata = metadata or parse_metadata(text, self.config, self.today)
        dates = metadata.dates
        entries: list[ScheduleEntry] = []

        for raw_line in text.splitlines():
            line = raw_line.strip()
            if len(line) < self.config.min_line_length or self.classifier.is_header(line):
                continue

            match = self.resolver.resolve(line, directory)
            if match is None:
                if TIME_LIKE.search(line):
                    logger.warning("Row with shift times matched no employee: '%s'", line[:80])
                continue

            tokens = extract_duty_tokens(line, match.employee.full_name)
            if not tokens:
                logger.warning("No shifts found for %s in: '%s'", match.employee.full_name, line[:80])
                continue

            if len(tokens) != len(dates):
                logger.debug(
                    "%s: %d shifts for %d dates", match.employee.full_name, len(tokens), len(dates)
                )
            for token, day in zip(tokens, dates):
                entries.append(self._entry(match.employee, day, token))

        self._report(entries, directory)
        return entries

    def parse_rows(
        self,
        rows: Rows,
        directory: Directory,
        metadata: RotaMetadata,
        column_dates: Sequence[date | None] | None = None,
    ) -> list[ScheduleEntry]:
        """Parse spreadsheet employee rows.

        Args:
            rows: Rows with the employee name in the first cell and one duty
                cell per rota date after it.
            directory: Known employees.
            metadata: Header facts with the date range.
            column_dates: Date of each duty column, ``None`` for columns
                without a readable date. Defaults to the metadata range.

        Returns:
            Schedule entries, possibly empty.
        """
        dates = list(column_dates) if column_dates is not None else metadata.dates
        entries: list[ScheduleEntry] = []

        for row in rows:
            if not row:
                continue
            name = str(row[0] or "").strip()
            if len(name) < 3:
                continue
            match = self.resolver.resolve(name, directory)
            if match is None:
                logger.warning("Spreadsheet employee not in directory: %s", name)
                continue
            for cell, day in zip(row[1:], dates):
                duty = str(cell or "").strip()
                if duty and day is not None:
                    entries.append(self._entry(match.employee, day, duty))

        self._report(entries, directory)
        return entries

    @staticmethod
    def _entry(employee, day: date, raw_duty: str) -> ScheduleEntry:
        info = interpret_duty(raw_duty)
        return ScheduleEntry(
            employee_id=employee.employee_id,
            employee_name=employee.full_name,
            schedule_date=day,
            day_of_week=weekday_label(day),
            duty=info.duty,
            start_time=info.start_time,
            end_time=info.end_time,
            is_off_day=info.is_off_day,
        )

    def _report(self, entries: list[ScheduleEntry], directory: Directory) -> None:
        if not entries:
            logger.warning(
                "No schedule entries parsed, check manually against: %s",
                ", ".join(e.full_name for e in directory),
            )
        elif len(entries) < self.config.sparse_threshold:
            logger.warning("Only %d schedule entries parsed, rota may be incomplete", len(entries))
        else:
            logger.info("Parsed %d schedule entries", len(entries))
