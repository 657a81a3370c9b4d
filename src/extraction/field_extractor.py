"""Field extraction for passports, visas and employment contracts.

Applies the declarative rule table per field, plus the few steps that
are not a single pattern: the issue/expiry date pair printed after the
issuing authority, the country keyword fallback, and cross-filling of
related fields.
"""

from collections.abc import Callable
from datetime import date

from src.utils.config import ExtractionConfig
from src.utils.logger import get_logger

from .countries import find_country
from .dates import find_dates
from .rules import (
    DATE_OF_BIRTH_RULES,
    EXPIRY_DATE_RULES,
    ISSUE_DATE_RULES,
    ISSUING_AUTHORITY,
    DocumentCategory,
    FieldName,
    FieldRule,
    FieldValue,
    rules_for,
)

logger = get_logger(__name__)

ExtractedFields = dict[str, FieldValue]


class FieldExtractor:
    """Extracts a typed field map from OCR text.

    Extraction never raises: missing fields are simply absent and an
    unexpected error yields whatever was found before it.

    Args:
        config: Extraction settings.
        today: Clock used by date plausibility checks.
    """

    def __init__(
        self,
        config: ExtractionConfig | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.config = config or ExtractionConfig()
        self.today = today
        self._handlers: dict[
            DocumentCategory, Callable[[str, ExtractedFields, date], None]
        ] = {
            DocumentCategory.PASSPORT: self._extract_passport,
            DocumentCategory.VISA: self._extract_visa,
            DocumentCategory.CONTRACT: self._extract_contract,
        }

    def extract(self, text: str, category: DocumentCategory | str) -> ExtractedFields:
        """Extract fields for a document category.

        Args:
            text: Plain text recognized from the document.
            category: Document category.

        Returns:
            Mapping of field name to string or date, containing only the
            fields that were found.
        """
        fields: ExtractedFields = {}
        if not text or not text.strip():
            logger.warning("Empty text provided for %s extraction", category)
            return fields

        try:
            category = DocumentCategory(category)
            self._handlers[category](text, fields, self.today())
        except Exception:
            logger.exception("Field extraction failed for %s", category)

        self._enforce_date_order(fields)

        if fields:
            logger.info("Extracted %s fields: %s", category, sorted(fields))
        else:
            logger.warning(
                "No %s fields could be extracted, OCR quality may be poor", category
            )
            logger.debug("Text sample: %s", text[:200])
        return fields

    def _apply(
        self,
        category: DocumentCategory,
        field: FieldName,
        text: str,
        fields: ExtractedFields,
        today: date,
    ) -> bool:
        """Fill a field from its rule cascade unless already present."""
        return self._apply_rules(rules_for(category, field), field, text, fields, today)

    @staticmethod
    def _apply_rules(
        rules: list[FieldRule],
        field: FieldName,
        text: str,
        fields: ExtractedFields,
        today: date,
    ) -> bool:
        if field in fields:
            return True
        for position, rule in enumerate(rules, 1):
            value = rule.find(text, today)
            if value is not None:
                fields[field] = value
                logger.info("%s extracted (rule %d): %s", field, position, value)
                return True
        logger.debug("Could not extract %s", field)
        return False

    def _extract_passport(self, text: str, fields: ExtractedFields, today: date) -> None:
        p = DocumentCategory.PASSPORT
        self._apply(p, FieldName.DOCUMENT_NUMBER, text, fields, today)
        self._extract_dates(text, fields, today)

        country = find_country(text)
        if not self._apply(p, FieldName.NATIONALITY, text, fields, today) and country:
            fields[FieldName.NATIONALITY] = country.nationality
            logger.info("Nationality detected by keyword: %s", country.nationality)
        if country:
            fields[FieldName.ISSUING_COUNTRY] = country.country

        self._apply(p, FieldName.FULL_NAME, text, fields, today)

    def _extract_visa(self, text: str, fields: ExtractedFields, today: date) -> None:
        v = DocumentCategory.VISA
        self._apply(v, FieldName.FULL_NAME, text, fields, today)
        self._apply(v, FieldName.EXPIRY_DATE, text, fields, today)
        self._apply(v, FieldName.COMPANY_NAME, text, fields, today)
        self._apply(v, FieldName.DATE_OF_CHECK, text, fields, today)

        if self._apply(v, FieldName.REFERENCE_NUMBER, text, fields, today):
            fields.setdefault(FieldName.DOCUMENT_NUMBER, fields[FieldName.REFERENCE_NUMBER])
        self._apply(v, FieldName.DOCUMENT_NUMBER, text, fields, today)

        if FieldName.ISSUE_DATE not in fields or FieldName.EXPIRY_DATE not in fields:
            self._extract_dates(text, fields, today)

        if not self._apply(v, FieldName.ISSUING_COUNTRY, text, fields, today):
            country = find_country(text)
            if country:
                fields[FieldName.ISSUING_COUNTRY] = country.country

        self._apply(v, FieldName.NATIONALITY, text, fields, today)

    def _extract_contract(
        self, text: str, fields: ExtractedFields, today: date
    ) -> None:
        c = DocumentCategory.CONTRACT
        for field in (
            FieldName.CONTRACT_DATE,
            FieldName.PLACE_OF_WORK,
            FieldName.CONTRACT_BETWEEN,
            FieldName.JOB_TITLE,
            FieldName.FULL_NAME,
        ):
            self._apply(c, field, text, fields, today)

        if FieldName.CONTRACT_DATE in fields:
            fields.setdefault(FieldName.ISSUE_DATE, fields[FieldName.CONTRACT_DATE])

    def _extract_dates(self, text: str, fields: ExtractedFields, today: date) -> None:
        """Fill date of birth, issue and expiry dates.

        The date pair after the issuing authority is tried before the
        independent labeled patterns.
        """
        self._apply_rules(DATE_OF_BIRTH_RULES, FieldName.DATE_OF_BIRTH, text, fields, today)

        if FieldName.ISSUE_DATE not in fields and FieldName.EXPIRY_DATE not in fields:
            pair = self.find_authority_pair(text, today)
            if pair is not None:
                fields[FieldName.ISSUE_DATE], fields[FieldName.EXPIRY_DATE] = pair
                logger.info("Issue and expiry dates from authority block: %s, %s", *pair)

        self._apply_rules(EXPIRY_DATE_RULES, FieldName.EXPIRY_DATE, text, fields, today)
        self._apply_rules(ISSUE_DATE_RULES, FieldName.ISSUE_DATE, text, fields, today)

    def find_authority_pair(self, text: str, today: date) -> tuple[date, date] | None:
        """Find the issue/expiry pair printed after an issuing authority label.

        Only the first two dates within the configured window after the
        anchor are considered; any further dates are ignored.

        Args:
            text: Document text.
            today: Reference date for the past/future check.

        Returns:
            ``(issue, expiry)`` or ``None`` when no plausible pair exists.
        """
        for anchor in ISSUING_AUTHORITY.finditer(text):
            window = text[anchor.end() : anchor.end() + self.config.authority_window]
            dates = find_dates(window)
            if len(dates) < 2:
                continue
            if len(dates) > 2:
                logger.debug("Ignoring %d extra dates after authority", len(dates) - 2)

            first, second = dates[0], dates[1]
            if first < today < second:
                return first, second
            if first > second:
                logger.info("Authority dates reversed, swapping %s and %s", first, second)
                return second, first
            logger.warning(
                "Dates near issuing authority are implausible: %s, %s", first, second
            )
            return None
        return None

    @staticmethod
    def _enforce_date_order(fields: ExtractedFields) -> None:
        issue = fields.get(FieldName.ISSUE_DATE)
        expiry = fields.get(FieldName.EXPIRY_DATE)
        if isinstance(issue, date) and isinstance(expiry, date) and issue > expiry:
            logger.warning("Issue date %s after expiry %s, swapping", issue, expiry)
            fields[FieldName.ISSUE_DATE], fields[FieldName.EXPIRY_DATE] = expiry, issue
