"""Declarative field extraction rules.

``RULES`` maps ``(DocumentCategory, FieldName)`` to an ordered list of
``FieldRule``. The first rule that yields a value accepted by its
validator wins. Rules are plain data so the cascade can be inspected
and extended without touching the extractor's control flow.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from enum import StrEnum

from .dates import parse_date


class DocumentCategory(StrEnum):
    """Supported document categories."""

    PASSPORT = "passport"
    VISA = "visa"
    CONTRACT = "contract"


class FieldName(StrEnum):
    """Keys of the extracted field map."""

    DOCUMENT_NUMBER = "documentNumber"
    ISSUE_DATE = "issueDate"
    EXPIRY_DATE = "expiryDate"
    DATE_OF_BIRTH = "dateOfBirth"
    NATIONALITY = "nationality"
    ISSUING_COUNTRY = "issuingCountry"
    FULL_NAME = "fullName"
    COMPANY_NAME = "companyName"
    REFERENCE_NUMBER = "referenceNumber"
    DATE_OF_CHECK = "dateOfCheck"
    CONTRACT_DATE = "contractDate"
    PLACE_OF_WORK = "placeOfWork"
    CONTRACT_BETWEEN = "contractBetween"
    JOB_TITLE = "jobTitle"


FieldValue = str | date
Validator = Callable[[FieldValue, date], bool]
Cleaner = Callable[[str], str]

# Capitalized words that are passport boilerplate, never a holder's name.
NAME_STOPWORDS: tuple[str, ...] = (
    "PASSPORT",
    "REPUBLIC",
    "NATIONALITY",
    "SURNAME",
    "GIVEN",
    "DATE",
    "BIRTH",
    "SEX",
    "PLACE",
    "ISSUE",
    "EXPIRY",
    "TYPE",
    "CODE",
    "AUTHORITY",
    "OFFICE",
    "VISA",
    "PERMISSION",
)


@dataclass(frozen=True)
class FieldRule:
    """One extraction alternative for a field.

    Attributes:
        pattern: Compiled regular expression.
        group: Capture group holding the value, or a tuple of groups
            joined with ``joiner``.
        is_date: Parse the captured text as a date.
        validator: Plausibility check on the parsed value.
        cleaner: Normalization applied to captured text.
        window: Only search the first ``window`` characters.
        constant: Emit this value whenever the pattern matches.
        joiner: Separator for multi-group values.
    """

    pattern: re.Pattern[str]
    group: int | tuple[int, ...] = 1
    is_date: bool = False
    validator: Validator | None = None
    cleaner: Cleaner | None = None
    window: int | None = None
    constant: str | None = None
    joiner: str = " and "

    def find(self, text: str, today: date) -> FieldValue | None:
        """Return the first accepted value in the text, or ``None``."""
        haystack = text[: self.window] if self.window else text
        for match in self.pattern.finditer(haystack):
            value = self._value(match)
            if value is None:
                continue
            if self.validator is None or self.validator(value, today):
                return value
        return None

    def _value(self, match: re.Match[str]) -> FieldValue | None:
        if self.constant is not None:
            return self.constant
        groups = self.group if isinstance(self.group, tuple) else (self.group,)
        parts = [(match.group(g) or "").strip() for g in groups]
        raw = self.joiner.join(parts)
        if self.cleaner is not None:
            raw = self.cleaner(raw)
        if not raw:
            return None
        return parse_date(raw) if self.is_date else raw


def rule(
    pattern: str,
    flags: int = re.IGNORECASE,
    **kwargs,
) -> FieldRule:
    """Compile a pattern into a ``FieldRule``."""
    return FieldRule(pattern=re.compile(pattern, flags), **kwargs)


def date_rule(
    pattern: str, validator: Validator | None = None, flags: int = re.IGNORECASE
) -> FieldRule:
    """Compile a pattern whose capture is parsed as a date."""
    return rule(pattern, flags, is_date=True, validator=validator)


# Validators

def in_past(value: FieldValue, today: date) -> bool:
    return isinstance(value, date) and value < today


def in_future(value: FieldValue, today: date) -> bool:
    return isinstance(value, date) and value > today


def not_after_today(value: FieldValue, today: date) -> bool:
    return isinstance(value, date) and value <= today


def has_digit(value: FieldValue, today: date) -> bool:
    return any(ch.isdigit() for ch in str(value))


def length_between(low: int, high: int) -> Validator:
    """Accept text values whose length is strictly between the bounds."""

    def check(value: FieldValue, today: date) -> bool:
        return low < len(str(value)) < high

    return check


def at_least_chars(minimum: int) -> Validator:
    def check(value: FieldValue, today: date) -> bool:
        return len(str(value)) >= minimum

    return check


def not_boilerplate(value: FieldValue, today: date) -> bool:
    upper = str(value).upper()
    return not any(word in upper for word in NAME_STOPWORDS)


def name_like(value: FieldValue, today: date) -> bool:
    return length_between(5, 50)(value, today) and not_boilerplate(value, today)


# Cleaners

def collapse_spaces(value: str) -> str:
    return re.sub(r"\s+", " ", value).strip()


def upper_code(value: str) -> str:
    return value.strip().upper()


def clean_company(value: str) -> str:
    return re.sub(r"\[\|.*", "", collapse_spaces(value)).strip()


def truncate(limit: int) -> Cleaner:
    def clean(value: str) -> str:
        return collapse_spaces(value)[:limit].strip()

    return clean


_TEXT_DATE = r"\d{1,2}\s+[A-Z]{3,9}\.?\s+\d{4}"
_NUMERIC_DATE = r"\d{1,2}[/\-.\s]+\d{1,2}[/\-.\s]+\d{2,4}"
_COMPACT_DATE = r"\d{2}[/\-.\s]*\d{2}[/\-.\s]*\d{2,4}"

ISSUING_AUTHORITY = re.compile(r"\b(?:Issuing\s*)?Authority\b", re.IGNORECASE)

# Shared date rules, also used for visas missing issue or expiry dates.
DATE_OF_BIRTH_RULES = [
    date_rule(
        rf"(?:Date\s*of\s*Birth|DOB|Birth\s*Date|Born)\s*:?\s*({_TEXT_DATE})", in_past
    ),
    date_rule(
        rf"(?:Date\s*of\s*Birth|DOB|Birth\s*Date)\s*:?\s*({_NUMERIC_DATE})", in_past
    ),
    date_rule(rf"Date\s*of\s*Birt[h.]?\s*[:\s]*({_TEXT_DATE})", in_past),
    date_rule(rf"\bDOB\s*:?\s*({_COMPACT_DATE})", in_past),
]

EXPIRY_DATE_RULES = [
    date_rule(
        rf"(?:Expiry|Expiration|Valid\s*Until|Date\s*of\s*Expiry|Expires?)\s*:?\s*({_TEXT_DATE})",
        in_future,
    ),
    date_rule(
        rf"(?:Expiry|Expiration|Valid\s*Until|Date\s*of\s*Expiry)\s*:?\s*({_NUMERIC_DATE})",
        in_future,
    ),
    date_rule(rf"\b(?:EXP|EXPIRY)\s*:?\s*({_COMPACT_DATE})", in_future),
    date_rule(r"\b(\d{2}\s+[A-Z]{3,9}\s+20[3-9]\d)\b", in_future, flags=0),
]

ISSUE_DATE_RULES = [
    date_rule(
        rf"(?:Issued|Date\s*of\s*Issue|Issue\s*Date|Issue)\s*:?\s*({_TEXT_DATE})",
        not_after_today,
    ),
    date_rule(
        rf"(?:Issued|Date\s*of\s*Issue|Issue)\s*:?\s*({_NUMERIC_DATE})", not_after_today
    ),
    date_rule(rf"\b(?:ISS|ISSUE)\s*:?\s*({_COMPACT_DATE})", not_after_today),
    date_rule(r"\b(\d{2}\s+[A-Z]{3,9}\s+20[12]\d)\b", not_after_today, flags=0),
]

_P = DocumentCategory.PASSPORT
_V = DocumentCategory.VISA
_C = DocumentCategory.CONTRACT
_F = FieldName

RULES: dict[tuple[DocumentCategory, FieldName], list[FieldRule]] = {
    # Passport
    (_P, _F.DOCUMENT_NUMBER): [
        rule(
            r"(?:Passport|Passeport|Pasaporte|Reisepass|Passaporto)\s*"
            r"(?:No|Number|Nr|N°)?\.?\s*:?\s*([A-Z0-9]{6,12})\b",
            validator=has_digit,
            cleaner=upper_code,
        ),
        rule(r"\b([A-Z]{1,3}[0-9]{6,9})\b", flags=0),
        rule(r"(?:Passport|护照)\s*(?:No|Number)?\.?\s*:?\s*([0-9]{8,9})\b"),
        rule(r"\b([A-Z]{2}\d{7,8}|[A-Z]\d{8,9})\b", flags=0),
    ],
    (_P, _F.DATE_OF_BIRTH): DATE_OF_BIRTH_RULES,
    (_P, _F.EXPIRY_DATE): EXPIRY_DATE_RULES,
    (_P, _F.ISSUE_DATE): ISSUE_DATE_RULES,
    (_P, _F.NATIONALITY): [
        rule(
            r"\b(?:Nationality|Nationalité|Nacionalidad|Staatsangehörigkeit|Nazionalità)"
            r"\s*:?\s*([A-Za-zÀ-ÿ ]+?)(?:\n|\s{2,}|Date|DOB|Birth|$)",
            cleaner=collapse_spaces,
            validator=at_least_chars(3),
        ),
    ],
    (_P, _F.FULL_NAME): [
        rule(
            r"\b(?:Full\s*Name|Given\s*Names?|Surname|Name|Nom|Apellidos?|Nome|Nachname)"
            r"\s*:?\s*([A-ZÀ-ÿ][A-ZÀ-ÿ ]{2,50}?)\s*(?:\n|Date|DOB|Birth|Passport|\d{2}|$)",
            cleaner=collapse_spaces,
            validator=not_boilerplate,
        ),
        rule(
            r"\b([A-ZÀ-Ÿ]{3,}(?:[ \t]+[A-ZÀ-Ÿ]{2,}){1,4})\b",
            flags=0,
            cleaner=collapse_spaces,
            validator=not_boilerplate,
        ),
    ],
    # Visa
    (_V, _F.FULL_NAME): [
        rule(
            r"(?:dl\s*)?Home\s*Office\s+([A-Z][A-Z\s]{2,50}?)\s+"
            r"(?:They\s+have\s+permission|Conditions)",
            cleaner=collapse_spaces,
        ),
        rule(
            r"\b([A-Z]{2,}[ \t]+[A-Z]{2,}(?:[ \t]+[A-Z]{2,})?)\b",
            flags=0,
            window=200,
            cleaner=collapse_spaces,
            validator=name_like,
        ),
        rule(
            r"\b(?:Full\s*Name|Name|Holder)\s*:?\s*([A-Z][A-Z ]+[A-Z])",
            cleaner=collapse_spaces,
        ),
    ],
    (_V, _F.EXPIRY_DATE): [
        date_rule(
            r"permission\s+to\s+work\s+in\s+the\s+UK\s+until\s+(\d{1,2}\s+[A-Za-z]+\s+\d{4})"
        ),
    ],
    (_V, _F.COMPANY_NAME): [
        rule(
            r"Company\s*Name\s*(?:\[\||[:\s])*\s*"
            r"([A-Za-z0-9][A-Za-z0-9\s&.,'-]*?(?:Ltd|Limited|LLC|Inc|Corporation|LLP|Plc))\b",
            cleaner=clean_company,
        ),
        rule(
            r"Company\s*Name[^A-Za-z0-9]*([A-Za-z][A-Za-z0-9\s&.,'-]+?)\s*"
            r"(?:\[\||Date\s*of|services\s+Ltd)",
            cleaner=clean_company,
        ),
        rule(
            r"Details\s+of\s+check.*?Company\s*Name.*?"
            r"([A-Z][a-zA-Z]+\s+[a-z]+.*?(?:Ltd|Limited|services))",
            flags=re.IGNORECASE | re.DOTALL,
            cleaner=clean_company,
        ),
    ],
    (_V, _F.DATE_OF_CHECK): [
        date_rule(r"Date\s*of\s*Check\s*[:\s]*(\d{1,2}\s+[A-Za-z]+\s+\d{4})"),
        date_rule(
            r"Date\s*of\s*Check.*?(\d{1,2}\s+[A-Z][a-z]+\s+\d{4})",
            flags=re.IGNORECASE | re.DOTALL,
        ),
        date_rule(r"Date\s*of\s*Check\s*[:\s]*(\d{1,2}[/-]\d{1,2}[/-]\d{2,4})"),
    ],
    (_V, _F.REFERENCE_NUMBER): [
        rule(
            r"Reference\s*Number\s*[:\s]*([A-Z0-9]{2,3}-[A-Z0-9]{5,10}-[A-Z0-9]{2,3})\b",
            cleaner=upper_code,
        ),
        rule(
            r"Reference\s*(?:Number)?\s*[:\s]*([A-Z]{2,3}-[A-Z0-9]{5,10}-[A-Z]{2,3})\b",
            cleaner=upper_code,
        ),
        rule(r"\b([A-Z]{2}-[A-Z0-9]{7,9}-[A-Z]{2})\b", cleaner=upper_code),
        rule(
            r"Reference.*?([A-Z]{2,3}-[A-Z0-9-]{5,15})",
            flags=re.IGNORECASE | re.DOTALL,
            cleaner=upper_code,
        ),
    ],
    (_V, _F.DOCUMENT_NUMBER): [
        rule(
            r"\bVisa\s*(?:No|Number)?\.?\s*:?\s*([A-Z0-9]{6,15})\b",
            validator=has_digit,
            cleaner=upper_code,
        ),
    ],
    (_V, _F.ISSUING_COUNTRY): [
        rule(
            r"United\s+Kingdom|Home\s+Office|permission\s+to\s+work",
            constant="United Kingdom",
        ),
        rule(r"\bUK\b", flags=0, constant="United Kingdom"),
    ],
    (_V, _F.NATIONALITY): [
        rule(
            r"\b(?:Nationality|Country\s*of\s*Birth)\s*:?\s*([A-Za-z ]+)",
            cleaner=collapse_spaces,
            validator=at_least_chars(3),
        ),
    ],
    # Contract
    (_C, _F.CONTRACT_DATE): [
        date_rule(
            r"(?:Date\s*of\s*Employment|Employment\s*Start\s*Date|Start\s*Date|Commencement\s*Date)"
            r"(?:\s+is)?\s*[:\s]*(\d{1,2}\s+[A-Za-z]+\s+\d{4})"
        ),
        date_rule(
            r"(?:Date\s*of\s*Employment|Employment\s*Start\s*Date|Start\s*Date|Commencement\s*Date)"
            r"(?:\s+is)?\s*[:\s]*(\d{1,2}[/-]\d{1,2}[/-]\d{2,4})"
        ),
        date_rule(r"\bdated\s+(\d{1,2}\s+[A-Za-z]+\s+\d{4})"),
    ],
    (_C, _F.PLACE_OF_WORK): [
        rule(
            r"\b(?:Principal\s*Place\s*of\s*Work|Place\s*of\s*Work|Work\s*Location|Location)"
            r"[:\s]+([A-Za-z0-9 ,.-]+?)(?:\n|\.\s|\.$|;|$)",
            cleaner=truncate(100),
        ),
        rule(
            r"\b(?:based\s+at|work\s+at|located\s+at)[:\s]+([A-Za-z0-9 ,.-]+?)(?:\n|\.\s|\.$|;|$)",
            cleaner=truncate(100),
        ),
    ],
    (_C, _F.CONTRACT_BETWEEN): [
        rule(
            r"\b(?:Contract|Agreement)\s+between\s+([A-Za-z0-9 &.,'-]+?)\s+and\s+"
            r"([A-Za-z ]+?)\s*(?:\n|\(|dated|$)",
            group=(1, 2),
            cleaner=collapse_spaces,
        ),
        rule(
            r"\b(?:made|entered)\s+between\s+([A-Za-z0-9 &.,'-]+?)\s+(?:and|&)\s+"
            r"([A-Za-z ]+?)\s*(?:\n|\(|dated|$)",
            group=(1, 2),
            cleaner=collapse_spaces,
        ),
    ],
    (_C, _F.JOB_TITLE): [
        rule(
            r"\b(?:Position|Job\s*Title|Role|Post)[:\s]+([A-Za-z &/-]+?)(?:\n|\.|;|$)",
            cleaner=collapse_spaces,
        ),
        rule(
            r"\b(?:employed\s+as|appointed\s+as)[:\s]+([A-Za-z &/-]+?)(?:\n|\.|;|\s+at\b|$)",
            cleaner=collapse_spaces,
        ),
    ],
    (_C, _F.FULL_NAME): [
        rule(
            r"\b(?:Employee\s*Name|Employee)[:\s]+([A-Z][A-Za-z ]+?)\s*(?:\n|\(|$)",
            cleaner=collapse_spaces,
            validator=length_between(5, 50),
        ),
    ],
}


def rules_for(category: DocumentCategory, field: FieldName) -> list[FieldRule]:
    """Return the ordered rules for a field, empty when none are defined."""
    return RULES.get((category, field), [])
