"""Tests for passport, visa and contract field extraction."""

from datetime import date

import pytest

from src.extraction.field_extractor import FieldExtractor
from src.extraction.rules import (
    DocumentCategory,
    FieldName,
    length_between,
    not_boilerplate,
    rule,
)

TODAY = date(2025, 6, 1)

PASSPORT_TEXT = """PASSPORT
ISLAMIC REPUBLIC OF PAKISTAN
Passport No: AB1234567
Name: AHMED ALI KHAN
Nationality: Pakistani
Date of Birth: 15 MAR 1990
Issuing Authority PAKISTAN
12 JAN 2020 11 JAN 2030
"""

VISA_TEXT = """dl Home Office JOHN SMITH They have permission to work in the UK until 30 September 2026
Details of check
Company Name Acme Hospitality Ltd
Date of Check 15 May 2025
Reference Number WK-ABC12345-XY
"""

CONTRACT_TEXT = """EMPLOYMENT CONTRACT
This Contract between Grand Hotel Ltd and Jane Doe
Employee Name: Jane Doe
Job Title: Night Porter
Place of Work: Grand Hotel, London
Start Date: 01 March 2024
"""


@pytest.fixture
def extractor() -> FieldExtractor:
    return FieldExtractor(today=lambda: TODAY)


class TestPassportExtraction:
    """Tests for passport fields."""

    def test_full_passport(self, extractor: FieldExtractor) -> None:
        fields = extractor.extract(PASSPORT_TEXT, DocumentCategory.PASSPORT)
        assert fields[FieldName.DOCUMENT_NUMBER] == "AB1234567"
        assert fields[FieldName.DATE_OF_BIRTH] == date(1990, 3, 15)
        assert fields[FieldName.ISSUE_DATE] == date(2020, 1, 12)
        assert fields[FieldName.EXPIRY_DATE] == date(2030, 1, 11)
        assert fields[FieldName.NATIONALITY] == "Pakistani"
        assert fields[FieldName.ISSUING_COUNTRY] == "Pakistan"
        assert fields[FieldName.FULL_NAME] == "AHMED ALI KHAN"

    def test_labeled_number_needs_a_digit(self, extractor: FieldExtractor) -> None:
        fields = extractor.extract("PASSPORT REPUBLIC", "passport")
        assert FieldName.DOCUMENT_NUMBER not in fields

    def test_nationality_from_country_keyword(self, extractor: FieldExtractor) -> None:
        fields = extractor.extract("REPUBLIC OF INDIA\nP1234567", "passport")
        assert fields[FieldName.NATIONALITY] == "Indian"
        assert fields[FieldName.ISSUING_COUNTRY] == "India"
        assert fields[FieldName.DOCUMENT_NUMBER] == "P1234567"

    def test_labeled_dates_without_authority(self, extractor: FieldExtractor) -> None:
        text = "Date of Issue: 05 FEB 2019\nDate of Expiry: 04 FEB 2029"
        fields = extractor.extract(text, "passport")
        assert fields[FieldName.ISSUE_DATE] == date(2019, 2, 5)
        assert fields[FieldName.EXPIRY_DATE] == date(2029, 2, 4)

    def test_future_birth_date_rejected(self, extractor: FieldExtractor) -> None:
        fields = extractor.extract("Date of Birth: 01 JAN 2030", "passport")
        assert FieldName.DATE_OF_BIRTH not in fields


class TestAuthorityPair:
    """Tests for the issue/expiry pair after the issuing authority."""

    def test_plausible_pair(self, extractor: FieldExtractor) -> None:
        pair = extractor.find_authority_pair("Authority 01 JAN 2020 01 JAN 2030", TODAY)
        assert pair == (date(2020, 1, 1), date(2030, 1, 1))

    def test_reversed_pair_swapped(self, extractor: FieldExtractor) -> None:
        pair = extractor.find_authority_pair("Authority 01 JAN 2030 01 JAN 2020", TODAY)
        assert pair == (date(2020, 1, 1), date(2030, 1, 1))

    def test_both_past_rejected(self, extractor: FieldExtractor) -> None:
        assert extractor.find_authority_pair("Authority 01 JAN 2010 01 JAN 2015", TODAY) is None

    def test_extra_dates_ignored(self, extractor: FieldExtractor) -> None:
        text = "Authority 01 JAN 2020 01 JAN 2030 05 MAY 1990"
        assert extractor.find_authority_pair(text, TODAY) == (
            date(2020, 1, 1),
            date(2030, 1, 1),
        )

    def test_dates_outside_window_ignored(self, extractor: FieldExtractor) -> None:
        text = "Authority" + " " * 250 + "01 JAN 2020 01 JAN 2030"
        assert extractor.find_authority_pair(text, TODAY) is None

    def test_single_date(self, extractor: FieldExtractor) -> None:
        assert extractor.find_authority_pair("Authority 01 JAN 2020", TODAY) is None


class TestVisaExtraction:
    """Tests for visa and share code check fields."""

    def test_share_code_check(self, extractor: FieldExtractor) -> None:
        fields = extractor.extract(VISA_TEXT, DocumentCategory.VISA)
        assert fields[FieldName.FULL_NAME] == "JOHN SMITH"
        assert fields[FieldName.EXPIRY_DATE] == date(2026, 9, 30)
        assert fields[FieldName.COMPANY_NAME] == "Acme Hospitality Ltd"
        assert fields[FieldName.DATE_OF_CHECK] == date(2025, 5, 15)
        assert fields[FieldName.REFERENCE_NUMBER] == "WK-ABC12345-XY"
        assert fields[FieldName.DOCUMENT_NUMBER] == "WK-ABC12345-XY"
        assert fields[FieldName.ISSUING_COUNTRY] == "United Kingdom"
        assert FieldName.ISSUE_DATE not in fields

    def test_visa_number(self, extractor: FieldExtractor) -> None:
        fields = extractor.extract("VISA No: X12345678\nNationality: Indian", "visa")
        assert fields[FieldName.DOCUMENT_NUMBER] == "X12345678"
        assert fields[FieldName.NATIONALITY] == "Indian"


class TestContractExtraction:
    """Tests for employment contract fields."""

    def test_contract(self, extractor: FieldExtractor) -> None:
        fields = extractor.extract(CONTRACT_TEXT, DocumentCategory.CONTRACT)
        assert fields[FieldName.CONTRACT_DATE] == date(2024, 3, 1)
        assert fields[FieldName.ISSUE_DATE] == date(2024, 3, 1)
        assert fields[FieldName.PLACE_OF_WORK] == "Grand Hotel, London"
        assert fields[FieldName.CONTRACT_BETWEEN] == "Grand Hotel Ltd and Jane Doe"
        assert fields[FieldName.JOB_TITLE] == "Night Porter"
        assert fields[FieldName.FULL_NAME] == "Jane Doe"

    def test_numeric_start_date(self, extractor: FieldExtractor) -> None:
        fields = extractor.extract("Commencement Date: 01/03/2024", "contract")
        assert fields[FieldName.CONTRACT_DATE] == date(2024, 3, 1)


class TestExtractorRobustness:
    """Tests for empty input, bad categories and the date order invariant."""

    @pytest.mark.parametrize("text", ["", "   \n "])
    def test_empty_text(self, extractor: FieldExtractor, text: str) -> None:
        assert extractor.extract(text, "passport") == {}

    def test_unknown_category_returns_empty(self, extractor: FieldExtractor) -> None:
        assert extractor.extract(PASSPORT_TEXT, "invoice") == {}

    def test_issue_after_expiry_swapped(self) -> None:
        fields = {
            FieldName.ISSUE_DATE: date(2030, 1, 1),
            FieldName.EXPIRY_DATE: date(2020, 1, 1),
        }
        FieldExtractor._enforce_date_order(fields)
        assert fields[FieldName.ISSUE_DATE] == date(2020, 1, 1)
        assert fields[FieldName.EXPIRY_DATE] == date(2030, 1, 1)

    def test_no_text_yields_no_fields(self, extractor: FieldExtractor) -> None:
        assert extractor.extract("lorem ipsum dolor", "contract") == {}


class TestRuleHelpers:
    """Tests for rule building blocks."""

    def test_first_valid_match_returned(self) -> None:
        r = rule(r"\b([A-Z]+\d*)\b", flags=0, validator=lambda v, t: any(c.isdigit() for c in v))
        assert r.find("ABC XY123", TODAY) == "XY123"

    def test_window_limits_search(self) -> None:
        r = rule(r"(NAME)", flags=0, window=10)
        assert r.find("0123456789 NAME", TODAY) is None

    def test_constant_value(self) -> None:
        r = rule(r"UK", flags=0, constant="United Kingdom")
        assert r.find("issued in the UK", TODAY) == "United Kingdom"

    def test_length_between_is_strict(self) -> None:
        check = length_between(5, 10)
        assert not check("abcde", TODAY)
        assert check("abcdef", TODAY)

    def test_not_boilerplate(self) -> None:
        assert not not_boilerplate("PASSPORT TYPE", TODAY)
        assert not_boilerplate("AHMED KHAN", TODAY)
