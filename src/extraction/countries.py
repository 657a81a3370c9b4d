"""Country and nationality keyword table.

A best-effort fallback for documents without a labeled nationality.
Entries are checked in order and the first hit wins. ASCII keywords
must appear as whole words; native-script variants match as substrings.
"""

import re
from dataclasses import dataclass

from src.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CountryKeywords:
    """Keyword set identifying one country."""

    country: str
    nationality: str
    keywords: tuple[str, ...]


COUNTRY_KEYWORDS: list[CountryKeywords] = [
    CountryKeywords(
        "Pakistan",
        "Pakistani",
        ("ISLAMIC REPUBLIC OF PAKISTAN", "PAKISTAN", "PAK", "اسلامی جمہوریہ پاکستان"),
    ),
    CountryKeywords(
        "India", "Indian", ("REPUBLIC OF INDIA", "INDIA", "IND", "भारत गणराज्य", "भारत")
    ),
    CountryKeywords(
        "United Kingdom",
        "British",
        ("UNITED KINGDOM", "BRITISH", "GBR", "ENGLAND", "UK"),
    ),
    CountryKeywords(
        "United States",
        "American",
        ("UNITED STATES OF AMERICA", "UNITED STATES", "USA", "AMERICAN"),
    ),
    CountryKeywords("Canada", "Canadian", ("CANADA", "CANADIAN", "CAN")),
    CountryKeywords(
        "Australia",
        "Australian",
        ("COMMONWEALTH OF AUSTRALIA", "AUSTRALIA", "AUSTRALIAN", "AUS"),
    ),
    CountryKeywords(
        "China",
        "Chinese",
        ("PEOPLE'S REPUBLIC OF CHINA", "CHINA", "CHN", "中华人民共和国", "中国"),
    ),
    CountryKeywords("Japan", "Japanese", ("JAPAN", "JPN", "日本国", "日本")),
    CountryKeywords(
        "Germany",
        "German",
        ("BUNDESREPUBLIK DEUTSCHLAND", "GERMANY", "DEUTSCHLAND", "DEU"),
    ),
    CountryKeywords(
        "France",
        "French",
        ("RÉPUBLIQUE FRANÇAISE", "FRANÇAISE", "FRANCE", "FRA"),
    ),
]


def _keyword_pattern(keyword: str) -> re.Pattern[str]:
    if keyword.isascii():
        return re.compile(rf"\b{re.escape(keyword)}\b")
    return re.compile(re.escape(keyword))


_COMPILED: list[tuple[CountryKeywords, list[re.Pattern[str]]]] = [
    (entry, [_keyword_pattern(k) for k in entry.keywords]) for entry in COUNTRY_KEYWORDS
]


def find_country(text: str) -> CountryKeywords | None:
    """Return the first country whose keywords appear in the text.

    Args:
        text: Document text in any case.

    Returns:
        The matching table entry, or ``None``.
    """
    upper = text.upper()
    for entry, patterns in _COMPILED:
        if any(p.search(upper) for p in patterns):
            logger.debug("Country keyword match: %s", entry.country)
            return entry
    return None
