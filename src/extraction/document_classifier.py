"""Document type plausibility checks.

Verifies that recognized text looks like the category the uploader
declared, by matching identifier groups defined in YAML against the
text. Built-in defaults are used when no YAML file is available.
"""

import re
from dataclasses import dataclass
from pathlib import Path

import yaml

from src.utils.logger import get_logger

from .rules import DocumentCategory

logger = get_logger(__name__)

DEFAULT_IDENTIFIERS: dict[str, dict[str, list[str]]] = {
    DocumentCategory.PASSPORT: {
        "keywords": ["PASSPORT", "PASSEPORT", "PASAPORTE", "REISEPASS", "جواز سفر", "护照"],
        "fields": [
            "NATIONALITY",
            "DATE OF BIRTH",
            "DOB",
            "PLACE OF BIRTH",
            "SURNAME",
            "GIVEN NAME",
        ],
        "number_patterns": [r"\b[A-Z]{1,3}[0-9]{6,9}\b"],
    },
    DocumentCategory.VISA: {
        "keywords": ["PERMISSION TO WORK", "VISA", "ENTRY", "IMMIGRATION", "PERMIT"],
        "fields": ["VALID", "EXPIRY", "UNTIL", "DURATION"],
        "number_patterns": [],
    },
    DocumentCategory.CONTRACT: {
        "keywords": ["CONTRACT", "AGREEMENT", "EMPLOYMENT", "EMPLOYER", "EMPLOYEE"],
        "fields": ["JOB TITLE", "POSITION", "SALARY", "START DATE", "COMMENCEMENT"],
        "number_patterns": [],
    },
}


@dataclass
class TypeCheck:
    """Outcome of a document type check."""

    category: str
    is_valid: bool
    matched_group: str | None = None


class DocumentTypeValidator:
    """Checks extracted text against per-category identifier groups.

    A document passes when any group (keywords, fields, number
    patterns) has at least one identifier present in the text.

    Args:
        identifiers_path: YAML file overriding the built-in identifiers.
    """

    def __init__(
        self, identifiers_path: Path = Path("configs/document_types.yaml")
    ) -> None:
        self.identifiers = self._load_identifiers(Path(identifiers_path))

    def _load_identifiers(self, path: Path) -> dict[str, dict[str, list[str]]]:
        """Load identifier groups from YAML, merged over the defaults.

        Args:
            path: Path to the identifiers YAML file.

        Returns:
            Identifier groups keyed by category.
        """
        identifiers = {str(k): dict(v) for k, v in DEFAULT_IDENTIFIERS.items()}
        if path.exists():
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            for category, groups in data.items():
                identifiers.setdefault(category, {}).update(groups or {})
            logger.debug("Loaded document identifiers from %s", path)
        else:
            logger.debug("No identifiers file at %s, using defaults", path)
        return identifiers

    def check(self, text: str, category: DocumentCategory | str) -> TypeCheck:
        """Check whether the text plausibly belongs to the category.

        Empty text fails. Unknown categories and internal errors pass,
        so a checker problem never blocks an upload.

        Args:
            text: Recognized document text.
            category: Declared document category.

        Returns:
            The check outcome with the first matching group name.
        """
        category = str(category)
        if not text or not text.strip():
            logger.warning("Empty text, cannot confirm %s document", category)
            return TypeCheck(category=category, is_valid=False)

        try:
            groups = self.identifiers.get(category)
            if not groups:
                logger.warning("No identifiers for category %s, accepting", category)
                return TypeCheck(category=category, is_valid=True)

            upper = text.upper()
            for group in ("keywords", "fields"):
                if any(word.upper() in upper for word in groups.get(group, [])):
                    return TypeCheck(category, True, group)
            for pattern in groups.get("number_patterns", []):
                if re.search(pattern, text):
                    return TypeCheck(category, True, "number_patterns")
        except Exception:
            logger.exception("Document type check failed, accepting %s", category)
            return TypeCheck(category=category, is_valid=True)

        logger.warning("Text does not look like a %s document", category)
        return TypeCheck(category=category, is_valid=False)

    def looks_like(self, text: str, category: DocumentCategory | str) -> bool:
        """Return whether the text plausibly belongs to the category."""
        return self.check(text, category).is_valid
