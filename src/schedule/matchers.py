"""Employee name resolution for rota rows.

``NameResolver`` runs a ranked list of matcher strategies and returns
the first match. Each strategy only sees rows the earlier ones could
not resolve, so cheaper and stricter strategies come first.
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from src.utils.config import ScheduleConfig
from src.utils.logger import get_logger

from .models import EmployeeDirectoryEntry
from .similarity import similarity

logger = get_logger(__name__)

Directory = Sequence[EmployeeDirectoryEntry]

_NON_ALNUM = re.compile(r"[^a-z0-9]")


@dataclass
class NameMatch:
    """An employee resolved from a rota row."""

    employee: EmployeeDirectoryEntry
    strategy: str
    score: float = 1.0


class NameMatcher(Protocol):
    """A single name matching strategy."""

    name: str

    def match(self, line: str, directory: Directory) -> NameMatch | None: ...


def _normalize(text: str) -> str:
    return " ".join(text.lower().split())


def _name_tokens(full_name: str) -> list[str]:
    return full_name.lower().split()


class ExactNameMatcher:
    """Full directory name appears verbatim in the row."""

    name = "exact"

    def match(self, line: str, directory: Directory) -> NameMatch | None:
        lowered = line.lower()
        for entry in directory:
            full_name = entry.full_name.lower().strip()
            if full_name and full_name in lowered:
                return NameMatch(entry, self.name)
        return None


class IndexedNameMatcher:
    """Whitespace-normalized name index looked up against the row.

    Catches rows where OCR doubled the spaces inside a name.
    """

    name = "indexed"

    def match(self, line: str, directory: Directory) -> NameMatch | None:
        index = {_normalize(e.full_name): e for e in directory if e.full_name.strip()}
        normalized = _normalize(line)
        for key, entry in index.items():
            if key in normalized:
                return NameMatch(entry, self.name)
        return None


class SplitNameMatcher:
    """First and last name tokens found separately in the row.

    Falls back to matching name prefixes, then to a long first name
    that no other employee shares.

    Args:
        prefix_chars: Prefix length used when full tokens are missing.
        unique_first_name_min: Minimum length of a first name that may
            match on its own.
    """

    name = "split"

    def __init__(self, prefix_chars: int = 5, unique_first_name_min: int = 6) -> None:
        self.prefix_chars = prefix_chars
        self.unique_first_name_min = unique_first_name_min

    def match(self, line: str, directory: Directory) -> NameMatch | None:
        lowered = line.lower()

        for entry in directory:
            tokens = _name_tokens(entry.full_name)
            if len(tokens) >= 2 and tokens[0] in lowered and tokens[-1] in lowered:
                return NameMatch(entry, self.name)

        min_len = self.prefix_chars - 1
        for entry in directory:
            tokens = _name_tokens(entry.full_name)
            if len(tokens) < 2:
                continue
            first, last = tokens[0], tokens[-1]
            if len(first) < min_len or len(last) < min_len:
                continue
            if first[: self.prefix_chars] in lowered and last[: self.prefix_chars] in lowered:
                return NameMatch(entry, f"{self.name}:prefix", 0.9)

        for entry in directory:
            tokens = _name_tokens(entry.full_name)
            if not tokens or len(tokens[0]) < self.unique_first_name_min:
                continue
            first = tokens[0]
            if first not in lowered:
                continue
            sharing = sum(
                1 for other in directory if other.full_name.lower().strip().startswith(first)
            )
            if sharing == 1:
                return NameMatch(entry, f"{self.name}:first-name", 0.8)
        return None


class FuzzyTokenMatcher:
    """Per-token fuzzy match between name tokens and row tokens.

    Name tokens shorter than three characters are ignored. A token
    counts when it appears verbatim or is similar enough to a row token.

    Args:
        threshold: Minimum similarity for a fuzzy token hit.
    """

    name = "fuzzy-token"

    def __init__(self, threshold: float = 0.70) -> None:
        self.threshold = threshold

    def match(self, line: str, directory: Directory) -> NameMatch | None:
        lowered = line.lower()
        row_tokens = [_NON_ALNUM.sub("", t) for t in lowered.split()]
        row_tokens = [t for t in row_tokens if len(t) >= 3]

        for entry in directory:
            tokens = [t for t in _name_tokens(entry.full_name) if len(t) >= 3]
            if not tokens:
                continue
            matched = 0
            for token in tokens:
                if token in lowered:
                    matched += 1
                    continue
                clean = _NON_ALNUM.sub("", token)
                if len(clean) >= 3 and any(
                    similarity(clean, row_token) > self.threshold for row_token in row_tokens
                ):
                    matched += 1
            if matched >= min(2, len(tokens)):
                return NameMatch(entry, self.name, matched / len(tokens))
        return None


class WholeLineMatcher:
    """Last resort: the start of the row compared with each full name.

    Args:
        threshold: Minimum similarity to accept.
        prefix_chars: Number of leading row characters compared.
    """

    name = "whole-line"

    def __init__(self, threshold: float = 0.60, prefix_chars: int = 30) -> None:
        self.threshold = threshold
        self.prefix_chars = prefix_chars

    def match(self, line: str, directory: Directory) -> NameMatch | None:
        start = line.lower().strip()[: self.prefix_chars]
        best: NameMatch | None = None
        for entry in directory:
            score = similarity(start, entry.full_name.lower().strip())
            if score > self.threshold and (best is None or score > best.score):
                best = NameMatch(entry, self.name, score)
        return best


class NameResolver:
    """Ranked cascade of name matching strategies.

    Args:
        strategies: Matchers in the order they are tried.
    """

    def __init__(self, strategies: Sequence[NameMatcher]) -> None:
        self.strategies = list(strategies)

    @classmethod
    def from_config(cls, config: ScheduleConfig) -> "NameResolver":
        """Build the standard five-tier cascade."""
        return cls(
            [
                ExactNameMatcher(),
                IndexedNameMatcher(),
                SplitNameMatcher(config.prefix_chars, config.unique_first_name_min),
                FuzzyTokenMatcher(config.token_similarity),
                WholeLineMatcher(config.line_similarity, config.line_prefix_chars),
            ]
        )

    def resolve(self, line: str, directory: Directory) -> NameMatch | None:
        """Resolve the employee a row belongs to.

        Args:
            line: One row of rota text.
            directory: Known employees.

        Returns:
            The first strategy's match, or ``None``.
        """
        for strategy in self.strategies:
            result = strategy.match(line, directory)
            if result is not None:
                logger.info(
                    "Matched '%s' via %s (%.2f) in: '%s'",
                    result.employee.full_name,
                    result.strategy,
                    result.score,
                    line[:80],
                )
                return result
        return None
