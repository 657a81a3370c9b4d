"""Edit-distance string similarity."""

from rapidfuzz.distance import Levenshtein


def similarity(a: str, b: str) -> float:
    """Case-insensitive normalized Levenshtein similarity.

    Computed as ``(max_len - distance) / max_len``, so identical strings
    score 1.0 and strings with nothing in common score 0.0. Two empty
    strings are identical.

    Args:
        a: First string.
        b: Second string.

    Returns:
        Similarity between 0.0 and 1.0.
    """
    a, b = a.lower(), b.lower()
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    distance = Levenshtein.distance(a, b)
    return (longest - distance) / longest
