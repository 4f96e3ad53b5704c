"""Normalized edit-distance similarity for ingredient names."""

from rapidfuzz.distance import Levenshtein


def levenshtein_distance(a: str, b: str) -> int:
    """Return the case-insensitive Levenshtein distance between two strings."""
    return Levenshtein.distance(a.lower(), b.lower())


def similarity(a: str, b: str) -> float:
    """Return a similarity score in [0, 1], where 1 means identical names.

    Both names are lower-cased first and the score is
    ``1 - distance / max(len(a), len(b))`` over the lower-cased names. Two empty
    strings are considered identical.
    """
    left, right = a.lower(), b.lower()
    max_length = max(len(left), len(right))
    if max_length == 0:
        return 1.0
    return 1 - Levenshtein.distance(left, right) / max_length
