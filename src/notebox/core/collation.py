"""Accent- and case-insensitive name matching for tags and directories."""

import unicodedata


def collation_key(name: str) -> str:
    """Fold a name for comparison.

    Strips combining marks after canonical decomposition and case-folds the
    result. Whitespace is left alone, so "cafe " and "Café" differ.
    """
    decomposed = unicodedata.normalize("NFD", name)
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return stripped.casefold()


def names_match(a: str, b: str) -> bool:
    return collation_key(a) == collation_key(b)


def contains_folded(haystack: str, needle: str) -> bool:
    """Substring test under the same folding as ``names_match``."""
    return collation_key(needle) in collation_key(haystack)
