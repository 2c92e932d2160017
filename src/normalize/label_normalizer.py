"""
Label Text Normalizer for Label Check Engine

Deterministic text normalization applied before any lexical matching.
Food-label text arrives in mixed case and with inconsistent accents
("Lácteo", "LACTEO", "lacteo"), so every matcher runs against the same
normalized surface:

1. None -> ""
2. Lowercase the whole string
3. Unicode NFD decomposition
4. Drop combining marks (accents, tildes, diaeresis)
"""

import unicodedata
from typing import Optional


def normalize_label_text(raw: Optional[str]) -> str:
    """
    Normalize raw label text for matching.

    Args:
        raw: Raw label text (None, empty and non-string values normalize to "")

    Returns:
        Lowercased text with diacritical marks removed
    """
    if not isinstance(raw, str) or not raw:
        return ""

    decomposed = unicodedata.normalize("NFD", raw.lower())
    return "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")


def is_blank(raw: Optional[str]) -> bool:
    """Return True if the text has nothing left to match after normalization."""
    return normalize_label_text(raw).strip() == ""
