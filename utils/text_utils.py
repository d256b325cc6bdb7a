"""
Text utilities for free-text exercise names.

Used for mapping keys, keyword extraction and alias comparison.
"""

import re
import unicodedata
from typing import Optional


def normalize_query(query: Optional[str]) -> str:
    """
    Normalize an exercise name into a mapping key.

    Only lower-cases and trims; stored mappings are keyed on exactly this.
    - "  DB Row " → "db row"
    - None → ""
    """
    if not query:
        return ""
    return query.strip().lower()


def tokenize(text: Optional[str]) -> list[str]:
    """Split on whitespace into lower-case tokens."""
    if not text:
        return []
    return text.lower().split()


def normalize_for_matching(text: Optional[str]) -> str:
    """
    Normalize text for alias comparison.

    Handles accents, punctuation and spacing:
    - "Press à l'épaule" → "press a l epaule"
    - "Push-Up" → "push up"
    - "  Bench   Press " → "bench press"

    Args:
        text: Raw exercise name

    Returns:
        Lower-case ASCII string with single spaces, or "" for empty input
    """
    if not text:
        return ""

    # Normalize unicode (NFD decomposition separates base chars from accents)
    normalized = unicodedata.normalize('NFD', text)

    # Remove accent marks (combining characters in Unicode category 'Mn')
    ascii_text = ''.join(
        c for c in normalized
        if unicodedata.category(c) != 'Mn'
    )

    # Hyphens, apostrophes and the like become word breaks
    ascii_text = re.sub(r"[^a-z0-9]+", " ", ascii_text.lower())

    return ascii_text.strip()
