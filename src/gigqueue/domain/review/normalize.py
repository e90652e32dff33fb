"""Name normalization for matching and grouping.

Keys are derived only from the text: NFKC folding, casefold, punctuation
removal and whitespace collapsing. ``normalize_name`` is idempotent.
"""

from __future__ import annotations

import unicodedata


def normalize_name(value: str | None) -> str:
    """Return the comparable key for a free-text name (``""`` for blank input)."""

    if value is None:
        return ""
    text = unicodedata.normalize("NFKC", value)
    text = text.casefold()
    text = "".join(ch for ch in text if not unicodedata.category(ch).startswith("P"))
    return " ".join(text.split())


def group_key(value: str | None) -> str:
    """Grouping identity for a venue or artist reference."""

    return normalize_name(value)
