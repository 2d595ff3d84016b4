import re

# Hyphen, non-breaking hyphen, en dash, em dash, minus sign
DASH_VARIANTS = re.compile("[‐‑–—−]")
WHITESPACE_RUN = re.compile(r"\s+")


def normalize_beyblade_name(name: str) -> str:
    """Canonical form of a Beyblade name for equality comparison.

    Trims, lowercases, folds every dash variant into a plain hyphen and
    collapses whitespace runs to a single space. Idempotent.
    """
    normalized = name.strip().lower()
    normalized = DASH_VARIANTS.sub("-", normalized)
    return WHITESPACE_RUN.sub(" ", normalized)


def normalize_player_name(name: str) -> str:
    """Case-insensitive key for player display names."""
    return name.strip().casefold()


def names_match(left: str, right: str) -> bool:
    return normalize_beyblade_name(left) == normalize_beyblade_name(right)
