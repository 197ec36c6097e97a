"""Canonical keys and written-form variants for raw word strings."""

from __future__ import annotations

import re

_DISALLOWED = re.compile(r"[^a-zA-Z\s-]+")
_HYPHEN_RUN = re.compile(r"-{2,}")
_WHITESPACE_RUN = re.compile(r"\s+")
_EDGES = re.compile(r"^[\s-]+|[\s-]+$")
_NON_LETTER = re.compile(r"[^A-Za-z]+")
_LOOKUP_WORD = re.compile(r"^[a-z\s-]+$")


def canonicalize(raw: str) -> str:
    """Turn a raw word into its canonical key.

    Drops everything except ASCII letters, whitespace and hyphens,
    collapses hyphen and whitespace runs, lowercases, and trims
    whitespace and hyphens from both ends. ``"-Ability-"`` and
    ``"ability"`` share the key ``"ability"``. An empty result means the
    word carries no usable key and should be skipped.
    """
    if not isinstance(raw, str):
        return ""
    key = _DISALLOWED.sub("", raw)
    key = _HYPHEN_RUN.sub("-", key)
    key = _WHITESPACE_RUN.sub(" ", key)
    key = key.lower()
    return _EDGES.sub("", key)


def counterpart(key: str) -> str | None:
    """Return the spaced form of a hyphenated key or vice versa."""
    if not key or not isinstance(key, str):
        return None
    if "-" in key:
        return key.replace("-", " ")
    if _WHITESPACE_RUN.search(key):
        return _WHITESPACE_RUN.sub("-", key)
    return None


def sanitize_idiom_query(raw: str) -> list[str]:
    """Split an idiom query into letter-only tokens."""
    if not isinstance(raw, str):
        return []
    return _NON_LETTER.sub(" ", raw).split()


def validate_lookup_word(raw: str) -> str | None:
    """Return the trimmed lowercase word, or None if it holds other characters."""
    if not isinstance(raw, str):
        return None
    cleaned = raw.strip().lower()
    if not _LOOKUP_WORD.match(cleaned):
        return None
    return cleaned


def escape_like(text: str) -> str:
    r"""Escape ``%``, ``_`` and ``\`` for a ``LIKE ... ESCAPE '\'`` clause."""
    return (
        text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    )


def like_prefix(text: str) -> str:
    """Left-anchored LIKE pattern for *text*."""
    return f"{escape_like(text)}%"
