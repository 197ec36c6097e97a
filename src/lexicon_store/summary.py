"""Document aggregates derived from the entry list.

``variants``, ``symbol`` and ``parts_of_speech`` are caches of the
entries and are recomputed from the full list on every write.
"""

from __future__ import annotations

from collections.abc import Iterable

from lexicon_store.config import SYMBOL_ORDER
from lexicon_store.models import Entry, Summary
from lexicon_store.normalize import canonicalize, counterpart


def build_variants(entries: Iterable[Entry]) -> list[str]:
    """Canonical forms of the entry words, then their counterparts."""
    primary: list[str] = []
    for entry in entries:
        cleaned = canonicalize(entry.word)
        if cleaned and cleaned not in primary:
            primary.append(cleaned)

    variants = list(primary)
    for form in primary:
        alt = counterpart(form)
        if alt and alt not in variants:
            variants.append(alt)
    return variants


def build_top_symbol(entries: Iterable[Entry]) -> str:
    """Easiest proficiency level present among the entries."""
    collected = [e.symbol.strip() for e in entries if e.symbol and e.symbol.strip()]
    if not collected:
        return ""
    for symbol in SYMBOL_ORDER:
        if symbol in collected:
            return symbol
    return collected[0]


def build_parts_of_speech(entries: Iterable[Entry]) -> list[str]:
    return sorted({e.pos.strip() for e in entries if e.pos and e.pos.strip()})


def summarize(entries: Iterable[Entry]) -> Summary:
    entries = list(entries)
    return Summary(
        variants=tuple(build_variants(entries)),
        symbol=build_top_symbol(entries),
        parts_of_speech=tuple(build_parts_of_speech(entries)),
    )
