"""Word lookup: answer from the store, populate from a source on a miss."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from lexicon_store.exceptions import SourceUnavailableError, ValidationError
from lexicon_store.merge import merge_entries
from lexicon_store.models import Entry, LookupResult, assign_missing_ids
from lexicon_store.normalize import canonicalize, validate_lookup_word
from lexicon_store.summary import build_variants

if TYPE_CHECKING:
    from lexicon_store.sources import PageSource
    from lexicon_store.store import LexiconStore

logger = logging.getLogger(__name__)


def lookup(
    store: LexiconStore,
    source: PageSource,
    word: str,
    *,
    timeout: float | None = None,
) -> LookupResult | None:
    """Return the document for *word*, fetching it from *source* if absent.

    Fetched pages are merged under the canonical form of the first page's
    word. Returns None, and stores nothing, when the source has no pages.
    Entry-less placeholder documents count as a miss.

    Raises:
        ValidationError: If *word* holds characters other than letters,
            spaces and hyphens.
        SourceUnavailableError: If the source fails or times out.
    """
    cleaned = validate_lookup_word(word)
    if cleaned is None:
        raise ValidationError(f"Invalid word: {word!r}")

    doc = store.find_by_word(cleaned)
    if doc is not None and doc.entries:
        return LookupResult(
            word=doc.key,
            entries=doc.entries,
            variants=doc.variants,
            source="database",
        )

    try:
        pages = source.fetch_pages(cleaned, timeout=timeout)
    except (TimeoutError, OSError) as e:
        raise SourceUnavailableError(f"Source failed for {cleaned!r}: {e}") from e
    if not pages:
        logger.info(f"No pages found for {cleaned!r}")
        return None

    entries: list[Entry] = []
    for page in pages:
        entry = Entry.from_dict(page)
        assign_missing_ids(entry)
        entries.append(entry)

    variants = build_variants(entries)
    key = variants[0] if variants else canonicalize(cleaned)
    if not key:
        logger.warning(f"Pages for {cleaned!r} carry no usable word")
        return None

    merge_entries(store, key, entries)
    stored = store.find_by_key(key)
    logger.info(f"Stored {len(entries)} pages for {cleaned!r} under {key!r}")
    return LookupResult(
        word=key,
        entries=stored.entries if stored is not None else tuple(entries),
        variants=stored.variants if stored is not None else tuple(variants),
        source="external",
    )
