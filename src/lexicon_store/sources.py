"""External sources of raw dictionary pages."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import wn

from lexicon_store.exceptions import SourceUnavailableError

logger = logging.getLogger(__name__)

# WordNet part-of-speech codes to dictionary labels
_POS_NAMES = {
    "n": "noun",
    "v": "verb",
    "a": "adjective",
    "s": "adjective",
    "r": "adverb",
    "t": "phrase",
    "c": "conjunction",
    "p": "preposition",
    "x": "other",
    "u": "unknown",
}


class PageSource(Protocol):
    """Anything that can supply raw pages for a word on a store miss.

    ``fetch_pages`` returns the pages in a stable order, ``[]`` when the
    source knows nothing about the word, and raises
    :class:`SourceUnavailableError` when the source cannot be reached.
    """

    def fetch_pages(
        self, word: str, *, timeout: float | None = None
    ) -> list[dict[str, Any]]:
        ...


class WordnetSource:
    """Page source backed by the lexicons installed for the ``wn`` package.

    One page is produced per lexical entry matching the word form, with
    one sense per WordNet sense. The data is local, so *timeout* is
    accepted for interface compatibility only.
    """

    def __init__(self, lexicon: str | None = None, lang: str | None = None) -> None:
        self.lexicon = lexicon
        self.lang = lang
        self._wordnet: wn.Wordnet | None = None

    def _get_wordnet(self) -> wn.Wordnet:
        if self._wordnet is None:
            self._wordnet = wn.Wordnet(lexicon=self.lexicon, lang=self.lang)
        return self._wordnet

    def fetch_pages(
        self, word: str, *, timeout: float | None = None
    ) -> list[dict[str, Any]]:
        try:
            words = self._get_wordnet().words(form=word)
            pages = [_word_to_page(w) for w in words]
        except wn.Error as e:
            raise SourceUnavailableError(f"WordNet lookup failed for {word!r}: {e}") from e
        logger.debug(f"WordNet returned {len(pages)} pages for {word!r}")
        return pages


def _word_to_page(word: wn.Word) -> dict[str, Any]:
    lemma = word.lemma()
    return {
        "word": lemma,
        "pos": _POS_NAMES.get(word.pos, word.pos or ""),
        "symbol": "",
        "senses": [_sense_to_dict(sense, lemma) for sense in word.senses()],
        "idioms": [],
        "phrasal_verbs": [],
    }


def _sense_to_dict(sense: wn.Sense, lemma: str) -> dict[str, Any]:
    synset = sense.synset()
    return {
        "definition": synset.definition() or "",
        "synonyms": [name for name in synset.lemmas() if name != lemma],
        "opposites": [s.word().lemma() for s in sense.get_related("antonym")],
        "see_alsos": [
            name
            for related in synset.get_related("also")
            for name in related.lemmas()
        ],
        "examples": [{"text": text} for text in synset.examples()],
    }
