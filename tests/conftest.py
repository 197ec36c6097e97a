"""Shared test fixtures for lexicon-store."""

import pytest

from lexicon_store import LexiconStore


def raw(word, pos="noun", symbol="", **fields):
    """A raw page as found in bulk import files."""
    data = {
        "word": word,
        "pos": pos,
        "symbol": symbol,
        "senses": [
            {
                "definition": f"meaning of {word}",
                "examples": [{"en": f"an example with {word}", "vi": ""}],
            }
        ],
    }
    data.update(fields)
    return data


class FakeSource:
    """Page source returning canned pages and recording calls."""

    def __init__(self, pages=None, error=None):
        self.pages = pages or {}
        self.error = error
        self.calls = []

    def fetch_pages(self, word, *, timeout=None):
        self.calls.append((word, timeout))
        if self.error is not None:
            raise self.error
        return [dict(p) for p in self.pages.get(word, [])]


@pytest.fixture
def store():
    """Create an in-memory store for testing."""
    with LexiconStore(":memory:") as st:
        yield st


@pytest.fixture
def corpus_store(store):
    """Store with a small imported corpus."""
    store.import_batch([
        raw("ability", symbol="b1"),
        raw("abroad", pos="adverb", symbol="a2"),
        raw("look", pos="verb", symbol="a1", idioms=[
            {"word": "look before you leap", "senses": []},
            {"word": "look down on somebody", "senses": []},
        ]),
        raw("looked", pos="verb"),
        raw("well-known", pos="adjective", symbol="c2"),
        raw("ice cream", symbol="a1"),
    ])
    return store
