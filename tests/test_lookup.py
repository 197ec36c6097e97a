"""Tests for lookup through an external page source."""

import pytest

from conftest import FakeSource, raw
from lexicon_store.exceptions import SourceUnavailableError, ValidationError
from lexicon_store.models import iter_nodes

PAGES = {
    "ice cream": [
        {"word": "ice cream", "pos": "noun", "symbol": "a1",
         "senses": [{"definition": "a frozen dessert",
                     "examples": [{"en": "I like ice cream."}]}]},
        {"word": "ice-cream", "pos": "adjective", "senses": []},
    ],
}


class TestLookup:

    def test_stored_word_answers_directly(self, corpus_store):
        source = FakeSource()
        result = corpus_store.lookup(source, "Look")
        assert result.source == "database"
        assert result.word == "look"
        assert result.quantity == 1
        assert source.calls == []

    def test_variant_answers_directly(self, corpus_store):
        source = FakeSource()
        result = corpus_store.lookup(source, "well known")
        assert result.word == "well-known"
        assert source.calls == []

    def test_miss_fetches_and_stores(self, store):
        source = FakeSource(PAGES)
        result = store.lookup(source, "ice cream", timeout=2.5)
        assert result.source == "external"
        assert result.word == "ice cream"
        assert result.quantity == 2
        assert result.variants == ("ice cream", "ice-cream")
        assert source.calls == [("ice cream", 2.5)]

        doc = store.find_by_key("ice cream")
        assert doc.words == ["ice cream", "ice-cream"]
        assert all(n.id for e in doc.entries for n in iter_nodes(e))
        # fetched pages are not reshaped like bulk imports
        assert doc.entries[0].phrasal_verb_senses is None

    def test_second_lookup_uses_store(self, store):
        source = FakeSource(PAGES)
        store.lookup(source, "ice cream")
        again = store.lookup(source, "ice-cream")
        assert again.source == "database"
        assert len(source.calls) == 1

    def test_store_timeout_is_default(self, tmp_path):
        from lexicon_store import LexiconStore

        source = FakeSource(PAGES)
        with LexiconStore(tmp_path / "w.db", timeout=3.0) as st:
            st.lookup(source, "ice cream")
        assert source.calls == [("ice cream", 3.0)]

    def test_no_pages_stores_nothing(self, store):
        source = FakeSource()
        assert store.lookup(source, "nothing") is None
        assert store.find_by_key("nothing") is None
        assert store.get_history() == []

    def test_placeholder_counts_as_miss(self, store):
        store.import_batch([raw("looked")])
        store.assign_root("looked", "look")
        source = FakeSource({"look": [{"word": "look", "pos": "verb"}]})
        result = store.lookup(source, "look")
        assert result.source == "external"
        doc = store.find_by_key("look")
        assert doc.words == ["look"]
        assert doc.root.is_root

    @pytest.mark.parametrize("word", ["", "  ", "look1", "o'clock"])
    def test_invalid_word(self, store, word):
        with pytest.raises(ValidationError):
            store.lookup(FakeSource(), word)

    @pytest.mark.parametrize("error", [
        TimeoutError("timed out"),
        ConnectionError("refused"),
        SourceUnavailableError("down"),
    ])
    def test_source_failure(self, store, error):
        with pytest.raises(SourceUnavailableError):
            store.lookup(FakeSource(error=error), "look")
        assert store.find_by_key("look") is None
