"""Tests for keyed lookups, upserts and search."""

import pytest

from conftest import raw
from lexicon_store import LexiconStore
from lexicon_store.exceptions import ValidationError
from lexicon_store.models import Entry, Idiom


class TestFindAndUpsert:

    def test_find_by_key(self, corpus_store):
        doc = corpus_store.find_by_key("ability")
        assert doc.key == "ability"
        assert doc.symbol == "b1"
        assert doc.created_at and doc.updated_at
        assert corpus_store.find_by_key("nothing") is None
        assert corpus_store.find_by_key("") is None

    def test_find_by_word_matches_variants(self, corpus_store):
        assert corpus_store.find_by_word("Ice-Cream").key == "ice cream"
        assert corpus_store.find_by_word("well known").key == "well-known"
        assert corpus_store.find_by_word("  ABROAD ").key == "abroad"
        assert corpus_store.find_by_word("nothing") is None

    def test_upsert_creates_then_updates(self, store):
        assert store.upsert_merged("look", [Entry(word="look", pos="verb")]) is True
        created = store.find_by_key("look")
        assert store.upsert_merged(
            "look", [Entry(word="look", pos="verb"), Entry(word="Look", pos="noun")]
        ) is False
        updated = store.find_by_key("look")
        assert updated.created_at == created.created_at
        assert updated.updated_at >= created.updated_at
        assert updated.parts_of_speech == ("noun", "verb")

    def test_upsert_matching_aggregates(self, store):
        entries = [
            Entry(word="look", pos="verb", symbol="b1"),
            Entry(word="Look", pos="noun"),
        ]
        store.upsert_merged(
            "look", entries,
            variants=["look"], symbol="b1", parts_of_speech=["verb", "noun"],
        )
        doc = store.find_by_key("look")
        assert doc.variants == ("look",)
        assert doc.symbol == "b1"
        assert doc.parts_of_speech == ("noun", "verb")
        assert store.validate() == []

    @pytest.mark.parametrize("aggregates", [
        {"variants": ["look", "looks"]},
        {"symbol": "c1"},
        {"parts_of_speech": ["noun"]},
    ])
    def test_upsert_rejects_stale_aggregates(self, store, aggregates):
        with pytest.raises(ValidationError):
            store.upsert_merged("look", [Entry(word="look", pos="verb")], **aggregates)
        assert store.find_by_key("look") is None
        assert store.validate() == []

    @pytest.mark.parametrize("key", ["", "Look", "-look"])
    def test_upsert_rejects_non_canonical_key(self, store, key):
        with pytest.raises(ValidationError):
            store.upsert_merged(key, [Entry(word="look")])

    def test_persists_across_connections(self, tmp_path):
        path = tmp_path / "words.db"
        with LexiconStore(path) as st:
            st.import_batch([raw("ability")])
        with LexiconStore(path) as st:
            assert st.find_by_key("ability").words == ["ability"]


class TestSearchByPrefix:

    def test_descending_distinct_words(self, store):
        store.import_batch([raw("ability"), raw("abroad")])
        page = store.search_by_prefix("ab", 1, 10)
        assert page.total == 2
        assert page.words == ["abroad", "ability"]

    def test_pagination(self, store):
        store.import_batch([raw("ability"), raw("abroad")])
        first = store.search_by_prefix("ab", 1, 1)
        second = store.search_by_prefix("ab", 2, 1)
        third = store.search_by_prefix("ab", 3, 1)
        assert (first.total, first.words) == (2, ["abroad"])
        assert (second.total, second.words) == (2, ["ability"])
        assert (third.total, third.words) == (2, [])

    def test_case_insensitive(self, corpus_store):
        assert corpus_store.search_by_prefix("AB").words == ["abroad", "ability"]

    def test_matches_variants_and_returns_surface_words(self, corpus_store):
        assert corpus_store.search_by_prefix("ice-c").words == ["ice cream"]
        assert corpus_store.search_by_prefix("well kn").words == ["well-known"]

    def test_matches_key_of_hyphenated_surface_words(self, store):
        store.import_batch([raw("-ability"), raw("ability")])
        assert store.search_by_prefix("abil").words == ["ability", "-ability"]

    def test_wildcards_are_literal(self, corpus_store):
        assert corpus_store.search_by_prefix("%").total == 0
        assert corpus_store.search_by_prefix("_bility").total == 0

    def test_placeholders_have_no_words(self, corpus_store):
        corpus_store.assign_root("ability", "able")
        assert corpus_store.search_by_prefix("abl").total == 0

    def test_empty_prefix(self, corpus_store):
        with pytest.raises(ValidationError):
            corpus_store.search_by_prefix("  ")

    @pytest.mark.parametrize("page, per_page", [(0, 10), (1, 0), (-1, 5)])
    def test_bad_paging(self, corpus_store, page, per_page):
        with pytest.raises(ValidationError):
            corpus_store.search_by_prefix("a", page, per_page)

    def test_per_page_is_clamped(self, corpus_store):
        page = corpus_store.search_by_prefix("a", 1, 5000)
        assert page.total == len(page.words)


class TestSearchIdioms:

    def test_tokens_in_order(self, corpus_store):
        page = corpus_store.search_idioms_only("look leap")
        assert page.total == 1
        match = page.words[0]
        assert (match.key, match.word, match.pos) == ("look", "look before you leap", "verb")

    def test_unanchored_and_case_insensitive(self, corpus_store):
        page = corpus_store.search_idioms_only("DOWN on")
        assert [m.word for m in page.words] == ["look down on somebody"]

    def test_order_matters(self, corpus_store):
        assert corpus_store.search_idioms_only("leap look").total == 0

    def test_sorted_by_key_pos_word(self, store):
        store.upsert_merged("run", [
            Entry(word="run", pos="verb", idioms=[Idiom(word="run out of time")]),
            Entry(word="Run", pos="noun", idioms=[Idiom(word="run of luck")]),
        ])
        store.upsert_merged("out", [
            Entry(word="out", pos="adverb", idioms=[Idiom(word="run out")]),
        ])
        page = store.search_idioms_only("run")
        assert [(m.key, m.pos, m.word) for m in page.words] == [
            ("out", "adverb", "run out"),
            ("run", "noun", "run of luck"),
            ("run", "verb", "run out of time"),
        ]
        second = store.search_idioms_only("run", 2, 2)
        assert second.total == 3
        assert [m.word for m in second.words] == ["run out of time"]

    def test_no_usable_tokens(self, corpus_store):
        page = corpus_store.search_idioms_only("123 !!")
        assert page.total == 0
        assert page.words == []


class TestListKeysAndTags:

    def test_list_keys_only(self, corpus_store):
        assert corpus_store.list_keys_only("LOO") == ["look", "looked"]
        assert corpus_store.list_keys_only("loo", 2, 1) == ["looked"]

    def test_list_keys_all(self, corpus_store):
        assert corpus_store.list_keys_only() == [
            "ability", "abroad", "ice cream", "look", "looked", "well-known",
        ]

    def test_list_parts_of_speech(self, corpus_store):
        assert corpus_store.list_parts_of_speech() == [
            "adjective", "adverb", "noun", "verb",
        ]
