"""Tests for document aggregates."""

from lexicon_store.models import Entry
from lexicon_store.summary import (
    build_parts_of_speech,
    build_top_symbol,
    build_variants,
    summarize,
)


def entries(*specs):
    return [Entry(word=w, pos=p, symbol=s) for w, p, s in specs]


class TestBuildVariants:

    def test_primary_forms_then_counterparts(self):
        result = build_variants(entries(
            ("Well-known", "", ""),
            ("ice cream", "", ""),
            ("well-known", "", ""),
        ))
        assert result == ["well-known", "ice cream", "well known", "ice-cream"]

    def test_counterpart_already_primary(self):
        result = build_variants(entries(
            ("ice-cream", "", ""),
            ("ice cream", "", ""),
        ))
        assert result == ["ice-cream", "ice cream"]

    def test_empty_words_ignored(self):
        assert build_variants(entries(("", "", ""), ("123", "", ""))) == []


class TestBuildTopSymbol:

    def test_priority_order(self):
        assert build_top_symbol(entries(
            ("a", "", "c1"), ("b", "", "a2"), ("c", "", "b1"),
        )) == "a2"

    def test_unknown_symbols_fall_back_to_first(self):
        assert build_top_symbol(entries(("a", "", "x9"), ("b", "", "c2"))) == "x9"

    def test_none(self):
        assert build_top_symbol(entries(("a", "", ""), ("b", "", "  "))) == ""


class TestBuildPartsOfSpeech:

    def test_sorted_and_deduped(self):
        assert build_parts_of_speech(entries(
            ("a", "verb", ""), ("b", "", ""), ("c", "noun", ""), ("d", "verb", ""),
        )) == ["noun", "verb"]

    def test_empty(self):
        assert build_parts_of_speech([]) == []


class TestSummarize:

    def test_all_aggregates(self):
        summary = summarize(entries(("look", "verb", "a1"), ("look", "noun", "a2")))
        assert summary.variants == ("look",)
        assert summary.symbol == "a1"
        assert summary.parts_of_speech == ("noun", "verb")

    def test_accepts_generator(self):
        summary = summarize(e for e in entries(("ice cream", "noun", "")))
        assert summary.variants == ("ice cream", "ice-cream")
