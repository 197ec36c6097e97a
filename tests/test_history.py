"""Tests for the edit history."""

import datetime
import json
import time

from conftest import raw


class TestHistoryCreate:

    def test_import_records_create(self, store):
        store.import_batch([raw("ability")])
        hist = store.get_history(key="ability")
        assert [h.operation for h in hist] == ["CREATE"]
        assert json.loads(hist[0].new_value) == {"key": "ability", "words": ["ability"]}

    def test_placeholder_records_create(self, corpus_store):
        corpus_store.assign_root("ability", "able")
        hist = corpus_store.get_history(key="able")
        assert [h.operation for h in hist] == ["CREATE"]


class TestHistoryUpdate:

    def test_merge_records_word_lists(self, store):
        store.import_batch([raw("ability")])
        store.import_batch([raw("-ability")])
        updates = store.get_history(key="ability", operation="UPDATE")
        assert len(updates) == 1
        rec = updates[0]
        assert rec.field_name == "entries"
        assert json.loads(rec.old_value) == ["ability"]
        assert json.loads(rec.new_value) == ["ability", "-ability"]

    def test_noop_merge_records_nothing(self, store):
        store.import_batch([raw("ability")])
        store.import_batch([raw("ability")])
        assert len(store.get_history(key="ability")) == 1


class TestHistoryTimestamp:

    def test_filter_by_timestamp(self, store):
        store.import_batch([raw("first")])

        time.sleep(0.1)
        middle = datetime.datetime.now(datetime.timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")
        time.sleep(0.1)

        store.import_batch([raw("second")])

        changes = store.get_history(since=middle)
        assert any(h.key == "second" for h in changes)
        assert not any(h.key == "first" for h in changes)


class TestHistoryRoot:

    def test_root_change_records_links(self, corpus_store):
        corpus_store.assign_root("looked", "look")
        rec = corpus_store.get_history(key="looked", operation="UPDATE")[0]
        assert json.loads(rec.old_value) == {"kind": "standalone", "key": None}
        assert json.loads(rec.new_value) == {"kind": "child", "key": "look"}

    def test_placeholder_snapshot_holds_root_link(self, corpus_store):
        corpus_store.assign_root("ability", "able")
        rec = corpus_store.get_history(key="able")[0]
        assert json.loads(rec.new_value) == {
            "key": "able", "root": {"kind": "root", "key": None},
        }

    def test_filters_combine(self, corpus_store):
        corpus_store.assign_root("looked", "look")
        updates = corpus_store.get_history(operation="UPDATE")
        assert {h.key for h in updates} == {"looked", "look"}
        assert all(h.field_name == "root" for h in updates)
        assert corpus_store.get_history(key="look", operation="CREATE")[0].field_name is None
