import sqlite3

import pytest

from lexicon_store import db
from lexicon_store.exceptions import DatabaseError
from lexicon_store.models import Entry, Idiom, RootLink, Sense
from lexicon_store.summary import summarize


@pytest.fixture
def db_conn():
    """Create an in-memory database connection for testing."""
    conn = db.connect(":memory:")
    db.init_db(conn)
    yield conn
    conn.close()


def test_schema_version_recorded(db_conn):
    row = db_conn.execute(
        "SELECT value FROM meta WHERE key = 'schema_version'"
    ).fetchone()
    assert row["value"] == db.SCHEMA_VERSION


def test_incompatible_schema_version(db_conn):
    db_conn.execute("UPDATE meta SET value = '0.1' WHERE key = 'schema_version'")
    with pytest.raises(DatabaseError):
        db.check_schema_version(db_conn)


def test_uninitialized_db_passes_version_check():
    conn = db.connect(":memory:")
    db.check_schema_version(conn)
    conn.close()


def test_init_db_is_repeatable(db_conn):
    db.init_db(db_conn)
    count = db_conn.execute("SELECT COUNT(*) FROM meta").fetchone()[0]
    assert count == 2


def test_upsert_word_writes_json_and_index_rows(db_conn):
    entries = [
        Entry(id="e1", word="ice cream", pos="noun", senses=[Sense(id="s1")],
              idioms=[Idiom(id="i1", word="ice cream social")]),
    ]
    db.upsert_word(db_conn, "ice cream", entries, summarize(entries))

    row = db.get_word_row(db_conn, "ice cream")
    assert row["entries"][0]["word"] == "ice cream"
    assert row["variants"] == ["ice cream", "ice-cream"]
    assert row["parts_of_speech"] == ["noun"]
    assert row["root_kind"] == "standalone"

    variants = db_conn.execute(
        "SELECT variant FROM word_variants WHERE key = ? ORDER BY variant",
        ("ice cream",),
    ).fetchall()
    assert [r["variant"] for r in variants] == ["ice cream", "ice-cream"]
    nodes = db_conn.execute(
        "SELECT node_id, kind FROM word_nodes ORDER BY node_id"
    ).fetchall()
    assert [(r["node_id"], r["kind"]) for r in nodes] == [
        ("e1", "entry"), ("i1", "idiom"), ("s1", "sense"),
    ]


def test_upsert_word_replaces_index_rows(db_conn):
    first = [Entry(word="look")]
    db.upsert_word(db_conn, "look", first, summarize(first))
    second = [Entry(word="look"), Entry(word="Look")]
    db.upsert_word(db_conn, "look", second, summarize(second))
    forms = db_conn.execute(
        "SELECT word FROM word_forms WHERE key = 'look' ORDER BY position"
    ).fetchall()
    assert [r["word"] for r in forms] == ["look", "Look"]


def test_child_requires_root_key(db_conn):
    with pytest.raises(sqlite3.IntegrityError):
        db_conn.execute(
            "INSERT INTO words (key, root_kind) VALUES ('look', 'child')"
        )


def test_word_cannot_be_own_root(db_conn):
    with pytest.raises(sqlite3.IntegrityError):
        db.insert_placeholder(db_conn, "look", RootLink.child_of("look"))


def test_set_root_and_count_children(db_conn):
    db.insert_placeholder(db_conn, "look", RootLink.root())
    db.insert_placeholder(db_conn, "looked", RootLink.standalone())
    assert db.set_root(db_conn, "looked", RootLink.child_of("look")) == 1
    assert db.count_children(db_conn, "look") == 1
    row = db.get_word_row(db_conn, "looked")
    assert db.row_root_link(row) == RootLink.child_of("look")
