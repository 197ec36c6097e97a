"""Database connection, DDL, and low-level row helpers for lexicon-store."""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

from lexicon_store.exceptions import DatabaseError
from lexicon_store.models import Entry, RootKind, RootLink, Summary, iter_nodes

SCHEMA_VERSION = "1.0"

_NOW = "strftime('%Y-%m-%dT%H:%M:%fZ', 'now')"

# ---------------------------------------------------------------------------
# JSON type converter (document columns are declared as JSON)
# ---------------------------------------------------------------------------

def _convert_json(data: bytes) -> Any:
    if data is None or data == b"":
        return None
    return json.loads(data)


sqlite3.register_converter("JSON", _convert_json)


def dump_json(value: Any) -> str:
    """Serialize a column value; list equality in SQL relies on this format."""
    return json.dumps(value, ensure_ascii=False)


# ---------------------------------------------------------------------------
# DDL statements
# ---------------------------------------------------------------------------

_DDL = f"""
-- Meta table
CREATE TABLE IF NOT EXISTS meta (
    key TEXT NOT NULL,
    value TEXT,
    UNIQUE (key)
);

-- Canonical word documents
CREATE TABLE IF NOT EXISTS words (
    key TEXT PRIMARY KEY,
    entries JSON NOT NULL DEFAULT '[]',
    variants JSON NOT NULL DEFAULT '[]',
    symbol TEXT NOT NULL DEFAULT '',
    parts_of_speech JSON NOT NULL DEFAULT '[]',
    root_kind TEXT NOT NULL DEFAULT 'standalone'
        CHECK( root_kind IN ('standalone', 'root', 'child') ),
    root TEXT,
    created_at TEXT NOT NULL DEFAULT ({_NOW}),
    updated_at TEXT NOT NULL DEFAULT ({_NOW}),
    CHECK( (root_kind = 'child') = (root IS NOT NULL) ),
    CHECK( root IS NULL OR root != key )
);
CREATE INDEX IF NOT EXISTS word_symbol_index ON words (symbol);
CREATE INDEX IF NOT EXISTS word_pos_index ON words (parts_of_speech);
CREATE INDEX IF NOT EXISTS word_root_index ON words (root);
CREATE INDEX IF NOT EXISTS word_root_kind_index ON words (root_kind);

-- Surface words of the entries, in entry order
CREATE TABLE IF NOT EXISTS word_forms (
    key TEXT NOT NULL REFERENCES words (key) ON DELETE CASCADE,
    position INTEGER NOT NULL,
    word TEXT NOT NULL,
    pos TEXT NOT NULL DEFAULT '',
    UNIQUE (key, position)
);
CREATE INDEX IF NOT EXISTS word_form_word_index ON word_forms (word);
CREATE INDEX IF NOT EXISTS word_form_key_index ON word_forms (key);

CREATE TABLE IF NOT EXISTS word_variants (
    key TEXT NOT NULL REFERENCES words (key) ON DELETE CASCADE,
    variant TEXT NOT NULL,
    UNIQUE (key, variant)
);
CREATE INDEX IF NOT EXISTS word_variant_index ON word_variants (variant);

CREATE TABLE IF NOT EXISTS word_idioms (
    key TEXT NOT NULL REFERENCES words (key) ON DELETE CASCADE,
    entry_position INTEGER NOT NULL,
    idiom_position INTEGER NOT NULL,
    word TEXT NOT NULL,
    pos TEXT NOT NULL DEFAULT ''
);
CREATE INDEX IF NOT EXISTS word_idiom_word_index ON word_idioms (word);
CREATE INDEX IF NOT EXISTS word_idiom_key_index ON word_idioms (key);

-- Location of every nested node id
CREATE TABLE IF NOT EXISTS word_nodes (
    node_id TEXT NOT NULL,
    key TEXT NOT NULL REFERENCES words (key) ON DELETE CASCADE,
    kind TEXT NOT NULL,
    UNIQUE (node_id, key)
);
CREATE INDEX IF NOT EXISTS word_node_id_index ON word_nodes (node_id);
CREATE INDEX IF NOT EXISTS word_node_key_index ON word_nodes (key);

-- Edit history
CREATE TABLE IF NOT EXISTS edit_history (
    rowid INTEGER PRIMARY KEY,
    word_key TEXT NOT NULL,
    field_name TEXT,
    operation TEXT NOT NULL CHECK( operation IN ('CREATE', 'UPDATE') ),
    old_value TEXT,
    new_value TEXT,
    timestamp TEXT NOT NULL DEFAULT ({_NOW})
);
CREATE INDEX IF NOT EXISTS edit_history_key_index ON edit_history (word_key);
CREATE INDEX IF NOT EXISTS edit_history_timestamp_index ON edit_history (timestamp);
"""


def connect(
    db_path: str | Path = ":memory:",
    *,
    timeout: float | None = None,
) -> sqlite3.Connection:
    """Open a database connection with store PRAGMA settings."""
    db_path_str = str(db_path)
    kwargs: dict[str, Any] = {}
    if timeout is not None:
        kwargs["timeout"] = timeout
    try:
        conn = sqlite3.connect(
            db_path_str,
            detect_types=sqlite3.PARSE_DECLTYPES,
            check_same_thread=False,
            **kwargs,
        )
    except sqlite3.Error as e:
        raise DatabaseError(f"Cannot open database {db_path_str!r}: {e}") from e
    conn.execute("PRAGMA foreign_keys = ON")
    if db_path_str != ":memory:":
        conn.execute("PRAGMA journal_mode = WAL")
    conn.row_factory = sqlite3.Row
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    """Initialize all tables if they don't exist. Set schema version."""
    conn.executescript(_DDL)
    conn.execute(
        "INSERT OR IGNORE INTO meta (key, value) VALUES ('schema_version', ?)",
        (SCHEMA_VERSION,),
    )
    conn.execute(
        "INSERT OR IGNORE INTO meta (key, value) "
        f"VALUES ('created_at', {_NOW})",
    )
    conn.commit()


def check_schema_version(conn: sqlite3.Connection) -> None:
    """Verify the database schema version is compatible."""
    try:
        row = conn.execute(
            "SELECT value FROM meta WHERE key = 'schema_version'"
        ).fetchone()
    except sqlite3.OperationalError:
        # meta table doesn't exist - uninitialized DB
        return
    if row is None:
        return
    version = row[0]
    if version != SCHEMA_VERSION:
        raise DatabaseError(
            f"Incompatible schema version: {version} "
            f"(expected {SCHEMA_VERSION})"
        )


# ---------------------------------------------------------------------------
# Word rows
# ---------------------------------------------------------------------------

def get_word_row(conn: sqlite3.Connection, key: str) -> sqlite3.Row | None:
    """Get a full word row by key."""
    return conn.execute(
        "SELECT * FROM words WHERE key = ?",
        (key,),
    ).fetchone()


def get_word_rows(
    conn: sqlite3.Connection, keys: Sequence[str]
) -> list[sqlite3.Row]:
    """Get word rows for several keys, ordered by key."""
    if not keys:
        return []
    marks = ", ".join("?" for _ in keys)
    return conn.execute(
        f"SELECT * FROM words WHERE key IN ({marks}) ORDER BY key",
        list(keys),
    ).fetchall()


def upsert_word(
    conn: sqlite3.Connection,
    key: str,
    entries: Sequence[Entry],
    summary: Summary,
) -> None:
    """Write entries and aggregates; ``created_at`` is set on insert only."""
    conn.execute(
        "INSERT INTO words (key, entries, variants, symbol, parts_of_speech) "
        "VALUES (?, ?, ?, ?, ?) "
        "ON CONFLICT (key) DO UPDATE SET "
        "entries = excluded.entries, "
        "variants = excluded.variants, "
        "symbol = excluded.symbol, "
        "parts_of_speech = excluded.parts_of_speech, "
        f"updated_at = {_NOW}",
        (
            key,
            dump_json([e.to_dict() for e in entries]),
            dump_json(list(summary.variants)),
            summary.symbol,
            dump_json(list(summary.parts_of_speech)),
        ),
    )
    replace_index_rows(conn, key, entries, summary.variants)


def update_entries(
    conn: sqlite3.Connection, key: str, entries: Sequence[Entry]
) -> None:
    """Rewrite only the entry payload (translation fields)."""
    conn.execute(
        f"UPDATE words SET entries = ?, updated_at = {_NOW} WHERE key = ?",
        (dump_json([e.to_dict() for e in entries]), key),
    )


def replace_index_rows(
    conn: sqlite3.Connection,
    key: str,
    entries: Sequence[Entry],
    variants: Iterable[str],
) -> None:
    """Rebuild the search index rows derived from one document."""
    for table in ("word_forms", "word_variants", "word_idioms", "word_nodes"):
        conn.execute(f"DELETE FROM {table} WHERE key = ?", (key,))

    conn.executemany(
        "INSERT INTO word_forms (key, position, word, pos) VALUES (?, ?, ?, ?)",
        [(key, i, e.word, e.pos) for i, e in enumerate(entries)],
    )
    conn.executemany(
        "INSERT OR IGNORE INTO word_variants (key, variant) VALUES (?, ?)",
        [(key, v) for v in variants],
    )
    conn.executemany(
        "INSERT INTO word_idioms "
        "(key, entry_position, idiom_position, word, pos) "
        "VALUES (?, ?, ?, ?, ?)",
        [
            (key, i, j, idiom.word, e.pos)
            for i, e in enumerate(entries)
            for j, idiom in enumerate(e.idioms)
            if idiom.word
        ],
    )
    conn.executemany(
        "INSERT OR IGNORE INTO word_nodes (node_id, key, kind) VALUES (?, ?, ?)",
        [
            (node.id, key, node.kind.value)
            for e in entries
            for node in iter_nodes(e)
            if node.id
        ],
    )


def insert_placeholder(
    conn: sqlite3.Connection, key: str, link: RootLink
) -> None:
    """Create an entry-less document carrying only a root link."""
    conn.execute(
        "INSERT INTO words (key, root_kind, root) VALUES (?, ?, ?)",
        (key, link.kind.value, link.key),
    )


def set_root(conn: sqlite3.Connection, key: str, link: RootLink) -> int:
    """Overwrite the root link of one document."""
    cur = conn.execute(
        f"UPDATE words SET root_kind = ?, root = ?, updated_at = {_NOW} "
        "WHERE key = ?",
        (link.kind.value, link.key, key),
    )
    return cur.rowcount


def count_children(conn: sqlite3.Connection, root_key: str) -> int:
    """Number of documents whose root is *root_key*."""
    return conn.execute(
        "SELECT COUNT(*) FROM words WHERE root_kind = 'child' AND root = ?",
        (root_key,),
    ).fetchone()[0]


def row_root_link(row: sqlite3.Row) -> RootLink:
    """Decode the root columns of a word row."""
    kind = RootKind(row["root_kind"])
    if kind is RootKind.CHILD:
        return RootLink.child_of(row["root"])
    return RootLink(kind)
