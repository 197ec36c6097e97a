"""Per-word edit log: creations, entry merges and root-link changes."""

from __future__ import annotations

import json
import sqlite3
from typing import Any

from lexicon_store.models import EditRecord


def record_create(
    conn: sqlite3.Connection,
    key: str,
    new_value: dict | None = None,
) -> None:
    """Log that the document for *key* was created.

    *new_value* is the initial snapshot: the surface words of an imported
    document, or the root link of a placeholder.
    """
    conn.execute(
        "INSERT INTO edit_history (word_key, operation, new_value) "
        "VALUES (?, 'CREATE', ?)",
        (key, json.dumps(new_value, ensure_ascii=False) if new_value else None),
    )


def record_update(
    conn: sqlite3.Connection,
    key: str,
    field_name: str,
    old_value: Any,
    new_value: Any,
) -> None:
    """Log a change to one field of the document for *key*.

    *field_name* is ``"entries"`` (surface word lists before and after a
    merge) or ``"root"`` (root links as ``{"kind", "key"}``).
    """
    conn.execute(
        "INSERT INTO edit_history "
        "(word_key, field_name, operation, old_value, new_value) "
        "VALUES (?, ?, 'UPDATE', ?, ?)",
        (
            key,
            field_name,
            json.dumps(old_value, ensure_ascii=False),
            json.dumps(new_value, ensure_ascii=False),
        ),
    )


def query_history(
    conn: sqlite3.Connection,
    *,
    key: str | None = None,
    since: str | None = None,
    operation: str | None = None,
) -> list[EditRecord]:
    """Edits oldest first, optionally for one word key, after *since*
    (an ISO timestamp, exclusive), or of one operation."""
    filters = {
        "word_key = ?": key,
        "timestamp > ?": since,
        "operation = ?": operation,
    }
    clauses = [sql for sql, value in filters.items() if value is not None]
    params = [value for value in filters.values() if value is not None]
    where = " AND ".join(clauses) or "1=1"

    rows = conn.execute(
        f"SELECT rowid, * FROM edit_history WHERE {where} "
        "ORDER BY timestamp, rowid",
        params,
    ).fetchall()
    return [
        EditRecord(
            id=row["rowid"],
            key=row["word_key"],
            field_name=row["field_name"],
            operation=row["operation"],
            old_value=row["old_value"],
            new_value=row["new_value"],
            timestamp=row["timestamp"],
        )
        for row in rows
    ]
