"""Consistency checks over the stored documents and the root graph."""

from __future__ import annotations

import sqlite3
from collections import Counter

from lexicon_store.exceptions import ValidationError
from lexicon_store.models import Entry, ValidationResult, iter_nodes
from lexicon_store.summary import summarize


def validate_all(conn: sqlite3.Connection) -> list[ValidationResult]:
    """Run all validation rules."""
    results: list[ValidationResult] = []
    results.extend(_val_root_001(conn))
    results.extend(_val_root_002(conn))
    results.extend(_val_root_003(conn))
    results.extend(_val_doc(conn))
    return results


def validate_word(conn: sqlite3.Connection, key: str) -> list[ValidationResult]:
    """Validate a specific word document."""
    return [r for r in validate_all(conn) if r.key == key]


def _val_root_001(conn: sqlite3.Connection) -> list[ValidationResult]:
    """Root without children."""
    rows = conn.execute(
        "SELECT w.key FROM words w WHERE w.root_kind = 'root' "
        "AND NOT EXISTS (SELECT 1 FROM words c "
        "WHERE c.root_kind = 'child' AND c.root = w.key) "
        "ORDER BY w.key"
    ).fetchall()
    return [
        ValidationResult(
            rule_id="VAL-ROOT-001",
            severity="WARNING",
            key=r["key"],
            message="Root has no children",
            details=None,
        )
        for r in rows
    ]


def _val_root_002(conn: sqlite3.Connection) -> list[ValidationResult]:
    """Child whose root document is missing."""
    rows = conn.execute(
        "SELECT c.key, c.root FROM words c WHERE c.root_kind = 'child' "
        "AND NOT EXISTS (SELECT 1 FROM words w WHERE w.key = c.root) "
        "ORDER BY c.key"
    ).fetchall()
    return [
        ValidationResult(
            rule_id="VAL-ROOT-002",
            severity="ERROR",
            key=r["key"],
            message=f"Root document {r['root']!r} does not exist",
            details={"root": r["root"]},
        )
        for r in rows
    ]


def _val_root_003(conn: sqlite3.Connection) -> list[ValidationResult]:
    """Child whose root document is not marked as a root."""
    rows = conn.execute(
        "SELECT c.key, c.root, w.root_kind FROM words c "
        "JOIN words w ON w.key = c.root "
        "WHERE c.root_kind = 'child' AND w.root_kind != 'root' "
        "ORDER BY c.key"
    ).fetchall()
    return [
        ValidationResult(
            rule_id="VAL-ROOT-003",
            severity="ERROR",
            key=r["key"],
            message=f"Root document {r['root']!r} is marked {r['root_kind']}",
            details={"root": r["root"], "root_kind": r["root_kind"]},
        )
        for r in rows
    ]


def _val_doc(conn: sqlite3.Connection) -> list[ValidationResult]:
    """Per-document checks: VAL-DOC-001 to VAL-DOC-004."""
    results: list[ValidationResult] = []
    rows = conn.execute(
        "SELECT key, entries, variants, symbol, parts_of_speech "
        "FROM words ORDER BY key"
    ).fetchall()

    for row in rows:
        key = row["key"]
        try:
            entries = [Entry.from_dict(e) for e in (row["entries"] or [])]
        except ValidationError as e:
            results.append(ValidationResult(
                rule_id="VAL-DOC-004",
                severity="ERROR",
                key=key,
                message=f"Entries cannot be decoded: {e}",
                details=None,
            ))
            continue

        # Duplicate surface words (VAL-DOC-001)
        counts = Counter(e.word for e in entries)
        for word, n in sorted(counts.items()):
            if n > 1:
                results.append(ValidationResult(
                    rule_id="VAL-DOC-001",
                    severity="ERROR",
                    key=key,
                    message=f"Surface word {word!r} appears {n} times",
                    details={"word": word, "count": n},
                ))

        # Stale aggregates (VAL-DOC-002)
        expected = summarize(entries)
        stored = {
            "variants": list(row["variants"] or []),
            "symbol": row["symbol"],
            "parts_of_speech": list(row["parts_of_speech"] or []),
        }
        wanted = {
            "variants": list(expected.variants),
            "symbol": expected.symbol,
            "parts_of_speech": list(expected.parts_of_speech),
        }
        stale = sorted(name for name in wanted if stored[name] != wanted[name])
        if stale:
            results.append(ValidationResult(
                rule_id="VAL-DOC-002",
                severity="WARNING",
                key=key,
                message=f"Aggregates out of date: {', '.join(stale)}",
                details={name: {"stored": stored[name], "expected": wanted[name]}
                         for name in stale},
            ))

        # Nodes without id (VAL-DOC-003)
        missing = sum(
            1 for entry in entries for node in iter_nodes(entry) if not node.id
        )
        if missing:
            results.append(ValidationResult(
                rule_id="VAL-DOC-003",
                severity="ERROR",
                key=key,
                message=f"{missing} nested objects have no id",
                details={"count": missing},
            ))

    return results
