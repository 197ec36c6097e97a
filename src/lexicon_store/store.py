"""LexiconStore: main entry point for the lexicon-store library."""

from __future__ import annotations

import functools
import logging
import sqlite3
import threading
from collections.abc import Callable, Generator, Iterable, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

from lexicon_store import db as _db
from lexicon_store import history as _hist
from lexicon_store.config import DEFAULT_PER_PAGE, MAX_PER_PAGE, SYMBOL_ORDER
from lexicon_store.exceptions import DatabaseError, RelationError, ValidationError
from lexicon_store.models import (
    AssignRootResult,
    DirectoryImportResult,
    EditRecord,
    Entry,
    Example,
    IdiomMatch,
    IdiomPage,
    ImportResult,
    ListPage,
    LookupResult,
    NodeKind,
    RootLink,
    SearchPage,
    Sense,
    Summary,
    TranslationUpdateResult,
    ValidationResult,
    WordDocument,
    iter_nodes,
)
from lexicon_store.normalize import canonicalize, escape_like, like_prefix, sanitize_idiom_query
from lexicon_store.summary import summarize

if TYPE_CHECKING:
    from lexicon_store.sources import PageSource

logger = logging.getLogger(__name__)

_F = TypeVar("_F", bound=Callable[..., Any])


def _modifies_db(method: _F) -> _F:
    """Decorator: wraps mutation methods in a transaction (unless in batch)."""

    @functools.wraps(method)
    def wrapper(self: LexiconStore, *args: Any, **kwargs: Any) -> Any:
        with self._lock:
            try:
                if self._in_batch:
                    return method(self, *args, **kwargs)
                with self._conn:
                    return method(self, *args, **kwargs)
            except sqlite3.Error as e:
                raise DatabaseError(f"{method.__name__} failed: {e}") from e

    return wrapper  # type: ignore[return-value]


def _reads_db(method: _F) -> _F:
    """Decorator: serializes reads on the shared connection."""

    @functools.wraps(method)
    def wrapper(self: LexiconStore, *args: Any, **kwargs: Any) -> Any:
        with self._lock:
            try:
                return method(self, *args, **kwargs)
            except sqlite3.Error as e:
                raise DatabaseError(f"{method.__name__} failed: {e}") from e

    return wrapper  # type: ignore[return-value]


def _page_bounds(page: int, per_page: int) -> tuple[int, int]:
    if not isinstance(page, int) or page < 1:
        raise ValidationError(f"page must be a positive integer, got {page!r}")
    if not isinstance(per_page, int) or per_page < 1:
        raise ValidationError(f"per_page must be a positive integer, got {per_page!r}")
    return page, min(per_page, MAX_PER_PAGE)


class _KeyLocks:
    """Per-key locks, always acquired in sorted key order.

    A key's lock exists only while some thread holds or waits on it.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}
        self._users: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @contextmanager
    def hold(self, *keys: str | None) -> Generator[None, None, None]:
        names = sorted({k for k in keys if k})
        with self._guard:
            locks = []
            for name in names:
                locks.append(self._locks.setdefault(name, threading.RLock()))
                self._users[name] = self._users.get(name, 0) + 1
        acquired: list[threading.RLock] = []
        try:
            for lock in locks:
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            with self._guard:
                for name in names:
                    self._users[name] -= 1
                    if not self._users[name]:
                        del self._users[name]
                        del self._locks[name]


class LexiconStore:
    """Canonical word documents with merge, root graph and search."""

    def __init__(
        self,
        db_path: str | Path = ":memory:",
        *,
        timeout: float | None = None,
    ) -> None:
        self._db_path = str(db_path)
        self.timeout = timeout
        self._conn = _db.connect(db_path, timeout=timeout)
        _db.check_schema_version(self._conn)
        _db.init_db(self._conn)
        self._lock = threading.RLock()
        self._key_locks = _KeyLocks()
        self._in_batch = False
        self._batch_depth = 0
        self._batch_owner: int | None = None

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def __enter__(self) -> LexiconStore:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Transactions and key locks
    # ------------------------------------------------------------------

    @contextmanager
    def batch(self) -> Generator[None, None, None]:
        """Group multiple mutations into a single transaction.

        Key locks cannot be taken inside a batch; see :meth:`locked`.
        """
        with self._lock:
            self._batch_depth += 1
            if self._batch_depth == 1:
                self._in_batch = True
                self._batch_owner = threading.get_ident()
                self._conn.execute("BEGIN")
            try:
                yield
            except BaseException:
                if self._batch_depth == 1:
                    self._conn.rollback()
                    self._in_batch = False
                    self._batch_owner = None
                self._batch_depth -= 1
                raise
            else:
                self._batch_depth -= 1
                if self._batch_depth == 0:
                    self._conn.commit()
                    self._in_batch = False
                    self._batch_owner = None

    @contextmanager
    def locked(self, *keys: str | None) -> Generator[None, None, None]:
        """Serialize read-modify-write sequences touching *keys*.

        Key locks are always taken before the store lock that :meth:`batch`
        holds, so calling this from inside an open batch raises instead of
        waiting.

        Raises:
            RelationError: If the calling thread has an open batch.
        """
        if self._batch_owner == threading.get_ident():
            raise RelationError(
                "Key locks cannot be acquired inside an open batch(); "
                "call key-locked operations outside the batch"
            )
        with self._key_locks.hold(*keys):
            yield

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    @_reads_db
    def find_by_key(self, key: str) -> WordDocument | None:
        """Exact canonical lookup."""
        if not key:
            return None
        row = _db.get_word_row(self._conn, key)
        return self._row_to_document(row) if row is not None else None

    @_reads_db
    def find_by_word(self, word: str) -> WordDocument | None:
        """Find the document for *word* by key or by any of its variants."""
        if not isinstance(word, str):
            return None
        needle = " ".join(word.split()).lower()
        if not needle:
            return None
        row = self._conn.execute(
            "SELECT * FROM words WHERE key = ? OR key IN "
            "(SELECT key FROM word_variants WHERE lower(variant) = ?) "
            "ORDER BY key = ? DESC, key LIMIT 1",
            (needle, needle, needle),
        ).fetchone()
        return self._row_to_document(row) if row is not None else None

    @_modifies_db
    def upsert_merged(
        self,
        key: str,
        entries: Sequence[Entry],
        variants: Iterable[str] | None = None,
        symbol: str | None = None,
        parts_of_speech: Iterable[str] | None = None,
    ) -> bool:
        """Write the full entry list of *key*; returns True if created.

        Aggregates are always recomputed from *entries*; any that are given
        must agree with the recomputed values.

        Raises:
            ValidationError: If *key* is not canonical, or a given aggregate
                differs from the one derived from *entries*.
        """
        if not key or canonicalize(key) != key:
            raise ValidationError(f"Not a canonical key: {key!r}")
        entries = list(entries)
        summary = summarize(entries)
        given = Summary(
            variants=summary.variants if variants is None else tuple(variants),
            symbol=summary.symbol if symbol is None else symbol,
            parts_of_speech=(
                summary.parts_of_speech if parts_of_speech is None
                else tuple(sorted(set(parts_of_speech)))
            ),
        )
        if given != summary:
            raise ValidationError(
                f"Aggregates for {key!r} do not match its entries: "
                f"expected {summary}, got {given}"
            )

        old = _db.get_word_row(self._conn, key)
        _db.upsert_word(self._conn, key, entries, summary)
        words = [e.word for e in entries]
        if old is None:
            _hist.record_create(
                self._conn, key, {"key": key, "words": words}
            )
            return True
        old_words = [e.get("word", "") for e in (old["entries"] or [])]
        if old_words != words:
            _hist.record_update(self._conn, key, "entries", old_words, words)
        return False

    @_reads_db
    def get_by_root(self, root_key: str) -> list[WordDocument]:
        """All documents whose root is *root_key*, sorted by key."""
        if not root_key:
            return []
        rows = self._conn.execute(
            "SELECT * FROM words WHERE root_kind = 'child' AND root = ? "
            "ORDER BY key",
            (root_key,),
        ).fetchall()
        return [self._row_to_document(r) for r in rows]

    # ------------------------------------------------------------------
    # Root graph primitives (used by lexicon_store.roots)
    # ------------------------------------------------------------------

    @_modifies_db
    def set_root(self, key: str, link: RootLink) -> bool:
        """Overwrite the root link of *key*; returns True if it changed."""
        row = _db.get_word_row(self._conn, key)
        if row is None:
            return False
        old = _db.row_root_link(row)
        if old == link:
            return False
        _db.set_root(self._conn, key, link)
        _hist.record_update(
            self._conn, key, "root", _link_value(old), _link_value(link)
        )
        return True

    @_modifies_db
    def create_placeholder(self, key: str, link: RootLink) -> None:
        """Create an entry-less document holding only a root link."""
        _db.insert_placeholder(self._conn, key, link)
        _hist.record_create(
            self._conn, key, {"key": key, "root": _link_value(link)}
        )

    @_reads_db
    def count_children(self, root_key: str) -> int:
        return _db.count_children(self._conn, root_key)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    @_reads_db
    def search_by_prefix(
        self,
        prefix: str,
        page: int = 1,
        per_page: int = DEFAULT_PER_PAGE,
    ) -> SearchPage:
        """Distinct surface words whose word, key or variant starts with *prefix*.

        Matching is case-insensitive for ASCII letters. Words are sorted
        descending before the page is sliced.
        """
        page, per_page = _page_bounds(page, per_page)
        text = prefix.strip() if isinstance(prefix, str) else ""
        if not text:
            raise ValidationError("Search prefix is required")
        pattern = like_prefix(text)
        rows = self._conn.execute(
            "SELECT DISTINCT f.word FROM word_forms f "
            "WHERE f.word != '' AND ("
            "f.word LIKE :p ESCAPE '\\' "
            "OR f.key LIKE :p ESCAPE '\\' "
            "OR EXISTS (SELECT 1 FROM word_variants v "
            "WHERE v.key = f.key AND v.variant LIKE :p ESCAPE '\\')) "
            "ORDER BY f.word DESC",
            {"p": pattern},
        ).fetchall()
        words = [r["word"] for r in rows]
        start = (page - 1) * per_page
        return SearchPage(total=len(words), words=words[start:start + per_page])

    @_reads_db
    def search_idioms_only(
        self,
        query: str,
        page: int = 1,
        per_page: int = DEFAULT_PER_PAGE,
    ) -> IdiomPage:
        """Idioms containing the letters-only tokens of *query* in order."""
        page, per_page = _page_bounds(page, per_page)
        tokens = sanitize_idiom_query(query)
        if not tokens:
            return IdiomPage(total=0, words=[])
        pattern = "%" + "%".join(escape_like(t) for t in tokens) + "%"
        rows = self._conn.execute(
            "SELECT DISTINCT key, word, pos FROM word_idioms "
            "WHERE word LIKE ? ESCAPE '\\' "
            "ORDER BY key, pos, word",
            (pattern,),
        ).fetchall()
        matches = [IdiomMatch(key=r["key"], word=r["word"], pos=r["pos"]) for r in rows]
        start = (page - 1) * per_page
        return IdiomPage(total=len(matches), words=matches[start:start + per_page])

    @_reads_db
    def list_all(
        self,
        *,
        q: str | None = None,
        parts_of_speech: Iterable[str] | None = None,
        symbol: str | None = None,
        page: int = 1,
        per_page: int = DEFAULT_PER_PAGE,
    ) -> ListPage:
        """Top-level documents, each with its children attached.

        ``symbol="other"`` selects documents whose symbol is outside the
        known levels; an unknown symbol value applies no filter.
        ``parts_of_speech`` must equal the document's set exactly.
        """
        page, per_page = _page_bounds(page, per_page)
        clauses = ["root_kind IN ('standalone', 'root')"]
        params: list[Any] = []

        if q is not None and q.strip():
            clauses.append("key LIKE ? ESCAPE '\\'")
            params.append(like_prefix(q.strip().lower()))
        if parts_of_speech is not None:
            clauses.append("parts_of_speech = ?")
            params.append(_db.dump_json(sorted({p.strip() for p in parts_of_speech})))
        if symbol == "other":
            marks = ", ".join("?" for _ in SYMBOL_ORDER)
            clauses.append(f"symbol NOT IN ({marks})")
            params.extend(SYMBOL_ORDER)
        elif symbol in SYMBOL_ORDER:
            clauses.append("symbol = ?")
            params.append(symbol)

        where = " AND ".join(clauses)
        total = self._conn.execute(
            f"SELECT COUNT(*) FROM words WHERE {where}", params
        ).fetchone()[0]
        rows = self._conn.execute(
            f"SELECT * FROM words WHERE {where} ORDER BY key LIMIT ? OFFSET ?",
            [*params, per_page, (page - 1) * per_page],
        ).fetchall()
        parents = [self._row_to_document(r) for r in rows]

        children: dict[str, list[WordDocument]] = {p.key: [] for p in parents}
        if parents:
            marks = ", ".join("?" for _ in parents)
            child_rows = self._conn.execute(
                "SELECT * FROM words WHERE root_kind = 'child' "
                f"AND root IN ({marks}) ORDER BY key",
                [p.key for p in parents],
            ).fetchall()
            for r in child_rows:
                children[r["root"]].append(self._row_to_document(r))

        data = [replace(p, children=tuple(children[p.key])) for p in parents]
        return ListPage(total=total, page=page, per_page=per_page, data=data)

    @_reads_db
    def list_keys_only(
        self,
        prefix: str | None = None,
        page: int = 1,
        per_page: int = DEFAULT_PER_PAGE,
    ) -> list[str]:
        """Canonical keys starting with *prefix*, for autocomplete."""
        page, per_page = _page_bounds(page, per_page)
        text = prefix.strip().lower() if isinstance(prefix, str) else ""
        rows = self._conn.execute(
            "SELECT key FROM words WHERE key LIKE ? ESCAPE '\\' "
            "ORDER BY key LIMIT ? OFFSET ?",
            (like_prefix(text), per_page, (page - 1) * per_page),
        ).fetchall()
        return [r["key"] for r in rows]

    @_reads_db
    def list_parts_of_speech(self) -> list[str]:
        """Distinct part-of-speech tags used anywhere in the corpus."""
        rows = self._conn.execute(
            "SELECT DISTINCT pos FROM word_forms WHERE pos != '' ORDER BY pos"
        ).fetchall()
        return [r["pos"] for r in rows]

    # ------------------------------------------------------------------
    # Translation fields
    # ------------------------------------------------------------------

    @_reads_db
    def get_example_translations(self, ids: Iterable[str]) -> dict[str, str]:
        """Map example id to its stored translation."""
        wanted = {i for i in ids if i}
        found: dict[str, str] = {}
        for doc in self._documents_for_nodes(wanted, NodeKind.EXAMPLE):
            for node in _walk(doc.entries):
                if isinstance(node, Example) and node.id in wanted:
                    found[node.id] = node.translation
        return found

    def fill_missing_example_translations(
        self, updates: Mapping[str, str]
    ) -> TranslationUpdateResult:
        """Set example translations that are still empty; others are kept."""

        def apply(node: Any, value: str) -> bool:
            if not isinstance(node, Example) or not value or node.translation:
                return False
            node.translation = value
            return True

        return self._update_nodes(NodeKind.EXAMPLE, dict(updates), apply)

    def update_sense_definitions(
        self, updates: Iterable[Mapping[str, Any]]
    ) -> TranslationUpdateResult:
        """Overwrite translated definitions of senses.

        Each update is ``{"id": ..., "definition_translated": ...,
        "definition_translated_short": ...}``; either text may be omitted.
        """
        by_id: dict[str, Mapping[str, Any]] = {}
        skipped = 0
        for update in updates:
            node_id = update.get("id") if isinstance(update, Mapping) else None
            if not node_id:
                skipped += 1
                continue
            by_id[node_id] = update

        def apply(node: Any, update: Mapping[str, Any]) -> bool:
            if not isinstance(node, Sense):
                return False
            changed = False
            full = update.get("definition_translated", update.get("definition_vi"))
            short = update.get(
                "definition_translated_short", update.get("definition_vi_short")
            )
            if isinstance(full, str):
                node.definition_translated = full
                changed = True
            if isinstance(short, str):
                node.definition_translated_short = short
                changed = True
            return changed

        result = self._update_nodes(NodeKind.SENSE, by_id, apply)
        return TranslationUpdateResult(
            updated=result.updated, skipped=result.skipped + skipped
        )

    @_reads_db
    def get_sense_definitions(
        self, ids: Iterable[str]
    ) -> dict[str, dict[str, str]]:
        """Map sense id to its translated definitions."""
        wanted = {i for i in ids if i}
        found: dict[str, dict[str, str]] = {}
        for doc in self._documents_for_nodes(wanted, NodeKind.SENSE):
            for node in _walk(doc.entries):
                if isinstance(node, Sense) and node.id in wanted:
                    found[node.id] = {
                        "definition_translated": node.definition_translated,
                        "definition_translated_short": node.definition_translated_short,
                    }
        return found

    def _update_nodes(
        self,
        kind: NodeKind,
        updates: dict[str, Any],
        apply: Callable[[Any, Any], bool],
    ) -> TranslationUpdateResult:
        keys = self._keys_for_nodes(set(updates), kind)
        updated = 0
        touched: set[str] = set()
        for key in sorted(keys):
            with self.locked(key):
                doc = self.find_by_key(key)
                if doc is None:
                    continue
                entries = list(doc.entries)
                changed = False
                for node in _walk(entries):
                    if node.kind is kind and node.id in updates and node.id not in touched:
                        touched.add(node.id)
                        if apply(node, updates[node.id]):
                            updated += 1
                            changed = True
                if changed:
                    self._write_entries(key, entries)
        return TranslationUpdateResult(
            updated=updated, skipped=len(updates) - updated
        )

    @_modifies_db
    def _write_entries(self, key: str, entries: Sequence[Entry]) -> None:
        _db.update_entries(self._conn, key, entries)

    @_reads_db
    def _keys_for_nodes(self, ids: set[str], kind: NodeKind) -> list[str]:
        if not ids:
            return []
        marks = ", ".join("?" for _ in ids)
        rows = self._conn.execute(
            f"SELECT DISTINCT key FROM word_nodes WHERE kind = ? "
            f"AND node_id IN ({marks}) ORDER BY key",
            [kind.value, *ids],
        ).fetchall()
        return [r["key"] for r in rows]

    def _documents_for_nodes(
        self, ids: set[str], kind: NodeKind
    ) -> list[WordDocument]:
        keys = self._keys_for_nodes(ids, kind)
        return [self._row_to_document(r) for r in _db.get_word_rows(self._conn, keys)]

    # ------------------------------------------------------------------
    # Import, roots, lookup
    # ------------------------------------------------------------------

    def import_batch(self, raw_entries: Any, *, cancel: threading.Event | None = None) -> ImportResult:
        from lexicon_store.merge import import_batch
        return import_batch(self, raw_entries, cancel=cancel)

    def import_file(self, path: str | Path) -> ImportResult:
        from lexicon_store.merge import import_file
        return import_file(self, path)

    def import_directory(
        self, directory: str | Path, *, cancel: threading.Event | None = None
    ) -> DirectoryImportResult:
        from lexicon_store.merge import import_directory
        return import_directory(self, directory, cancel=cancel)

    def assign_root(self, word_key: str, new_root: str | None = None) -> AssignRootResult:
        from lexicon_store.roots import assign_root
        return assign_root(self, word_key, new_root)

    def lookup(
        self, source: PageSource, word: str, *, timeout: float | None = None
    ) -> LookupResult | None:
        from lexicon_store.lookup import lookup
        return lookup(
            self, source, word,
            timeout=self.timeout if timeout is None else timeout,
        )

    # ------------------------------------------------------------------
    # History and validation
    # ------------------------------------------------------------------

    @_reads_db
    def get_history(
        self,
        *,
        key: str | None = None,
        since: str | None = None,
        operation: str | None = None,
    ) -> list[EditRecord]:
        return _hist.query_history(
            self._conn, key=key, since=since, operation=operation
        )

    @_reads_db
    def validate(self) -> list[ValidationResult]:
        from lexicon_store.validator import validate_all
        return validate_all(self._conn)

    # ------------------------------------------------------------------

    def _row_to_document(self, row: sqlite3.Row) -> WordDocument:
        return WordDocument(
            key=row["key"],
            entries=tuple(Entry.from_dict(e) for e in (row["entries"] or [])),
            variants=tuple(row["variants"] or ()),
            symbol=row["symbol"],
            parts_of_speech=tuple(row["parts_of_speech"] or ()),
            root=_db.row_root_link(row),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


def _walk(entries: Iterable[Entry]) -> Generator[Any, None, None]:
    for entry in entries:
        yield from iter_nodes(entry)


def _link_value(link: RootLink) -> dict[str, str | None]:
    return {"kind": link.kind.value, "key": link.key}
