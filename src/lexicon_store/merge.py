"""Grouping and merging of raw entries into canonical word documents."""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any

from lexicon_store.exceptions import DataImportError
from lexicon_store.models import (
    DirectoryImportResult,
    Entry,
    FileFailure,
    ImportIssue,
    ImportResult,
    ImportStatus,
    assign_missing_ids,
)
from lexicon_store.normalize import canonicalize

if TYPE_CHECKING:
    from lexicon_store.store import LexiconStore

logger = logging.getLogger(__name__)


def group_entries(raw_entries: Sequence[Any]) -> dict[str, list[Mapping[str, Any]]]:
    """Group raw entries by canonical key, keeping input order in each group.

    Items that are not objects or whose word has no usable key are skipped.
    """
    groups: dict[str, list[Mapping[str, Any]]] = {}
    for i, raw in enumerate(raw_entries):
        if not isinstance(raw, Mapping):
            logger.warning(f"Skipping item #{i + 1}: not an object")
            continue
        key = canonicalize(raw.get("word"))
        if not key:
            logger.warning(f"Skipping item #{i + 1}: no usable word ({raw.get('word')!r})")
            continue
        groups.setdefault(key, []).append(raw)
    return groups


def _prepare_for_import(raw: Mapping[str, Any]) -> Entry:
    entry = Entry.from_dict(raw)
    assign_missing_ids(entry)
    entry.is_translated = False
    if entry.phrasal_verb_senses is None:
        entry.phrasal_verb_senses = []
    return entry


def merge_entries(store: LexiconStore, key: str, entries: Sequence[Entry]) -> int:
    """Create the document for *key* or append entries with new surface words.

    Surface words are compared verbatim, so ``"Ability"`` and ``"ability"``
    are kept as distinct entries of the same document. Aggregates are
    recomputed over the full merged entry list. Returns the number of
    entries written.
    """
    with store.locked(key):
        existing = store.find_by_key(key)
        present = set(existing.words) if existing is not None else set()

        new_entries: list[Entry] = []
        for entry in entries:
            if entry.word in present:
                continue
            present.add(entry.word)
            new_entries.append(entry)

        if existing is None:
            if not new_entries:
                return 0
            store.upsert_merged(key, new_entries)
            logger.info(f"Created word {key!r} with {len(new_entries)} entries")
            return len(new_entries)

        if not new_entries:
            logger.info(f"Skipped word {key!r} (no new entries)")
            return 0

        store.upsert_merged(key, [*existing.entries, *new_entries])
        logger.info(f"Merged {len(new_entries)} new entries for word {key!r}")
        return len(new_entries)


def import_batch(
    store: LexiconStore,
    raw_entries: Any,
    *,
    cancel: threading.Event | None = None,
) -> ImportResult:
    """Import a list of raw entries, best effort per canonical key.

    Raises:
        DataImportError: If *raw_entries* is not a list.
    """
    if not isinstance(raw_entries, list):
        raise DataImportError("Import data must be a list of word objects")

    groups = group_entries(raw_entries)
    result = ImportResult(total_words=len(raw_entries), grouped_words=len(groups))

    for key, group in groups.items():
        if cancel is not None and cancel.is_set():
            logger.warning(f"Import cancelled before word {key!r}")
            result.cancelled = True
            break
        try:
            entries = [_prepare_for_import(raw) for raw in group]
            if merge_entries(store, key, entries) > 0:
                result.imported += 1
        except Exception as e:
            logger.exception(f"Error processing word {key!r}")
            result.errors.append(ImportIssue(word=key, error=str(e)))

    return result


def import_file(
    store: LexiconStore,
    path: str | Path,
    *,
    cancel: threading.Event | None = None,
) -> ImportResult:
    """Import one JSON file holding an array of raw entries."""
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Import file not found: {path}")
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DataImportError(f"Failed to parse {path.name}: {e}") from e
    if not isinstance(data, list):
        raise DataImportError(f"{path.name} must contain an array of word objects")
    return import_batch(store, data, cancel=cancel)


def _json_files(directory: Path) -> list[Path]:
    if not directory.is_dir():
        raise FileNotFoundError(f"Import directory not found: {directory}")
    return sorted(
        (p for p in directory.iterdir() if p.is_file() and p.suffix == ".json"),
        key=lambda p: p.name,
    )


def import_status(directory: str | Path) -> ImportStatus:
    """List the JSON files available for import in *directory*."""
    directory = Path(directory)
    files = _json_files(directory)
    return ImportStatus(
        directory=str(directory),
        available_files=tuple(p.name for p in files),
    )


def import_directory(
    store: LexiconStore,
    directory: str | Path,
    *,
    cancel: threading.Event | None = None,
) -> DirectoryImportResult:
    """Import every ``*.json`` file in *directory*, sorted by file name.

    A file that cannot be read or parsed is recorded in ``failed_files``
    and the remaining files are still imported.
    """
    files = _json_files(Path(directory))
    result = DirectoryImportResult(total_files=len(files))

    for path in files:
        if cancel is not None and cancel.is_set():
            logger.warning(f"Import cancelled before file {path.name}")
            result.cancelled = True
            break
        try:
            file_result = import_file(store, path, cancel=cancel)
        except Exception as e:
            logger.exception(f"Failed to import {path.name}")
            result.failed_files.append(FileFailure(file=path.name, error=str(e)))
            continue

        result.successful_files += 1
        result.total_words += file_result.total_words
        result.total_grouped_words += file_result.grouped_words
        result.total_imported += file_result.imported
        result.errors.extend(file_result.errors)
        logger.info(
            f"Imported {path.name}: {file_result.imported}/"
            f"{file_result.total_words} words grouped into "
            f"{file_result.grouped_words} entries"
        )
        if file_result.cancelled:
            result.cancelled = True
            break

    return result
