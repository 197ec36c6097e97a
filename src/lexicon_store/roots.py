"""Root/child links between word documents."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from lexicon_store.exceptions import EntityNotFoundError, RelationError, ValidationError
from lexicon_store.models import AssignRootResult, RootLink, WordDocument
from lexicon_store.normalize import canonicalize

if TYPE_CHECKING:
    from lexicon_store.store import LexiconStore

logger = logging.getLogger(__name__)


def assign_root(
    store: LexiconStore,
    word_key: str,
    new_root: str | None = None,
) -> AssignRootResult:
    """Make *word_key* a child of *new_root*, or standalone if it is None.

    A missing root document is created as an entry-less placeholder; an
    existing one is promoted to root. Roots that lose their last child
    (the target's previous root, and the previous root of a promoted
    document) are demoted back to standalone.

    Raises:
        ValidationError: If *word_key* or *new_root* has no usable key.
        EntityNotFoundError: If *word_key* has no document.
        RelationError: If the target is itself a root, is its own root, or
            the call is made inside an open :meth:`LexiconStore.batch`.
    """
    key = canonicalize(word_key)
    if not key:
        raise ValidationError("Word key is required")
    root_key: str | None = None
    if new_root is not None:
        root_key = canonicalize(new_root)
        if not root_key:
            raise ValidationError(f"Invalid root word: {new_root!r}")
        if root_key == key:
            raise RelationError(f"Word {key!r} cannot be its own root")

    # The lock set depends on current links, so re-check it once held.
    while True:
        keys = _keys_involved(store, key, root_key)
        with store.locked(*keys):
            if _keys_involved(store, key, root_key) != keys:
                continue
            return _assign_locked(store, key, root_key)


def _keys_involved(
    store: LexiconStore, key: str, root_key: str | None
) -> frozenset[str]:
    keys = {key}
    target = store.find_by_key(key)
    if target is not None and target.root.key:
        keys.add(target.root.key)
    if root_key:
        keys.add(root_key)
        root_doc = store.find_by_key(root_key)
        if root_doc is not None and root_doc.root.key:
            keys.add(root_doc.root.key)
    return frozenset(keys)


def _assign_locked(
    store: LexiconStore, key: str, root_key: str | None
) -> AssignRootResult:
    target = store.find_by_key(key)
    if target is None:
        raise EntityNotFoundError(f"Word not found: {key!r}")
    if target.root.is_root:
        raise RelationError(
            f"Word {key!r} is a root with children and cannot be reassigned"
        )

    old_root = target.root.key
    changed: set[str] = set()

    with store.batch():
        new_link = RootLink.child_of(root_key) if root_key else RootLink.standalone()
        if store.set_root(key, new_link):
            changed.add(key)

        stale: list[str] = []
        if old_root and old_root != root_key:
            stale.append(old_root)

        if root_key:
            root_doc = store.find_by_key(root_key)
            if root_doc is None:
                store.create_placeholder(root_key, RootLink.root())
                changed.add(root_key)
                logger.info(f"Created placeholder root {root_key!r}")
            else:
                previous = root_doc.root.key
                if store.set_root(root_key, RootLink.root()):
                    changed.add(root_key)
                if previous and previous not in stale:
                    logger.warning(
                        f"Promoted {root_key!r} out of root {previous!r}"
                    )
                    stale.append(previous)

        for stale_key in stale:
            if _reconcile(store, stale_key):
                changed.add(stale_key)

    logger.info(
        f"Assigned root of {key!r} to {root_key!r} "
        f"({len(changed)} documents changed)"
    )
    return AssignRootResult(modified_count=len(changed))


def _reconcile(store: LexiconStore, root_key: str) -> bool:
    """Keep *root_key* a root while it has children, else make it standalone."""
    doc = store.find_by_key(root_key)
    if doc is None:
        logger.warning(f"Root {root_key!r} has no document; nothing to reconcile")
        return False
    if doc.root.is_child:
        return False
    remaining = store.count_children(root_key)
    if remaining:
        return store.set_root(root_key, RootLink.root())
    if doc.root.is_root:
        logger.warning(f"Demoting {root_key!r} to standalone (no children left)")
    return store.set_root(root_key, RootLink.standalone())


def get_by_root(store: LexiconStore, root_key: str | None) -> list[WordDocument]:
    """All documents whose root is *root_key*, sorted by key."""
    if not root_key:
        return []
    return store.get_by_root(canonicalize(root_key))
