"""
Validation for batch root-assignment requests.

Provides both shape validation (words present, no self-roots, no
duplicates) and store validation (documents exist, targets are not roots).
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, List, Optional

from ..normalize import canonicalize
from .schema import (
    Assignment,
    AssignmentRequest,
    RequestError,
    RequestValidation,
    RequestWarning,
)

if TYPE_CHECKING:
    from ..store import LexiconStore

logger = logging.getLogger(__name__)


def validate_request(
    request: AssignmentRequest,
    store: Optional["LexiconStore"] = None,
) -> RequestValidation:
    """Validate an assignment request.

    Args:
        request: The request to validate
        store: If given, also check the documents the request touches

    Returns:
        RequestValidation with errors and warnings
    """
    errors: List[RequestError] = []
    warnings: List[RequestWarning] = []
    seen: Dict[str, int] = {}
    roots: Dict[str, int] = {}

    for i, assignment in enumerate(request.assignments):
        a_errors = _validate_shape(assignment, i)
        errors.extend(a_errors)
        if a_errors:
            continue

        key = canonicalize(assignment.word)
        if key in seen:
            errors.append(_error(
                assignment, i, "word",
                f"Word '{key}' is already assigned by assignment #{seen[key] + 1}",
            ))
            continue
        seen[key] = i

        if key in roots:
            errors.append(_error(
                assignment, i, "word",
                f"Word '{key}' becomes a root in assignment #{roots[key] + 1} "
                "and cannot be reassigned",
            ))
            continue
        if assignment.root is not None:
            root_key = canonicalize(assignment.root)
            roots.setdefault(root_key, i)
            if root_key in seen and seen[root_key] != i:
                warnings.append(_warning(
                    assignment, i,
                    f"Root '{root_key}' is reassigned by assignment "
                    f"#{seen[root_key] + 1} and will be promoted here",
                ))

        if store is not None:
            e, w = _validate_against_store(assignment, i, key, store)
            errors.extend(e)
            warnings.extend(w)

    return RequestValidation(
        is_valid=len(errors) == 0,
        errors=errors,
        warnings=warnings,
    )


def _validate_shape(assignment: Assignment, index: int) -> List[RequestError]:
    errors: List[RequestError] = []
    if not assignment.word or not assignment.word.strip():
        errors.append(_error(assignment, index, "word", "Missing required field 'word'"))
        return errors

    key = canonicalize(assignment.word)
    if not key:
        errors.append(_error(
            assignment, index, "word",
            f"Word '{assignment.word}' has no letters",
        ))
        return errors

    if assignment.root is not None:
        root_key = canonicalize(assignment.root)
        if not root_key:
            errors.append(_error(
                assignment, index, "root",
                f"Root '{assignment.root}' has no letters",
            ))
        elif root_key == key:
            errors.append(_error(
                assignment, index, "root",
                f"Word '{key}' cannot be its own root",
            ))
    return errors


def _validate_against_store(
    assignment: Assignment,
    index: int,
    key: str,
    store: "LexiconStore",
) -> tuple[List[RequestError], List[RequestWarning]]:
    errors: List[RequestError] = []
    warnings: List[RequestWarning] = []

    doc = store.find_by_key(key)
    if doc is None:
        errors.append(_error(assignment, index, "word", f"Word '{key}' not found"))
        return errors, warnings
    if doc.root.is_root:
        errors.append(_error(
            assignment, index, "word",
            f"Word '{key}' is a root with {store.count_children(key)} children",
        ))
        return errors, warnings

    if assignment.root is not None:
        root_key = canonicalize(assignment.root)
        root_doc = store.find_by_key(root_key)
        if root_doc is None:
            warnings.append(_warning(
                assignment, index,
                f"Root '{root_key}' not found; a placeholder will be created",
            ))
        elif root_doc.root.is_child:
            warnings.append(_warning(
                assignment, index,
                f"Root '{root_key}' is a child of '{root_doc.root.key}' "
                "and will be promoted",
            ))
    elif not doc.root.is_child:
        warnings.append(_warning(
            assignment, index, f"Word '{key}' has no root; nothing to clear",
        ))

    return errors, warnings


def _error(assignment: Assignment, index: int, field: str, message: str) -> RequestError:
    return RequestError(
        index=index,
        word=assignment.word,
        field=field,
        message=message,
        line_number=assignment.line_number,
    )


def _warning(assignment: Assignment, index: int, message: str) -> RequestWarning:
    return RequestWarning(
        index=index,
        word=assignment.word,
        message=message,
        line_number=assignment.line_number,
    )
