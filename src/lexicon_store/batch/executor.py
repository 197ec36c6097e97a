"""
Executor for batch root-assignment requests.

Applies each assignment through the store; a failed assignment is
recorded and the remaining ones still run.
"""
from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, List

from ..normalize import canonicalize
from .schema import Assignment, AssignmentRequest, BatchResult, ChangeResult

if TYPE_CHECKING:
    from ..store import LexiconStore

logger = logging.getLogger(__name__)


def execute_request(
    store: "LexiconStore",
    request: AssignmentRequest,
    dry_run: bool = False,
) -> BatchResult:
    """Execute an assignment request.

    Args:
        store: The store to modify
        request: The request to execute
        dry_run: If True, only simulate execution without making changes

    Returns:
        BatchResult with details of each assignment
    """
    start_time = time.time()
    results: List[ChangeResult] = []

    for i, assignment in enumerate(request.assignments):
        results.append(_execute_assignment(store, assignment, i, dry_run))

    success_count = sum(1 for r in results if r.success)
    failure_count = sum(1 for r in results if not r.success)
    duration = time.time() - start_time

    return BatchResult(
        session_name=request.session_name,
        total_count=len(results),
        success_count=success_count,
        failure_count=failure_count,
        changes=results,
        duration_seconds=duration,
        dry_run=dry_run,
    )


def _execute_assignment(
    store: "LexiconStore",
    assignment: Assignment,
    index: int,
    dry_run: bool,
) -> ChangeResult:
    word = canonicalize(assignment.word)
    root = canonicalize(assignment.root) if assignment.root is not None else None
    target = f"'{root}'" if root else "standalone"

    if dry_run:
        return ChangeResult(
            index=index,
            word=word,
            root=root,
            success=True,
            message=f"Would set root of '{word}' to {target}",
        )

    try:
        outcome = store.assign_root(assignment.word, assignment.root)
    except Exception as e:
        logger.exception(f"Error executing assignment #{index + 1} ({word})")
        return ChangeResult(
            index=index,
            word=word,
            root=root,
            success=False,
            message=f"Error: {e}",
            error=str(e),
        )

    return ChangeResult(
        index=index,
        word=word,
        root=root,
        success=True,
        message=(
            f"Set root of '{word}' to {target} "
            f"({outcome.modified_count} documents changed)"
        ),
        modified_count=outcome.modified_count,
    )
