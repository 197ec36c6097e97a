"""
Batch root-assignment requests for lexicon-store.

Assignments are written in YAML and applied through a store.

Example usage:
    from lexicon_store import LexiconStore
    from lexicon_store.batch import (
        load_request,
        validate_request,
        execute_request,
    )

    request = load_request("roots.yaml")

    with LexiconStore("words.db") as store:
        validation = validate_request(request, store)
        if not validation.is_valid:
            for error in validation.errors:
                print(f"[{error.index}] {error.word}: {error.message}")
        else:
            result = execute_request(store, request)
            print(f"Applied {result.success_count}/{result.total_count} assignments")
"""

from .schema import (
    ASSIGNMENT_FIELDS as ASSIGNMENT_FIELDS,
    REQUIRED_FIELDS as REQUIRED_FIELDS,
    Assignment as Assignment,
    AssignmentRequest as AssignmentRequest,
    RequestError as RequestError,
    RequestWarning as RequestWarning,
    RequestValidation as RequestValidation,
    ChangeResult as ChangeResult,
    BatchResult as BatchResult,
)

from .parser import (
    load_request as load_request,
    ParseError as ParseError,
)

from .validator import (
    validate_request as validate_request,
)

from .executor import (
    execute_request as execute_request,
)

__all__ = [
    # Constants
    "ASSIGNMENT_FIELDS",
    "REQUIRED_FIELDS",
    # Data classes
    "Assignment",
    "AssignmentRequest",
    "RequestError",
    "RequestWarning",
    "RequestValidation",
    "ChangeResult",
    "BatchResult",
    # Functions
    "load_request",
    "validate_request",
    "execute_request",
    # Exceptions
    "ParseError",
]
