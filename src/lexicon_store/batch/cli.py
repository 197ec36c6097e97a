"""
Command-line interface for lexicon-store.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .. import __version__
from ..config import load_settings
from ..exceptions import LexiconStoreError
from ..merge import import_status
from ..roots import get_by_root
from ..store import LexiconStore
from .executor import execute_request
from .parser import ParseError, load_request
from .schema import BatchResult, RequestValidation
from .validator import validate_request


def main(argv: Optional[list] = None) -> int:
    """Main entry point for the lexicon-store CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        return args.func(args)
    except (LexiconStoreError, FileNotFoundError) as e:
        print(f"\n  [ERROR] {e}")
        return 1


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="lexicon-store",
        description="Canonical word store: import, search and root assignment",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--db",
        type=Path,
        help="Database file (default: $LEXICON_STORE_DB or ~/.lexicon_store.db)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show debug logging",
    )

    subparsers = parser.add_subparsers(title="commands", dest="command")

    # import command
    import_parser = subparsers.add_parser(
        "import",
        help="Import a JSON file or every JSON file in a directory",
    )
    import_parser.add_argument("path", type=Path, help="JSON file or directory")
    import_parser.set_defaults(func=cmd_import)

    # status command
    status_parser = subparsers.add_parser(
        "status",
        help="List JSON files available for import",
    )
    status_parser.add_argument("directory", type=Path, help="Directory to scan")
    status_parser.set_defaults(func=cmd_status)

    # search command
    search_parser = subparsers.add_parser(
        "search",
        help="Search surface words by prefix, or idioms by text",
    )
    search_parser.add_argument("prefix", help="Prefix (or idiom text with --idioms)")
    search_parser.add_argument(
        "--idioms",
        action="store_true",
        help="Search idioms instead of words",
    )
    _add_paging(search_parser)
    search_parser.set_defaults(func=cmd_search)

    # list command
    list_parser = subparsers.add_parser(
        "list",
        help="List top-level words with their children",
    )
    list_parser.add_argument("--q", help="Key prefix")
    list_parser.add_argument(
        "--pos",
        action="append",
        help="Exact parts-of-speech set (repeat for several tags)",
    )
    list_parser.add_argument("--symbol", help="Proficiency symbol, or 'other'")
    _add_paging(list_parser)
    list_parser.set_defaults(func=cmd_list)

    # assign-root command
    assign_parser = subparsers.add_parser(
        "assign-root",
        help="Set the root of a word (omit ROOT to clear it)",
    )
    assign_parser.add_argument("word", help="Word to reassign")
    assign_parser.add_argument("root", nargs="?", help="New root word")
    assign_parser.set_defaults(func=cmd_assign_root)

    # children command
    children_parser = subparsers.add_parser(
        "children",
        help="Show the words whose root is ROOT",
    )
    children_parser.add_argument("root", help="Root word")
    children_parser.set_defaults(func=cmd_children)

    # validate command
    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate an assignment request file",
    )
    validate_parser.add_argument(
        "file",
        type=Path,
        help="YAML file containing assignments",
    )
    validate_parser.add_argument(
        "--no-check-store",
        action="store_true",
        help="Skip checks against stored documents",
    )
    validate_parser.set_defaults(func=cmd_validate)

    # apply command
    apply_parser = subparsers.add_parser(
        "apply",
        help="Apply assignments from a request file",
    )
    apply_parser.add_argument(
        "file",
        type=Path,
        help="YAML file containing assignments",
    )
    apply_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Simulate execution without making changes",
    )
    apply_parser.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Skip confirmation prompt",
    )
    apply_parser.set_defaults(func=cmd_apply)

    # check command
    check_parser = subparsers.add_parser(
        "check",
        help="Check stored documents and the root graph for drift",
    )
    check_parser.set_defaults(func=cmd_check)

    # history command
    history_parser = subparsers.add_parser(
        "history",
        help="Show the edit history",
    )
    history_parser.add_argument("--word", help="Only this word key")
    history_parser.add_argument("--since", help="Only edits after this ISO timestamp")
    history_parser.add_argument(
        "--limit",
        type=int,
        default=20,
        help="Number of records to show (default: 20)",
    )
    history_parser.set_defaults(func=cmd_history)

    # lookup command
    lookup_parser = subparsers.add_parser(
        "lookup",
        help="Look up a word, fetching it from WordNet if not stored",
    )
    lookup_parser.add_argument("word", help="Word to look up")
    lookup_parser.add_argument(
        "--lexicon",
        help="WordNet lexicon specifier (default: all installed)",
    )
    lookup_parser.set_defaults(func=cmd_lookup)

    return parser


def _add_paging(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--page", type=int, default=1, help="Page number (default: 1)")
    parser.add_argument("--per-page", type=int, help="Results per page")


def _open_store(args: argparse.Namespace) -> LexiconStore:
    settings = load_settings()
    return LexiconStore(args.db or settings.db_path, timeout=settings.timeout)


def _per_page(args: argparse.Namespace) -> int:
    return args.per_page or load_settings().per_page


def cmd_import(args: argparse.Namespace) -> int:
    """Handle import command."""
    with _open_store(args) as store:
        if args.path.is_dir():
            result = store.import_directory(args.path)
            print(f"\nFiles:    {result.successful_files}/{result.total_files}")
            for failure in result.failed_files:
                print(f"  [FAILED] {failure.file}: {failure.error}")
            print(f"Words:    {result.total_words}")
            print(f"Grouped:  {result.total_grouped_words}")
            print(f"Imported: {result.total_imported}")
            errors = result.errors
        else:
            result = store.import_file(args.path)
            print(f"\nWords:    {result.total_words}")
            print(f"Grouped:  {result.grouped_words}")
            print(f"Imported: {result.imported}")
            errors = result.errors

    for issue in errors:
        print(f"  [ERROR] {issue.word}: {issue.error}")
    return 1 if errors else 0


def cmd_status(args: argparse.Namespace) -> int:
    """Handle status command."""
    try:
        status = import_status(args.directory)
    except FileNotFoundError as e:
        print(f"\n  [ERROR] {e}")
        return 1

    print(f"\n{status.directory}: {status.total_files} file(s)")
    for name in status.available_files:
        print(f"  {name}")
    return 0


def cmd_search(args: argparse.Namespace) -> int:
    """Handle search command."""
    with _open_store(args) as store:
        if args.idioms:
            idioms = store.search_idioms_only(args.prefix, args.page, _per_page(args))
            print(f"\n{idioms.total} idiom(s)")
            for match in idioms.words:
                print(f"  {match.word:<40} {match.key} ({match.pos or '-'})")
        else:
            page = store.search_by_prefix(args.prefix, args.page, _per_page(args))
            print(f"\n{page.total} word(s)")
            for word in page.words:
                print(f"  {word}")
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    """Handle list command."""
    with _open_store(args) as store:
        listing = store.list_all(
            q=args.q,
            parts_of_speech=args.pos,
            symbol=args.symbol,
            page=args.page,
            per_page=_per_page(args),
        )

    print(f"\n{listing.total} word(s), page {listing.page}")
    print(f"{'Key':<30} {'Symbol':<7} {'POS'}")
    print("-" * 60)
    for doc in listing.data:
        print(f"{doc.key:<30} {doc.symbol or '-':<7} {', '.join(doc.parts_of_speech)}")
        for child in doc.children or ():
            print(f"  - {child.key}")
    return 0


def cmd_assign_root(args: argparse.Namespace) -> int:
    """Handle assign-root command."""
    with _open_store(args) as store:
        result = store.assign_root(args.word, args.root)
    target = f"'{args.root}'" if args.root else "standalone"
    print(f"\nSet root of '{args.word}' to {target}: {result.modified_count} document(s) changed")
    return 0


def cmd_children(args: argparse.Namespace) -> int:
    """Handle children command."""
    with _open_store(args) as store:
        children = get_by_root(store, args.root)

    if not children:
        print(f"No words have root '{args.root}'.")
        return 0
    print(f"\n{len(children)} word(s) with root '{args.root}':")
    for doc in children:
        print(f"  {doc.key}")
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Handle validate command."""
    print(f"\nValidating {args.file}...")

    try:
        request = load_request(args.file)
    except ParseError as e:
        print(f"\n  [PARSE ERROR] {e}")
        if e.line:
            print(f"               Line: {e.line}")
        return 1
    except FileNotFoundError as e:
        print(f"\n  [ERROR] {e}")
        return 1

    print(f"  Assignments: {len(request.assignments)}")
    if request.session_name:
        print(f"  Session: {request.session_name}")

    if args.no_check_store:
        result = validate_request(request)
    else:
        with _open_store(args) as store:
            result = validate_request(request, store)

    print("\nValidation Results:")
    _print_validation_result(result)

    if result.is_valid:
        print("\nValidation passed!")
        return 0
    print(f"\nFound {result.error_count} error(s), {result.warning_count} warning(s)")
    return 1


def cmd_apply(args: argparse.Namespace) -> int:
    """Handle apply command."""
    print(f"\nLoading {args.file}...")

    try:
        request = load_request(args.file)
    except ParseError as e:
        print(f"\n  [PARSE ERROR] {e}")
        if e.line:
            print(f"               Line: {e.line}")
        return 1
    except FileNotFoundError as e:
        print(f"\n  [ERROR] {e}")
        return 1

    print(f"  Assignments: {len(request.assignments)}")
    if request.session_name:
        print(f"  Session: \"{request.session_name}\"")

    with _open_store(args) as store:
        print("\nValidating...")
        validation = validate_request(request, store)

        if not validation.is_valid:
            print("\nValidation failed:")
            _print_validation_result(validation)
            print(f"\nFound {validation.error_count} error(s). Fix errors before applying.")
            return 1

        if validation.warning_count > 0:
            print("\nWarnings:")
            _print_validation_result(validation, warnings_only=True)

        if args.dry_run:
            print("\n[DRY RUN] Simulating execution...")
        elif not args.yes:
            response = input(f"\nApply {len(request.assignments)} assignments? [y/N] ")
            if response.lower() not in ("y", "yes"):
                print("Aborted.")
                return 1

        print(f"\n{'Simulating' if args.dry_run else 'Applying'} assignments...")
        result = execute_request(store, request, dry_run=args.dry_run)

    _print_batch_result(result)
    return 1 if result.failure_count > 0 else 0


def cmd_check(args: argparse.Namespace) -> int:
    """Handle check command."""
    with _open_store(args) as store:
        findings = store.validate()

    if not findings:
        print("No problems found.")
        return 0
    for finding in findings:
        print(f"  [{finding.severity}] {finding.rule_id} {finding.key}: {finding.message}")
    errors = sum(1 for f in findings if f.severity == "ERROR")
    print(f"\nFound {errors} error(s), {len(findings) - errors} warning(s)")
    return 1 if errors else 0


def cmd_history(args: argparse.Namespace) -> int:
    """Handle history command."""
    with _open_store(args) as store:
        records = store.get_history(key=args.word, since=args.since)

    if not records:
        print("No edits recorded.")
        return 0

    records = records[-args.limit:]
    print(f"\n{'ID':<6} {'Word':<25} {'Operation':<10} {'Field':<10} {'Date'}")
    print("-" * 80)
    for record in records:
        print(
            f"{record.id:<6} {record.key:<25} {record.operation:<10} "
            f"{record.field_name or '-':<10} {record.timestamp}"
        )
    return 0


def cmd_lookup(args: argparse.Namespace) -> int:
    """Handle lookup command."""
    from ..sources import WordnetSource

    with _open_store(args) as store:
        result = store.lookup(WordnetSource(lexicon=args.lexicon), args.word)

    if result is None:
        print(f"No entries found for '{args.word}'.")
        return 1

    print(f"\n{result.word} ({result.quantity} entries, from {result.source})")
    for entry in result.entries:
        print(f"  {entry.word} [{entry.pos or '-'}]")
        for sense in entry.senses:
            print(f"    - {sense.definition}")
    return 0


def _print_validation_result(
    result: RequestValidation,
    warnings_only: bool = False,
) -> None:
    """Print validation errors and warnings."""
    if not warnings_only:
        for error in result.errors:
            line_info = f" (line {error.line_number})" if error.line_number else ""
            print(f"  [ERROR] Assignment #{error.index + 1} ({error.word}): {error.message}{line_info}")

    for warning in result.warnings:
        line_info = f" (line {warning.line_number})" if warning.line_number else ""
        print(f"  [WARN]  Assignment #{warning.index + 1} ({warning.word}): {warning.message}{line_info}")


def _print_batch_result(result: BatchResult) -> None:
    """Print batch execution result."""
    print()
    for change in result.changes:
        idx = change.index + 1
        status = "OK" if change.success else "FAILED"
        print(f"  [{idx}/{result.total_count}] {change.word}: {status}")
        if change.message:
            print(f"         {change.message}")

    print("\nResults:")
    print(f"  Total:    {result.total_count}")
    print(f"  Success:  {result.success_count}")
    print(f"  Failed:   {result.failure_count}")
    print(f"  Modified: {result.modified_count}")
    print(f"  Time:     {result.duration_seconds:.2f}s")


if __name__ == "__main__":
    sys.exit(main())
