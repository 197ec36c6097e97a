"""
YAML parser for batch root-assignment requests.

Example file::

    session:
      name: Group verb forms
    assignments:
      - word: looked
        root: look
      - word: looking
        root: look
      - word: outlook
        root: null
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .schema import ASSIGNMENT_FIELDS, Assignment, AssignmentRequest


class ParseError(Exception):
    """Error parsing an assignment request file."""

    def __init__(self, message: str, line: Optional[int] = None):
        self.line = line
        super().__init__(message)


def load_request(
    source: Union[str, Path, Dict[str, Any]],
) -> AssignmentRequest:
    """Load an assignment request from a YAML file, YAML string or dictionary.

    Raises:
        ParseError: If the content cannot be parsed or is invalid
        FileNotFoundError: If the file does not exist
    """
    source_path: Optional[Path] = None
    lines: List[Optional[int]] = []

    if isinstance(source, dict):
        data = source
    elif isinstance(source, Path) or (isinstance(source, str) and _is_file_path(source)):
        source_path = Path(source)
        if not source_path.exists():
            raise FileNotFoundError(f"File not found: {source_path}")
        with open(source_path, "r", encoding="utf-8") as f:
            text = f.read()
        data = _load_yaml_string(text)
        lines = _assignment_lines(text)
    else:
        data = _load_yaml_string(source)
        lines = _assignment_lines(source)

    return _parse_request(data, lines, source_path)


def _is_file_path(s: str) -> bool:
    """Check if a string looks like a file path."""
    if "\n" in s:
        return False
    if "/" in s or "\\" in s:
        return True
    return s.endswith((".yaml", ".yml"))


def _load_yaml_string(s: str) -> Dict[str, Any]:
    try:
        data = yaml.safe_load(s)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        line_num = mark.line + 1 if mark else None
        raise ParseError(f"Invalid YAML: {e}", line=line_num) from e

    if data is None:
        raise ParseError("Empty YAML content")
    if not isinstance(data, dict):
        raise ParseError("YAML root must be a mapping (dictionary)")
    return data


def _assignment_lines(text: str) -> List[Optional[int]]:
    """Line number of each item of the ``assignments`` sequence."""
    try:
        root = yaml.compose(text, Loader=yaml.SafeLoader)
    except yaml.YAMLError:
        return []
    if not isinstance(root, yaml.MappingNode):
        return []
    for key_node, value_node in root.value:
        if key_node.value == "assignments" and isinstance(value_node, yaml.SequenceNode):
            return [item.start_mark.line + 1 for item in value_node.value]
    return []


def _parse_request(
    data: Dict[str, Any],
    lines: List[Optional[int]],
    source_path: Optional[Path] = None,
) -> AssignmentRequest:
    session = data.get("session") or {}
    if not isinstance(session, dict):
        raise ParseError("Field 'session' must be a mapping")

    items = data.get("assignments")
    if items is None:
        raise ParseError("Missing required field: 'assignments'")
    if not isinstance(items, list):
        raise ParseError("Field 'assignments' must be a list")
    if len(items) == 0:
        raise ParseError("Field 'assignments' cannot be empty")

    assignments = []
    for i, item in enumerate(items):
        line = lines[i] if i < len(lines) else None
        if not isinstance(item, dict):
            raise ParseError(f"Assignment #{i + 1} must be a mapping", line=line)
        unknown = sorted(set(item) - set(ASSIGNMENT_FIELDS))
        if unknown:
            raise ParseError(
                f"Assignment #{i + 1}: unknown field(s) {', '.join(unknown)}",
                line=line,
            )
        word = item.get("word")
        root = item.get("root")
        if word is not None and not isinstance(word, str):
            raise ParseError(f"Assignment #{i + 1}: 'word' must be a string", line=line)
        if root is not None and not isinstance(root, str):
            raise ParseError(f"Assignment #{i + 1}: 'root' must be a string or null", line=line)
        assignments.append(Assignment(word=word or "", root=root, line_number=line))

    return AssignmentRequest(
        assignments=assignments,
        session_name=session.get("name"),
        session_description=session.get("description"),
        source_file=source_path,
    )
