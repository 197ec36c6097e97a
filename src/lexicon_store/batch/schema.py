"""
Data classes for batch root-assignment requests.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


# =============================================================================
# Field Requirements
# =============================================================================

# Fields accepted in each assignment
ASSIGNMENT_FIELDS = ("word", "root")

# Fields that must be present (root may be null)
REQUIRED_FIELDS = ("word",)


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class Assignment:
    """Single root assignment: make ``word`` a child of ``root``."""
    word: str
    root: Optional[str] = None
    line_number: Optional[int] = None

    @property
    def clears_root(self) -> bool:
        return self.root is None


@dataclass
class AssignmentRequest:
    """Parsed assignment request from YAML."""
    assignments: List[Assignment]
    session_name: Optional[str] = None
    session_description: Optional[str] = None
    source_file: Optional[Path] = None


@dataclass
class RequestError:
    """Validation error for a specific assignment."""
    index: int
    word: str
    field: str
    message: str
    line_number: Optional[int] = None


@dataclass
class RequestWarning:
    """Validation warning for a specific assignment."""
    index: int
    word: str
    message: str
    line_number: Optional[int] = None


@dataclass
class RequestValidation:
    """Result of validating an assignment request."""
    is_valid: bool
    errors: List[RequestError] = field(default_factory=list)
    warnings: List[RequestWarning] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)


@dataclass
class ChangeResult:
    """Result of executing a single assignment."""
    index: int
    word: str
    root: Optional[str]
    success: bool
    message: str
    modified_count: int = 0
    error: Optional[str] = None


@dataclass
class BatchResult:
    """Result of executing an assignment request."""
    session_name: Optional[str]
    total_count: int
    success_count: int
    failure_count: int
    changes: List[ChangeResult]
    duration_seconds: float
    dry_run: bool = False

    @property
    def modified_count(self) -> int:
        return sum(c.modified_count for c in self.changes)
