"""Typed exceptions raised by the transcript core.

WHY: The editing-surface adapter (HTTP API, CLI) must tell a rejected field
value apart from a structurally invalid import or an unsupported video URL,
because each is reported to the user differently.

HOW: One base class, SubtitleEditorError, with four concrete subclasses.
SchemaError carries the validator's violation list; ValidationError names the
offending field.

RULES:
- ValidationError: a caption-line setter rejected a malformed value
- SchemaError: a canonical document failed structural validation; the
  violation list is never empty
- FormatError: unsupported video URL or malformed import input
- PreconditionError: an expected line or session element is absent
- Nothing in the core retries; every error propagates to the caller
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence


class SubtitleEditorError(Exception):
    """Base class for all errors raised by the transcript core."""


class ValidationError(SubtitleEditorError, ValueError):
    """Raised when a caption-line setter rejects a value.

    Attributes:
        field: Name of the rejected field (e.g. ``"start"``), or None.
        value: The raw value that was rejected.
    """

    def __init__(self, message: str, field: Optional[str] = None, value: object = None) -> None:
        self.field = field
        self.value = value
        super().__init__(message)


@dataclass(frozen=True)
class Violation:
    """One structural violation reported by the schema validator.

    Attributes:
        path: JSON-pointer-like location of the offending value,
              e.g. ``"/text/0/startTime"``. Empty string for the root.
        message: Human-readable description from the validator.
    """

    path: str
    message: str

    def __str__(self) -> str:
        return "{}: {}".format(self.path or "/", self.message)


class SchemaError(SubtitleEditorError):
    """Raised when a canonical document fails structural validation.

    The import is aborted as a whole; no partial transcript exists.
    """

    def __init__(self, violations: Sequence[Violation], message: Optional[str] = None) -> None:
        if not violations:
            violations = [Violation(path="", message="document rejected by validator")]
        self.violations: List[Violation] = list(violations)
        if message is None:
            message = "Canonical document failed validation ({} violation{}): {}".format(
                len(self.violations),
                "" if len(self.violations) == 1 else "s",
                "; ".join(str(v) for v in self.violations[:3]),
            )
        super().__init__(message)


class FormatError(SubtitleEditorError, ValueError):
    """Raised for an unsupported video URL or malformed import input."""


class PreconditionError(SubtitleEditorError, LookupError):
    """Raised when an element the session depends on is absent."""
