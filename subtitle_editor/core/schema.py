"""Structural validation of canonical documents via jsonschema.

WHY: Imported canonical documents come from outside the editor (files,
earlier exports, other tools). Checking their structure up front means the
importer can map fields without defensive code and can reject a bad document
as a whole, with every problem listed.

HOW: compile_schema() wraps a jsonschema Draft7Validator in a
DocumentValidator. Calling the validator returns a bool and leaves the
violations of the last failed call on ``.errors``. The packaged schema is
loaded once and cached, the same way the formatters cache theirs.

RULES:
- validator(doc) -> bool; errors are only meaningful after a False result
- Violations are sorted by path so reports are stable
- The default validator is built from config.SCHEMA_PATH
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import jsonschema

from subtitle_editor.config import SCHEMA_PATH
from subtitle_editor.errors import Violation


def _format_path(path) -> str:
    return "".join("/{}".format(part) for part in path)


class DocumentValidator:
    """A compiled schema, callable on a parsed document."""

    def __init__(self, schema: Dict[str, Any]) -> None:
        jsonschema.Draft7Validator.check_schema(schema)
        self.schema = schema
        self._validator = jsonschema.Draft7Validator(schema)
        self.errors: List[Violation] = []

    def __call__(self, document: Any) -> bool:
        self.errors = sorted(
            (
                Violation(path=_format_path(error.absolute_path), message=error.message)
                for error in self._validator.iter_errors(document)
            ),
            key=lambda v: (v.path, v.message),
        )
        return not self.errors


def compile_schema(schema: Dict[str, Any]) -> DocumentValidator:
    """Compile a JSON schema dict into a reusable DocumentValidator.

    Raises:
        jsonschema.SchemaError: If the schema itself is invalid.
    """
    return DocumentValidator(schema)


def load_schema(path: Optional[Path] = None) -> Dict[str, Any]:
    with open(path or SCHEMA_PATH, encoding="utf-8") as f:
        return json.load(f)


_CACHED_SCHEMA: Optional[Dict[str, Any]] = None


def get_schema() -> Dict[str, Any]:
    global _CACHED_SCHEMA
    if _CACHED_SCHEMA is None:
        _CACHED_SCHEMA = load_schema()
    return _CACHED_SCHEMA


def default_validator() -> DocumentValidator:
    """A fresh validator for the configured canonical document schema.

    A new instance per call, since ``errors`` is per-call state.
    """
    return compile_schema(get_schema())
