"""Export formatter registry.

WHY: The CLI and the HTTP API need a single lookup to find a formatter by
name. Adding a format means one new module and one line here.

HOW: FORMATTERS maps string keys to formatter *classes* (not instances).
Callers instantiate as needed: ``formatter = FORMATTERS["webvtt"]()``.

RULES:
- Keys are snake_case identifiers (used in CLI flags and API parameters)
- Values are BaseFormatter subclasses (not instances)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from subtitle_editor.formatters.canonical import CanonicalDocumentFormatter
from subtitle_editor.formatters.webvtt import WebVTTFormatter

if TYPE_CHECKING:
    from subtitle_editor.formatters.base import BaseFormatter

FORMATTERS: dict[str, type[BaseFormatter]] = {
    "canonical_json": CanonicalDocumentFormatter,
    "webvtt": WebVTTFormatter,
}
