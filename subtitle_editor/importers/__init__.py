"""Import format registry and dispatch.

WHY: The session, the CLI and the HTTP API all accept "some source text in
one of four formats". One dispatch function keeps format selection and the
canonical importer's async validation step in one place.

HOW: IMPORTERS maps format keys to importer callables. import_source()
resolves "auto" with detect_format(), then awaits the canonical importer or
calls the synchronous text importers directly.

RULES:
- Keys match config.SUPPORTED_SOURCE_FORMATS
- "auto" detection: "{" → canonical, "<" → auto_transcript, a time-range
  first line → timecoded, anything else → plain_text
- An unknown format key raises FormatError
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from subtitle_editor.config import DEFAULT_LANGUAGE
from subtitle_editor.core.transcript import Transcript, VideoReference
from subtitle_editor.errors import FormatError
from subtitle_editor.importers.auto_transcript import import_auto_transcript
from subtitle_editor.importers.canonical import import_canonical_document
from subtitle_editor.importers.plain_text import import_plain_text
from subtitle_editor.importers.timecoded import RANGE_RE, import_timecoded

IMPORTERS: Dict[str, Callable[..., Any]] = {
    "canonical": import_canonical_document,
    "auto_transcript": import_auto_transcript,
    "timecoded": import_timecoded,
    "plain_text": import_plain_text,
}


def detect_format(text: str) -> str:
    """Guess the import format of a source text."""
    stripped = text.lstrip("\ufeff \t\r\n")
    if stripped.startswith("{"):
        return "canonical"
    if stripped.startswith("<"):
        return "auto_transcript"
    first_line = stripped.split("\n", 1)[0]
    if RANGE_RE.match(first_line):
        return "timecoded"
    return "plain_text"


async def import_source(
    source: Any,
    source_format: str = "auto",
    video_reference: Optional[VideoReference] = None,
    language: str = DEFAULT_LANGUAGE,
) -> Transcript:
    """Import source text (or a parsed canonical document) into a Transcript.

    Args:
        source: Source text; a dict is taken as a parsed canonical document.
        source_format: A key of IMPORTERS, or "auto".
        video_reference: Required for every format except canonical.
        language: Language tag for formats that carry none.

    Raises:
        FormatError: Unknown format, missing video reference, or bad input.
        SchemaError: The canonical document failed validation.
    """
    if isinstance(source, dict):
        source_format = "canonical"
    elif source_format == "auto":
        source_format = detect_format(source)

    if source_format not in IMPORTERS:
        raise FormatError("Unknown import format {!r}. Available: {}".format(
            source_format, ", ".join(IMPORTERS)
        ))

    if source_format == "canonical":
        return await import_canonical_document(source, video_reference=video_reference)

    if video_reference is None:
        raise FormatError("A video URL is required to import {} sources".format(source_format))
    return IMPORTERS[source_format](source, video_reference, language=language)
